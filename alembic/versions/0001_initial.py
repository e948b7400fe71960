"""initial schema: images, chatter, bookmark, work items, queue

Revision ID: 0001_initial
Revises:
Create Date: 2026-01-12 10:00:00.000000
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = "0001_initial"
down_revision = None
branch_labels = None
depends_on = None

JSON = sa.JSON().with_variant(postgresql.JSONB(astext_type=sa.Text()), "postgresql")
NOW = sa.text("CURRENT_TIMESTAMP")


def upgrade() -> None:
    op.create_table(
        "images",
        sa.Column("sha256", sa.String(length=64), nullable=False),
        sa.Column("uuid", sa.String(), nullable=False),
        sa.Column("record_id", sa.String(), nullable=True),
        sa.Column("original_filename", sa.String(), nullable=True),
        sa.Column("date_taken", sa.String(), nullable=True),
        sa.Column("blob_key", sa.String(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=NOW, nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=NOW, nullable=True),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("sha256"),
    )
    op.create_index("ix_images_uuid", "images", ["uuid"])
    op.create_index("ix_images_original_filename", "images", ["original_filename"])

    op.create_table(
        "chatter",
        sa.Column("sha256", sa.String(length=64), nullable=False),
        sa.Column("record_id", sa.String(), nullable=False),
        sa.Column("title", sa.String(), nullable=True),
        sa.Column("publish", sa.Boolean(), nullable=False),
        sa.Column("blob_key", sa.String(), nullable=False),
        sa.Column("created_at", sa.String(), nullable=False),
        sa.Column("indexed_at", sa.DateTime(timezone=True), server_default=NOW, nullable=True),
        sa.PrimaryKeyConstraint("sha256"),
    )
    op.create_index("ix_chatter_created_at", "chatter", ["created_at"])

    op.create_table(
        "bookmark",
        sa.Column("uuid", sa.String(), nullable=False),
        sa.Column("sha256", sa.String(length=64), nullable=False),
        sa.Column("link", sa.Text(), nullable=False),
        sa.Column("title", sa.Text(), nullable=True),
        sa.Column("excerpt", sa.Text(), nullable=True),
        sa.Column("domain", sa.String(), nullable=True),
        sa.Column("type", sa.String(), nullable=True),
        sa.Column("cover_url", sa.Text(), nullable=True),
        sa.Column("collection_id", sa.Integer(), nullable=True),
        sa.Column("collection_title", sa.String(), nullable=True),
        sa.Column("tags", JSON, nullable=False),
        sa.Column("created_at", sa.String(), nullable=True),
        sa.Column("updated_at", sa.String(), nullable=True),
        sa.Column("synced_at", sa.DateTime(timezone=True), server_default=NOW, nullable=True),
        sa.Column("blob_key", sa.String(), nullable=True),
        sa.Column("artifact_key", sa.String(), nullable=True),
        sa.PrimaryKeyConstraint("uuid"),
    )
    op.create_index("ix_bookmark_sha256", "bookmark", ["sha256"])
    op.create_index("ix_bookmark_created_at", "bookmark", ["created_at"])

    op.create_table(
        "work_items",
        sa.Column("key", sa.String(), nullable=False),
        sa.Column("value", JSON, nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("key"),
    )
    op.create_index("ix_work_items_expires_at", "work_items", ["expires_at"])

    op.create_table(
        "queue_messages",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("queue", sa.String(), nullable=False),
        sa.Column("body", JSON, nullable=False),
        sa.Column("available_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("attempts", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=NOW, nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_queue_messages_queue", "queue_messages", ["queue"])
    op.create_index("ix_queue_messages_available_at", "queue_messages", ["available_at"])


def downgrade() -> None:
    op.drop_table("queue_messages")
    op.drop_table("work_items")
    op.drop_table("bookmark")
    op.drop_table("chatter")
    op.drop_table("images")
