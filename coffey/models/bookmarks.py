"""Normalized bookmark index, one row per external (Raindrop) item."""

from datetime import datetime

from sqlalchemy import DateTime, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from coffey.models.base import Base, JSONType


class Bookmark(Base):
    __tablename__ = "bookmark"

    # External id of the bookmark
    uuid: Mapped[str] = mapped_column(String, primary_key=True)

    sha256: Mapped[str] = mapped_column(String(64), nullable=False, index=True)

    link: Mapped[str] = mapped_column(Text, nullable=False)

    title: Mapped[str | None] = mapped_column(Text, nullable=True)

    excerpt: Mapped[str | None] = mapped_column(Text, nullable=True)

    domain: Mapped[str | None] = mapped_column(String, nullable=True)

    type: Mapped[str | None] = mapped_column(String, nullable=True)

    cover_url: Mapped[str | None] = mapped_column(Text, nullable=True)

    collection_id: Mapped[int | None] = mapped_column(Integer, nullable=True)

    collection_title: Mapped[str | None] = mapped_column(String, nullable=True)

    tags: Mapped[list] = mapped_column(JSONType, nullable=False, default=list)

    # Timestamps reported by the bookmarking service (ISO text)
    created_at: Mapped[str | None] = mapped_column(String, nullable=True, index=True)

    updated_at: Mapped[str | None] = mapped_column(String, nullable=True)

    synced_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
    )

    blob_key: Mapped[str | None] = mapped_column(String, nullable=True)

    # Set once an archived copy has been stored
    artifact_key: Mapped[str | None] = mapped_column(String, nullable=True)
