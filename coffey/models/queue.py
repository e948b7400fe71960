"""Tables backing the work-item KV store and the delayed message queue."""

import uuid
from datetime import datetime

from sqlalchemy import DateTime, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column

from coffey.models.base import Base, JSONType


class WorkItem(Base):
    __tablename__ = "work_items"

    key: Mapped[str] = mapped_column(String, primary_key=True)

    value: Mapped[dict] = mapped_column(JSONType, nullable=False)

    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, index=True)


class QueueMessage(Base):
    __tablename__ = "queue_messages"

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid.uuid4()),
    )

    queue: Mapped[str] = mapped_column(String, nullable=False, index=True)

    body: Mapped[dict] = mapped_column(JSONType, nullable=False)

    # Not visible to consumers before this time (initial delay or lease)
    available_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, index=True)

    # Native redeliveries so far
    attempts: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
    )
