from datetime import datetime

from sqlalchemy import Boolean, DateTime, String, func
from sqlalchemy.orm import Mapped, mapped_column

from coffey.models.base import Base


class ChatterIndex(Base):
    __tablename__ = "chatter"

    sha256: Mapped[str] = mapped_column(String(64), primary_key=True)

    record_id: Mapped[str] = mapped_column(String, nullable=False)

    title: Mapped[str | None] = mapped_column(String, nullable=True)

    publish: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    blob_key: Mapped[str] = mapped_column(String, nullable=False)

    # Record's semantic creation time (may be backdated by the client)
    created_at: Mapped[str] = mapped_column(String, nullable=False, index=True)

    indexed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
    )
