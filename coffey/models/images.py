"""Index of uploaded images, keyed by the SHA-256 of the raw file bytes."""

from datetime import datetime

from sqlalchemy import DateTime, String, func
from sqlalchemy.orm import Mapped, mapped_column

from coffey.models.base import Base


class Image(Base):
    __tablename__ = "images"

    sha256: Mapped[str] = mapped_column(String(64), primary_key=True)

    # Image-host identifier (used to build delivery URLs)
    uuid: Mapped[str] = mapped_column(String, nullable=False, index=True)

    record_id: Mapped[str | None] = mapped_column(String, nullable=True)

    original_filename: Mapped[str | None] = mapped_column(String, nullable=True, index=True)

    # EXIF capture time as extracted (free-form text, may be absent)
    date_taken: Mapped[str | None] = mapped_column(String, nullable=True)

    blob_key: Mapped[str | None] = mapped_column(String, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
    )

    # Soft delete marker; live rows have NULL here
    deleted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
