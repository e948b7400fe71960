"""Image upload pipeline and image index queries.

The raw file hash is checked before anything else: a live duplicate costs one
index lookup and nothing more.
"""

from __future__ import annotations

import json
from typing import Any, Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from coffey.core.blobstore import BlobStore
from coffey.core.errors import NotFoundError, UploadError, ValidationError, error_message
from coffey.core.hashing import sha256_hex
from coffey.core.logging import get_logger
from coffey.core.timeutils import parse_timestamp, to_iso, utcnow
from coffey.models.images import Image
from coffey.providers import ProviderSet
from coffey.providers.image_host import VARIANTS
from coffey.services.enrichment import IMAGE_CATEGORIES, EnrichmentService
from coffey.services.metadata import extract_metadata
from coffey.services.persistence import PersistenceGateway, image_key
from coffey.services.records import assemble

log = get_logger("services.images")

ALLOWED_IMAGE_TYPES = ("image/jpeg", "image/png", "image/gif", "image/webp")
SCHEMA_VERSION = "1.0"
DEFAULT_LIST_LIMIT = 100
MAX_LIST_LIMIT = 1000

EXIF_METADATA_KEYS = {
    "make": "exif-make",
    "model": "exif-model",
    "lensModel": "exif-lens-model",
    "dateTimeOriginal": "exif-date-time-original",
    "latitude": "exif-gps-latitude",
    "longitude": "exif-gps-longitude",
    "iso": "exif-iso",
    "fNumber": "exif-f-number",
    "exposureTime": "exif-exposure-time",
    "focalLength": "exif-focal-length",
    "software": "exif-software",
}


def public_key(digest: str) -> str:
    return f"images/sha_{digest}"


def strip_prefix(value: str) -> str:
    return value[4:] if value.startswith("sha_") else value


def build_custom_metadata(
    filename: str,
    size: int,
    digest: str,
    metadata: Dict[str, Any],
    uploaded_at: str,
) -> Dict[str, str]:
    """Flat string map attached to the hosted image."""
    custom = {
        "uploaded-at": uploaded_at,
        "original-filename": filename,
        "file-size": str(size),
        "sha256": digest,
    }
    file_info = metadata.get("file", {})
    for field in ("width", "height", "format"):
        if file_info.get(field):
            custom[field] = str(file_info[field])
    for field, key in EXIF_METADATA_KEYS.items():
        value = metadata.get("exif", {}).get(field)
        if value:
            custom[key] = str(value)
    return custom


def image_row_out(row: Image) -> Dict[str, Any]:
    return {
        "key": public_key(row.sha256),
        "uploaded_at": to_iso(row.created_at) if row.created_at else None,
        "customMetadata": {
            "uuid": row.uuid or "",
            "sha256": row.sha256,
            "original-filename": row.original_filename or "",
            "date-taken": row.date_taken or "",
        },
    }


class ImageService:
    def __init__(self, db: Session, blobs: BlobStore, providers: ProviderSet):
        self.db = db
        self.blobs = blobs
        self.providers = providers
        self.gateway = PersistenceGateway(db, blobs)
        self.enrichment = EnrichmentService(providers)

    # =========================================================================
    # Lookups
    # =========================================================================
    def find_live(self, digest: str) -> Optional[Image]:
        stmt = select(Image).where(Image.sha256 == digest, Image.deleted_at.is_(None))
        return self.db.execute(stmt).scalar_one_or_none()

    async def _stored_metadata(self, row: Image) -> Dict[str, Any]:
        if row.blob_key:
            body = await self.blobs.get(row.blob_key)
            if body is not None:
                data = json.loads(body).get("data", {})
                return {k: v for k, v in data.items() if k != "environment"}
        return {"file": {}}

    # =========================================================================
    # Upload
    # =========================================================================
    async def upload(self, content: bytes, filename: str, content_type: str) -> Dict[str, Any]:
        if content_type not in ALLOWED_IMAGE_TYPES:
            raise UploadError(
                f"Invalid file type: {content_type}. Allowed types: {', '.join(ALLOWED_IMAGE_TYPES)}",
                status_code=400,
            )

        digest = sha256_hex(content)
        existing = self.find_live(digest)
        if existing is not None:
            log.info(f"Duplicate image {digest} ({filename}), skipping upload")
            return {
                "object_key": public_key(digest),
                "uuid": existing.uuid,
                "metadata": await self._stored_metadata(existing),
                "uploaded_at": to_iso(existing.created_at),
                "is_duplicate": True,
            }

        metadata = extract_metadata(content, content_type)
        metadata["file"]["sha256"] = digest
        exif = metadata.get("exif", {})
        taken = parse_timestamp(exif.get("dateTimeOriginal"))
        if taken is not None:
            exif["dateTimeOriginal"] = to_iso(taken)

        environment: Dict[str, Any] = {}
        if exif.get("latitude") is not None and exif.get("longitude") is not None:
            categories = [c for c in IMAGE_CATEGORIES if c != "weather" or taken is not None]
            environment = await self.enrichment.gather_environment(
                exif["latitude"],
                exif["longitude"],
                when=exif.get("dateTimeOriginal"),
                categories=categories,
            )

        uploaded = utcnow()
        uploaded_at = to_iso(uploaded)
        custom = build_custom_metadata(filename, len(content), digest, metadata, uploaded_at)
        uuid = await self.providers.image_host.upload(content, filename, content_type, custom)

        data = dict(metadata)
        if environment:
            data["environment"] = environment
        record = assemble(
            "image",
            data,
            created_at=uploaded_at,
            schema_version=SCHEMA_VERSION,
            uuid=uuid,
            original_filename=filename,
        )

        key = image_key(exif.get("dateTimeOriginal") or uploaded_at, digest)
        await self.gateway.write_blob(key, record, metadata={"uuid": uuid, "sha256": digest})
        self.gateway.insert_index(
            Image(
                sha256=digest,
                uuid=uuid,
                record_id=record["id"],
                original_filename=filename,
                date_taken=exif.get("dateTimeOriginal"),
                blob_key=key,
                created_at=uploaded,
                updated_at=uploaded,
                deleted_at=None,
            )
        )
        log.info(f"Uploaded image {filename} as {uuid} ({digest})")

        response_metadata = dict(metadata)
        if environment:
            response_metadata.update(environment)
        return {
            "object_key": public_key(digest),
            "uuid": uuid,
            "metadata": response_metadata,
            "uploaded_at": uploaded_at,
            "is_duplicate": False,
        }

    # =========================================================================
    # Listing, search, delete
    # =========================================================================
    def list_images(self, limit: int = DEFAULT_LIST_LIMIT) -> List[Image]:
        limit = max(1, min(limit, MAX_LIST_LIMIT))
        stmt = (
            select(Image)
            .where(Image.deleted_at.is_(None))
            .order_by(Image.created_at.desc())
            .limit(limit)
        )
        return list(self.db.execute(stmt).scalars())

    def search(
        self,
        uuid: Optional[str] = None,
        sha256: Optional[str] = None,
        filename: Optional[str] = None,
    ) -> List[Image]:
        """Exact match on the first criterion given."""
        if uuid:
            clause = Image.uuid == uuid
        elif sha256:
            clause = Image.sha256 == strip_prefix(sha256)
        elif filename:
            clause = Image.original_filename == filename
        else:
            raise ValidationError("One of uuid, sha256 or filename is required")
        stmt = select(Image).where(clause, Image.deleted_at.is_(None))
        return list(self.db.execute(stmt).scalars())

    async def delete(self, digest: str) -> Image:
        digest = strip_prefix(digest)
        row = self.find_live(digest)
        if row is None:
            raise NotFoundError(f"Image not found: {digest}")

        try:
            await self.providers.image_host.delete(row.uuid)
        except Exception as exc:  # noqa: BLE001
            log.error(f"Image host delete failed for {row.uuid}, soft-deleting anyway: {error_message(exc)}")

        now = utcnow()
        row.deleted_at = now
        row.updated_at = now
        self.db.commit()
        log.info(f"Soft-deleted image {digest}")
        return row

    # =========================================================================
    # Public delivery
    # =========================================================================
    def signed_redirect(self, digest: str, variant: str) -> str:
        if variant not in VARIANTS:
            raise ValidationError(f"Invalid variant: {variant}. Allowed: {', '.join(VARIANTS)}")
        row = self.find_live(strip_prefix(digest))
        if row is None:
            raise NotFoundError("Image not found")
        return self.providers.image_host.signed_url(row.uuid, variant)
