"""API dependencies"""

from functools import lru_cache
from typing import Generator, Optional

from fastapi import Header, HTTPException
from sqlalchemy.orm import Session

from coffey.core.blobstore import BlobStore
from coffey.core.config import settings
from coffey.core.db import SessionLocal
from coffey.core.logging import get_logger
from coffey.providers import ProviderSet

log = get_logger("api.deps")

ACCESS_EMAIL_HEADER = "Cf-Access-Authenticated-User-Email"


def get_db() -> Generator[Session, None, None]:
    """Database dependency"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@lru_cache
def get_blob_store() -> BlobStore:
    return BlobStore(settings.BLOB_STORE_PATH)


def get_providers() -> ProviderSet:
    return ProviderSet.from_credentials(settings.credentials)


def require_admin(
    email: Optional[str] = Header(None, alias=ACCESS_EMAIL_HEADER),
) -> str:
    """Authenticated admin identity, as asserted by the access proxy."""
    if not email:
        raise HTTPException(status_code=401, detail="Authentication required")
    allowed = settings.admin_emails
    if allowed and email.strip().lower() not in allowed:
        log.warning(f"Rejected admin request from {email}")
        raise HTTPException(status_code=403, detail="Forbidden")
    return email
