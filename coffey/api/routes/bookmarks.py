"""Bookmark routes - trigger sync/consume passes and list the index."""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from coffey.api.deps import get_blob_store, get_db, get_providers, require_admin
from coffey.core.blobstore import BlobStore
from coffey.core.logging import get_logger
from coffey.providers import ProviderSet
from coffey.schemas.api import BookmarkOut, ConsumeResponse, SyncResponse
from coffey.services.bookmark_service import BookmarkConsumer, BookmarkSync
from coffey.services.data_service import DataService

router = APIRouter(prefix="/admin/bookmarks", tags=["bookmarks"], dependencies=[Depends(require_admin)])
log = get_logger("bookmark_routes")


@router.post("/sync", response_model=SyncResponse)
async def run_sync(
    db: Session = Depends(get_db),
    providers: ProviderSet = Depends(get_providers),
):
    """Check the newest bookmarks and queue work for unseen ones."""
    log.info("Bookmark sync triggered")
    return SyncResponse(**await BookmarkSync(db, providers.raindrop).run())


@router.post("/consume", response_model=ConsumeResponse)
async def run_consume(
    max_messages: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
    blobs: BlobStore = Depends(get_blob_store),
    providers: ProviderSet = Depends(get_providers),
):
    """Process one batch of due bookmark queue messages."""
    consumer = BookmarkConsumer(db, blobs, providers.raindrop)
    return ConsumeResponse(**await consumer.run_batch(max_messages=max_messages))


@router.get("", response_model=list[BookmarkOut])
def list_bookmarks(
    limit: int = Query(100, ge=1, le=1000),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
):
    """Indexed bookmarks, newest first."""
    return DataService(db).get_bookmarks(limit=limit, offset=offset)
