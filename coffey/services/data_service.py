"""Data Service - read-only counts and index-vs-blob consistency checks."""

from __future__ import annotations

from typing import Any, Dict, List, Set

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from coffey.core.blobstore import BlobStore
from coffey.core.logging import get_logger
from coffey.core.queue import MessageQueue
from coffey.core.workstore import WorkItemStore
from coffey.models.bookmarks import Bookmark
from coffey.models.chatter import ChatterIndex
from coffey.models.images import Image
from coffey.services.bookmark_service import QUEUE_NAME

log = get_logger("data_service")

INDEXED_PREFIXES = ("chatter/json/", "images/json/", "bookmarks/json/", "artifacts/json/")


class DataService:
    """Handles all data query operations - reads only, no writes."""

    def __init__(self, db: Session):
        self.db = db

    def _count(self, stmt) -> int:
        return self.db.execute(stmt).scalar() or 0

    # -------------------------------------------------------------------------
    # Counts
    # -------------------------------------------------------------------------
    def get_stats(self) -> Dict[str, int]:
        images = select(func.count()).select_from(Image)
        bookmarks = select(func.count()).select_from(Bookmark)
        return {
            "images_live": self._count(images.where(Image.deleted_at.is_(None))),
            "images_deleted": self._count(images.where(Image.deleted_at.is_not(None))),
            "chatter": self._count(select(func.count()).select_from(ChatterIndex)),
            "bookmarks": self._count(bookmarks),
            "bookmarks_with_artifact": self._count(bookmarks.where(Bookmark.artifact_key.is_not(None))),
            "pending_work_items": WorkItemStore(self.db).count(),
            "queued_messages": MessageQueue(self.db, QUEUE_NAME).pending(),
        }

    def get_bookmarks(self, limit: int = 100, offset: int = 0) -> List[Bookmark]:
        stmt = select(Bookmark).order_by(Bookmark.created_at.desc()).limit(limit).offset(offset)
        return list(self.db.execute(stmt).scalars().all())

    # -------------------------------------------------------------------------
    # Index vs blob store
    # -------------------------------------------------------------------------
    def indexed_keys(self) -> Set[str]:
        keys: Set[str] = set()
        for column in (Image.blob_key, ChatterIndex.blob_key, Bookmark.blob_key, Bookmark.artifact_key):
            keys.update(k for k in self.db.execute(select(column).where(column.is_not(None))).scalars())
        return keys

    async def delta(self, blobs: BlobStore) -> Dict[str, Any]:
        """Blob keys with no index row, and index rows whose blob is missing."""
        stored: Set[str] = set()
        for prefix in INDEXED_PREFIXES:
            stored.update(await blobs.list(prefix))
        indexed = self.indexed_keys()

        result = {
            "blobs_without_index": sorted(stored - indexed),
            "index_without_blob": sorted(indexed - stored),
        }
        if result["blobs_without_index"] or result["index_without_blob"]:
            log.warning(
                f"Index/blob drift: {len(result['blobs_without_index'])} unindexed blobs, "
                f"{len(result['index_without_blob'])} missing blobs"
            )
        return result
