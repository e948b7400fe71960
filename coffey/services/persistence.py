"""Blob + index writes shared by chatter, image and bookmark pipelines.

The two stores are written independently: a failed blob write does not stop
the index insert, and a failed index insert does not undo the blob. Drift is
reported by ``DataService.delta`` for external repair.
"""

from __future__ import annotations

import json
from typing import Any, Dict, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from coffey.core.blobstore import BlobStore
from coffey.core.logging import get_logger
from coffey.core.timeutils import date_prefix

log = get_logger("services.persistence")


# ---------------------------------------------------------------------------
# Key conventions: the date prefix is the record's semantic date
# ---------------------------------------------------------------------------
def chatter_key(created_at: str, digest: str) -> str:
    return f"chatter/json/{date_prefix(created_at)}-sha_{digest}.json"


def image_key(date_taken: Optional[str], digest: str) -> str:
    return f"images/json/{date_prefix(date_taken)}_sha_{digest}.json"


def bookmark_key(created_at: Optional[str], digest: str) -> str:
    return f"bookmarks/json/{date_prefix(created_at)}-sha_{digest}.json"


def artifact_key(created_at: Optional[str], digest: str) -> str:
    return f"artifacts/json/{date_prefix(created_at)}-sha_{digest}.json"


class PersistenceGateway:
    def __init__(self, db: Session, blobs: BlobStore):
        self.db = db
        self.blobs = blobs

    async def write_blob(self, key: str, record: Dict[str, Any], metadata: Optional[Dict[str, str]] = None) -> bool:
        try:
            await self.blobs.put(key, json.dumps(record, indent=2), content_type="application/json", metadata=metadata)
        except (OSError, ValueError) as exc:
            log.error(f"Blob write failed for {key}: {exc}")
            return False
        log.info(f"Stored {key}")
        return True

    def insert_index(self, row: Any) -> bool:
        """Insert-or-replace one index row."""
        try:
            self.db.merge(row)
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            log.error(f"Index insert failed for {type(row).__name__}: {exc}")
            return False
        return True
