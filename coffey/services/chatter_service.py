from __future__ import annotations

import json
from typing import Any, Dict

from sqlalchemy.orm import Session

from coffey.core.blobstore import BlobStore
from coffey.core.logging import get_logger
from coffey.models.chatter import ChatterIndex
from coffey.providers import ProviderSet
from coffey.schemas.chatter import CreateChatterRequest
from coffey.services.enrichment import EnrichmentService
from coffey.services.persistence import PersistenceGateway, chatter_key
from coffey.services.records import assemble

log = get_logger("services.chatter")

SCHEMA_VERSION = "1.0.0"


class ChatterService:
    """Create enriched chatter posts, deduplicated by content hash."""

    def __init__(self, db: Session, blobs: BlobStore, providers: ProviderSet):
        self.db = db
        self.blobs = blobs
        self.gateway = PersistenceGateway(db, blobs)
        self.enrichment = EnrichmentService(providers)

    async def create(self, request: CreateChatterRequest, created_by: str) -> Dict[str, Any]:
        data = await self.enrichment.enrich_chatter(request)
        record = assemble(
            "chatter",
            data,
            created_at=request.created_at,
            schema_version=SCHEMA_VERSION,
            created_by=created_by,
        )
        digest = record["sha256"]

        existing = self.db.get(ChatterIndex, digest)
        if existing is not None:
            log.info(f"Duplicate chatter {digest}, already stored at {existing.blob_key}")
            stored = await self.blobs.get(existing.blob_key) if existing.blob_key else None
            if stored is not None:
                record = json.loads(stored)
            return {"record": record, "object_key": existing.blob_key, "is_duplicate": True}

        key = chatter_key(record["created_at"], digest)
        await self.gateway.write_blob(key, record, metadata={"chatter-sha256": digest})
        self.gateway.insert_index(
            ChatterIndex(
                sha256=digest,
                record_id=record["id"],
                title=data.get("title"),
                publish=data["publish"],
                blob_key=key,
                created_at=record["created_at"],
            )
        )
        log.info(f"Created chatter {record['id']}")
        return {"record": record, "object_key": key, "is_duplicate": False}
