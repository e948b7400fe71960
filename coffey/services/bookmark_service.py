"""Bookmark sync: producer (diff remote list against the index) and queue consumer.

Two retry layers are kept apart:

* ``retry_count`` in the work item counts "artifact not there yet" attempts and
  re-enqueues with a fixed 12h delay until ``MAX_RETRIES``.
* an exception while handling a message leaves it to the queue's own
  redelivery (``MessageQueue.retry``), which has its own attempt ceiling.
"""

from __future__ import annotations

import random
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from coffey.core.blobstore import BlobStore
from coffey.core.errors import ProviderError, TransientFetchError, error_message
from coffey.core.logging import get_logger
from coffey.core.queue import MessageQueue
from coffey.core.timeutils import now_iso
from coffey.core.workstore import WorkItemStore
from coffey.models.bookmarks import Bookmark
from coffey.providers.raindrop import PAGE_SIZE, RaindropClient
from coffey.schemas.bookmarks import BookmarkMessage, WorkItemState
from coffey.services.persistence import PersistenceGateway, artifact_key, bookmark_key
from coffey.services.records import assemble

log = get_logger("bookmarks")

QUEUE_NAME = "bookmark-sync"
WORK_TTL_SECONDS = 60 * 60 * 24 * 14
MAX_RETRIES = 14
RETRY_DELAY_SECONDS = 43200
MESSAGE_RETRY_DELAY_SECONDS = 300
JITTER_HOURS = (1, 11)

SCHEMA_VERSION = "1.0.0"
ARTIFACT_SCHEMA_VERSION = "1.0"

# Consumer outcomes
SKIPPED = "skipped"
ALREADY_DONE = "already_done"
COMPLETED = "completed"
REQUEUED = "requeued"
GAVE_UP = "gave_up"


def work_key(external_id: Any) -> str:
    return f"work:{external_id}"


def initial_delay() -> int:
    return random.randint(*JITTER_HOURS) * 3600


def _collection_id(raindrop: Dict[str, Any]) -> Optional[int]:
    collection = raindrop.get("collection") or {}
    return collection.get("$id")


# =============================================================================
# Record building
# =============================================================================
def build_bookmark_data(
    client: RaindropClient,
    raindrop: Dict[str, Any],
    collection: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    """The raw raindrop wrapped as a provider snapshot, plus collection info."""
    data: Dict[str, Any] = {
        "raindrop": {
            "captured_at": now_iso(),
            "provider": {"name": client.name, "product": client.product, "version": client.version},
            "summary": raindrop,
        }
    }
    if collection is not None:
        data["collection"] = {
            "id": collection.get("_id"),
            "title": collection.get("title"),
            "parent_id": (collection.get("parent") or {}).get("$id"),
        }
    return data


def bookmark_row(record: Dict[str, Any], blob_key: str) -> Bookmark:
    raindrop = record["data"]["raindrop"]["summary"]
    collection = record["data"].get("collection") or {}
    return Bookmark(
        uuid=str(raindrop["_id"]),
        sha256=record["sha256"],
        link=raindrop.get("link") or "",
        title=raindrop.get("title"),
        excerpt=raindrop.get("excerpt") or None,
        domain=raindrop.get("domain") or None,
        type=raindrop.get("type"),
        cover_url=raindrop.get("cover") or None,
        collection_id=collection.get("id"),
        collection_title=collection.get("title"),
        tags=list(raindrop.get("tags") or []),
        created_at=raindrop.get("created"),
        updated_at=raindrop.get("lastUpdate"),
        blob_key=blob_key,
    )


def build_artifact(
    raindrop: Dict[str, Any],
    bookmark_sha: str,
    content: str,
    content_type: str,
) -> Dict[str, Any]:
    """Archived page copy. Identified by the hash of the bookmark it belongs to."""
    archived_at = now_iso()
    return {
        "type": "bookmark-artifact",
        "id": f"sha256:{bookmark_sha}",
        "schema_version": ARTIFACT_SCHEMA_VERSION,
        "created_at": archived_at,
        "sha256": bookmark_sha,
        "data": {
            "uuid": raindrop["_id"],
            "link": raindrop.get("link"),
            "content": content,
            "content_type": content_type,
            "size_bytes": len(content.encode("utf-8")),
            "archived_at": archived_at,
            "raindrop_cache_created": (raindrop.get("cache") or {}).get("created"),
        },
    }


# =============================================================================
# Producer
# =============================================================================
class BookmarkSync:
    """Periodic producer: enqueue newest remote items missing from the index."""

    def __init__(self, db: Session, client: RaindropClient):
        self.db = db
        self.client = client
        self.work = WorkItemStore(db)
        self.queue = MessageQueue(db, QUEUE_NAME)

    async def run(self) -> Dict[str, int]:
        log.info(f"Starting bookmark sync (checking newest {PAGE_SIZE})")
        purged = self.work.purge_expired()
        if purged:
            log.info(f"Purged {purged} expired work items")
        items = await self.client.list_raindrops(collection_id=0, perpage=PAGE_SIZE, sort="-created")
        if not items:
            log.info("No raindrops found")
            return {"new": 0, "existing": 0}

        new_count = 0
        existing_count = 0
        for raindrop in items:
            external_id = raindrop["_id"]
            if self.db.get(Bookmark, str(external_id)) is not None:
                existing_count += 1
                continue
            if self.work.get(work_key(external_id)) is not None:
                log.debug(f"Bookmark {external_id} already in flight")
                existing_count += 1
                continue

            state = WorkItemState(
                external_id=external_id,
                collection_id=_collection_id(raindrop),
                created_at=now_iso(),
            )
            self.work.put(work_key(external_id), state.model_dump(), WORK_TTL_SECONDS)
            delay = initial_delay()
            message = BookmarkMessage(external_id=external_id, collection_id=state.collection_id)
            self.queue.send(message.model_dump(), delay_seconds=delay)
            log.info(f"Work item created for bookmark {external_id}, first attempt in {delay // 3600}h")
            new_count += 1

        log.info(f"Sync complete: {new_count} new, {existing_count} existing")
        return {"new": new_count, "existing": existing_count}


# =============================================================================
# Consumer
# =============================================================================
class BookmarkConsumer:
    def __init__(self, db: Session, blobs: BlobStore, client: RaindropClient):
        self.db = db
        self.client = client
        self.gateway = PersistenceGateway(db, blobs)
        self.work = WorkItemStore(db)
        self.queue = MessageQueue(db, QUEUE_NAME)

    async def process(self, body: Dict[str, Any]) -> str:
        """Handle one queue message body. Raises on unexpected failure."""
        message = BookmarkMessage.model_validate(body)
        external_id = message.external_id
        key = work_key(external_id)

        raw_state = self.work.get(key)
        if raw_state is None:
            log.info(f"No work item for bookmark {external_id}, skipping")
            return SKIPPED
        state = WorkItemState.model_validate(raw_state)

        row = self.db.get(Bookmark, str(external_id))
        if row is not None and (row.artifact_key or state.retry_count == 0):
            log.info(f"Bookmark {external_id} already indexed, dropping work item")
            self.work.delete(key)
            return ALREADY_DONE

        if row is None:
            raindrop = await self.client.get_raindrop(external_id)
            collections = await self.client.list_collections()
            collection_id = message.collection_id if message.collection_id is not None else _collection_id(raindrop)
            collection = next((c for c in collections if c.get("_id") == collection_id), None)

            record = assemble(
                "bookmark",
                build_bookmark_data(self.client, raindrop, collection),
                created_at=raindrop.get("created"),
                schema_version=SCHEMA_VERSION,
            )
            blob_key = bookmark_key(raindrop.get("created"), record["sha256"])
            await self.gateway.write_blob(
                blob_key,
                record,
                metadata={
                    "bookmark-uuid": str(external_id),
                    "bookmark-sha256": record["sha256"],
                    "raindrop-created": raindrop.get("created") or "",
                },
            )
            row = bookmark_row(record, blob_key)
            self.gateway.insert_index(row)
            log.info(f"Stored bookmark metadata for {external_id}")
        else:
            # Metadata stored on an earlier attempt; only the artifact is outstanding
            raindrop = await self.client.get_raindrop(external_id)

        try:
            stored = await self.store_artifact(raindrop, row)
        except TransientFetchError as exc:
            log.info(f"Artifact for bookmark {external_id} not stored: {exc.message}")
        else:
            row.artifact_key = stored
            self.gateway.insert_index(row)
            self.work.delete(key)
            log.info(f"Bookmark {external_id} complete (with artifact)")
            return COMPLETED

        return self.schedule_retry(key, state, message)

    async def store_artifact(self, raindrop: Dict[str, Any], row: Bookmark) -> str:
        """Download the permanent copy and store it; raises TransientFetchError when not possible yet."""
        external_id = raindrop["_id"]
        status = (raindrop.get("cache") or {}).get("status", "no-cache")
        if status != "ready":
            raise TransientFetchError(f"permanent copy status is {status}")

        try:
            url = await self.client.permanent_copy_url(external_id)
            if not url:
                raise TransientFetchError("no permanent copy available")
            resp = await self.client.download(url)
        except ProviderError as exc:
            raise TransientFetchError(f"permanent copy download failed: {exc.message}") from exc

        content_type = resp.headers.get("content-type", "text/html")
        artifact = build_artifact(raindrop, row.sha256, resp.text, content_type)
        key = artifact_key(raindrop.get("created"), row.sha256)
        ok = await self.gateway.write_blob(
            key,
            artifact,
            metadata={"raindrop-id": str(external_id), "bookmark-sha256": row.sha256},
        )
        if not ok:
            raise TransientFetchError("artifact blob write failed")
        return key

    def schedule_retry(self, key: str, state: WorkItemState, message: BookmarkMessage) -> str:
        state.retry_count += 1
        state.last_attempt_at = now_iso()
        if state.retry_count >= MAX_RETRIES:
            log.warning(f"Max retries exceeded for bookmark {state.external_id}, giving up (metadata kept)")
            self.work.delete(key)
            return GAVE_UP

        self.work.put(key, state.model_dump(), WORK_TTL_SECONDS)
        self.queue.send(message.model_dump(), delay_seconds=RETRY_DELAY_SECONDS)
        log.info(f"Re-queued bookmark {state.external_id} (retry {state.retry_count}/{MAX_RETRIES})")
        return REQUEUED

    async def run_batch(self, max_messages: int = 10) -> Dict[str, int]:
        """Receive due messages and process each; ack on success, native retry on error."""
        messages = self.queue.receive(max_messages=max_messages)
        if messages:
            log.info(f"Processing bookmark queue batch: {len(messages)} messages")

        processed = 0
        failed = 0
        for msg in messages:
            try:
                await self.process(msg.body)
            except Exception as exc:  # noqa: BLE001
                self.db.rollback()
                log.error(f"Error processing message {msg.id}: {error_message(exc)}, will be redelivered")
                self.queue.retry(msg.id, delay_seconds=MESSAGE_RETRY_DELAY_SECONDS)
                failed += 1
            else:
                self.queue.ack(msg.id)
                processed += 1
        return {"processed": processed, "failed": failed}
