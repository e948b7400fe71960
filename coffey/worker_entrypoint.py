"""Worker entrypoint - Standalone script for bookmark sync jobs.

Usage:
    python -m coffey.worker_entrypoint              # Sync, then consume one batch
    python -m coffey.worker_entrypoint sync         # Producer pass only
    python -m coffey.worker_entrypoint consume      # Consumer batch only
"""

import asyncio
import sys

from coffey.core.blobstore import BlobStore
from coffey.core.config import settings
from coffey.core.db import SessionLocal
from coffey.core.logging import get_logger
from coffey.providers import ProviderSet
from coffey.services.bookmark_service import BookmarkConsumer, BookmarkSync

logger = get_logger("worker_entrypoint")

JOBS = ("sync", "consume", "all")


async def run_sync():
    """Queue work for bookmarks missing from the index."""
    providers = ProviderSet.from_credentials(settings.credentials)
    with SessionLocal() as db:
        result = await BookmarkSync(db, providers.raindrop).run()
        logger.info(f"Sync completed: {result}")
        return result


async def run_consume():
    """Process one batch of due bookmark messages."""
    providers = ProviderSet.from_credentials(settings.credentials)
    with SessionLocal() as db:
        consumer = BookmarkConsumer(db, BlobStore(settings.BLOB_STORE_PATH), providers.raindrop)
        result = await consumer.run_batch()
        logger.info(f"Consume completed: {result}")
        return result


async def run_job(job: str) -> dict:
    results = {}
    if job in ("sync", "all"):
        results["sync"] = await run_sync()
    if job in ("consume", "all"):
        results["consume"] = await run_consume()
    return results


def main():
    """Main entry point for the bookmark worker."""
    job = sys.argv[1] if len(sys.argv) > 1 else "all"
    if job not in JOBS:
        logger.error(f"Invalid job: {job}. Must be one of: {', '.join(JOBS)}")
        sys.exit(1)

    logger.info(f"Bookmark worker starting ({job})...")
    try:
        result = asyncio.run(run_job(job))
    except Exception as exc:
        logger.exception(f"Bookmark worker failed: {exc}")
        sys.exit(1)

    logger.info(f"Bookmark worker completed: {result}")

    # Exit with error code if any message failed
    if result.get("consume", {}).get("failed"):
        sys.exit(1)

    return result


if __name__ == "__main__":
    main()
