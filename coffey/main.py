from pathlib import Path
from contextlib import asynccontextmanager
import asyncio
from typing import Awaitable, Callable, List

from alembic import command
from alembic.config import Config
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from coffey.api.routes import bookmarks, chatter, geo, health, images, stats
from coffey.api.deps import get_blob_store
from coffey.core.config import settings
from coffey.core.db import SessionLocal
from coffey.core.errors import CoffeyError
from coffey.core.logging import get_logger
from coffey.providers import ProviderSet
from coffey.services.bookmark_service import BookmarkConsumer, BookmarkSync


log = get_logger("app")

# Background task handles
_tasks: List[asyncio.Task] = []


def run_migrations() -> None:
    """Execute Alembic migrations programmatically on startup."""
    project_root = Path(__file__).resolve().parent.parent
    alembic_cfg = Config(str(project_root / "alembic.ini"))
    alembic_cfg.set_main_option("sqlalchemy.url", settings.DATABASE_URL)
    log.info("Running Alembic migrations to head")
    command.upgrade(alembic_cfg, "head")
    log.info("Alembic migrations applied")


async def run_bookmark_sync() -> None:
    """One producer pass: queue work for bookmarks not yet indexed."""
    db = SessionLocal()
    try:
        providers = ProviderSet.from_credentials(settings.credentials)
        result = await BookmarkSync(db, providers.raindrop).run()
        log.info(f"Bookmark sync: {result['new']} new, {result['existing']} existing")
    except Exception as exc:
        log.exception(f"Bookmark sync failed: {exc}")
    finally:
        db.close()


async def run_queue_consumer() -> None:
    """One consumer batch over due bookmark messages."""
    db = SessionLocal()
    try:
        providers = ProviderSet.from_credentials(settings.credentials)
        consumer = BookmarkConsumer(db, get_blob_store(), providers.raindrop)
        result = await consumer.run_batch()
        if result["processed"] or result["failed"]:
            log.info(f"Bookmark queue: {result['processed']} processed, {result['failed']} failed")
    except Exception as exc:
        log.exception(f"Bookmark queue batch failed: {exc}")
    finally:
        db.close()


async def scheduled_task(name: str, job: Callable[[], Awaitable[None]], interval: int) -> None:
    """Background task that runs ``job`` at a fixed interval."""
    log.info(f"Scheduled {name} task started (interval: {interval}s)")

    # Run immediately on startup
    await job()

    while True:
        try:
            await asyncio.sleep(interval)
            await job()
        except asyncio.CancelledError:
            log.info(f"Scheduled {name} task cancelled")
            break
        except Exception as exc:
            log.exception(f"Scheduled {name} task error: {exc}")
            await asyncio.sleep(interval)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Log environment mode
    log.info(f"Starting application in {settings.ENV.upper()} mode")
    if settings.is_production:
        log.info("Production mode: Debug disabled, docs disabled, stricter logging")
    else:
        log.info("Development mode: Debug enabled, docs available")

    # Startup
    try:
        run_migrations()
    except Exception:
        log.exception("Failed to apply migrations on startup")
        raise

    if settings.BOOKMARK_SYNC_ENABLED:
        log.info("Starting scheduled bookmark sync...")
        _tasks.append(
            asyncio.create_task(
                scheduled_task("bookmark sync", run_bookmark_sync, settings.BOOKMARK_SYNC_INTERVAL_SECONDS)
            )
        )
    else:
        log.info("Scheduled bookmark sync is disabled (BOOKMARK_SYNC_ENABLED=false)")

    if settings.QUEUE_CONSUMER_ENABLED:
        log.info("Starting bookmark queue consumer...")
        _tasks.append(
            asyncio.create_task(
                scheduled_task("queue consumer", run_queue_consumer, settings.QUEUE_POLL_INTERVAL_SECONDS)
            )
        )
    else:
        log.info("Bookmark queue consumer is disabled (QUEUE_CONSUMER_ENABLED=false)")

    yield

    # Shutdown
    log.info("Shutting down background tasks...")
    for task in _tasks:
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
    _tasks.clear()

    log.info("Application shutdown complete")


# Configure FastAPI based on environment
app = FastAPI(
    title="Coffey",
    description="Content backend: enriched chatter, image hosting and bookmark archiving",
    version="1.0.0",
    lifespan=lifespan,
    # Disable docs in production for security
    docs_url="/docs" if settings.docs_enabled else None,
    redoc_url="/redoc" if settings.docs_enabled else None,
    openapi_url="/openapi.json" if settings.docs_enabled else None,
    # Debug mode only in development
    debug=settings.debug_enabled,
)


@app.exception_handler(CoffeyError)
async def coffey_error_handler(request: Request, exc: CoffeyError):
    if exc.status_code >= 500:
        log.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


app.include_router(chatter.router)
app.include_router(images.router)
app.include_router(images.public_router)
app.include_router(geo.router)
app.include_router(bookmarks.router)
app.include_router(health.router)
app.include_router(stats.router)
