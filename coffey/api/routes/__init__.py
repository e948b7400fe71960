from coffey.api.routes.bookmarks import router as bookmarks_router
from coffey.api.routes.chatter import router as chatter_router
from coffey.api.routes.geo import router as geo_router
from coffey.api.routes.health import router as health_router
from coffey.api.routes.images import public_router as public_images_router
from coffey.api.routes.images import router as images_router
from coffey.api.routes.stats import router as stats_router

__all__ = [
    "bookmarks_router",
    "chatter_router",
    "geo_router",
    "health_router",
    "images_router",
    "public_images_router",
    "stats_router",
]
