# Services package
from coffey.services.bookmark_service import BookmarkConsumer, BookmarkSync
from coffey.services.chatter_service import ChatterService
from coffey.services.data_service import DataService
from coffey.services.enrichment import EnrichmentService
from coffey.services.image_service import ImageService

__all__ = [
    "BookmarkConsumer",
    "BookmarkSync",
    "ChatterService",
    "DataService",
    "EnrichmentService",
    "ImageService",
]
