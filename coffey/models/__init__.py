from coffey.models.base import Base
from coffey.models.bookmarks import Bookmark
from coffey.models.chatter import ChatterIndex
from coffey.models.images import Image
from coffey.models.queue import QueueMessage, WorkItem

__all__ = [
    "Base",
    "Bookmark",
    "ChatterIndex",
    "Image",
    "QueueMessage",
    "WorkItem",
]
