from typing import Optional

from pydantic import BaseModel


class BookmarkMessage(BaseModel):
    """Body of a bookmark-sync queue message."""

    external_id: int
    collection_id: Optional[int] = None


class WorkItemState(BaseModel):
    """Tracking entry stored under ``work:{external_id}`` while a bookmark is in flight."""

    external_id: int
    collection_id: Optional[int] = None
    created_at: str
    retry_count: int = 0
    last_attempt_at: Optional[str] = None
