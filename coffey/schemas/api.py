from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel


class HealthResponse(BaseModel):
    database: str
    pending_work_items: Optional[int] = None


class NearbySearchResult(BaseModel):
    placeId: Optional[str] = None
    name: str
    address: Optional[str] = None
    lat: float
    lng: float
    types: Optional[List[str]] = None


class NearbySearchResponse(BaseModel):
    results: List[NearbySearchResult]


class BookmarkOut(BaseModel):
    uuid: str
    sha256: str
    link: str
    title: str | None = None
    excerpt: str | None = None
    domain: str | None = None
    type: str | None = None
    cover_url: str | None = None
    collection_id: int | None = None
    collection_title: str | None = None
    tags: list[str] = []
    created_at: str | None = None
    synced_at: datetime | None = None
    artifact_key: str | None = None

    class Config:
        from_attributes = True


class SyncResponse(BaseModel):
    new: int
    existing: int


class ConsumeResponse(BaseModel):
    processed: int
    failed: int


class StatsResponse(BaseModel):
    images_live: int
    images_deleted: int
    chatter: int
    bookmarks: int
    bookmarks_with_artifact: int
    pending_work_items: int
    queued_messages: int


class DeltaResponse(BaseModel):
    """Index-vs-blob-store differences left for external repair."""

    blobs_without_index: List[str]
    index_without_blob: List[str]
