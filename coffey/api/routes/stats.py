"""Stats routes - index counts and storage consistency."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from coffey.api.deps import get_blob_store, get_db, require_admin
from coffey.core.blobstore import BlobStore
from coffey.schemas.api import DeltaResponse, StatsResponse
from coffey.services.data_service import DataService

router = APIRouter(prefix="/admin/stats", tags=["stats"], dependencies=[Depends(require_admin)])


@router.get("", response_model=StatsResponse)
def get_stats(db: Session = Depends(get_db)):
    """
    Counts of indexed images, chatter and bookmarks, plus queue backlog.
    """
    return StatsResponse(**DataService(db).get_stats())


@router.get("/delta", response_model=DeltaResponse)
async def get_delta(
    db: Session = Depends(get_db),
    blobs: BlobStore = Depends(get_blob_store),
):
    """
    Compare the index against the blob store.

    Lists blobs nobody indexed and index rows pointing at missing blobs.
    Nothing is repaired here.
    """
    return DeltaResponse(**await DataService(db).delta(blobs))
