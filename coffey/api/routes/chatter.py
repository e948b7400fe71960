"""Chatter routes - create enriched posts."""

from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session

from coffey.api.deps import get_blob_store, get_db, get_providers, require_admin
from coffey.core.blobstore import BlobStore
from coffey.core.logging import get_logger
from coffey.providers import ProviderSet
from coffey.schemas.chatter import CreateChatterRequest, CreateChatterResponse
from coffey.services.chatter_service import ChatterService

router = APIRouter(prefix="/admin/chatter", tags=["chatter"])
log = get_logger("chatter_routes")


@router.post("", response_model=CreateChatterResponse, status_code=201)
async def create_chatter(
    request: CreateChatterRequest,
    response: Response,
    db: Session = Depends(get_db),
    blobs: BlobStore = Depends(get_blob_store),
    providers: ProviderSet = Depends(get_providers),
    admin: str = Depends(require_admin),
):
    """
    Create a chatter post.

    Location, place, links and watched media are enriched concurrently;
    failed enrichments are simply left out of the record. A post whose
    enriched content already exists is returned with `is_duplicate: true`.
    """
    service = ChatterService(db, blobs, providers)
    result = await service.create(request, created_by=admin)
    if result["is_duplicate"]:
        response.status_code = 200
    return CreateChatterResponse(**result)
