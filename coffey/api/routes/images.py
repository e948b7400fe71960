"""Image routes - admin upload/list/delete and the public signed redirect."""

from typing import Optional

from fastapi import APIRouter, Depends, File, Query, UploadFile
from fastapi.responses import RedirectResponse
from sqlalchemy.orm import Session

from coffey.api.deps import get_blob_store, get_db, get_providers, require_admin
from coffey.core.blobstore import BlobStore
from coffey.core.logging import get_logger
from coffey.providers import ProviderSet
from coffey.schemas.images import (
    DeleteImageResponse,
    ImageListResponse,
    ImageOut,
    UploadImageResponse,
)
from coffey.services.image_service import (
    DEFAULT_LIST_LIMIT,
    MAX_LIST_LIMIT,
    ImageService,
    image_row_out,
    public_key,
)

router = APIRouter(prefix="/admin/images", tags=["images"], dependencies=[Depends(require_admin)])
public_router = APIRouter(prefix="/images", tags=["images"])
log = get_logger("image_routes")


def get_image_service(
    db: Session = Depends(get_db),
    blobs: BlobStore = Depends(get_blob_store),
    providers: ProviderSet = Depends(get_providers),
) -> ImageService:
    return ImageService(db, blobs, providers)


@router.post("", response_model=UploadImageResponse, response_model_by_alias=True)
async def upload_image(
    file: UploadFile = File(...),
    service: ImageService = Depends(get_image_service),
):
    """
    Upload an image to the image host.

    The file bytes are hashed first; a live image with the same hash is
    returned as a duplicate without uploading again.
    """
    content = await file.read()
    result = await service.upload(content, file.filename or "upload", file.content_type or "")
    return UploadImageResponse(**result)


@router.get("", response_model=ImageListResponse)
def list_images(
    limit: int = Query(DEFAULT_LIST_LIMIT, ge=1, le=MAX_LIST_LIMIT),
    uuid: Optional[str] = Query(None, description="Exact match on image-host id"),
    sha256: Optional[str] = Query(None, description="Exact match on file hash"),
    filename: Optional[str] = Query(None, description="Exact match on original filename"),
    service: ImageService = Depends(get_image_service),
):
    """List live images newest first, or search by uuid / sha256 / filename."""
    if uuid or sha256 or filename:
        rows = service.search(uuid=uuid, sha256=sha256, filename=filename)
    else:
        rows = service.list_images(limit=limit)
    return ImageListResponse(images=[ImageOut(**image_row_out(row)) for row in rows])


@router.delete("/{image_hash}", response_model=DeleteImageResponse)
async def delete_image(image_hash: str, service: ImageService = Depends(get_image_service)):
    """Delete from the image host (best effort) and soft-delete the index row."""
    row = await service.delete(image_hash)
    return DeleteImageResponse(success=True, key=public_key(row.sha256))


@public_router.get("/{image_hash}/{variant}", status_code=302)
def serve_image(image_hash: str, variant: str, service: ImageService = Depends(get_image_service)):
    """Redirect to a signed, one-hour delivery URL for the requested variant."""
    return RedirectResponse(service.signed_redirect(image_hash, variant), status_code=302)
