from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class UploadImageResponse(BaseModel):
    # camelCase key kept for existing clients
    model_config = ConfigDict(populate_by_name=True)

    object_key: str = Field(serialization_alias="objectKey")
    uuid: str
    metadata: Dict[str, Any]
    uploaded_at: str
    is_duplicate: bool


class ImageOut(BaseModel):
    key: str
    uploaded_at: Optional[str] = None
    customMetadata: Dict[str, str]


class ImageListResponse(BaseModel):
    images: List[ImageOut]
    truncated: bool = False
    cursor: Optional[str] = None


class DeleteImageResponse(BaseModel):
    success: bool
    key: str
