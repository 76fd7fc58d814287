"""
Pydantic schemas for property image requests and responses.
"""

from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Optional, List
from datetime import datetime
import uuid

from app.models.image import ImageType


class PropertyImageInput(BaseModel):
    """Image referenced by URL in a create or update payload."""

    id: Optional[uuid.UUID] = Field(
        None,
        description="Stored image this entry refers to; omit for a new image"
    )
    url: str = Field(
        ...,
        min_length=1,
        max_length=1000,
        description="Public URL of the image",
        examples=["https://cdn.example.com/listings/front.jpg"]
    )
    image_type: ImageType = Field(default=ImageType.GALLERY)
    is_primary: bool = Field(default=False)
    alt_text: Optional[str] = Field(None, max_length=255)
    order_index: int = Field(default=0, ge=0)

    @field_validator('url')
    @classmethod
    def validate_url(cls, v):
        v = v.strip()
        if not (v.startswith(("http://", "https://", "/"))):
            raise ValueError("Image URL must be absolute or site-relative")
        return v


class PropertyImageResponse(BaseModel):
    """Schema for property image response."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    property_id: Optional[uuid.UUID] = None
    staging_id: Optional[uuid.UUID] = None
    url: str
    image_type: ImageType
    is_primary: bool
    order_index: int
    alt_text: Optional[str] = None
    file_size: Optional[int] = None
    mime_type: Optional[str] = None
    width: Optional[int] = None
    height: Optional[int] = None
    created_at: datetime


class ImageUploadResponse(BaseModel):
    """Response returned after a successful upload."""

    message: str = "Image uploaded successfully"
    image: PropertyImageResponse


class StagedImageUploadResponse(ImageUploadResponse):
    staging_id: uuid.UUID = Field(..., description="Temporary property id to pass when creating the property")


class LinkStagedImagesRequest(BaseModel):
    staging_id: uuid.UUID


class LinkStagedImagesResponse(BaseModel):
    linked: int
    images: List[PropertyImageResponse]
