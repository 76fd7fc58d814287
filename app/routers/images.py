"""
Image management API endpoints.
Handles uploads against a property or a staging id, linking, primary selection and deletion.
"""

import uuid
from typing import List, Optional
from fastapi import APIRouter, Depends, UploadFile, File, Form, status

from app.models.image import ImageType
from app.models.user import User
from app.services.image import ImageService
from app.schemas.error import ERROR_RESPONSES
from app.schemas.image import (
    PropertyImageResponse,
    ImageUploadResponse,
    StagedImageUploadResponse,
    LinkStagedImagesRequest,
    LinkStagedImagesResponse
)
from app.utils.dependencies import (
    get_current_active_user,
    get_image_service,
    get_optional_current_user
)

router = APIRouter(tags=["Images"])

UPLOAD_ERRORS = {code: ERROR_RESPONSES[code] for code in (400, 401, 403, 404)}


@router.post(
    "/properties/{property_id}/images",
    response_model=ImageUploadResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Upload image for property",
    description="Upload a JPEG, PNG or WebP image up to 5MB. `is_primary` replaces the current primary image.",
    responses=UPLOAD_ERRORS
)
async def upload_property_image(
    property_id: uuid.UUID,
    file: UploadFile = File(..., description="Image file to upload"),
    is_primary: bool = Form(False, description="Set as primary image for the property"),
    image_type: ImageType = Form(ImageType.GALLERY),
    alt_text: Optional[str] = Form(None, max_length=255),
    current_user: User = Depends(get_current_active_user),
    image_service: ImageService = Depends(get_image_service)
) -> ImageUploadResponse:
    image = await image_service.upload(
        property_id=property_id,
        file=file,
        user=current_user,
        is_primary=is_primary,
        image_type=image_type,
        alt_text=alt_text
    )
    return ImageUploadResponse(image=PropertyImageResponse.model_validate(image))


@router.post(
    "/images/staging",
    response_model=StagedImageUploadResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Upload image before the property exists",
    description="Files the image under a staging id. A new staging id is issued when none is sent.",
    responses=UPLOAD_ERRORS
)
async def upload_staged_image(
    file: UploadFile = File(...),
    staging_id: Optional[uuid.UUID] = Form(None),
    image_type: ImageType = Form(ImageType.GALLERY),
    alt_text: Optional[str] = Form(None, max_length=255),
    current_user: User = Depends(get_current_active_user),
    image_service: ImageService = Depends(get_image_service)
) -> StagedImageUploadResponse:
    image, staging_id = await image_service.upload_staged(
        file=file,
        user=current_user,
        staging_id=staging_id,
        image_type=image_type,
        alt_text=alt_text
    )
    return StagedImageUploadResponse(
        message="Image staged successfully",
        image=PropertyImageResponse.model_validate(image),
        staging_id=staging_id
    )


@router.post(
    "/properties/{property_id}/images/link",
    response_model=LinkStagedImagesResponse,
    status_code=status.HTTP_200_OK,
    summary="Link staged images",
    description="Attach images staged under a staging id to the property",
    responses=UPLOAD_ERRORS
)
async def link_staged_images(
    property_id: uuid.UUID,
    link_data: LinkStagedImagesRequest,
    current_user: User = Depends(get_current_active_user),
    image_service: ImageService = Depends(get_image_service)
) -> LinkStagedImagesResponse:
    linked, images = await image_service.link_staged(property_id, link_data.staging_id, current_user)
    return LinkStagedImagesResponse(
        linked=linked,
        images=[PropertyImageResponse.model_validate(image) for image in images]
    )


@router.get(
    "/properties/{property_id}/images",
    response_model=List[PropertyImageResponse],
    status_code=status.HTTP_200_OK,
    summary="List property images",
    responses={404: ERROR_RESPONSES[404]}
)
async def list_property_images(
    property_id: uuid.UUID,
    current_user: Optional[User] = Depends(get_optional_current_user),
    image_service: ImageService = Depends(get_image_service)
) -> List[PropertyImageResponse]:
    images = await image_service.list_images(property_id, current_user)
    return [PropertyImageResponse.model_validate(image) for image in images]


@router.put(
    "/properties/{property_id}/images/{image_id}/primary",
    response_model=PropertyImageResponse,
    status_code=status.HTTP_200_OK,
    summary="Set primary image",
    responses=UPLOAD_ERRORS
)
async def set_primary_image(
    property_id: uuid.UUID,
    image_id: uuid.UUID,
    current_user: User = Depends(get_current_active_user),
    image_service: ImageService = Depends(get_image_service)
) -> PropertyImageResponse:
    image = await image_service.set_primary(property_id, image_id, current_user)
    return PropertyImageResponse.model_validate(image)


@router.delete(
    "/properties/{property_id}/images/{image_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete image",
    description="Delete an image and its file. If it was primary, the next image by order becomes primary.",
    responses=UPLOAD_ERRORS
)
async def delete_image(
    property_id: uuid.UUID,
    image_id: uuid.UUID,
    current_user: User = Depends(get_current_active_user),
    image_service: ImageService = Depends(get_image_service)
) -> None:
    await image_service.delete(property_id, image_id, current_user)
