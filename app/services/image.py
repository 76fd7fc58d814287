"""
Image service for handling property image uploads, storage, and management.
Uploads may target an existing property or a staging id issued before the
property is created.
"""

import uuid
import logging
from typing import List, Optional, Tuple
from fastapi import UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.image import ImageType, PropertyImage
from app.models.property import Property
from app.models.user import User
from app.repositories.image import ImageRepository
from app.repositories.property import PropertyRepository
from app.utils.exceptions import (
    ForbiddenError,
    NotFoundError,
    PropertyNotFoundError,
    PropertyOwnershipError,
)
from app.utils.file_utils import FileStorage, FileValidator

logger = logging.getLogger(__name__)


class ImageService:
    """Service for managing property image uploads and storage."""

    def __init__(self, db_session: AsyncSession, storage: Optional[FileStorage] = None):
        self.db = db_session
        self.image_repo = ImageRepository(db_session)
        self.property_repo = PropertyRepository(db_session)
        self.storage = storage or FileStorage()

    async def _get_managed_property(self, property_id: uuid.UUID, user: User) -> Property:
        property_obj = await self.property_repo.get_by_id(property_id)
        if not property_obj or property_obj.is_deleted:
            raise PropertyNotFoundError(str(property_id))
        if not user.can_manage_property(property_obj.owner_id):
            raise PropertyOwnershipError("You can only manage images of your own properties")
        return property_obj

    async def _get_property_image(self, property_id: uuid.UUID, image_id: uuid.UUID) -> PropertyImage:
        image = await self.image_repo.get_by_id(image_id)
        if not image or image.property_id != property_id:
            raise NotFoundError("Image", str(image_id))
        return image

    async def _store(
        self,
        file: UploadFile,
        scope: str,
        scope_id: uuid.UUID,
        record: dict,
        make_primary: bool
    ) -> PropertyImage:
        """Validate and write the file, then insert its row. The file is removed if the insert fails."""
        validated = await FileValidator.validate_upload_file(file)
        full_path = self.storage.generate_file_path(scope, scope_id, validated.extension)
        await self.storage.save_bytes(validated.content, full_path)
        relative_path = self.storage.get_relative_path(full_path)

        try:
            return await self.image_repo.create_image({
                **record,
                "url": self.storage.public_url(relative_path),
                "filename": file.filename,
                "file_path": relative_path,
                "file_size": validated.file_size,
                "mime_type": validated.mime_type,
                "width": validated.width,
                "height": validated.height,
            }, make_primary=make_primary)
        except Exception as e:
            self.storage.delete_file(full_path)
            logger.error(
                f"Failed to record uploaded image {file.filename}: {e}",
                extra={"scope": scope, "scope_id": str(scope_id)}
            )
            raise

    async def upload(
        self,
        property_id: uuid.UUID,
        file: UploadFile,
        user: User,
        is_primary: bool = False,
        image_type: ImageType = ImageType.GALLERY,
        alt_text: Optional[str] = None
    ) -> PropertyImage:
        """
        Upload an image for an existing property.

        The first image of a property becomes primary even when not requested.
        """
        await self._get_managed_property(property_id, user)

        make_primary = is_primary or await self.image_repo.get_primary_image(property_id) is None
        image = await self._store(file, "properties", property_id, {
            "property_id": property_id,
            "image_type": image_type,
            "alt_text": alt_text,
            "order_index": await self.image_repo.next_order_index(property_id=property_id),
        }, make_primary=make_primary)

        logger.info(f"Image {image.id} uploaded to property {property_id} by {user.email}")
        return image

    async def upload_staged(
        self,
        file: UploadFile,
        user: User,
        staging_id: Optional[uuid.UUID] = None,
        image_type: ImageType = ImageType.GALLERY,
        alt_text: Optional[str] = None
    ) -> Tuple[PropertyImage, uuid.UUID]:
        """
        Upload an image before its property exists.

        Returns:
            Tuple of (image, staging id); a staging id is issued when none is given
        """
        if not user.can_list_properties:
            raise ForbiddenError("Only verified agents and sellers can upload listing images")

        staging_id = staging_id or uuid.uuid4()
        image = await self._store(file, "staging", staging_id, {
            "staging_id": staging_id,
            "image_type": image_type,
            "alt_text": alt_text,
            "order_index": await self.image_repo.next_order_index(staging_id=staging_id),
        }, make_primary=False)

        logger.info(f"Image {image.id} staged under {staging_id} by {user.email}")
        return image, staging_id

    async def link_staged(
        self,
        property_id: uuid.UUID,
        staging_id: uuid.UUID,
        user: User
    ) -> Tuple[int, List[PropertyImage]]:
        await self._get_managed_property(property_id, user)
        linked = await self.image_repo.link_staged_images(staging_id, property_id)
        if not linked:
            raise NotFoundError("Staged images", str(staging_id))
        return linked, await self.image_repo.get_by_property_id(property_id)

    async def list_images(self, property_id: uuid.UUID, user: Optional[User] = None) -> List[PropertyImage]:
        property_obj = await self.property_repo.get_by_id(property_id)
        if not property_obj or not property_obj.can_be_viewed_by(user):
            raise PropertyNotFoundError(str(property_id))
        return await self.image_repo.get_by_property_id(property_id)

    async def set_primary(self, property_id: uuid.UUID, image_id: uuid.UUID, user: User) -> PropertyImage:
        await self._get_managed_property(property_id, user)
        await self._get_property_image(property_id, image_id)

        await self.image_repo.update_primary_status(property_id, image_id)
        logger.info(f"Image {image_id} set as primary for property {property_id}")
        return await self.image_repo.get_by_id(image_id)

    async def delete(self, property_id: uuid.UUID, image_id: uuid.UUID, user: User) -> Optional[PropertyImage]:
        """
        Delete an image row and its stored file.

        Returns:
            The image promoted to primary, if the deleted image was primary
        """
        await self._get_managed_property(property_id, user)
        image = await self._get_property_image(property_id, image_id)
        file_path = image.file_path

        promoted = await self.image_repo.delete_image(image)
        if file_path and not self.storage.delete_relative(file_path):
            logger.warning(f"Stored file for image {image_id} was already missing: {file_path}")

        logger.info(f"Image {image_id} deleted from property {property_id} by {user.email}")
        return promoted
