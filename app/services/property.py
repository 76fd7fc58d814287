"""
Property service for managing property listings with business logic validation.
Handles creation, visibility, ownership checks, search and dashboard figures.
"""

from typing import Optional, List, Dict, Any, Tuple
from datetime import datetime, timezone
from sqlalchemy.ext.asyncio import AsyncSession
from app.repositories.property import PropertyRepository, PropertySearchFilters
from app.repositories.image import ImageRepository
from app.models.property import Property, PropertyStatus, ApprovalStatus
from app.models.image import ImageType
from app.models.user import User
from app.schemas.image import PropertyImageInput
from app.schemas.property import PropertyCreate, PropertyUpdate
from app.utils.exceptions import (
    APIException,
    BadRequestError,
    ForbiddenError,
    PropertyNotFoundError,
    PropertyOwnershipError,
    PropertyStatusError,
    ValidationError,
)
from app.utils.file_utils import FileStorage
import uuid
import logging

logger = logging.getLogger(__name__)

# Columns an owner may clear by sending null
NULLABLE_FIELDS = {
    "postal_code", "latitude", "longitude", "bedrooms", "bathrooms",
    "square_feet", "land_size", "year_built",
}

RESUBMIT_STATES = (ApprovalStatus.REJECTED, ApprovalStatus.CHANGES_REQUESTED)


def inline_image_rows(images: List[PropertyImageInput]) -> List[Dict[str, Any]]:
    """
    Normalise inline images for storage: gallery order follows ``order_index``
    then payload position, and the first image is primary when none is flagged.
    """
    ordered = sorted(enumerate(images), key=lambda pair: (pair[1].order_index, pair[0]))
    has_primary = any(image.is_primary for image in images)

    rows = []
    for position, (_, image) in enumerate(ordered):
        is_primary = image.is_primary or (not has_primary and position == 0)
        rows.append({
            "id": image.id,
            "url": image.url,
            "image_type": ImageType.PRIMARY if is_primary and image.image_type == ImageType.GALLERY else image.image_type,
            "is_primary": is_primary,
            "alt_text": image.alt_text,
            "order_index": position,
        })
    return rows


class PropertyService:
    """
    Property service for managing property listings with comprehensive business logic.
    """

    def __init__(self, db_session: AsyncSession, storage: Optional[FileStorage] = None):
        self.db = db_session
        self.property_repo = PropertyRepository(db_session)
        self.image_repo = ImageRepository(db_session)
        self.storage = storage or FileStorage()

    async def _get_existing(self, property_id: uuid.UUID) -> Property:
        property_obj = await self.property_repo.get_by_id(property_id)
        if not property_obj or property_obj.is_deleted:
            raise PropertyNotFoundError(str(property_id))
        return property_obj

    async def create_property(
        self,
        property_data: PropertyCreate,
        current_user: User
    ) -> Tuple[Property, List[str]]:
        """
        Create a new listing in the pending state.

        Inline images and staged uploads are attached after the row exists.
        If attaching them fails the listing is kept and a warning is returned
        instead of rolling back.

        Returns:
            Tuple of (created property, warnings)

        Raises:
            ForbiddenError: If the user may not list properties
        """
        if not current_user.can_list_properties:
            raise ForbiddenError("Only verified agents and sellers can list properties")

        create_data = property_data.model_dump(exclude={"images", "staging_id"})
        create_data.update(
            owner_id=current_user.id,
            agent_id=current_user.id if current_user.is_agent else None,
            status=PropertyStatus.PENDING,
            approval_status=ApprovalStatus.PENDING,
        )

        try:
            property_obj = await self.property_repo.create(create_data)
        except APIException:
            raise
        except Exception as e:
            logger.error(f"Failed to create property for user {current_user.id}: {e}")
            raise BadRequestError(f"Failed to create property: {str(e)}")

        warnings = []
        if property_data.images:
            try:
                await self.image_repo.sync_property_images(
                    property_obj.id, inline_image_rows(property_data.images)
                )
            except Exception as e:
                logger.warning(
                    f"Property {property_obj.id} created without its images: {e}",
                    extra={"property_id": str(property_obj.id)}
                )
                warnings.append("Property was created but its images could not be saved")

        if property_data.staging_id:
            try:
                linked = await self.image_repo.link_staged_images(property_data.staging_id, property_obj.id)
                if not linked:
                    warnings.append(f"No staged images found for staging id {property_data.staging_id}")
            except Exception as e:
                logger.warning(
                    f"Failed to link staged images to property {property_obj.id}: {e}",
                    extra={"property_id": str(property_obj.id), "staging_id": str(property_data.staging_id)}
                )
                warnings.append(
                    "Property was created but staged images could not be linked; "
                    "link them again from the property's image page"
                )

        logger.info(f"Property created by user {current_user.email}: {property_obj.title} (ID: {property_obj.id})")
        return await self.property_repo.get_by_id(property_obj.id), warnings

    async def get_property(self, property_id: uuid.UUID, current_user: Optional[User] = None) -> Property:
        """
        Get a property the caller is allowed to see.

        Hidden listings are reported as missing rather than forbidden. A view
        by anyone other than the owner counts towards ``views_count``.
        """
        property_obj = await self.property_repo.get_by_id(property_id)
        if not property_obj or not property_obj.can_be_viewed_by(current_user):
            raise PropertyNotFoundError(str(property_id))

        is_owner = current_user is not None and current_user.id == property_obj.owner_id
        if property_obj.is_publicly_visible and not is_owner:
            await self.property_repo.increment_views(property_id)
            property_obj = await self.property_repo.get_by_id(property_id)

        return property_obj

    async def update_property(
        self,
        property_id: uuid.UUID,
        property_data: PropertyUpdate,
        current_user: User
    ) -> Property:
        """
        Partially update a property.

        A non-admin edit of a rejected listing, or of one with changes
        requested, sends it back to the moderation queue. A new image set
        keeps the stored images it still lists and removes the files of
        the ones it drops.

        Raises:
            PropertyNotFoundError: If property doesn't exist
            PropertyOwnershipError: If the caller is neither owner nor admin
            ValidationError: If the payload carries no changes
        """
        existing = await self._get_existing(property_id)

        if not current_user.can_manage_property(existing.owner_id):
            raise PropertyOwnershipError("You can only update your own properties")
        if existing.is_archived and not current_user.is_admin:
            raise PropertyStatusError("Archived properties cannot be edited")

        provided = property_data.model_dump(exclude_unset=True)
        images = provided.pop("images", None)
        update_data = {
            key: value for key, value in provided.items()
            if value is not None or key in NULLABLE_FIELDS
        }

        if not update_data and images is None:
            raise ValidationError("No valid fields provided for update")

        if not current_user.is_admin and existing.approval_status in RESUBMIT_STATES:
            update_data.update(
                status=PropertyStatus.PENDING,
                approval_status=ApprovalStatus.PENDING,
                rejection_reason=None,
            )
            logger.info(f"Property {property_id} resubmitted for approval by {current_user.email}")

        try:
            if update_data:
                await self.property_repo.update(property_id, update_data, exclude_none=False)
            if images is not None:
                _, removed_files = await self.image_repo.sync_property_images(
                    property_id, inline_image_rows(property_data.images)
                )
                for relative_path in removed_files:
                    self.storage.delete_relative(relative_path)
        except APIException:
            raise
        except Exception as e:
            logger.error(f"Failed to update property {property_id}: {e}")
            raise BadRequestError(f"Failed to update property: {str(e)}")

        logger.info(f"Property updated by user {current_user.email}: {property_id}")
        return await self.property_repo.get_by_id(property_id)

    async def archive_property(self, property_id: uuid.UUID, current_user: User) -> Property:
        """Archive a listing. The row and its images are kept."""
        existing = await self._get_existing(property_id)

        if not current_user.can_manage_property(existing.owner_id):
            raise PropertyOwnershipError("You can only archive your own properties")
        if existing.is_archived:
            return existing

        archived = await self.property_repo.update(property_id, {
            "status": PropertyStatus.ARCHIVED,
            "archived_at": datetime.now(timezone.utc),
            "archived_by": current_user.id,
        })
        logger.info(f"Property {property_id} archived by {current_user.email}")
        return archived

    async def search_properties(
        self,
        filters: PropertySearchFilters,
        page: int = 1,
        limit: int = 20
    ) -> Tuple[List[Property], int]:
        if filters.min_price is not None and filters.max_price is not None:
            if filters.min_price > filters.max_price:
                raise ValidationError(
                    "Minimum price cannot be greater than maximum price",
                    field_errors=[{"field": "min_price", "message": "Must not exceed max_price", "type": "range"}]
                )
        if filters.min_area is not None and filters.max_area is not None:
            if filters.min_area > filters.max_area:
                raise ValidationError(
                    "Minimum area cannot be greater than maximum area",
                    field_errors=[{"field": "min_area", "message": "Must not exceed max_area", "type": "range"}]
                )

        skip = (page - 1) * limit
        return await self.property_repo.search_properties(filters, skip=skip, limit=limit)

    async def get_featured_properties(self, limit: int = 6) -> List[Property]:
        return await self.property_repo.get_featured_properties(limit)

    async def get_my_properties(
        self,
        current_user: User,
        page: int = 1,
        limit: int = 20
    ) -> Tuple[List[Property], int]:
        return await self.property_repo.get_properties_by_owner(
            current_user.id, skip=(page - 1) * limit, limit=limit
        )

    async def get_property_statistics(self, owner_id: Optional[uuid.UUID] = None) -> Dict[str, Any]:
        return await self.property_repo.get_property_statistics(owner_id)
