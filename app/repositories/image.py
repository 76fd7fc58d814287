"""
Repository for property images, including staged uploads and primary-image bookkeeping.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update, delete, func
from app.repositories.base import BaseRepository
from app.models.image import PropertyImage
from typing import Optional, List, Dict, Any, Tuple
import uuid
import logging

logger = logging.getLogger(__name__)


class ImageRepository(BaseRepository[PropertyImage]):
    """Repository for managing property images."""

    def __init__(self, db: AsyncSession):
        super().__init__(PropertyImage, db)

    async def get_by_property_id(self, property_id: uuid.UUID) -> List[PropertyImage]:
        query = (
            select(PropertyImage)
            .where(PropertyImage.property_id == property_id)
            .order_by(PropertyImage.order_index, PropertyImage.created_at)
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def get_by_staging_id(self, staging_id: uuid.UUID) -> List[PropertyImage]:
        query = (
            select(PropertyImage)
            .where(PropertyImage.staging_id == staging_id, PropertyImage.property_id.is_(None))
            .order_by(PropertyImage.order_index, PropertyImage.created_at)
        )
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def get_primary_image(self, property_id: uuid.UUID) -> Optional[PropertyImage]:
        query = select(PropertyImage).where(
            PropertyImage.property_id == property_id,
            PropertyImage.is_primary.is_(True)
        )
        result = await self.db.execute(query)
        return result.scalars().first()

    async def count_by_property_id(self, property_id: uuid.UUID) -> int:
        query = select(func.count(PropertyImage.id)).where(PropertyImage.property_id == property_id)
        result = await self.db.execute(query)
        return result.scalar() or 0

    async def next_order_index(
        self,
        property_id: Optional[uuid.UUID] = None,
        staging_id: Optional[uuid.UUID] = None
    ) -> int:
        column = PropertyImage.property_id if property_id else PropertyImage.staging_id
        query = select(func.max(PropertyImage.order_index)).where(column == (property_id or staging_id))
        current = (await self.db.execute(query)).scalar()
        return 0 if current is None else current + 1

    async def create_image(self, image_data: Dict[str, Any], make_primary: bool = False) -> PropertyImage:
        """
        Insert an image. When it becomes primary, any previous primary on the
        same property is unset first, in the same transaction.
        """
        try:
            property_id = image_data.get("property_id")
            if make_primary and property_id:
                await self.db.execute(
                    update(PropertyImage)
                    .where(PropertyImage.property_id == property_id)
                    .values(is_primary=False)
                )
            image = PropertyImage(**{**image_data, "is_primary": make_primary})
            self.db.add(image)
            await self.db.commit()
            await self.db.refresh(image)
            logger.debug(f"Created image {image.id} (primary={make_primary})")
            return image
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Failed to create image: {e}")
            raise

    async def sync_property_images(
        self,
        property_id: uuid.UUID,
        images: List[Dict[str, Any]]
    ) -> Tuple[List[PropertyImage], List[str]]:
        """
        Bring a property's image set in line with ``images`` in one transaction.

        Incoming rows are matched to stored images by ``id``, then by ``url``.
        A matched image keeps its stored file and metadata and only takes the
        new type, primary flag, alt text and position. Unmatched rows are
        inserted and stored images left out of the set are deleted.

        Returns:
            Tuple of (resulting images, file paths of the deleted images)
        """
        try:
            existing = await self.get_by_property_id(property_id)
            by_id = {image.id: image for image in existing}
            by_url = {image.url: image for image in existing}
            kept = set()

            for data in images:
                data = dict(data)
                image_id = data.pop("id", None)
                match = by_id.get(image_id) or by_url.get(data["url"])
                if match is None or match.id in kept:
                    self.db.add(PropertyImage(property_id=property_id, **data))
                    continue
                kept.add(match.id)
                if match.file_path is None:
                    match.url = data["url"]
                for key in ("image_type", "is_primary", "alt_text", "order_index"):
                    setattr(match, key, data[key])

            removed = [image for image in existing if image.id not in kept]
            for image in removed:
                await self.db.delete(image)
            await self.db.commit()

            if removed:
                logger.debug(f"Removed {len(removed)} images from property {property_id}")
            return (
                await self.get_by_property_id(property_id),
                [image.file_path for image in removed if image.file_path]
            )
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Failed to update images for property {property_id}: {e}")
            raise

    async def update_primary_status(self, property_id: uuid.UUID, new_primary_id: uuid.UUID) -> bool:
        """
        Make one image primary and remove primary status from the others.

        Returns:
            True if the image belongs to the property and was updated
        """
        try:
            await self.db.execute(
                update(PropertyImage)
                .where(PropertyImage.property_id == property_id)
                .values(is_primary=False)
            )
            result = await self.db.execute(
                update(PropertyImage)
                .where(PropertyImage.id == new_primary_id, PropertyImage.property_id == property_id)
                .values(is_primary=True)
            )
            if result.rowcount == 0:
                await self.db.rollback()
                return False
            await self.db.commit()
            return True
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Failed to set primary image {new_primary_id}: {e}")
            raise

    async def link_staged_images(self, staging_id: uuid.UUID, property_id: uuid.UUID) -> int:
        """
        Move staged images onto their property. The first staged image becomes
        primary when the property has none yet.

        Returns:
            Number of images linked
        """
        try:
            staged = await self.get_by_staging_id(staging_id)
            if not staged:
                return 0

            has_primary = await self.get_primary_image(property_id) is not None
            offset = await self.next_order_index(property_id=property_id)
            for position, image in enumerate(staged):
                image.property_id = property_id
                image.staging_id = None
                image.order_index = offset + position
                image.is_primary = not has_primary and position == 0
            await self.db.commit()

            logger.info(f"Linked {len(staged)} staged images to property {property_id}")
            return len(staged)
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Failed to link staged images {staging_id} to {property_id}: {e}")
            raise

    async def delete_image(self, image: PropertyImage) -> Optional[PropertyImage]:
        """
        Delete an image. If it was primary, the next image by order is promoted.

        Returns:
            The promoted image, if any
        """
        try:
            property_id = image.property_id
            was_primary = image.is_primary
            await self.db.execute(delete(PropertyImage).where(PropertyImage.id == image.id))

            promoted = None
            if was_primary and property_id:
                query = (
                    select(PropertyImage)
                    .where(PropertyImage.property_id == property_id)
                    .order_by(PropertyImage.order_index, PropertyImage.created_at)
                    .limit(1)
                )
                promoted = (await self.db.execute(query)).scalars().first()
                if promoted:
                    promoted.is_primary = True

            await self.db.commit()
            if promoted:
                logger.debug(f"Promoted image {promoted.id} to primary on property {property_id}")
            return promoted
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Failed to delete image {image.id}: {e}")
            raise
