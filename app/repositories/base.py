"""
Base repository class with common CRUD operations using async SQLAlchemy.
Provides generic database operations that can be extended by specific repositories.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update
from app.database import Base
from typing import TypeVar, Generic, Optional, Dict, Any, Type
import uuid
import logging

logger = logging.getLogger(__name__)

ModelType = TypeVar("ModelType", bound=Base)


class BaseRepository(Generic[ModelType]):
    """
    Base repository class providing common CRUD operations.
    Uses async SQLAlchemy for all database operations with proper error handling.
    """

    def __init__(self, model: Type[ModelType], db: AsyncSession):
        """
        Initialize repository with model class and database session.

        Args:
            model: SQLAlchemy model class
            db: Async database session
        """
        self.model = model
        self.db = db

    async def create(self, obj_in: Dict[str, Any]) -> ModelType:
        """
        Create a new record in the database.

        Args:
            obj_in: Dictionary of field values for the new record

        Returns:
            Created model instance

        Raises:
            Exception: If database operation fails
        """
        try:
            db_obj = self.model(**obj_in)
            self.db.add(db_obj)
            await self.db.commit()
            await self.db.refresh(db_obj)
            logger.debug(f"Created {self.model.__name__} with id: {db_obj.id}")
            return db_obj
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Failed to create {self.model.__name__}: {e}")
            raise

    async def get_by_id(self, id: uuid.UUID) -> Optional[ModelType]:
        """
        Get a record by its ID, always reloading column state from the database.

        Returns:
            Model instance if found, None otherwise
        """
        try:
            query = (
                select(self.model)
                .where(self.model.id == id)
                .execution_options(populate_existing=True)
            )
            result = await self.db.execute(query)
            obj = result.scalar_one_or_none()

            if obj is None:
                logger.debug(f"{self.model.__name__} with id {id} not found")
            return obj
        except Exception as e:
            logger.error(f"Failed to get {self.model.__name__} by id {id}: {e}")
            raise

    async def update(
        self,
        id: uuid.UUID,
        obj_in: Dict[str, Any],
        exclude_none: bool = True
    ) -> Optional[ModelType]:
        """
        Update a record by its ID.

        Args:
            id: UUID of the record to update
            obj_in: Dictionary of field values to update
            exclude_none: Drop None values; pass False to clear nullable columns

        Returns:
            Updated model instance if found, None otherwise
        """
        try:
            if exclude_none:
                update_data = {k: v for k, v in obj_in.items() if v is not None}
            else:
                update_data = dict(obj_in)

            if not update_data:
                logger.warning(f"No valid data provided for updating {self.model.__name__} {id}")
                return await self.get_by_id(id)

            stmt = update(self.model).where(self.model.id == id).values(**update_data)
            result = await self.db.execute(stmt)

            if result.rowcount == 0:
                await self.db.rollback()
                logger.debug(f"{self.model.__name__} with id {id} not found for update")
                return None

            await self.db.commit()

            updated_obj = await self.get_by_id(id)
            logger.debug(f"Updated {self.model.__name__} with id: {id}")
            return updated_obj
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Failed to update {self.model.__name__} {id}: {e}")
            raise
