"""
Property repository for marketplace listings with search, ranking and moderation queries.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, and_, or_, func, desc, update, cast, String
from app.repositories.base import BaseRepository
from app.models.property import Property, PropertyType, ListingType, PropertyStatus, ApprovalStatus
from typing import Optional, List, Dict, Any, Tuple
from datetime import datetime, timedelta, timezone
from decimal import Decimal
import enum
import json
import uuid
import logging

logger = logging.getLogger(__name__)


class SortField(str, enum.Enum):
    """Columns the public listing can be ordered by."""
    PRICE = "price"
    CREATED_AT = "created_at"
    VIEWS = "views"
    AREA = "area"


class SortOrder(str, enum.Enum):
    ASC = "asc"
    DESC = "desc"


SORT_COLUMNS = {
    SortField.PRICE: Property.price,
    SortField.CREATED_AT: Property.created_at,
    SortField.VIEWS: Property.views_count,
    SortField.AREA: Property.square_feet,
}


class PropertySearchFilters:
    """Filters accepted by the public listing query."""

    def __init__(
        self,
        property_type: Optional[PropertyType] = None,
        listing_type: Optional[ListingType] = None,
        min_price: Optional[Decimal] = None,
        max_price: Optional[Decimal] = None,
        city: Optional[str] = None,
        region: Optional[str] = None,
        bedrooms: Optional[int] = None,
        bathrooms: Optional[int] = None,
        min_area: Optional[int] = None,
        max_area: Optional[int] = None,
        features: Optional[List[str]] = None,
        search_text: Optional[str] = None,
        listed_within_days: Optional[int] = None,
        is_featured: Optional[bool] = None,
        sort_by: Optional[SortField] = None,
        sort_order: SortOrder = SortOrder.DESC
    ):
        self.property_type = property_type
        self.listing_type = listing_type
        self.min_price = min_price
        self.max_price = max_price
        self.city = city
        self.region = region
        self.bedrooms = bedrooms
        self.bathrooms = bathrooms
        self.min_area = min_area
        self.max_area = max_area
        self.features = [feature.strip() for feature in features or [] if feature.strip()]
        self.search_text = search_text
        self.listed_within_days = listed_within_days
        self.is_featured = is_featured
        self.sort_by = sort_by
        self.sort_order = sort_order


class PropertyRepository(BaseRepository[Property]):
    """
    Repository for property listings.
    Public queries only ever see active, approved, non-archived, non-deleted rows.
    """

    def __init__(self, db: AsyncSession):
        super().__init__(Property, db)

    @staticmethod
    def _standard_order():
        return (Property.tier_rank(), desc(Property.created_at))

    def _search_order(self, filters: PropertySearchFilters):
        """Requested ordering, or premium-first when none is given. Missing values sort last."""
        if filters.sort_by is None:
            return self._standard_order()
        column = SORT_COLUMNS[filters.sort_by]
        ordered = column.asc() if filters.sort_order == SortOrder.ASC else column.desc()
        return (ordered.nulls_last(), desc(Property.created_at))

    def _build_filter_conditions(self, filters: PropertySearchFilters) -> List:
        """Build SQLAlchemy conditions for every filter except region."""
        conditions = [Property.public_filter()]

        if filters.property_type:
            conditions.append(Property.property_type == filters.property_type)
        if filters.listing_type:
            conditions.append(Property.listing_type == filters.listing_type)

        if filters.min_price is not None:
            conditions.append(Property.price >= filters.min_price)
        if filters.max_price is not None:
            conditions.append(Property.price <= filters.max_price)

        if filters.city:
            conditions.append(Property.city.ilike(f"%{filters.city}%"))

        # Bedrooms and bathrooms are minimums
        if filters.bedrooms is not None:
            conditions.append(Property.bedrooms >= filters.bedrooms)
        if filters.bathrooms is not None:
            conditions.append(Property.bathrooms >= filters.bathrooms)

        if filters.min_area is not None:
            conditions.append(Property.square_feet >= filters.min_area)
        if filters.max_area is not None:
            conditions.append(Property.square_feet <= filters.max_area)

        # Every requested feature must be in the stored JSON list
        for feature in filters.features:
            conditions.append(
                cast(Property.features, String).contains(json.dumps(feature), autoescape=True)
            )

        if filters.search_text:
            search_term = f"%{filters.search_text}%"
            conditions.append(
                or_(
                    Property.title.ilike(search_term),
                    Property.description.ilike(search_term),
                    Property.city.ilike(search_term)
                )
            )

        if filters.listed_within_days:
            since = datetime.now(timezone.utc) - timedelta(days=filters.listed_within_days)
            conditions.append(Property.created_at >= since)

        if filters.is_featured is not None:
            conditions.append(Property.is_featured.is_(filters.is_featured))

        return conditions

    async def search_properties(
        self,
        filters: PropertySearchFilters,
        skip: int = 0,
        limit: int = 20
    ) -> Tuple[List[Property], int]:
        """
        Search public listings with filtering and pagination.

        Returns:
            Tuple of (properties list, total count)
        """
        if filters.region:
            return await self._search_by_region(filters, skip, limit)

        try:
            conditions = self._build_filter_conditions(filters)

            count_result = await self.db.execute(
                select(func.count(Property.id)).where(and_(*conditions))
            )
            total_count = count_result.scalar() or 0

            query = (
                select(Property)
                .where(and_(*conditions))
                .order_by(*self._search_order(filters))
                .offset(skip)
                .limit(limit)
            )
            result = await self.db.execute(query)
            properties = list(result.scalars().all())

            logger.debug(f"Property search returned {len(properties)} of {total_count} total results")
            return properties, total_count
        except Exception as e:
            logger.error(f"Failed to search properties: {e}")
            raise

    async def _search_by_region(
        self,
        filters: PropertySearchFilters,
        skip: int,
        limit: int
    ) -> Tuple[List[Property], int]:
        """
        Ranked region search.

        Listings whose city or address contains the term rank above listings
        that only match on region. Both sets keep the standard order, and the
        merged list is paged here, so the total is the merged length.
        """
        try:
            term = f"%{filters.region}%"
            conditions = self._build_filter_conditions(filters)

            close_query = (
                select(Property)
                .where(and_(*conditions))
                .where(or_(Property.city.ilike(term), Property.address.ilike(term)))
                .order_by(*self._search_order(filters))
            )
            close_matches = list((await self.db.execute(close_query)).scalars().all())

            broad_query = (
                select(Property)
                .where(and_(*conditions))
                .where(Property.region.ilike(term))
                .order_by(*self._search_order(filters))
            )
            close_ids = [item.id for item in close_matches]
            if close_ids:
                broad_query = broad_query.where(Property.id.notin_(close_ids))
            broad_matches = list((await self.db.execute(broad_query)).scalars().all())

            merged = close_matches + broad_matches
            logger.debug(
                f"Region search '{filters.region}': {len(close_matches)} close, "
                f"{len(broad_matches)} broad matches"
            )
            return merged[skip:skip + limit], len(merged)
        except Exception as e:
            logger.error(f"Failed to search properties by region {filters.region}: {e}")
            raise

    async def get_featured_properties(self, limit: int = 6) -> List[Property]:
        """Featured public listings, most viewed first."""
        try:
            query = (
                select(Property)
                .where(Property.public_filter(), Property.is_featured.is_(True))
                .order_by(desc(Property.views_count), desc(Property.created_at))
                .limit(limit)
            )
            result = await self.db.execute(query)
            return list(result.scalars().all())
        except Exception as e:
            logger.error(f"Failed to get featured properties: {e}")
            raise

    async def get_properties_by_owner(
        self,
        owner_id: uuid.UUID,
        skip: int = 0,
        limit: int = 20
    ) -> Tuple[List[Property], int]:
        """Every listing created by the owner or assigned to them, in any state."""
        try:
            condition = and_(
                or_(Property.owner_id == owner_id, Property.agent_id == owner_id),
                Property.deleted_at.is_(None)
            )
            total = (await self.db.execute(
                select(func.count(Property.id)).where(condition)
            )).scalar() or 0

            query = (
                select(Property)
                .where(condition)
                .order_by(desc(Property.updated_at), desc(Property.created_at))
                .offset(skip)
                .limit(limit)
            )
            result = await self.db.execute(query)
            return list(result.scalars().all()), total
        except Exception as e:
            logger.error(f"Failed to get properties for owner {owner_id}: {e}")
            raise

    async def get_pending_approval(self, skip: int = 0, limit: int = 20) -> Tuple[List[Property], int]:
        """Moderation queue, oldest submission first."""
        condition = and_(
            Property.approval_status == ApprovalStatus.PENDING,
            Property.deleted_at.is_(None),
            Property.archived_at.is_(None)
        )
        total = (await self.db.execute(
            select(func.count(Property.id)).where(condition)
        )).scalar() or 0

        query = (
            select(Property)
            .where(condition)
            .order_by(Property.created_at)
            .offset(skip)
            .limit(limit)
        )
        result = await self.db.execute(query)
        return list(result.scalars().all()), total

    async def increment_views(self, property_id: uuid.UUID) -> None:
        try:
            await self.db.execute(
                update(Property)
                .where(Property.id == property_id)
                .values(views_count=Property.views_count + 1)
            )
            await self.db.commit()
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Failed to increment views for property {property_id}: {e}")
            raise

    async def archive_by_status(self, status: PropertyStatus, archived_by: uuid.UUID) -> int:
        """
        Archive every non-archived listing currently in ``status``.

        Returns:
            Number of listings archived
        """
        try:
            stmt = (
                update(Property)
                .where(
                    Property.status == status,
                    Property.archived_at.is_(None),
                    Property.deleted_at.is_(None)
                )
                .values(
                    status=PropertyStatus.ARCHIVED,
                    archived_at=datetime.now(timezone.utc),
                    archived_by=archived_by
                )
            )
            result = await self.db.execute(stmt)
            await self.db.commit()
            logger.info(f"Archived {result.rowcount} properties with status {status.value}")
            return result.rowcount
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Failed to bulk archive properties with status {status}: {e}")
            raise

    async def get_property_statistics(self, owner_id: Optional[uuid.UUID] = None) -> Dict[str, Any]:
        """
        Property counts for dashboards.

        Args:
            owner_id: Restrict the figures to one owner's listings

        Returns:
            Totals plus counts by status, approval status and type
        """
        try:
            scope = [Property.deleted_at.is_(None)]
            if owner_id:
                scope.append(Property.owner_id == owner_id)

            async def grouped(column) -> Dict[str, int]:
                result = await self.db.execute(
                    select(column, func.count(Property.id)).where(*scope).group_by(column)
                )
                return {key.value: count for key, count in result.all()}

            totals = (await self.db.execute(
                select(func.count(Property.id), func.coalesce(func.sum(Property.views_count), 0))
                .where(*scope)
            )).first()

            deleted_query = select(func.count(Property.id)).where(Property.deleted_at.is_not(None))
            if owner_id:
                deleted_query = deleted_query.where(Property.owner_id == owner_id)
            deleted_total = (await self.db.execute(deleted_query)).scalar() or 0

            statistics = {
                "total_properties": totals[0] or 0,
                "total_views": int(totals[1] or 0),
                "deleted_properties": deleted_total,
                "by_status": await grouped(Property.status),
                "by_approval_status": await grouped(Property.approval_status),
                "by_type": await grouped(Property.property_type),
            }
            logger.debug(f"Generated property statistics for owner {owner_id}")
            return statistics
        except Exception as e:
            logger.error(f"Failed to get property statistics: {e}")
            raise
