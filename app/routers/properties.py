"""
Property management API endpoints for listing creation, search, dashboards and archiving.
Every route re-checks authentication, role and ownership, and the payload schema.
"""

from fastapi import APIRouter, Depends, status, Query, Path
from decimal import Decimal
from typing import Optional, List
from uuid import UUID

from app.config import settings
from app.models.user import User
from app.models.property import PropertyType, ListingType
from app.repositories.property import PropertySearchFilters, SortField, SortOrder
from app.services.property import PropertyService
from app.schemas.error import ERROR_RESPONSES
from app.schemas.property import (
    PropertyCreate,
    PropertyUpdate,
    PropertyResponse,
    PropertyListResponse
)
from app.utils.dependencies import (
    get_current_active_user,
    get_listing_user,
    get_optional_current_user,
    get_property_service
)


router = APIRouter(prefix="/properties", tags=["Properties"])

CRUD_ERRORS = {code: ERROR_RESPONSES[code] for code in (400, 401, 403, 404)}


@router.post(
    "",
    response_model=PropertyResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create new property",
    description=(
        "Create a listing in the pending state. Requires an admin or a verified agent or seller. "
        "Inline images must number at least three; pass `staging_id` to attach staged uploads."
    ),
    responses=CRUD_ERRORS
)
async def create_property(
    property_data: PropertyCreate,
    current_user: User = Depends(get_listing_user),
    property_service: PropertyService = Depends(get_property_service)
) -> PropertyResponse:
    property_obj, warnings = await property_service.create_property(property_data, current_user)

    response = PropertyResponse.model_validate(property_obj)
    response.warnings = warnings
    return response


@router.get(
    "",
    response_model=PropertyListResponse,
    status_code=status.HTTP_200_OK,
    summary="List properties with search and filtering",
    description="Public listing of active approved properties. Premium listings rank first."
)
async def list_properties(
    # Listing filters
    property_type: Optional[PropertyType] = Query(None, description="Property type"),
    listing_type: Optional[ListingType] = Query(None, description="Sale, rent or lease"),

    # Price filters
    min_price: Optional[Decimal] = Query(None, ge=0, description="Minimum price filter"),
    max_price: Optional[Decimal] = Query(None, ge=0, description="Maximum price filter"),

    # Location filters
    city: Optional[str] = Query(None, max_length=100, description="City contains"),
    region: Optional[str] = Query(
        None,
        max_length=100,
        description="Region search; city and address matches rank above region-only matches"
    ),

    # Size and room filters
    bedrooms: Optional[int] = Query(None, ge=0, le=50, description="Minimum number of bedrooms"),
    bathrooms: Optional[int] = Query(None, ge=0, le=50, description="Minimum number of bathrooms"),
    min_area: Optional[int] = Query(None, ge=0, description="Minimum floor area in square feet"),
    max_area: Optional[int] = Query(None, ge=0, description="Maximum floor area in square feet"),
    features: Optional[List[str]] = Query(None, description="Listings must have every given feature"),

    search: Optional[str] = Query(None, max_length=200, description="Search title, description and city"),
    listed_within_days: Optional[int] = Query(None, ge=1, le=365, description="Only listings created within N days"),
    is_featured: Optional[bool] = Query(None),

    # Ordering
    sort_by: Optional[SortField] = Query(None, description="Sort column; premium listings first when omitted"),
    sort_order: SortOrder = Query(SortOrder.DESC, description="Sort direction"),

    # Pagination
    page: int = Query(1, ge=1, description="Page number (starts from 1)"),
    limit: int = Query(
        settings.default_page_size,
        ge=1,
        le=settings.max_page_size,
        description="Number of properties per page"
    ),

    property_service: PropertyService = Depends(get_property_service)
) -> PropertyListResponse:
    filters = PropertySearchFilters(
        property_type=property_type,
        listing_type=listing_type,
        min_price=min_price,
        max_price=max_price,
        city=city,
        region=region,
        bedrooms=bedrooms,
        bathrooms=bathrooms,
        min_area=min_area,
        max_area=max_area,
        features=features,
        search_text=search,
        listed_within_days=listed_within_days,
        is_featured=is_featured,
        sort_by=sort_by,
        sort_order=sort_order
    )

    properties, total = await property_service.search_properties(filters, page=page, limit=limit)
    return PropertyListResponse.paginate(properties, total, page, limit)


@router.get(
    "/featured",
    response_model=List[PropertyResponse],
    status_code=status.HTTP_200_OK,
    summary="Featured properties",
    description="Active approved featured listings, most viewed first"
)
async def get_featured_properties(
    limit: int = Query(settings.featured_limit, ge=1, le=24),
    property_service: PropertyService = Depends(get_property_service)
) -> List[PropertyResponse]:
    properties = await property_service.get_featured_properties(limit)
    return [PropertyResponse.model_validate(prop) for prop in properties]


@router.get(
    "/mine",
    response_model=PropertyListResponse,
    status_code=status.HTTP_200_OK,
    summary="My properties",
    description="Dashboard listing of the caller's own and assigned properties in every status",
    responses={401: ERROR_RESPONSES[401]}
)
async def get_my_properties(
    page: int = Query(1, ge=1),
    limit: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size),
    current_user: User = Depends(get_current_active_user),
    property_service: PropertyService = Depends(get_property_service)
) -> PropertyListResponse:
    properties, total = await property_service.get_my_properties(current_user, page=page, limit=limit)
    return PropertyListResponse.paginate(properties, total, page, limit)


@router.get(
    "/{property_id}",
    response_model=PropertyResponse,
    status_code=status.HTTP_200_OK,
    summary="Get property details",
    description="Public for active approved listings; owners, assigned agents and admins see every state",
    responses={404: ERROR_RESPONSES[404]}
)
async def get_property(
    property_id: UUID = Path(..., description="Property ID"),
    current_user: Optional[User] = Depends(get_optional_current_user),
    property_service: PropertyService = Depends(get_property_service)
) -> PropertyResponse:
    property_obj = await property_service.get_property(property_id, current_user)
    return PropertyResponse.model_validate(property_obj)


@router.put(
    "/{property_id}",
    response_model=PropertyResponse,
    status_code=status.HTTP_200_OK,
    summary="Update property",
    description=(
        "Partial update by the owner or an admin. Editing a rejected listing, "
        "or one with changes requested, sends it back for approval."
    ),
    responses=CRUD_ERRORS
)
async def update_property(
    property_data: PropertyUpdate,
    property_id: UUID = Path(..., description="Property ID"),
    current_user: User = Depends(get_current_active_user),
    property_service: PropertyService = Depends(get_property_service)
) -> PropertyResponse:
    updated_property = await property_service.update_property(property_id, property_data, current_user)
    return PropertyResponse.model_validate(updated_property)


@router.delete(
    "/{property_id}",
    response_model=PropertyResponse,
    status_code=status.HTTP_200_OK,
    summary="Archive property",
    description="Archive a listing. The row is kept. Only the owner or an admin can archive.",
    responses=CRUD_ERRORS
)
async def archive_property(
    property_id: UUID = Path(..., description="Property ID"),
    current_user: User = Depends(get_current_active_user),
    property_service: PropertyService = Depends(get_property_service)
) -> PropertyResponse:
    archived = await property_service.archive_property(property_id, current_user)
    return PropertyResponse.model_validate(archived)
