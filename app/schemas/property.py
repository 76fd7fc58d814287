"""
Pydantic schemas for property requests and responses.

The creation schema is composed from one model per wizard step, so the client
wizard and the API validate each field group with the same rules.
"""

from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Dict, Optional, List, Type
from datetime import datetime, timezone
from decimal import Decimal
import enum
import uuid

from app.config import settings
from app.models.property import (
    PropertyType, ListingType, PropertyStatus, ApprovalStatus, ListingTier
)
from app.schemas.image import PropertyImageInput, PropertyImageResponse
from app.schemas.user import UserSummary

MAX_PRICE = Decimal("1000000000")
MAX_AREA = 1_000_000
MAX_ROOMS = 20


def _clean_text(value: Optional[str]) -> Optional[str]:
    if value is None:
        return value
    if not value.strip():
        raise ValueError("Field cannot be empty")
    return value.strip()


def _clean_tags(values: Optional[List[str]]) -> Optional[List[str]]:
    """Trim entries, drop blanks and keep first occurrences only."""
    if values is None:
        return values
    cleaned: List[str] = []
    for item in values:
        item = item.strip()
        if item and item not in cleaned:
            cleaned.append(item)
    return cleaned


def _validate_year_built(value: Optional[int]) -> Optional[int]:
    if value is not None and value > datetime.now(timezone.utc).year:
        raise ValueError("Year built cannot be in the future")
    return value


def validate_image_set(images: Optional[List[PropertyImageInput]]) -> Optional[List[PropertyImageInput]]:
    """
    An empty image list is allowed. Otherwise at least the configured minimum
    is required and at most one image may be primary.
    """
    if not images:
        return images
    if len(images) < settings.min_listing_images:
        raise ValueError(f"At least {settings.min_listing_images} images required")
    if sum(1 for image in images if image.is_primary) > 1:
        raise ValueError("Only one image can be primary")
    return images


class FormStep(str, enum.Enum):
    """Ordered steps of the listing wizard."""
    BASIC = "basic"
    LOCATION = "location"
    DETAILS = "details"
    IMAGES = "images"


class BasicInfoStep(BaseModel):
    """Step 1: what is being listed and for how much."""

    title: str = Field(
        ...,
        min_length=5,
        max_length=100,
        description="Property listing title",
        examples=["2BR Flat in East Legon"]
    )
    description: str = Field(
        ...,
        min_length=20,
        max_length=2000,
        description="Detailed property description"
    )
    property_type: PropertyType = Field(default=PropertyType.HOUSE)
    listing_type: ListingType = Field(default=ListingType.SALE)
    price: Decimal = Field(..., ge=0, le=MAX_PRICE, description="Price in the listing currency")
    currency: str = Field(default="GHS", min_length=3, max_length=3)

    @field_validator('title', 'description')
    @classmethod
    def validate_basic_text(cls, v):
        return _clean_text(v)

    @field_validator('currency')
    @classmethod
    def validate_currency(cls, v):
        return v.upper()


class LocationStep(BaseModel):
    """Step 2: where the property is."""

    address: str = Field(..., min_length=10, max_length=500)
    city: str = Field(..., min_length=2, max_length=100, examples=["Accra"])
    region: str = Field(..., min_length=2, max_length=100, examples=["Greater Accra"])
    postal_code: Optional[str] = Field(None, max_length=20)
    latitude: Optional[Decimal] = Field(None, ge=-90, le=90)
    longitude: Optional[Decimal] = Field(None, ge=-180, le=180)

    @field_validator('address', 'city', 'region')
    @classmethod
    def validate_location_text(cls, v):
        return _clean_text(v)


class DetailsStep(BaseModel):
    """Step 3: size, age, features and amenities."""

    bedrooms: Optional[int] = Field(None, ge=0, le=MAX_ROOMS)
    bathrooms: Optional[int] = Field(None, ge=0, le=MAX_ROOMS)
    square_feet: Optional[int] = Field(None, ge=0, le=MAX_AREA)
    land_size: Optional[int] = Field(None, ge=0, le=MAX_AREA)
    year_built: Optional[int] = Field(None, ge=1800)
    features: List[str] = Field(..., min_length=1, description="At least one feature is required")
    amenities: List[str] = Field(..., min_length=1, description="At least one amenity is required")

    @field_validator('year_built')
    @classmethod
    def validate_year_built(cls, v):
        return _validate_year_built(v)

    @field_validator('features', 'amenities')
    @classmethod
    def validate_tags(cls, v):
        cleaned = _clean_tags(v)
        if not cleaned:
            raise ValueError("At least one entry is required")
        return cleaned


class ImagesStep(BaseModel):
    """Step 4: optional inline images."""

    images: List[PropertyImageInput] = Field(default_factory=list)

    @field_validator('images')
    @classmethod
    def validate_images(cls, v):
        return validate_image_set(v)


STEP_MODELS: Dict[FormStep, Type[BaseModel]] = {
    FormStep.BASIC: BasicInfoStep,
    FormStep.LOCATION: LocationStep,
    FormStep.DETAILS: DetailsStep,
    FormStep.IMAGES: ImagesStep,
}


class PropertyCreate(BasicInfoStep, LocationStep, DetailsStep, ImagesStep):
    """
    Schema for creating a new property.
    Moderation fields in the payload are ignored; new listings always start pending.
    """

    staging_id: Optional[uuid.UUID] = Field(
        None,
        description="Temporary id that staged image uploads were filed under"
    )

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "title": "2BR Flat",
                "description": "Bright two bedroom flat close to the mall and schools.",
                "price": 50000,
                "address": "12 Lagos Avenue, East Legon",
                "city": "Accra",
                "region": "Greater Accra",
                "features": ["Balcony"],
                "amenities": ["Parking"],
            }
        }
    )


class PropertyUpdate(BaseModel):
    """Partial update. Moderation fields are rejected outright."""

    model_config = ConfigDict(extra="forbid")

    title: Optional[str] = Field(None, min_length=5, max_length=100)
    description: Optional[str] = Field(None, min_length=20, max_length=2000)
    property_type: Optional[PropertyType] = None
    listing_type: Optional[ListingType] = None
    price: Optional[Decimal] = Field(None, ge=0, le=MAX_PRICE)
    currency: Optional[str] = Field(None, min_length=3, max_length=3)
    address: Optional[str] = Field(None, min_length=10, max_length=500)
    city: Optional[str] = Field(None, min_length=2, max_length=100)
    region: Optional[str] = Field(None, min_length=2, max_length=100)
    postal_code: Optional[str] = Field(None, max_length=20)
    latitude: Optional[Decimal] = Field(None, ge=-90, le=90)
    longitude: Optional[Decimal] = Field(None, ge=-180, le=180)
    bedrooms: Optional[int] = Field(None, ge=0, le=MAX_ROOMS)
    bathrooms: Optional[int] = Field(None, ge=0, le=MAX_ROOMS)
    square_feet: Optional[int] = Field(None, ge=0, le=MAX_AREA)
    land_size: Optional[int] = Field(None, ge=0, le=MAX_AREA)
    year_built: Optional[int] = Field(None, ge=1800)
    features: Optional[List[str]] = Field(None, min_length=1)
    amenities: Optional[List[str]] = Field(None, min_length=1)
    images: Optional[List[PropertyImageInput]] = None

    @field_validator('title', 'description', 'address', 'city', 'region')
    @classmethod
    def validate_text(cls, v):
        return _clean_text(v)

    @field_validator('currency')
    @classmethod
    def validate_currency(cls, v):
        return v.upper() if v else v

    @field_validator('year_built')
    @classmethod
    def validate_year_built(cls, v):
        return _validate_year_built(v)

    @field_validator('features', 'amenities')
    @classmethod
    def validate_tags(cls, v):
        cleaned = _clean_tags(v)
        if cleaned is not None and not cleaned:
            raise ValueError("At least one entry is required")
        return cleaned

    @field_validator('images')
    @classmethod
    def validate_images(cls, v):
        return validate_image_set(v)


class PropertyResponse(BaseModel):
    """Schema for property response with moderation metadata."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    title: str
    description: str
    property_type: PropertyType
    listing_type: ListingType
    price: float
    currency: str
    address: str
    city: str
    region: str
    postal_code: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    bedrooms: Optional[int] = None
    bathrooms: Optional[int] = None
    square_feet: Optional[int] = None
    land_size: Optional[int] = None
    year_built: Optional[int] = None
    features: List[str] = Field(default_factory=list)
    amenities: List[str] = Field(default_factory=list)

    status: PropertyStatus
    approval_status: ApprovalStatus
    approved_at: Optional[datetime] = None
    approved_by: Optional[uuid.UUID] = None
    rejection_reason: Optional[str] = None
    admin_notes: Optional[str] = None
    archived_at: Optional[datetime] = None
    deleted_at: Optional[datetime] = None

    tier: ListingTier
    is_featured: bool
    views_count: int

    owner_id: uuid.UUID
    agent_id: Optional[uuid.UUID] = None
    owner: Optional[UserSummary] = None
    agent: Optional[UserSummary] = None
    images: List[PropertyImageResponse] = Field(default_factory=list)

    created_at: datetime
    updated_at: datetime

    warnings: List[str] = Field(
        default_factory=list,
        description="Non-fatal problems, e.g. staged images that could not be linked"
    )


class PropertyListResponse(BaseModel):
    """Schema for paginated property list response."""

    properties: List[PropertyResponse]
    total: int = Field(..., description="Total number of properties matching the criteria")
    page: int
    limit: int
    total_pages: int
    has_next: bool
    has_previous: bool

    @classmethod
    def paginate(cls, properties, total: int, page: int, limit: int) -> "PropertyListResponse":
        total_pages = (total + limit - 1) // limit if total else 0
        return cls(
            properties=[PropertyResponse.model_validate(item) for item in properties],
            total=total,
            page=page,
            limit=limit,
            total_pages=total_pages,
            has_next=page < total_pages,
            has_previous=page > 1,
        )
