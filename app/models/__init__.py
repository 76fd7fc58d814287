"""
Database models for the Property Marketplace API.
Includes User, Property, and PropertyImage models with relationships and validation.
"""

from app.models.user import User, UserRole, LISTING_ROLES
from app.models.property import (
    Property,
    PropertyType,
    ListingType,
    PropertyStatus,
    ApprovalStatus,
    ListingTier,
)
from app.models.image import PropertyImage, ImageType

# Export all models for easy importing
__all__ = [
    "User",
    "UserRole",
    "LISTING_ROLES",
    "Property",
    "PropertyType",
    "ListingType",
    "PropertyStatus",
    "ApprovalStatus",
    "ListingTier",
    "PropertyImage",
    "ImageType",
]
