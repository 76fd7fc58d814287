"""
Repository layer for data access operations.
Provides listing search, moderation queries and image bookkeeping with proper error handling.
"""

from app.repositories.base import BaseRepository
from app.repositories.property import PropertyRepository, PropertySearchFilters
from app.repositories.user import UserRepository
from app.repositories.image import ImageRepository

__all__ = [
    "BaseRepository",
    "PropertyRepository",
    "PropertySearchFilters",
    "UserRepository",
    "ImageRepository"
]
