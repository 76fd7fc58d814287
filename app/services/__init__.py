"""
Service layer for business logic implementation.
Contains services for authentication, listings, moderation, images, currency rates and error reporting.
"""

from .auth import AuthService
from .property import PropertyService
from .approval import ApprovalService
from .image import ImageService
from .currency import CurrencyRateProvider
from .error_handler import ErrorReporter

__all__ = [
    "AuthService",
    "PropertyService",
    "ApprovalService",
    "ImageService",
    "CurrencyRateProvider",
    "ErrorReporter"
]
