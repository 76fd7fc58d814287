"""
API route handlers for the Property Marketplace API.
Provides organized routing for different API endpoints.
"""

from .admin import router as admin_router
from .auth import router as auth_router
from .currency import router as currency_router
from .images import router as images_router
from .properties import router as properties_router

__all__ = [
    "admin_router",
    "auth_router",
    "currency_router",
    "images_router",
    "properties_router"
]
