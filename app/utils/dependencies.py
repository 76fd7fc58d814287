"""
FastAPI dependency injection utilities for authentication, services and
application-scoped collaborators.
Provides reusable dependencies for route protection and user extraction.
"""

import logging
from typing import Optional
from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
from app.database import get_db
from app.models.user import User
from app.services.approval import ApprovalService
from app.services.auth import AuthService
from app.services.currency import CurrencyRateProvider
from app.services.error_handler import ErrorReporter
from app.services.image import ImageService
from app.services.property import PropertyService
from app.utils.exceptions import (
    APIException,
    ForbiddenError,
    InactiveUserError,
    InsufficientPermissionsError,
    UnauthorizedError
)

logger = logging.getLogger(__name__)

# HTTP Bearer token security scheme
security = HTTPBearer(auto_error=False)


async def get_auth_service(db: AsyncSession = Depends(get_db)) -> AuthService:
    return AuthService(db)


async def get_property_service(db: AsyncSession = Depends(get_db)) -> PropertyService:
    return PropertyService(db)


async def get_approval_service(db: AsyncSession = Depends(get_db)) -> ApprovalService:
    return ApprovalService(db)


async def get_image_service(db: AsyncSession = Depends(get_db)) -> ImageService:
    return ImageService(db)


def get_error_reporter(request: Request) -> ErrorReporter:
    """The reporter created with the application."""
    return request.app.state.error_reporter


def get_rate_provider(request: Request) -> CurrencyRateProvider:
    return request.app.state.rate_provider


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    auth_service: AuthService = Depends(get_auth_service)
) -> User:
    """
    Get current authenticated user from JWT token.

    Raises:
        UnauthorizedError: If no token provided or token is invalid
        TokenExpiredError: If token is expired
        InactiveUserError: If user account is inactive
    """
    if not credentials:
        raise UnauthorizedError("Authentication token required")

    return await auth_service.get_current_user(credentials.credentials)


async def get_current_active_user(
    current_user: User = Depends(get_current_user)
) -> User:
    if not current_user.is_active:
        raise InactiveUserError()

    return current_user


async def get_current_admin_user(
    current_user: User = Depends(get_current_active_user)
) -> User:
    """
    Get current user with admin role.

    Raises:
        InsufficientPermissionsError: If user is not an admin
    """
    if not current_user.is_admin:
        raise InsufficientPermissionsError("access admin resources")

    return current_user


async def get_listing_user(
    current_user: User = Depends(get_current_active_user)
) -> User:
    """
    Get current user with listing rights: an admin, or a verified agent or seller.

    Raises:
        ForbiddenError: If the user may not create listings
    """
    if not current_user.can_list_properties:
        raise ForbiddenError("Only verified agents and sellers can list properties")

    return current_user


# Optional authentication dependency (for public endpoints that can benefit from user context)
async def get_optional_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    auth_service: AuthService = Depends(get_auth_service)
) -> Optional[User]:
    """
    Get current user if token is provided and valid, otherwise return None.
    """
    if not credentials:
        return None

    try:
        return await auth_service.get_current_user(credentials.credentials)
    except APIException as e:
        logger.debug(f"Ignoring invalid credentials on public endpoint: {e.detail}")
        return None
