"""
Authentication API endpoints for registration, login, token refresh and user information.
Provides JWT-based authentication; roles are always read from the users table.
"""

from fastapi import APIRouter, Depends, status
from app.models.user import User
from app.services.auth import AuthService
from app.schemas.auth import (
    LoginRequest,
    LoginResponse,
    RegisterRequest,
    RefreshTokenRequest,
    AccessTokenResponse,
)
from app.schemas.error import ERROR_RESPONSES
from app.schemas.user import CurrentUserResponse
from app.utils.dependencies import (
    get_auth_service,
    get_current_active_user
)
from app.config import settings


router = APIRouter(prefix="/auth", tags=["Authentication"])


@router.post(
    "/register",
    response_model=CurrentUserResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register account",
    description="Create a buyer, agent or seller account. Agents and sellers must be verified by an admin before listing.",
    responses={400: ERROR_RESPONSES[400], 409: ERROR_RESPONSES[409]}
)
async def register(
    register_data: RegisterRequest,
    auth_service: AuthService = Depends(get_auth_service)
) -> CurrentUserResponse:
    user = await auth_service.register(register_data)
    return CurrentUserResponse.from_user(user)


@router.post(
    "/login",
    response_model=LoginResponse,
    status_code=status.HTTP_200_OK,
    summary="User login",
    description="Authenticate user with email and password, returns JWT tokens",
    responses={401: ERROR_RESPONSES[401]}
)
async def login(
    login_data: LoginRequest,
    auth_service: AuthService = Depends(get_auth_service)
) -> LoginResponse:
    """
    Authenticate user and return JWT tokens.

    Raises:
        InvalidCredentialsError: If credentials are invalid
        InactiveUserError: If user account is inactive
    """
    user, access_token, refresh_token = await auth_service.login(
        email=login_data.email,
        password=login_data.password
    )

    return LoginResponse(
        user=CurrentUserResponse.from_user(user),
        access_token=access_token,
        refresh_token=refresh_token,
        token_type="bearer",
        expires_in=settings.access_token_expire_minutes * 60
    )


@router.post(
    "/refresh",
    response_model=AccessTokenResponse,
    status_code=status.HTTP_200_OK,
    summary="Refresh access token",
    description="Generate new access token using refresh token",
    responses={401: ERROR_RESPONSES[401]}
)
async def refresh_token(
    refresh_data: RefreshTokenRequest,
    auth_service: AuthService = Depends(get_auth_service)
) -> AccessTokenResponse:
    access_token = await auth_service.refresh_access_token(
        refresh_token=refresh_data.refresh_token
    )

    return AccessTokenResponse(
        access_token=access_token,
        token_type="bearer",
        expires_in=settings.access_token_expire_minutes * 60
    )


@router.get(
    "/me",
    response_model=CurrentUserResponse,
    status_code=status.HTTP_200_OK,
    summary="Get current user",
    description="Get current authenticated user information",
    responses={401: ERROR_RESPONSES[401]}
)
async def get_current_user_info(
    current_user: User = Depends(get_current_active_user)
) -> CurrentUserResponse:
    return CurrentUserResponse.from_user(current_user)
