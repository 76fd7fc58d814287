"""
Pydantic schemas for request/response validation.
"""

# Authentication schemas
from .auth import (
    LoginRequest,
    RegisterRequest,
    RefreshTokenRequest,
    AccessTokenResponse,
    TokenResponse,
    LoginResponse
)

# User schemas
from .user import (
    UserBase,
    UserCreate,
    UserResponse,
    UserSummary,
    CurrentUserResponse
)

# Property schemas
from .property import (
    FormStep,
    STEP_MODELS,
    BasicInfoStep,
    LocationStep,
    DetailsStep,
    ImagesStep,
    PropertyCreate,
    PropertyUpdate,
    PropertyResponse,
    PropertyListResponse
)

# Image schemas
from .image import (
    PropertyImageInput,
    PropertyImageResponse,
    ImageUploadResponse,
    StagedImageUploadResponse,
    LinkStagedImagesRequest,
    LinkStagedImagesResponse
)

# Admin schemas
from .admin import (
    ApprovalAction,
    ApprovalRequest,
    AssignAgentRequest,
    BulkArchiveRequest,
    BulkArchiveResponse,
    PropertyStatisticsResponse,
    ErrorLogResponse
)

from .error import ErrorDetail, ErrorResponse, ERROR_RESPONSES

__all__ = [
    # Authentication
    "LoginRequest",
    "RegisterRequest",
    "RefreshTokenRequest",
    "AccessTokenResponse",
    "TokenResponse",
    "LoginResponse",

    # User
    "UserBase",
    "UserCreate",
    "UserResponse",
    "UserSummary",
    "CurrentUserResponse",

    # Property
    "FormStep",
    "STEP_MODELS",
    "BasicInfoStep",
    "LocationStep",
    "DetailsStep",
    "ImagesStep",
    "PropertyCreate",
    "PropertyUpdate",
    "PropertyResponse",
    "PropertyListResponse",

    # Image
    "PropertyImageInput",
    "PropertyImageResponse",
    "ImageUploadResponse",
    "StagedImageUploadResponse",
    "LinkStagedImagesRequest",
    "LinkStagedImagesResponse",

    # Admin
    "ApprovalAction",
    "ApprovalRequest",
    "AssignAgentRequest",
    "BulkArchiveRequest",
    "BulkArchiveResponse",
    "PropertyStatisticsResponse",
    "ErrorLogResponse",

    # Errors
    "ErrorDetail",
    "ErrorResponse",
    "ERROR_RESPONSES"
]
