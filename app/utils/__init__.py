"""
Utility modules for the Property Marketplace API.
"""

from .auth import (
    create_access_token,
    create_refresh_token,
    verify_token,
    TokenPayload
)

from .error_classifier import (
    ErrorCode,
    ClassifiedError,
    classify_error,
    classify_status,
    create_error
)

from .exceptions import (
    APIException,
    ValidationError,
    NotFoundError,
    UnauthorizedError,
    ForbiddenError,
    ConflictError,
    BadRequestError,
    InternalServerError,
    InvalidCredentialsError,
    TokenExpiredError,
    InvalidTokenError,
    InactiveUserError,
    InsufficientPermissionsError,
    CurrencyError
)

# Dependencies are imported directly where needed to avoid circular imports

__all__ = [
    # Auth utilities
    "create_access_token",
    "create_refresh_token",
    "verify_token",
    "TokenPayload",

    # Error taxonomy
    "ErrorCode",
    "ClassifiedError",
    "classify_error",
    "classify_status",
    "create_error",

    # Exceptions
    "APIException",
    "ValidationError",
    "NotFoundError",
    "UnauthorizedError",
    "ForbiddenError",
    "ConflictError",
    "BadRequestError",
    "InternalServerError",
    "InvalidCredentialsError",
    "TokenExpiredError",
    "InvalidTokenError",
    "InactiveUserError",
    "InsufficientPermissionsError",
    "CurrencyError",
]
