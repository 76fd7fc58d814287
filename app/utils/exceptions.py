"""
Custom exception classes for the Property Marketplace API.
Provides structured error handling with appropriate HTTP status codes.
"""

from typing import Any, Dict, Optional, List
from fastapi import HTTPException, status

from app.utils.error_classifier import ErrorCode


class APIException(HTTPException):
    """Base API exception class."""

    def __init__(
        self,
        status_code: int,
        detail: str,
        error_code: Optional[ErrorCode] = None,
        headers: Optional[Dict[str, Any]] = None
    ):
        super().__init__(status_code=status_code, detail=detail, headers=headers)
        self.error_code = error_code or ErrorCode.UNKNOWN_ERROR


class ValidationError(APIException):
    """Validation error exception."""

    def __init__(
        self,
        detail: str,
        field_errors: Optional[List[Dict[str, str]]] = None
    ):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=detail,
            error_code=ErrorCode.VALIDATION_ERROR
        )
        self.field_errors = field_errors or []


class NotFoundError(APIException):
    """Resource not found exception."""

    def __init__(
        self,
        resource: str,
        resource_id: Optional[str] = None,
        error_code: ErrorCode = ErrorCode.API_NOT_FOUND
    ):
        detail = f"{resource} not found"
        if resource_id:
            detail += f" with ID: {resource_id}"

        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=detail,
            error_code=error_code
        )


class UnauthorizedError(APIException):
    """Authentication required exception."""

    def __init__(
        self,
        detail: str = "Authentication required",
        error_code: ErrorCode = ErrorCode.AUTH_UNAUTHORIZED
    ):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
            error_code=error_code,
            headers={"WWW-Authenticate": "Bearer"}
        )


class ForbiddenError(APIException):
    """Access forbidden exception."""

    def __init__(
        self,
        detail: str = "Access forbidden",
        error_code: ErrorCode = ErrorCode.AUTH_INSUFFICIENT_PERMISSIONS
    ):
        super().__init__(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=detail,
            error_code=error_code
        )


class ConflictError(APIException):
    """Resource conflict exception."""

    def __init__(self, detail: str):
        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            detail=detail,
            error_code=ErrorCode.DB_CONSTRAINT_VIOLATION
        )


class BadRequestError(APIException):
    """Bad request exception."""

    def __init__(self, detail: str, error_code: ErrorCode = ErrorCode.API_BAD_REQUEST):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=detail,
            error_code=error_code
        )


class InternalServerError(APIException):
    """Internal server error exception."""

    def __init__(self, detail: str = "Internal server error"):
        super().__init__(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=detail,
            error_code=ErrorCode.API_SERVER_ERROR
        )


# Authentication specific exceptions
class InvalidCredentialsError(UnauthorizedError):
    """Invalid login credentials exception."""

    def __init__(self, detail: str = "Invalid email or password"):
        super().__init__(detail, ErrorCode.AUTH_INVALID_CREDENTIALS)


class TokenExpiredError(UnauthorizedError):
    """JWT token expired exception."""

    def __init__(self, detail: str = "Token has expired"):
        super().__init__(detail, ErrorCode.AUTH_SESSION_EXPIRED)


class InvalidTokenError(UnauthorizedError):
    """Invalid JWT token exception."""

    def __init__(self, detail: str = "Invalid token"):
        super().__init__(detail)


class InactiveUserError(ForbiddenError):
    """Inactive user account exception."""

    def __init__(self, detail: str = "User account is inactive"):
        super().__init__(detail)


class InsufficientPermissionsError(ForbiddenError):
    """Insufficient permissions exception."""

    def __init__(self, action: str):
        super().__init__(f"Insufficient permissions to {action}")


class UserNotFoundError(NotFoundError):
    def __init__(self, user_id: str):
        super().__init__("User", user_id, ErrorCode.USER_NOT_FOUND)


# Property specific exceptions
class PropertyNotFoundError(NotFoundError):
    """Property not found exception."""

    def __init__(self, property_id: str):
        super().__init__("Property", property_id, ErrorCode.PROPERTY_NOT_FOUND)


class PropertyOwnershipError(ForbiddenError):
    """Property ownership violation exception."""

    def __init__(self, detail: str = "You don't own this property"):
        super().__init__(detail, ErrorCode.PROPERTY_ACCESS_DENIED)


class PropertyStatusError(BadRequestError):
    """Raised when a moderation action does not fit the listing's current state."""

    def __init__(self, detail: str):
        super().__init__(detail)


class DuplicateResourceError(ConflictError):
    """Duplicate resource exception."""

    def __init__(self, resource: str, identifier: str):
        super().__init__(f"{resource} with identifier '{identifier}' already exists")


# File upload exceptions
class FileUploadError(BadRequestError):
    """File upload error exception."""

    def __init__(self, detail: str):
        super().__init__(f"File upload error: {detail}", ErrorCode.FILE_UPLOAD_FAILED)


class UnsupportedFileTypeError(BadRequestError):
    """Unsupported file type exception."""

    def __init__(self, file_type: str, supported_types: List[str]):
        supported = ", ".join(supported_types)
        super().__init__(
            f"Unsupported file type '{file_type}'. Supported types: {supported}",
            ErrorCode.FILE_INVALID_TYPE
        )


class FileSizeExceededError(BadRequestError):
    """File size exceeded exception."""

    def __init__(self, size: int, max_size: int):
        super().__init__(
            f"File size {size} bytes exceeds maximum allowed size {max_size} bytes",
            ErrorCode.FILE_TOO_LARGE
        )


# Currency exceptions
class CurrencyError(BadRequestError):
    """Unknown currency or missing exchange rate."""

    def __init__(self, currency: str):
        super().__init__(
            f"Exchange rate not found for currency: {currency}",
            ErrorCode.VALIDATION_INVALID_FORMAT
        )
        self.currency = currency
