"""
Error taxonomy shared by the HTTP API and its Python client.
Maps heterogeneous error shapes (transport, HTTP status, validation, database)
onto a fixed set of codes with user-facing messages and recovery suggestions.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional
import enum
import logging

import httpx
from fastapi import HTTPException
from pydantic import BaseModel, Field, ValidationError as PydanticValidationError
from sqlalchemy.exc import DBAPIError, IntegrityError, OperationalError, SQLAlchemyError

logger = logging.getLogger(__name__)


class ErrorCode(str, enum.Enum):
    """Error codes understood by both sides of the API."""
    AUTH_UNAUTHORIZED = "AUTH_UNAUTHORIZED"
    AUTH_INVALID_CREDENTIALS = "AUTH_INVALID_CREDENTIALS"
    AUTH_SESSION_EXPIRED = "AUTH_SESSION_EXPIRED"
    AUTH_INSUFFICIENT_PERMISSIONS = "AUTH_INSUFFICIENT_PERMISSIONS"
    NETWORK_ERROR = "NETWORK_ERROR"
    NETWORK_TIMEOUT = "NETWORK_TIMEOUT"
    NETWORK_OFFLINE = "NETWORK_OFFLINE"
    API_ERROR = "API_ERROR"
    API_BAD_REQUEST = "API_BAD_REQUEST"
    API_NOT_FOUND = "API_NOT_FOUND"
    API_SERVER_ERROR = "API_SERVER_ERROR"
    API_RATE_LIMITED = "API_RATE_LIMITED"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    VALIDATION_REQUIRED_FIELD = "VALIDATION_REQUIRED_FIELD"
    VALIDATION_INVALID_FORMAT = "VALIDATION_INVALID_FORMAT"
    DB_CONNECTION_ERROR = "DB_CONNECTION_ERROR"
    DB_QUERY_ERROR = "DB_QUERY_ERROR"
    DB_CONSTRAINT_VIOLATION = "DB_CONSTRAINT_VIOLATION"
    FILE_TOO_LARGE = "FILE_TOO_LARGE"
    FILE_INVALID_TYPE = "FILE_INVALID_TYPE"
    FILE_UPLOAD_FAILED = "FILE_UPLOAD_FAILED"
    PROPERTY_NOT_FOUND = "PROPERTY_NOT_FOUND"
    PROPERTY_ACCESS_DENIED = "PROPERTY_ACCESS_DENIED"
    USER_NOT_FOUND = "USER_NOT_FOUND"
    INQUIRY_NOT_FOUND = "INQUIRY_NOT_FOUND"
    UNKNOWN_ERROR = "UNKNOWN_ERROR"


ERROR_MESSAGES: Dict[ErrorCode, str] = {
    ErrorCode.AUTH_UNAUTHORIZED: "Please sign in to continue",
    ErrorCode.AUTH_INVALID_CREDENTIALS: "Invalid email or password",
    ErrorCode.AUTH_SESSION_EXPIRED: "Your session has expired. Please sign in again",
    ErrorCode.AUTH_INSUFFICIENT_PERMISSIONS: "You do not have permission to perform this action",
    ErrorCode.NETWORK_ERROR: "Network connection error. Please check your internet connection",
    ErrorCode.NETWORK_TIMEOUT: "Request timed out. Please try again",
    ErrorCode.NETWORK_OFFLINE: "You are currently offline",
    ErrorCode.API_ERROR: "Server error. Please try again later",
    ErrorCode.API_BAD_REQUEST: "Invalid request data",
    ErrorCode.API_NOT_FOUND: "The requested resource was not found",
    ErrorCode.API_SERVER_ERROR: "Server error. Please try again later",
    ErrorCode.API_RATE_LIMITED: "Too many requests. Please wait a moment",
    ErrorCode.VALIDATION_ERROR: "Please check your input and try again",
    ErrorCode.VALIDATION_REQUIRED_FIELD: "This field is required",
    ErrorCode.VALIDATION_INVALID_FORMAT: "Invalid format for this field",
    ErrorCode.DB_CONNECTION_ERROR: "Database connection error. Please try again later",
    ErrorCode.DB_QUERY_ERROR: "Database query error. Please try again later",
    ErrorCode.DB_CONSTRAINT_VIOLATION: "Data validation error. Please check your input",
    ErrorCode.FILE_TOO_LARGE: "File is too large. Please choose a smaller file",
    ErrorCode.FILE_INVALID_TYPE: "Invalid file type. Please choose a supported format",
    ErrorCode.FILE_UPLOAD_FAILED: "File upload failed. Please try again",
    ErrorCode.PROPERTY_NOT_FOUND: "Property not found",
    ErrorCode.PROPERTY_ACCESS_DENIED: "Access denied to this property",
    ErrorCode.USER_NOT_FOUND: "User not found",
    ErrorCode.INQUIRY_NOT_FOUND: "Inquiry not found",
    ErrorCode.UNKNOWN_ERROR: "An unexpected error occurred. Please try again",
}

RECOVERY_SUGGESTIONS: Dict[ErrorCode, List[str]] = {
    ErrorCode.AUTH_UNAUTHORIZED: ["Sign in to your account", "Check if your session is still valid"],
    ErrorCode.AUTH_INVALID_CREDENTIALS: ["Check your email and password", "Try resetting your password"],
    ErrorCode.AUTH_SESSION_EXPIRED: ["Sign in again", "Check if you're using the correct account"],
    ErrorCode.NETWORK_ERROR: ["Check your internet connection", "Try refreshing the page", "Check if the service is available"],
    ErrorCode.NETWORK_TIMEOUT: ["Try again in a moment", "Check your internet speed", "Try a different network"],
    ErrorCode.NETWORK_OFFLINE: ["Connect to the internet", "Check your network settings", "Try using mobile data"],
    ErrorCode.API_BAD_REQUEST: ["Check your input data", "Make sure all required fields are filled", "Verify the data format"],
    ErrorCode.API_NOT_FOUND: ["Check if the URL is correct", "Verify the resource exists", "Contact support if needed"],
    ErrorCode.API_SERVER_ERROR: ["Try again later", "Check if the service is down", "Contact support if the problem persists"],
    ErrorCode.API_RATE_LIMITED: ["Wait a few minutes", "Reduce the frequency of requests", "Contact support if needed"],
    ErrorCode.VALIDATION_ERROR: ["Review your input", "Check for typos", "Ensure all required fields are completed"],
    ErrorCode.VALIDATION_REQUIRED_FIELD: ["Fill in the required field", "Check if the field is marked as required"],
    ErrorCode.VALIDATION_INVALID_FORMAT: ["Check the expected format", "Review the field description", "Use the correct input type"],
    ErrorCode.DB_CONNECTION_ERROR: ["Try again later", "Check if the service is available", "Contact support if the problem persists"],
    ErrorCode.DB_QUERY_ERROR: ["Try again later", "Check your input data", "Contact support if the problem persists"],
    ErrorCode.DB_CONSTRAINT_VIOLATION: ["Check your input data", "Ensure data meets requirements", "Review validation rules"],
    ErrorCode.FILE_TOO_LARGE: ["Choose a smaller file", "Compress the file", "Use a different file format"],
    ErrorCode.FILE_INVALID_TYPE: ["Choose a supported file format", "Convert the file to a supported format", "Check the allowed file types"],
    ErrorCode.FILE_UPLOAD_FAILED: ["Try again", "Check your internet connection", "Try a different file"],
    ErrorCode.PROPERTY_NOT_FOUND: ["Check if the property exists", "Verify the property ID", "Search for similar properties"],
    ErrorCode.PROPERTY_ACCESS_DENIED: ["Check your permissions", "Contact the property owner", "Verify your account status"],
    ErrorCode.USER_NOT_FOUND: ["Check if the user exists", "Verify the user ID", "Contact support if needed"],
    ErrorCode.INQUIRY_NOT_FOUND: ["Check if the inquiry exists", "Verify the inquiry ID", "Contact support if needed"],
    ErrorCode.UNKNOWN_ERROR: ["Try again", "Refresh the page", "Contact support if the problem persists"],
}

NON_RECOVERABLE_CODES = frozenset({
    ErrorCode.AUTH_INSUFFICIENT_PERMISSIONS,
    ErrorCode.API_NOT_FOUND,
    ErrorCode.USER_NOT_FOUND,
    ErrorCode.PROPERTY_NOT_FOUND,
    ErrorCode.INQUIRY_NOT_FOUND,
})

STATUS_CODE_MAP: Dict[int, ErrorCode] = {
    400: ErrorCode.API_BAD_REQUEST,
    401: ErrorCode.AUTH_UNAUTHORIZED,
    403: ErrorCode.AUTH_INSUFFICIENT_PERMISSIONS,
    404: ErrorCode.API_NOT_FOUND,
    429: ErrorCode.API_RATE_LIMITED,
}


class ClassifiedError(BaseModel):
    """An error mapped onto the shared taxonomy."""

    code: ErrorCode
    message: str
    user_message: str
    recoverable: bool
    action: str
    details: Optional[Any] = None
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    def field_errors(self) -> Dict[str, str]:
        """Per-field messages carried in ``details``, keyed by field name."""
        if not isinstance(self.details, list):
            return {}
        errors = {}
        for item in self.details:
            if isinstance(item, Mapping) and item.get("field"):
                errors.setdefault(str(item["field"]), str(item.get("message", "")))
        return errors


def get_recovery_suggestions(code: ErrorCode) -> List[str]:
    return list(RECOVERY_SUGGESTIONS.get(code, []))


def _coerce_code(code: Any) -> ErrorCode:
    try:
        return ErrorCode(code)
    except ValueError:
        return ErrorCode.UNKNOWN_ERROR


def create_error(
    code: ErrorCode,
    message: Optional[str] = None,
    details: Optional[Any] = None
) -> ClassifiedError:
    """Build a classified error, filling in the user message and suggested action."""
    code = _coerce_code(code)
    user_message = ERROR_MESSAGES.get(code, ERROR_MESSAGES[ErrorCode.UNKNOWN_ERROR])
    suggestions = RECOVERY_SUGGESTIONS.get(code)
    return ClassifiedError(
        code=code,
        message=message or user_message,
        user_message=user_message,
        recoverable=code not in NON_RECOVERABLE_CODES,
        action=suggestions[0] if suggestions else "Try again",
        details=details,
    )


def classify_status(status_code: int) -> ErrorCode:
    """Map an HTTP status code onto the taxonomy."""
    if status_code in STATUS_CODE_MAP:
        return STATUS_CODE_MAP[status_code]
    if status_code >= 500:
        return ErrorCode.API_SERVER_ERROR
    return ErrorCode.UNKNOWN_ERROR


def _clean_message(message: str) -> str:
    for prefix in ("Value error, ", "Assertion failed, "):
        if message.startswith(prefix):
            return message[len(prefix):]
    return message


def validation_details(errors: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Flatten pydantic error dicts into ``{field, message, type}`` entries."""
    details = []
    for error in errors:
        location = [str(part) for part in error.get("loc", ())]
        if location and location[0] in ("body", "query", "path", "form"):
            location = location[1:]
        details.append({
            "field": ".".join(location) or "request",
            "message": _clean_message(error.get("msg", "Invalid value")),
            "type": error.get("type"),
        })
    return details


def _classify_response(error: httpx.HTTPStatusError) -> ClassifiedError:
    response = error.response
    try:
        body = response.json()
    except ValueError:
        body = None

    code = classify_status(response.status_code)
    message = None
    details = None
    if isinstance(body, Mapping):
        if body.get("code"):
            code = _coerce_code(body["code"])
        message = body.get("error") if isinstance(body.get("error"), str) else None
        details = body.get("details")
    return create_error(code, message or f"HTTP {response.status_code}", details)


def _classify_database_error(error: SQLAlchemyError) -> ClassifiedError:
    if isinstance(error, IntegrityError):
        return create_error(ErrorCode.DB_CONSTRAINT_VIOLATION, "Data integrity constraint violation")
    if isinstance(error, OperationalError) or (
        isinstance(error, DBAPIError) and error.connection_invalidated
    ):
        return create_error(ErrorCode.DB_CONNECTION_ERROR, "Database connection failed")
    return create_error(ErrorCode.DB_QUERY_ERROR, "Database operation failed")


def classify_error(error: Any) -> ClassifiedError:
    """
    Classify any error-like object.

    Accepts httpx transport and status errors, API/HTTP exceptions, pydantic
    validation errors, SQLAlchemy errors and plain mappings carrying ``code``
    or ``status``. Never raises; anything unrecognised is UNKNOWN_ERROR.
    """
    try:
        if isinstance(error, ClassifiedError):
            return error
        if isinstance(error, httpx.TimeoutException):
            return create_error(ErrorCode.NETWORK_TIMEOUT, "Request timed out", str(error))
        if isinstance(error, httpx.HTTPStatusError):
            return _classify_response(error)
        if isinstance(error, httpx.TransportError):
            return create_error(ErrorCode.NETWORK_ERROR, "Network connection failed", str(error))
        if isinstance(error, HTTPException):
            code = getattr(error, "error_code", None) or classify_status(error.status_code)
            details = getattr(error, "field_errors", None) or None
            return create_error(_coerce_code(code), str(error.detail), details)
        if isinstance(error, PydanticValidationError):
            return create_error(
                ErrorCode.VALIDATION_ERROR,
                "Validation failed",
                validation_details(error.errors()),
            )
        if isinstance(error, SQLAlchemyError):
            return _classify_database_error(error)
        if isinstance(error, Mapping):
            if error.get("code"):
                return create_error(_coerce_code(error["code"]), error.get("message"), error.get("details"))
            if error.get("status"):
                return create_error(classify_status(int(error["status"])), error.get("message"), dict(error))
            if error.get("message"):
                return create_error(ErrorCode.UNKNOWN_ERROR, str(error["message"]), dict(error))
        if isinstance(error, Exception) and str(error):
            return create_error(ErrorCode.UNKNOWN_ERROR, str(error))
    except Exception as e:
        logger.warning(f"Failed to classify {type(error).__name__}: {e}")
    return create_error(ErrorCode.UNKNOWN_ERROR, "An unexpected error occurred")
