"""
Error response schemas for API documentation and consistent error formatting.
"""

from pydantic import BaseModel, Field
from typing import List, Optional

from app.utils.error_classifier import ErrorCode


class ErrorDetail(BaseModel):
    """Schema for individual error detail."""

    field: Optional[str] = Field(
        None,
        description="Field name that caused the error",
        examples=["title"]
    )
    message: str = Field(
        ...,
        description="Human-readable error message",
        examples=["String should have at least 5 characters"]
    )
    type: Optional[str] = Field(
        None,
        description="Error type identifier",
        examples=["string_too_short"]
    )


class ErrorResponse(BaseModel):
    """Schema for standardized error responses."""

    error: str = Field(..., description="Human-readable error message")
    code: ErrorCode = Field(..., description="Error code identifier")
    details: Optional[List[ErrorDetail]] = Field(
        None,
        description="Per-field information for validation errors"
    )
    request_id: str = Field(..., description="Request identifier for tracking")
    timestamp: str = Field(..., description="Error timestamp in ISO format")


def _example(code: ErrorCode, message: str) -> dict:
    return {
        "model": ErrorResponse,
        "description": message,
        "content": {
            "application/json": {
                "example": {
                    "error": message,
                    "code": code.value,
                    "request_id": "abc12345",
                    "timestamp": "2024-01-01T00:00:00+00:00",
                }
            }
        },
    }


# Error responses for OpenAPI documentation
ERROR_RESPONSES = {
    400: _example(ErrorCode.VALIDATION_ERROR, "Request validation failed"),
    401: _example(ErrorCode.AUTH_UNAUTHORIZED, "Authentication required"),
    403: _example(ErrorCode.AUTH_INSUFFICIENT_PERMISSIONS, "Access forbidden"),
    404: _example(ErrorCode.PROPERTY_NOT_FOUND, "Property not found"),
    409: _example(ErrorCode.DB_CONSTRAINT_VIOLATION, "Resource already exists"),
    500: _example(ErrorCode.API_SERVER_ERROR, "An unexpected error occurred"),
}
