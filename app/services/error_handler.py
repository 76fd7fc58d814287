"""
Error reporting service for consistent error response formatting and logging.
One reporter is created per application and closed with it.
"""

from collections import deque
from datetime import datetime, timezone
from typing import Any, Deque, Dict, List, Optional
import logging
import uuid

from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from sqlalchemy.exc import SQLAlchemyError, IntegrityError

from app.utils.error_classifier import (
    ClassifiedError,
    ErrorCode,
    classify_error,
    classify_status,
    create_error,
    validation_details,
)
from app.utils.exceptions import APIException, ValidationError

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


class ErrorReporter:
    """
    Formats failure responses and keeps a bounded log of classified errors.

    Args:
        max_log_size: Maximum number of errors kept; the oldest are dropped first
    """

    def __init__(self, max_log_size: int = 100):
        if max_log_size < 1:
            raise ValueError("max_log_size must be at least 1")
        self.max_log_size = max_log_size
        self._log: Deque[ClassifiedError] = deque(maxlen=max_log_size)
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        """Drop the log; later reports are still classified but not kept."""
        logger.info(f"Error reporter closed with {len(self._log)} logged errors")
        self._log.clear()
        self._closed = True

    def report(self, error: Any, context: Optional[Dict[str, Any]] = None) -> ClassifiedError:
        """
        Classify an error, log it and remember it.

        Returns:
            The classified error
        """
        classified = classify_error(error)
        self.record(classified, context)
        return classified

    def record(self, error: ClassifiedError, context: Optional[Dict[str, Any]] = None) -> None:
        context = context or {}
        log = logger.error if error.code in (ErrorCode.API_SERVER_ERROR, ErrorCode.UNKNOWN_ERROR) else logger.warning
        log(
            f"{error.code.value}: {error.message}",
            extra={"error_code": error.code.value, **context}
        )
        if not self._closed:
            self._log.append(error)

    def recent(self, limit: Optional[int] = None) -> List[ClassifiedError]:
        """Logged errors, newest first."""
        errors = list(reversed(self._log))
        return errors[:limit] if limit else errors

    def clear(self) -> None:
        self._log.clear()

    def __len__(self) -> int:
        return len(self._log)

    # Response formatting

    @staticmethod
    def request_id(request: Optional[Request] = None) -> str:
        if request is not None and request.headers.get(REQUEST_ID_HEADER):
            return request.headers[REQUEST_ID_HEADER]
        return uuid.uuid4().hex[:8]

    @staticmethod
    def format_error_response(
        code: ErrorCode,
        message: str,
        request_id: str,
        details: Optional[List[Dict[str, Any]]] = None
    ) -> Dict[str, Any]:
        """
        Build the failure envelope.

        Returns:
            ``{"error", "code", "details"?, "request_id", "timestamp"}``
        """
        response = {
            "error": message,
            "code": code.value,
            "request_id": request_id,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
        if details:
            response["details"] = details
        return response

    def _respond(
        self,
        request: Optional[Request],
        status_code: int,
        error: ClassifiedError,
        message: str,
        details: Optional[List[Dict[str, Any]]] = None,
        headers: Optional[Dict[str, str]] = None
    ) -> JSONResponse:
        request_id = self.request_id(request)
        self.record(error, {
            "request_id": request_id,
            "status_code": status_code,
            "path": request.url.path if request else None,
        })
        return JSONResponse(
            status_code=status_code,
            content=self.format_error_response(error.code, message, request_id, details),
            headers={**(headers or {}), REQUEST_ID_HEADER: request_id},
        )

    def handle_api_exception(self, exception: APIException, request: Optional[Request] = None) -> JSONResponse:
        details = exception.field_errors if isinstance(exception, ValidationError) else None
        error = create_error(exception.error_code, str(exception.detail), details)
        return self._respond(
            request, exception.status_code, error, str(exception.detail), details, exception.headers
        )

    def handle_validation_error(
        self,
        errors: List[Dict[str, Any]],
        request: Optional[Request] = None
    ) -> JSONResponse:
        """Request validation failures are reported as 400 with one detail per field."""
        details = validation_details(errors)
        error = create_error(ErrorCode.VALIDATION_ERROR, "Request validation failed", details)
        return self._respond(request, 400, error, "Request validation failed", details)

    def handle_database_error(self, exception: SQLAlchemyError, request: Optional[Request] = None) -> JSONResponse:
        error = classify_error(exception)
        status_code = 409 if isinstance(exception, IntegrityError) else 500
        logger.error(
            f"Database error: {type(exception).__name__}",
            exc_info=exception
        )
        return self._respond(request, status_code, error, error.message)

    def handle_http_exception(
        self,
        exception: StarletteHTTPException,
        request: Optional[Request] = None
    ) -> JSONResponse:
        error = create_error(classify_status(exception.status_code), str(exception.detail))
        return self._respond(
            request, exception.status_code, error, str(exception.detail), headers=exception.headers
        )

    def handle_unexpected_error(self, exception: Exception, request: Optional[Request] = None) -> JSONResponse:
        logger.error(
            f"Unexpected error: {type(exception).__name__} - {exception}",
            exc_info=exception
        )
        error = create_error(ErrorCode.API_SERVER_ERROR, str(exception) or type(exception).__name__)
        return self._respond(
            request, 500, error, "An unexpected error occurred. Please try again later."
        )
