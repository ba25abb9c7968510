"""
Error handling middleware for the Club Events Platform.
"""

import logging
import traceback
from datetime import datetime, timezone
from uuid import uuid4

from fastapi import Request, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from sqlalchemy.exc import IntegrityError, InterfaceError, OperationalError, TimeoutError as SQLTimeoutError
from pydantic import ValidationError as PydanticValidationError

from ..utils.exceptions import (
    ClubError,
    ErrorCode,
    ValidationError,
    NotFoundError,
    BusinessLogicError,
    ConcurrencyError,
    StoreUnavailableError,
)

logger = logging.getLogger(__name__)

STATUS_BY_ERROR_CODE = {
    ErrorCode.VALIDATION_ERROR: status.HTTP_422_UNPROCESSABLE_ENTITY,
    ErrorCode.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.UNAUTHORIZED: status.HTTP_401_UNAUTHORIZED,
    ErrorCode.FORBIDDEN: status.HTTP_403_FORBIDDEN,
    ErrorCode.INVALID_INPUT: status.HTTP_422_UNPROCESSABLE_ENTITY,
    ErrorCode.PROFILE_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.PROFILE_INCOMPLETE: status.HTTP_400_BAD_REQUEST,
    ErrorCode.EVENT_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.REGISTRATION_CLOSED: status.HTTP_409_CONFLICT,
    ErrorCode.EVENT_FULL: status.HTTP_409_CONFLICT,
    ErrorCode.ALREADY_REGISTERED: status.HTTP_409_CONFLICT,
    ErrorCode.REGISTRATION_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.PARTIAL_FAILURE: status.HTTP_500_INTERNAL_SERVER_ERROR,
    ErrorCode.CASCADE_NOT_CONFIRMED: status.HTTP_409_CONFLICT,
    ErrorCode.USER_ALREADY_EXISTS: status.HTTP_409_CONFLICT,
    ErrorCode.CONCURRENCY_CONFLICT: status.HTTP_409_CONFLICT,
    ErrorCode.OPTIMISTIC_LOCK_FAILURE: status.HTTP_409_CONFLICT,
    ErrorCode.STORE_UNAVAILABLE: status.HTTP_503_SERVICE_UNAVAILABLE,
}


def status_code_for(error_code: ErrorCode) -> int:
    """Map an error code to its HTTP status code."""
    return STATUS_BY_ERROR_CODE.get(error_code, status.HTTP_500_INTERNAL_SERVER_ERROR)


def error_envelope(error: ClubError, error_id: str) -> dict:
    """Build the JSON body shared by every error response."""
    return {
        "error": error.to_dict(),
        "error_id": error_id,
        "timestamp": datetime.now(timezone.utc).isoformat()
    }


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    """Middleware turning exceptions into structured error responses."""

    def __init__(self, app, debug: bool = False):
        super().__init__(app)
        self.debug = debug

    async def dispatch(self, request: Request, call_next):
        """Process request and handle any exceptions."""
        try:
            return await call_next(request)
        except Exception as exc:
            return self._handle_exception(request, exc, str(uuid4()))

    def _handle_exception(self, request: Request, exc: Exception, error_id: str) -> JSONResponse:
        """Handle different types of exceptions and return appropriate responses."""
        self._log_error(request, exc, error_id)

        if isinstance(exc, ClubError):
            return self._handle_club_error(exc, error_id)
        elif isinstance(exc, PydanticValidationError):
            return self._handle_validation_error(exc, error_id)
        elif isinstance(exc, IntegrityError):
            return self._handle_integrity_error(exc, error_id)
        elif isinstance(exc, (OperationalError, InterfaceError, SQLTimeoutError)):
            return self._handle_club_error(StoreUnavailableError(), error_id)
        else:
            return self._handle_unexpected_error(exc, error_id)

    def _handle_club_error(self, exc: ClubError, error_id: str) -> JSONResponse:
        headers = {}
        if exc.retry_after:
            headers["Retry-After"] = str(exc.retry_after)

        return JSONResponse(
            status_code=status_code_for(exc.error_code),
            content=error_envelope(exc, error_id),
            headers=headers
        )

    def _handle_validation_error(self, exc: PydanticValidationError, error_id: str) -> JSONResponse:
        field_errors = {}
        for error in exc.errors():
            field_path = ".".join(str(loc) for loc in error["loc"])
            field_errors.setdefault(field_path, []).append(error["msg"])

        return self._handle_club_error(
            ValidationError("Request validation failed", field_errors=field_errors),
            error_id
        )

    def _handle_integrity_error(self, exc: IntegrityError, error_id: str) -> JSONResponse:
        error_message = str(exc.orig).lower()

        if "unique" in error_message:
            constraint_type = "unique"
        elif "foreign key" in error_message:
            constraint_type = "foreign_key"
        elif "not null" in error_message:
            constraint_type = "not_null"
        else:
            constraint_type = "unknown"

        error = ValidationError(
            "Data integrity constraint violation",
            details={"constraint_type": constraint_type}
        )
        return JSONResponse(
            status_code=status.HTTP_409_CONFLICT,
            content=error_envelope(error, error_id)
        )

    def _handle_unexpected_error(self, exc: Exception, error_id: str) -> JSONResponse:
        error = ClubError(
            "An unexpected error occurred",
            error_code=ErrorCode.INTERNAL_ERROR,
            details={"error_type": type(exc).__name__} if self.debug else None
        )
        content = error_envelope(error, error_id)

        if self.debug:
            content["debug"] = {
                "exception": str(exc),
                "traceback": traceback.format_exc()
            }

        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=content
        )

    def _log_error(self, request: Request, exc: Exception, error_id: str) -> None:
        request_info = {
            "method": request.method,
            "path": request.url.path,
            "client_ip": request.client.host if request.client else None,
        }

        user_id = getattr(request.state, "user_id", None)
        if user_id is not None:
            request_info["user_id"] = user_id

        extra = {"error_id": error_id, "request": request_info}

        if isinstance(exc, (ValidationError, NotFoundError, BusinessLogicError)):
            logger.warning(f"Client error [{error_id}]: {exc.message}", extra={
                **extra, "error_code": exc.error_code.value, "details": exc.details
            })
        elif isinstance(exc, ClubError):
            level = logging.ERROR if isinstance(exc, (ConcurrencyError, StoreUnavailableError)) else logging.WARNING
            logger.log(level, f"Request failed [{error_id}]: {exc.message}", extra={
                **extra, "error_code": exc.error_code.value, "details": exc.details
            })
        else:
            logger.error(
                f"Unexpected error [{error_id}]: {exc}",
                extra={**extra, "error_type": type(exc).__name__},
                exc_info=exc
            )
