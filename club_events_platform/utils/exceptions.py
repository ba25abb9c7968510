"""
Custom exceptions for the Club Events Platform.
"""

from typing import Any, Dict, Optional, List
from enum import Enum


class ErrorCode(str, Enum):
    """Standard error codes for the platform."""

    # General errors
    INTERNAL_ERROR = "INTERNAL_ERROR"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    NOT_FOUND = "NOT_FOUND"
    UNAUTHORIZED = "UNAUTHORIZED"
    FORBIDDEN = "FORBIDDEN"

    # Registration outcomes
    INVALID_INPUT = "INVALID_INPUT"
    PROFILE_NOT_FOUND = "PROFILE_NOT_FOUND"
    PROFILE_INCOMPLETE = "PROFILE_INCOMPLETE"
    EVENT_NOT_FOUND = "EVENT_NOT_FOUND"
    REGISTRATION_CLOSED = "REGISTRATION_CLOSED"
    EVENT_FULL = "EVENT_FULL"
    ALREADY_REGISTERED = "ALREADY_REGISTERED"
    REGISTRATION_NOT_FOUND = "REGISTRATION_NOT_FOUND"
    ALREADY_CANCELLED = "ALREADY_CANCELLED"
    PARTIAL_FAILURE = "PARTIAL_FAILURE"

    # Admin operations
    CASCADE_NOT_CONFIRMED = "CASCADE_NOT_CONFIRMED"
    USER_ALREADY_EXISTS = "USER_ALREADY_EXISTS"

    # Concurrency errors
    CONCURRENCY_CONFLICT = "CONCURRENCY_CONFLICT"
    OPTIMISTIC_LOCK_FAILURE = "OPTIMISTIC_LOCK_FAILURE"

    # Infrastructure errors
    STORE_UNAVAILABLE = "STORE_UNAVAILABLE"


class ClubError(Exception):
    """Base exception class for the Club Events platform."""

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.INTERNAL_ERROR,
        details: Optional[Dict[str, Any]] = None,
        suggestions: Optional[List[str]] = None,
        retry_after: Optional[int] = None,
        action: Optional[str] = None
    ):
        """Initialize the exception with comprehensive error information."""
        self.message = message
        self.action = action
        self.error_code = error_code
        self.details = details or {}
        self.suggestions = suggestions or []
        self.retry_after = retry_after
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for API responses."""
        result = {
            "error_code": self.error_code.value,
            "message": self.message,
        }

        if self.details:
            result["details"] = self.details

        if self.suggestions:
            result["suggestions"] = self.suggestions

        if self.retry_after:
            result["retry_after"] = self.retry_after

        if self.action:
            result["action"] = self.action

        return result


class ValidationError(ClubError):
    """Exception raised for validation errors."""

    def __init__(self, message: str, field_errors: Optional[Dict[str, List[str]]] = None, **kwargs):
        details = kwargs.pop("details", None)
        if field_errors:
            details = {**(details or {}), "field_errors": field_errors}
        super().__init__(
            message,
            error_code=ErrorCode.VALIDATION_ERROR,
            details=details,
            **kwargs
        )
        self.field_errors = field_errors or {}


class NotFoundError(ClubError):
    """Base exception for resource not found errors."""

    def __init__(
        self,
        message: str,
        resource_type: Optional[str] = None,
        resource_id: Optional[str] = None,
        error_code: ErrorCode = ErrorCode.NOT_FOUND,
        **kwargs
    ):
        super().__init__(
            message,
            error_code=error_code,
            details={"resource_type": resource_type, "resource_id": resource_id} if resource_type else None,
            **kwargs
        )


class EventNotFoundError(NotFoundError):
    """Exception raised when an event is not found."""

    def __init__(self, event_id: str, **kwargs):
        super().__init__(
            f"Event {event_id} not found",
            resource_type="event",
            resource_id=event_id,
            error_code=ErrorCode.EVENT_NOT_FOUND,
            suggestions=["Check the event ID", "Browse upcoming events"],
            **kwargs
        )


class UserNotFoundError(NotFoundError):
    """Exception raised when a user profile is not found."""

    def __init__(self, user_id: str, **kwargs):
        super().__init__(
            f"User {user_id} not found",
            resource_type="user",
            resource_id=user_id,
            error_code=ErrorCode.PROFILE_NOT_FOUND,
            **kwargs
        )


class AuthenticationError(ClubError):
    """Exception raised for authentication failures."""

    def __init__(self, message: str = "Authentication failed", **kwargs):
        super().__init__(
            message,
            error_code=ErrorCode.UNAUTHORIZED,
            suggestions=["Sign in again"],
            **kwargs
        )


class AuthorizationError(ClubError):
    """Exception raised for authorization failures."""

    def __init__(self, message: str = "Access denied", required_permission: Optional[str] = None, **kwargs):
        super().__init__(
            message,
            error_code=ErrorCode.FORBIDDEN,
            details={"required_permission": required_permission} if required_permission else None,
            suggestions=["Contact a club administrator for access"],
            **kwargs
        )


class BusinessLogicError(ClubError):
    """Base exception for business logic violations."""
    pass


class CascadeNotConfirmedError(BusinessLogicError):
    """Exception raised when an event delete is requested without cascade confirmation."""

    def __init__(self, event_id: str, registration_count: int, **kwargs):
        super().__init__(
            f"Deleting event {event_id} removes {registration_count} registrations; "
            f"repeat the request with cascade=true to confirm",
            error_code=ErrorCode.CASCADE_NOT_CONFIRMED,
            details={"event_id": event_id, "registration_count": registration_count},
            suggestions=["Pass cascade=true to delete the event and its registrations"],
            **kwargs
        )


class UserAlreadyExistsError(BusinessLogicError):
    """Exception raised when a profile email is already taken by another identity."""

    def __init__(self, email: str, **kwargs):
        super().__init__(
            f"A member with email {email} already exists",
            error_code=ErrorCode.USER_ALREADY_EXISTS,
            details={"email": email},
            **kwargs
        )


class EventFullError(BusinessLogicError):
    """Raised by the event store when a seat claim finds no capacity left."""

    def __init__(self, event_id: str, current_count: int, max_capacity: int, **kwargs):
        super().__init__(
            f"Event {event_id} is full ({current_count}/{max_capacity})",
            error_code=ErrorCode.EVENT_FULL,
            details={"event_id": event_id, "current_count": current_count, "max_capacity": max_capacity},
            **kwargs
        )


class RegistrationClosedError(BusinessLogicError):
    """Raised by the event store when a seat claim hits a Closed/Completed event."""

    def __init__(self, event_id: str, status: str, **kwargs):
        super().__init__(
            f"Event {event_id} is not open for registration (status: {status})",
            error_code=ErrorCode.REGISTRATION_CLOSED,
            details={"event_id": event_id, "status": status},
            **kwargs
        )


class ConcurrencyError(ClubError):
    """Exception raised for concurrency-related issues."""

    def __init__(self, message: str, retry_after: int = 1, **kwargs):
        kwargs.setdefault("error_code", ErrorCode.CONCURRENCY_CONFLICT)
        super().__init__(
            message,
            retry_after=retry_after,
            suggestions=["Please try again", "Wait a moment and retry"],
            **kwargs
        )


class OptimisticLockError(ConcurrencyError):
    """Exception raised when optimistic locking fails."""

    def __init__(self, resource_type: str, resource_id: str, **kwargs):
        super().__init__(
            f"{resource_type} {resource_id} was modified by another transaction",
            details={"resource_type": resource_type, "resource_id": resource_id},
            error_code=ErrorCode.OPTIMISTIC_LOCK_FAILURE,
            **kwargs
        )


class StoreUnavailableError(ClubError):
    """Exception raised when the data store cannot be reached."""

    def __init__(self, message: str = "Data store temporarily unavailable", **kwargs):
        super().__init__(
            message,
            error_code=ErrorCode.STORE_UNAVAILABLE,
            retry_after=kwargs.pop("retry_after", 5),
            suggestions=["Try again later"],
            **kwargs
        )


class RegistrationRejectedError(BusinessLogicError):
    """Raised by the HTTP layer for a register or cancel call that did not go through."""

    def __init__(self, error_code: ErrorCode, message: str, **kwargs):
        super().__init__(message, error_code=error_code, **kwargs)
