"""
Registration engine: orchestrates sign-up and cancellation for events.
"""

import enum
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Union
from uuid import UUID

from pydantic import ValidationError as PydanticValidationError, TypeAdapter
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ..cache import CacheInvalidator
from ..models.event import Event
from ..models.registration import Registration, RegistrationStatus
from ..schemas.registration import RegistrationRequest
from ..utils.exceptions import (
    ConcurrencyError,
    ErrorCode,
    EventFullError,
    EventNotFoundError,
    RegistrationClosedError,
    StoreUnavailableError,
)
from ..utils.logging_config import log_business_event
from .event_store import EventStore
from .profile_store import ProfileStore, check_profile_completeness
from .registration_ledger import RegistrationLedger

logger = logging.getLogger(__name__)

_uuid_adapter = TypeAdapter(UUID)


class RegistrationOutcome(str, enum.Enum):
    """Result kinds of a registration attempt."""
    CONFIRMED = "CONFIRMED"
    INVALID_INPUT = ErrorCode.INVALID_INPUT.value
    PROFILE_NOT_FOUND = ErrorCode.PROFILE_NOT_FOUND.value
    PROFILE_INCOMPLETE = ErrorCode.PROFILE_INCOMPLETE.value
    ALREADY_REGISTERED = ErrorCode.ALREADY_REGISTERED.value
    EVENT_NOT_FOUND = ErrorCode.EVENT_NOT_FOUND.value
    REGISTRATION_CLOSED = ErrorCode.REGISTRATION_CLOSED.value
    EVENT_FULL = ErrorCode.EVENT_FULL.value
    PARTIAL_FAILURE = ErrorCode.PARTIAL_FAILURE.value


class CancellationOutcome(str, enum.Enum):
    """Result kinds of a cancellation attempt."""
    CANCELLED = "CANCELLED"
    ALREADY_CANCELLED = ErrorCode.ALREADY_CANCELLED.value
    INVALID_INPUT = ErrorCode.INVALID_INPUT.value
    REGISTRATION_NOT_FOUND = ErrorCode.REGISTRATION_NOT_FOUND.value
    PARTIAL_FAILURE = ErrorCode.PARTIAL_FAILURE.value


@dataclass
class RegistrationResult:
    """Tagged result of ``RegistrationEngine.register``."""
    outcome: RegistrationOutcome
    registration: Optional[Registration] = None
    event: Optional[Event] = None
    message: str = ""
    details: Dict[str, Any] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.outcome == RegistrationOutcome.CONFIRMED

    @property
    def error_code(self) -> Optional[ErrorCode]:
        return None if self.ok else ErrorCode(self.outcome.value)


@dataclass
class CancellationResult:
    """Tagged result of ``RegistrationEngine.cancel``."""
    outcome: CancellationOutcome
    registration: Optional[Registration] = None
    event: Optional[Event] = None
    message: str = ""
    details: Dict[str, Any] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        """Cancelling an already cancelled registration is not an error."""
        return self.outcome in (CancellationOutcome.CANCELLED, CancellationOutcome.ALREADY_CANCELLED)

    @property
    def error_code(self) -> Optional[ErrorCode]:
        if self.outcome == CancellationOutcome.CANCELLED:
            return None
        return ErrorCode(self.outcome.value)


class RegistrationEngine:
    """
    Stateless orchestrator of event sign-up and cancellation.

    The engine works inside the caller's session and owns its transaction:
    a registration either commits both the ledger row and the seat count,
    or neither. Business rejections come back as tagged results; only loss
    of the data store is raised, as ``StoreUnavailableError``.
    """

    def __init__(
        self,
        session: AsyncSession,
        profiles: Optional[ProfileStore] = None,
        events: Optional[EventStore] = None,
        ledger: Optional[RegistrationLedger] = None
    ):
        self.session = session
        self.profiles = profiles or ProfileStore(session)
        self.events = events or EventStore(session)
        self.ledger = ledger or RegistrationLedger(session)

    async def register(
        self,
        event_id: Union[UUID, str, None],
        user_id: Optional[str],
        user_email: Optional[str]
    ) -> RegistrationResult:
        """
        Register a user for an event.

        Checks run in a fixed order and stop at the first failure: input,
        profile, existing registration, event state. The ledger row and the
        count increment are then applied in one transaction.

        Args:
            event_id: Event to sign up for
            user_id: Identity Provider user id of the caller
            user_email: Email taken from the caller's identity token

        Returns:
            RegistrationResult with outcome CONFIRMED and the new registration,
            or a rejection outcome with a message and details

        Raises:
            StoreUnavailableError: If the data store cannot be reached
        """
        try:
            request = RegistrationRequest(event_id=event_id, user_id=user_id, user_email=user_email)
        except PydanticValidationError as e:
            return RegistrationResult(
                RegistrationOutcome.INVALID_INPUT,
                message="A valid event_id, user_id and user_email are required",
                details={"field_errors": _field_errors(e)}
            )

        try:
            return await self._register(request)
        except StoreUnavailableError:
            await self._rollback()
            raise

    async def cancel(self, registration_id: Union[UUID, str, None]) -> CancellationResult:
        """
        Cancel a confirmed registration and release its seat.

        Repeating the call on a cancelled registration is harmless and
        returns ALREADY_CANCELLED without touching the event.

        Raises:
            StoreUnavailableError: If the data store cannot be reached
        """
        try:
            registration_uuid = _uuid_adapter.validate_python(registration_id)
        except PydanticValidationError as e:
            return CancellationResult(
                CancellationOutcome.INVALID_INPUT,
                message="A valid registration_id is required",
                details={"field_errors": _field_errors(e)}
            )

        try:
            return await self._cancel(registration_uuid)
        except StoreUnavailableError:
            await self._rollback()
            raise

    async def _register(self, request: RegistrationRequest) -> RegistrationResult:
        profile = await self.profiles.get_profile(request.user_id)
        if profile is None:
            return await self._reject(
                RegistrationOutcome.PROFILE_NOT_FOUND,
                "No member profile exists for this account",
                user_id=request.user_id
            )

        completeness = check_profile_completeness(profile)
        if not completeness.is_complete:
            return await self._reject(
                RegistrationOutcome.PROFILE_INCOMPLETE,
                "Please complete your profile before registering",
                missing_fields=completeness.missing_fields
            )

        if await self.ledger.has_confirmed_registration(request.event_id, request.user_id):
            return await self._reject(
                RegistrationOutcome.ALREADY_REGISTERED,
                "You are already registered for this event",
                event_id=str(request.event_id)
            )

        event = await self.events.get_event(request.event_id)
        if event is None:
            return await self._reject(
                RegistrationOutcome.EVENT_NOT_FOUND,
                f"Event {request.event_id} not found",
                event_id=str(request.event_id)
            )
        if not event.accepts_registrations:
            return await self._reject(
                RegistrationOutcome.REGISTRATION_CLOSED,
                "Registration for this event is closed",
                event_id=str(event.id),
                status=event.status.value
            )
        if event.is_full:
            return await self._reject(
                RegistrationOutcome.EVENT_FULL,
                "This event has reached its capacity",
                current_count=event.current_count,
                max_capacity=event.max_capacity
            )

        try:
            registration = await self.ledger.insert_registration(request, profile)
        except IntegrityError:
            await self._rollback()
            if await self.ledger.has_confirmed_registration(request.event_id, request.user_id):
                logger.info(
                    f"Concurrent duplicate registration of user {request.user_id} "
                    f"for event {request.event_id} rejected by the unique index"
                )
                return await self._reject(
                    RegistrationOutcome.ALREADY_REGISTERED,
                    "You are already registered for this event",
                    event_id=str(request.event_id)
                )
            if await self.events.get_event(request.event_id) is None:
                logger.info(f"Event {request.event_id} was deleted while user {request.user_id} registered")
                return await self._reject(
                    RegistrationOutcome.EVENT_NOT_FOUND,
                    f"Event {request.event_id} not found",
                    event_id=str(request.event_id)
                )
            raise

        registration_id = registration.id

        try:
            event = await self.events.update_event_count(request.event_id, 1)
        except EventFullError as e:
            await self._rollback()
            return RegistrationResult(
                RegistrationOutcome.EVENT_FULL,
                message="This event has reached its capacity",
                details=e.details
            )
        except RegistrationClosedError as e:
            await self._rollback()
            return RegistrationResult(
                RegistrationOutcome.REGISTRATION_CLOSED,
                message="Registration for this event is closed",
                details=e.details
            )
        except EventNotFoundError:
            await self._rollback()
            return RegistrationResult(
                RegistrationOutcome.EVENT_NOT_FOUND,
                message=f"Event {request.event_id} not found",
                details={"event_id": str(request.event_id)}
            )
        except (ConcurrencyError, StoreUnavailableError, SQLAlchemyError) as e:
            return await self._partial_failure(
                "count update", request.event_id, request.user_id, registration_id, e
            )

        try:
            await self.session.commit()
        except SQLAlchemyError as e:
            return await self._partial_failure(
                "commit", request.event_id, request.user_id, registration_id, e
            )

        logger.info(
            f"User {request.user_id} registered for event {event.id} "
            f"({event.current_count}/{event.max_capacity}, {event.status.value})"
        )
        log_business_event(
            "registration_confirmed",
            {
                "registration_id": str(registration_id),
                "event_id": str(event.id),
                "current_count": event.current_count,
                "event_status": event.status.value,
            },
            user_id=request.user_id
        )
        await CacheInvalidator.invalidate_event_caches(str(event.id))

        return RegistrationResult(
            RegistrationOutcome.CONFIRMED,
            registration=registration,
            event=event,
            message="Registration confirmed"
        )

    async def _cancel(self, registration_id: UUID) -> CancellationResult:
        registration = await self.ledger.get_registration(registration_id)
        if registration is None:
            await self._finish_read()
            return CancellationResult(
                CancellationOutcome.REGISTRATION_NOT_FOUND,
                message=f"Registration {registration_id} not found",
                details={"registration_id": str(registration_id)}
            )

        if registration.status == RegistrationStatus.CANCELLED:
            await self._finish_read()
            return _already_cancelled(registration)

        moved = await self.ledger.set_registration_status(
            registration,
            RegistrationStatus.CANCELLED,
            expected=RegistrationStatus.CONFIRMED
        )
        if not moved:
            # Another request cancelled or deleted it first
            registration = await self.ledger.get_registration(registration_id)
            await self._finish_read()
            if registration is None:
                return CancellationResult(
                    CancellationOutcome.REGISTRATION_NOT_FOUND,
                    message=f"Registration {registration_id} not found",
                    details={"registration_id": str(registration_id)}
                )
            return _already_cancelled(registration)

        event_id = registration.event_id
        try:
            event = await self.events.update_event_count(event_id, -1)
        except (ConcurrencyError, StoreUnavailableError, SQLAlchemyError, EventNotFoundError) as e:
            await self._rollback()
            logger.error(
                f"Cancellation of registration {registration_id} for event "
                f"{event_id} rolled back after count update failed: {e}",
                exc_info=True
            )
            return CancellationResult(
                CancellationOutcome.PARTIAL_FAILURE,
                message="Cancellation could not be completed; your seat is still held. Please retry.",
                details={"registration_id": str(registration_id)}
            )

        try:
            await self.session.commit()
        except SQLAlchemyError as e:
            await self._rollback()
            logger.error(f"Commit failed cancelling registration {registration_id}: {e}", exc_info=True)
            return CancellationResult(
                CancellationOutcome.PARTIAL_FAILURE,
                message="Cancellation could not be completed; your seat is still held. Please retry.",
                details={"registration_id": str(registration_id)}
            )

        logger.info(
            f"Registration {registration_id} cancelled; event {event.id} now "
            f"{event.current_count}/{event.max_capacity} ({event.status.value})"
        )
        log_business_event(
            "registration_cancelled",
            {
                "registration_id": str(registration_id),
                "event_id": str(event.id),
                "current_count": event.current_count,
                "event_status": event.status.value,
            },
            user_id=registration.user_id
        )
        await CacheInvalidator.invalidate_event_caches(str(event.id))

        return CancellationResult(
            CancellationOutcome.CANCELLED,
            registration=registration,
            event=event,
            message="Registration cancelled"
        )

    async def _reject(self, outcome: RegistrationOutcome, message: str, **details) -> RegistrationResult:
        await self._finish_read()
        return RegistrationResult(outcome, message=message, details=details)

    async def _partial_failure(
        self,
        stage: str,
        event_id: UUID,
        user_id: str,
        registration_id: UUID,
        error: Exception
    ) -> RegistrationResult:
        await self._rollback()
        logger.error(
            f"Partial failure registering user {user_id} for event {event_id}: "
            f"{stage} failed after inserting registration {registration_id}; "
            f"the insert was rolled back: {error}",
            exc_info=True
        )
        return RegistrationResult(
            RegistrationOutcome.PARTIAL_FAILURE,
            message="Registration could not be completed and no seat was taken. Please retry.",
            details={"event_id": str(event_id), "registration_id": str(registration_id)}
        )

    async def _finish_read(self) -> None:
        # Nothing was written; end the transaction so its locks are released
        try:
            await self.session.commit()
        except SQLAlchemyError as e:
            logger.warning(f"Ending read-only transaction failed: {e}")
            await self._rollback()

    async def _rollback(self) -> None:
        try:
            await self.session.rollback()
        except SQLAlchemyError as e:
            logger.error(f"Rollback failed: {e}")


def _already_cancelled(registration: Registration) -> CancellationResult:
    return CancellationResult(
        CancellationOutcome.ALREADY_CANCELLED,
        registration=registration,
        message="Registration was already cancelled",
        details={"registration_id": str(registration.id)}
    )


def _field_errors(error: PydanticValidationError) -> Dict[str, list]:
    field_errors: Dict[str, list] = {}
    for item in error.errors():
        name = ".".join(str(part) for part in item["loc"]) or "value"
        field_errors.setdefault(name, []).append(item["msg"])
    return field_errors
