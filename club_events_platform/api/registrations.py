"""
Registration API endpoints: sign-up, cancellation and registration listings.
"""

import logging
from typing import Optional, Union
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import get_db
from ..models.event import Event
from ..models.registration import Registration, RegistrationStatus
from ..models.user import User
from ..schemas.common import ErrorResponse
from ..schemas.registration import (
    CancelResponse,
    ReconciliationReport,
    RegisterResponse,
    RegistrationCreateRequest,
    RegistrationFilters,
    RegistrationListResponse,
    RegistrationResponse,
    RegistrationWithEventResponse,
)
from ..services.reconciliation_service import ReconciliationService
from ..services.registration_engine import (
    CancellationOutcome,
    CancellationResult,
    RegistrationEngine,
    RegistrationOutcome,
    RegistrationResult,
)
from ..services.registration_ledger import RegistrationLedger
from ..services.user_service import UserService
from ..utils.auth import IdentityClaims
from ..utils.dependencies import get_current_admin_user, get_identity
from ..utils.exceptions import AuthorizationError, ErrorCode, RegistrationRejectedError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/registrations", tags=["registrations"])

REGISTER_RESPONSES = {
    400: {"model": ErrorResponse, "description": "Profile incomplete"},
    404: {"model": ErrorResponse, "description": "Profile or event not found"},
    409: {"model": ErrorResponse, "description": "Event full, closed or already registered"},
    500: {"model": ErrorResponse, "description": "Partial failure, nothing was written"},
    503: {"model": ErrorResponse, "description": "Data store unavailable"},
}

CANCEL_RESPONSES = {
    403: {"model": ErrorResponse, "description": "Not your registration"},
    404: {"model": ErrorResponse, "description": "Registration not found"},
    500: {"model": ErrorResponse, "description": "Partial failure, the seat is still held"},
}


def get_registration_engine(db: AsyncSession = Depends(get_db)) -> RegistrationEngine:
    """Dependency to get a registration engine bound to the request session."""
    return RegistrationEngine(db)


def get_registration_ledger(db: AsyncSession = Depends(get_db)) -> RegistrationLedger:
    """Dependency to get the registration ledger."""
    return RegistrationLedger(db)


def rejection_error(result: Union[RegistrationResult, CancellationResult]) -> RegistrationRejectedError:
    """Turn a rejected engine result into the error rendered by the error middleware."""
    action = None
    suggestions = None
    if result.outcome == RegistrationOutcome.PROFILE_INCOMPLETE:
        action = "complete_profile"
        suggestions = ["Fill in year, department, roll number and mobile number"]
    elif result.outcome == RegistrationOutcome.PROFILE_NOT_FOUND:
        suggestions = ["Sign in again to create your member profile"]
    elif result.outcome in (RegistrationOutcome.PARTIAL_FAILURE, CancellationOutcome.PARTIAL_FAILURE):
        suggestions = ["Please try again"]

    return RegistrationRejectedError(
        result.error_code,
        result.message,
        details=result.details,
        suggestions=suggestions,
        action=action
    )


def with_event(registration: Registration, event: Event) -> RegistrationWithEventResponse:
    """Combine a ledger row with a summary of its event."""
    return RegistrationWithEventResponse(
        **RegistrationResponse.model_validate(registration).model_dump(),
        event_title=event.title,
        event_description=event.description,
        event_start_time=event.start_time,
        event_end_time=event.end_time,
        event_status=event.status
    )


@router.post(
    "",
    response_model=RegisterResponse,
    status_code=status.HTTP_201_CREATED,
    responses=REGISTER_RESPONSES
)
async def register_for_event(
    request: RegistrationCreateRequest,
    identity: IdentityClaims = Depends(get_identity),
    engine: RegistrationEngine = Depends(get_registration_engine)
):
    """
    Register the signed-in member for an event.

    Rejections carry a distinct error code: PROFILE_INCOMPLETE comes with
    ``action: complete_profile`` and the missing fields, EVENT_FULL and
    ALREADY_REGISTERED are 409s, and PARTIAL_FAILURE means nothing was
    written and the request may be retried.
    """
    result = await engine.register(request.event_id, identity.user_id, identity.email)
    if not result.ok:
        raise rejection_error(result)

    return RegisterResponse(
        registration_id=result.registration.id,
        status=result.registration.status,
        registration=RegistrationResponse.model_validate(result.registration),
        event_status=result.event.status,
        event_current_count=result.event.current_count
    )


@router.post("/{registration_id}/cancel", response_model=CancelResponse, responses=CANCEL_RESPONSES)
async def cancel_registration(
    registration_id: UUID,
    identity: IdentityClaims = Depends(get_identity),
    db: AsyncSession = Depends(get_db),
    engine: RegistrationEngine = Depends(get_registration_engine)
):
    """
    Cancel a registration. Members may cancel their own; admins any.

    Cancelling twice is harmless: the second call reports
    ``already_cancelled`` with status 200.
    """
    registration = await engine.ledger.get_registration(registration_id)
    if registration is None:
        raise RegistrationRejectedError(
            ErrorCode.REGISTRATION_NOT_FOUND,
            f"Registration {registration_id} not found",
            details={"registration_id": str(registration_id)}
        )

    if registration.user_id != identity.user_id:
        caller = await UserService(db).get_user_by_id(identity.user_id)
        if caller is None or not caller.is_admin:
            raise AuthorizationError("You can only cancel your own registrations")

    result = await engine.cancel(registration_id)
    if not result.ok:
        raise rejection_error(result)

    return CancelResponse(
        registration_id=registration_id,
        status=RegistrationStatus.CANCELLED,
        already_cancelled=result.outcome == CancellationOutcome.ALREADY_CANCELLED,
        message=result.message
    )


@router.get("/me", response_model=RegistrationListResponse)
async def list_my_registrations(
    include_cancelled: bool = Query(False, description="Include cancelled registrations"),
    identity: IdentityClaims = Depends(get_identity),
    ledger: RegistrationLedger = Depends(get_registration_ledger)
):
    """Registrations of the signed-in member with their events."""
    rows = await ledger.list_for_user(identity.user_id, include_cancelled=include_cancelled)
    registrations = [with_event(registration, event) for registration, event in rows]
    return RegistrationListResponse(registrations=registrations, total=len(registrations))


@router.get("", response_model=RegistrationListResponse)
async def list_registrations(
    event_id: Optional[UUID] = Query(None, description="Filter by event"),
    year: Optional[str] = Query(None, description="Filter by year of study"),
    dept: Optional[str] = Query(None, description="Filter by department"),
    registration_status: Optional[RegistrationStatus] = Query(None, alias="status"),
    search: Optional[str] = Query(None, description="Email, roll no, event title, year or dept"),
    current_user: User = Depends(get_current_admin_user),
    ledger: RegistrationLedger = Depends(get_registration_ledger)
):
    """Admin dashboard listing of registrations."""
    filters = RegistrationFilters(
        event_id=event_id,
        year=year,
        dept=dept,
        status=registration_status,
        search=search
    )
    rows = await ledger.list_registrations(filters)
    registrations = [with_event(registration, event) for registration, event in rows]
    return RegistrationListResponse(registrations=registrations, total=len(registrations))


@router.post("/reconcile", response_model=ReconciliationReport)
async def reconcile_counts(
    event_id: Optional[UUID] = Query(None, description="Limit to one event"),
    current_user: User = Depends(get_current_admin_user),
    db: AsyncSession = Depends(get_db)
):
    """Recompute event counts from confirmed registrations."""
    logger.info(f"Reconciliation requested by {current_user.id}")
    return await ReconciliationService(db).reconcile(event_id)
