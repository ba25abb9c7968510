"""
Event management API endpoints.
"""

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import get_db
from ..models.event import EventStatus
from ..models.user import User
from ..schemas.event import (
    EventCreate,
    EventDeleteResponse,
    EventFilters,
    EventListResponse,
    EventResponse,
    EventUpdate,
)
from ..schemas.registration import RegistrationFilters, RegistrationListResponse
from ..services.event_service import EventService
from ..services.registration_ledger import RegistrationLedger
from ..utils.dependencies import get_current_admin_user
from .registrations import with_event

router = APIRouter(prefix="/events", tags=["events"])


def get_event_service(db: AsyncSession = Depends(get_db)) -> EventService:
    """Dependency to get event service instance."""
    return EventService(db)


@router.get("", response_model=EventListResponse)
async def list_events(
    event_status: Optional[EventStatus] = Query(None, alias="status", description="Filter by status"),
    event_type: Optional[str] = Query(None, description="Filter by event type"),
    upcoming_only: bool = Query(False, description="Hide events that already ended"),
    event_service: EventService = Depends(get_event_service)
):
    """
    List events ordered by start time.

    Public endpoint; results are cached briefly and refreshed whenever an
    event or its registration count changes.
    """
    filters = EventFilters(status=event_status, event_type=event_type, upcoming_only=upcoming_only)
    return await event_service.list_events(filters)


@router.post("", response_model=EventResponse, status_code=status.HTTP_201_CREATED)
async def create_event(
    event_data: EventCreate,
    current_user: User = Depends(get_current_admin_user),
    event_service: EventService = Depends(get_event_service)
):
    """
    Create a new event.

    Only admin users can create events. The registration count starts at zero.
    """
    return await event_service.create_event(event_data)


@router.get("/{event_id}", response_model=EventResponse)
async def get_event(
    event_id: UUID,
    event_service: EventService = Depends(get_event_service)
):
    """Get event details by ID."""
    return await event_service.get_event_detail(event_id)


@router.patch("/{event_id}", response_model=EventResponse)
async def update_event(
    event_id: UUID,
    event_data: EventUpdate,
    current_user: User = Depends(get_current_admin_user),
    event_service: EventService = Depends(get_event_service)
):
    """
    Update an existing event.

    Only admin users can update events. Capacity may be lowered below the
    current count; existing registrations are kept.
    """
    return await event_service.update_event(event_id, event_data)


@router.delete("/{event_id}", response_model=EventDeleteResponse)
async def delete_event(
    event_id: UUID,
    cascade: bool = Query(False, description="Confirm deleting every registration of the event"),
    current_user: User = Depends(get_current_admin_user),
    event_service: EventService = Depends(get_event_service)
):
    """
    Delete an event and all of its registrations.

    Irreversible; the request must carry ``cascade=true``.
    """
    return await event_service.delete_event(event_id, cascade=cascade)


@router.get("/{event_id}/registrations", response_model=RegistrationListResponse)
async def list_event_registrations(
    event_id: UUID,
    include_cancelled: bool = Query(False, description="Include cancelled registrations"),
    current_user: User = Depends(get_current_admin_user),
    db: AsyncSession = Depends(get_db)
):
    """Registrations of one event, for admins."""
    await EventService(db).get_event_by_id(event_id)

    filters = RegistrationFilters(event_id=event_id)
    rows = await RegistrationLedger(db).list_registrations(filters)
    registrations = [
        with_event(registration, event) for registration, event in rows
        if include_cancelled or registration.is_confirmed
    ]
    return RegistrationListResponse(registrations=registrations, total=len(registrations))
