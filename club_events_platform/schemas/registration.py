"""
Pydantic schemas for registration requests and responses.
"""

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from ..models.event import EventStatus
from ..models.registration import RegistrationStatus


class RegistrationRequest(BaseModel):
    """Validated input of the registration engine."""

    model_config = ConfigDict(str_strip_whitespace=True, frozen=True)

    event_id: UUID = Field(..., description="ID of the event to register for")
    user_id: str = Field(..., min_length=1, max_length=128, description="Identity Provider user id")
    user_email: EmailStr = Field(..., description="Email from the identity token")


class RegistrationCreateRequest(BaseModel):
    """Body of the sign-up endpoint; the user comes from the bearer token."""

    event_id: UUID = Field(..., description="ID of the event to register for")


class RegistrationResponse(BaseModel):
    """Schema for a registration ledger row."""

    id: UUID
    event_id: UUID
    user_id: str
    user_email: str
    year: Optional[str] = None
    dept: Optional[str] = None
    roll_no: Optional[str] = None
    mobile_number: Optional[str] = None
    registered_at: datetime
    status: RegistrationStatus

    model_config = ConfigDict(from_attributes=True)


class RegisterResponse(BaseModel):
    """Successful sign-up."""

    registration_id: UUID
    status: RegistrationStatus
    registration: RegistrationResponse
    event_status: EventStatus
    event_current_count: int


class CancelResponse(BaseModel):
    """Result of a cancellation; repeating it is harmless."""

    registration_id: UUID
    status: RegistrationStatus
    already_cancelled: bool = False
    message: str


class RegistrationWithEventResponse(RegistrationResponse):
    """Registration row joined with a summary of its event."""

    event_title: str
    event_description: Optional[str] = None
    event_start_time: Optional[datetime] = None
    event_end_time: Optional[datetime] = None
    event_status: Optional[EventStatus] = None


class RegistrationListResponse(BaseModel):
    """Schema for registration listings."""

    registrations: List[RegistrationWithEventResponse]
    total: int


class RegistrationFilters(BaseModel):
    """Admin filters for the registration dashboard."""

    event_id: Optional[UUID] = None
    year: Optional[str] = None
    dept: Optional[str] = None
    status: Optional[RegistrationStatus] = None
    search: Optional[str] = Field(None, description="Matches email, roll no, event title, year or dept")


class CountCorrection(BaseModel):
    """One event whose stored count drifted from its confirmed registrations."""

    event_id: UUID
    recorded_count: int
    actual_count: int
    status_before: EventStatus
    status_after: EventStatus


class ReconciliationReport(BaseModel):
    """Outcome of a reconciliation run."""

    events_checked: int
    corrections: List[CountCorrection]
