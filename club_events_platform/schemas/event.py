"""
Event schemas for request/response validation.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field, field_validator, model_validator, ConfigDict

from ..models.event import EventStatus


class EventBase(BaseModel):
    """Base event schema with common fields."""

    title: str = Field(..., min_length=1, max_length=255, description="Event title")
    description: Optional[str] = Field(None, description="Event description")
    event_type: Optional[str] = Field(None, max_length=100, description="Event type, e.g. workshop")
    image_url: Optional[str] = Field(None, max_length=1024, description="Poster image hosted on the blob store")
    start_time: datetime = Field(..., description="Event start time")
    end_time: datetime = Field(..., description="Event end time")
    max_capacity: int = Field(..., gt=0, description="Maximum number of confirmed registrations")


class EventCreate(EventBase):
    """Schema for creating a new event. The registration count always starts at zero."""

    status: EventStatus = Field(default=EventStatus.OPEN, description="Initial status")

    @model_validator(mode="after")
    def end_after_start(self):
        """Validate that the event does not end before it starts."""
        if self.end_time < self.start_time:
            raise ValueError("end_time must not be before start_time")
        return self


class EventUpdate(BaseModel):
    """Schema for updating an existing event."""

    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    event_type: Optional[str] = Field(None, max_length=100)
    image_url: Optional[str] = Field(None, max_length=1024)
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    max_capacity: Optional[int] = Field(None, gt=0)
    status: Optional[EventStatus] = None

    @field_validator("title", "start_time", "end_time", "max_capacity", "status")
    @classmethod
    def not_null(cls, v, info):
        """Required columns may be omitted but not cleared."""
        if v is None:
            raise ValueError(f"{info.field_name} cannot be null")
        return v


class EventResponse(EventBase):
    """Schema for event response."""

    id: UUID
    current_count: int
    remaining_capacity: int
    status: EventStatus
    version: int
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class EventListResponse(BaseModel):
    """Schema for event list response."""

    events: list[EventResponse]
    total: int


class EventFilters(BaseModel):
    """Schema for event filtering parameters."""

    status: Optional[EventStatus] = Field(None, description="Filter by status")
    event_type: Optional[str] = Field(None, description="Filter by event type")
    upcoming_only: bool = Field(default=False, description="Only events that have not ended yet")


class EventDeleteResponse(BaseModel):
    """Schema for a cascading event delete."""

    event_id: UUID
    registrations_deleted: int
    message: str
