"""
Schemas for competition winners and event glimpses.
"""

from datetime import date, datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class WinnerCreate(BaseModel):
    """Schema for recording the podium of a competition."""

    event_name: str = Field(..., min_length=1, max_length=255)
    event_date: date
    first_place: str = Field(..., min_length=1, max_length=255)
    second_place: Optional[str] = Field(None, max_length=255)
    third_place: Optional[str] = Field(None, max_length=255)


class WinnerResponse(WinnerCreate):
    """Schema for winner response."""

    id: UUID
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class WinnerListResponse(BaseModel):
    """Schema for winner list response."""

    winners: list[WinnerResponse]
    total: int


class GlimpseCreate(BaseModel):
    """Schema for attaching a photo to an event."""

    event_id: UUID
    image_url: str = Field(..., min_length=1, max_length=1024, description="Image hosted on the blob store")
    caption: Optional[str] = Field(None, max_length=500)


class GlimpseResponse(GlimpseCreate):
    """Schema for glimpse response."""

    id: UUID
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class GlimpseListResponse(BaseModel):
    """Schema for glimpse list response."""

    glimpses: list[GlimpseResponse]
    total: int
