"""
Announcement schemas for request/response validation.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..models.announcement import AnnouncementType


class AnnouncementCreate(BaseModel):
    """Schema for publishing an announcement."""

    title: str = Field(..., min_length=1, max_length=255, description="Headline")
    message: Optional[str] = Field(None, description="Body text")
    announcement_type: AnnouncementType = Field(default=AnnouncementType.INFO, description="Display style")
    link_url: Optional[str] = Field(None, max_length=1024, description="Optional call-to-action link")
    link_text: Optional[str] = Field(None, max_length=100, description="Label of the link")
    is_active: bool = Field(default=True, description="Shown to members when true")


class AnnouncementUpdate(BaseModel):
    """Schema for editing an announcement or switching it off."""

    title: Optional[str] = Field(None, min_length=1, max_length=255)
    message: Optional[str] = None
    announcement_type: Optional[AnnouncementType] = None
    link_url: Optional[str] = Field(None, max_length=1024)
    link_text: Optional[str] = Field(None, max_length=100)
    is_active: Optional[bool] = None

    @field_validator("title", "announcement_type", "is_active")
    @classmethod
    def not_null(cls, v, info):
        """Required columns may be omitted but not cleared."""
        if v is None:
            raise ValueError(f"{info.field_name} cannot be null")
        return v


class AnnouncementResponse(AnnouncementCreate):
    """Schema for announcement response."""

    id: UUID
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class AnnouncementListResponse(BaseModel):
    """Schema for announcement list response."""

    announcements: list[AnnouncementResponse]
    total: int
