"""
Inquiry schemas for the contact form and its admin inbox.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from ..models.inquiry import InquiryStatus


class InquiryCreate(BaseModel):
    """Contact form submission; anyone may send one."""

    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(..., min_length=1, max_length=255, description="Sender name")
    email: EmailStr = Field(..., description="Address to reply to")
    message: str = Field(..., min_length=1, max_length=5000, description="Message body")


class InquiryStatusUpdate(BaseModel):
    """Schema for moving an inquiry through the inbox."""

    status: InquiryStatus


class InquiryResponse(BaseModel):
    """Schema for inquiry response."""

    id: UUID
    name: str
    email: str
    message: str
    status: InquiryStatus
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class InquiryListResponse(BaseModel):
    """Schema for inquiry list response."""

    inquiries: list[InquiryResponse]
    total: int
    pending: int


class InquiryFilters(BaseModel):
    """Schema for inbox filtering parameters."""

    status: Optional[InquiryStatus] = Field(None, description="Filter by status")
    search: Optional[str] = Field(None, description="Match name, email or message")
