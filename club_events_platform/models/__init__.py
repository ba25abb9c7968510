"""
Database models for the Club Events platform.
"""

from .base import Base
from .user import User, UserRole
from .event import Event, EventStatus, derive_status
from .registration import Registration, RegistrationStatus
from .announcement import Announcement, AnnouncementType
from .inquiry import Inquiry, InquiryStatus
from .showcase import Glimpse, Winner

__all__ = [
    "Base",
    "User",
    "UserRole",
    "Event",
    "EventStatus",
    "derive_status",
    "Registration",
    "RegistrationStatus",
    "Announcement",
    "AnnouncementType",
    "Inquiry",
    "InquiryStatus",
    "Glimpse",
    "Winner",
]
