"""
Announcement model for notices shown on the club home page.
"""

import enum
from typing import Optional

from sqlalchemy import Boolean, Enum, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base


class AnnouncementType(enum.Enum):
    """Enumeration for how an announcement is styled."""
    INFO = "info"
    ALERT = "alert"
    SUCCESS = "success"
    EVENT = "event"


class Announcement(Base):
    """Announcement model; only active ones are shown to members."""

    __tablename__ = "announcements"

    title: Mapped[str] = mapped_column(String(255), nullable=False)
    message: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    announcement_type: Mapped[AnnouncementType] = mapped_column(
        Enum(AnnouncementType),
        default=AnnouncementType.INFO,
        nullable=False
    )

    # Optional call to action
    link_url: Mapped[Optional[str]] = mapped_column(String(1024), nullable=True)
    link_text: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False, index=True)

    def __repr__(self) -> str:
        """String representation of the announcement."""
        return f"<Announcement(id={self.id}, title='{self.title}', active={self.is_active})>"
