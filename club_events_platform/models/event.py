"""
Event model for managing events, their capacity and registration status.
"""

import enum
from datetime import datetime
from typing import List, Optional, TYPE_CHECKING

from sqlalchemy import CheckConstraint, DateTime, Enum, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base

if TYPE_CHECKING:
    from .registration import Registration
    from .showcase import Glimpse


class EventStatus(enum.Enum):
    """Enumeration for event registration status."""
    OPEN = "Open"
    FULL = "Full"
    CLOSED = "Closed"
    COMPLETED = "Completed"


# Statuses an administrator sets explicitly; capacity changes never override them.
TERMINAL_STATUSES = (EventStatus.CLOSED, EventStatus.COMPLETED)


def derive_status(current: EventStatus, count: int, max_capacity: int) -> EventStatus:
    """
    Derive the status an event should carry for a given seat count.

    Closed and Completed are kept as-is. Otherwise the event is Full once the
    count reaches capacity and Open below it.
    """
    if current in TERMINAL_STATUSES:
        return current
    if count >= max_capacity:
        return EventStatus.FULL
    return EventStatus.OPEN


class Event(Base):
    """Event model for managing events and their capacity."""

    __tablename__ = "events"

    # Event basic information
    title: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    event_type: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    image_url: Mapped[Optional[str]] = mapped_column(String(1024), nullable=True)

    # Event timing
    start_time: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        index=True
    )
    end_time: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False
    )

    # Capacity management
    max_capacity: Mapped[int] = mapped_column(Integer, nullable=False)
    current_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    status: Mapped[EventStatus] = mapped_column(
        Enum(EventStatus),
        default=EventStatus.OPEN,
        nullable=False,
        index=True
    )

    # Optimistic locking for concurrency control
    version: Mapped[int] = mapped_column(Integer, default=1, nullable=False)

    # Relationships
    registrations: Mapped[List["Registration"]] = relationship(
        "Registration",
        back_populates="event",
        cascade="all, delete-orphan",
        passive_deletes=True
    )
    glimpses: Mapped[List["Glimpse"]] = relationship(
        "Glimpse",
        back_populates="event",
        cascade="all, delete-orphan",
        passive_deletes=True
    )

    # Constraints
    __table_args__ = (
        CheckConstraint("max_capacity > 0", name="ck_events_max_capacity_positive"),
        CheckConstraint("current_count >= 0", name="ck_events_current_count_non_negative"),
        CheckConstraint("version > 0", name="ck_events_version_positive"),
    )

    @property
    def is_full(self) -> bool:
        """Check if the event has no seats left."""
        return self.current_count >= self.max_capacity

    @property
    def remaining_capacity(self) -> int:
        """Seats still available, never negative."""
        return max(self.max_capacity - self.current_count, 0)

    @property
    def accepts_registrations(self) -> bool:
        """Check if the event status admits new sign-ups."""
        return self.status not in TERMINAL_STATUSES

    def __repr__(self) -> str:
        """String representation of the event."""
        return (
            f"<Event(id={self.id}, title='{self.title}', status={self.status.value}, "
            f"count={self.current_count}/{self.max_capacity})>"
        )
