"""
Registration model: the ledger of event sign-ups and cancellations.
"""

import enum
import uuid
from datetime import datetime
from typing import Optional, TYPE_CHECKING

from sqlalchemy import DateTime, Enum, ForeignKey, Index, String, Uuid, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, utcnow

if TYPE_CHECKING:
    from .event import Event
    from .user import User


class RegistrationStatus(enum.Enum):
    """Enumeration for registration status."""
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"


class Registration(Base):
    """A user's registration for an event, with a snapshot of their profile."""

    __tablename__ = "registrations"

    # Foreign key relationships
    event_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("events.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    user_id: Mapped[str] = mapped_column(
        String(128),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    user_email: Mapped[str] = mapped_column(String(255), nullable=False)

    # Profile snapshot taken at registration time
    year: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    dept: Mapped[Optional[str]] = mapped_column(String(100), nullable=True, index=True)
    roll_no: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    mobile_number: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)

    registered_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        nullable=False
    )

    status: Mapped[RegistrationStatus] = mapped_column(
        Enum(RegistrationStatus),
        default=RegistrationStatus.CONFIRMED,
        nullable=False,
        index=True
    )

    # Relationships
    event: Mapped["Event"] = relationship("Event", back_populates="registrations")
    user: Mapped["User"] = relationship("User", back_populates="registrations")

    # At most one confirmed row per (event, user); cancelled rows are kept.
    __table_args__ = (
        Index(
            "uq_registrations_event_user_confirmed",
            "event_id",
            "user_id",
            unique=True,
            postgresql_where=text("status = 'CONFIRMED'"),
            sqlite_where=text("status = 'CONFIRMED'"),
        ),
    )

    @property
    def is_confirmed(self) -> bool:
        """Check if the registration currently holds a seat."""
        return self.status == RegistrationStatus.CONFIRMED

    def __repr__(self) -> str:
        """String representation of the registration."""
        return (
            f"<Registration(id={self.id}, user_id={self.user_id}, "
            f"event_id={self.event_id}, status={self.status.value})>"
        )
