"""
Showcase models: competition winners and photo glimpses of past events.
"""

import uuid
from datetime import date
from typing import Optional, TYPE_CHECKING

from sqlalchemy import Date, ForeignKey, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base

if TYPE_CHECKING:
    from .event import Event


class Winner(Base):
    """Podium of a club competition."""

    __tablename__ = "winners"

    # Free text so winners of events run before the platform can be listed too
    event_name: Mapped[str] = mapped_column(String(255), nullable=False)
    event_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)

    first_place: Mapped[str] = mapped_column(String(255), nullable=False)
    second_place: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    third_place: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    def __repr__(self) -> str:
        """String representation of the winner record."""
        return f"<Winner(id={self.id}, event_name='{self.event_name}', first_place='{self.first_place}')>"


class Glimpse(Base):
    """A photo from an event, hosted on the blob store."""

    __tablename__ = "event_glimpses"

    event_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("events.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    image_url: Mapped[str] = mapped_column(String(1024), nullable=False)
    caption: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    event: Mapped["Event"] = relationship("Event", back_populates="glimpses")

    def __repr__(self) -> str:
        """String representation of the glimpse."""
        return f"<Glimpse(id={self.id}, event_id={self.event_id})>"
