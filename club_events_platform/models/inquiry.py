"""
Inquiry model for messages sent through the public contact form.
"""

import enum

from sqlalchemy import Enum, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base


class InquiryStatus(enum.Enum):
    """Enumeration for the handling state of an inquiry."""
    PENDING = "pending"
    READ = "read"
    REPLIED = "replied"
    RESOLVED = "resolved"


class Inquiry(Base):
    """Inquiry model."""

    __tablename__ = "inquiries"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    message: Mapped[str] = mapped_column(Text, nullable=False)

    status: Mapped[InquiryStatus] = mapped_column(
        Enum(InquiryStatus),
        default=InquiryStatus.PENDING,
        nullable=False,
        index=True
    )

    def __repr__(self) -> str:
        """String representation of the inquiry."""
        return f"<Inquiry(id={self.id}, email='{self.email}', status={self.status.value})>"
