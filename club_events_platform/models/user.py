"""
User model mirroring identities issued by the Identity Provider.
"""

import enum
from typing import List, Optional, TYPE_CHECKING

from sqlalchemy import Enum, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base

if TYPE_CHECKING:
    from .registration import Registration


class UserRole(enum.Enum):
    """Enumeration for member roles."""
    STUDENT = "student"
    ADMIN = "admin"


class User(Base):
    """Member profile keyed by the Identity Provider's user id."""

    __tablename__ = "users"

    # Identity Provider ids are opaque strings, not UUIDs
    id: Mapped[str] = mapped_column(String(128), primary_key=True, index=True)

    email: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        nullable=False,
        index=True
    )
    name: Mapped[str] = mapped_column(String(200), nullable=False)

    role: Mapped[UserRole] = mapped_column(
        Enum(UserRole),
        default=UserRole.STUDENT,
        nullable=False
    )

    # Profile fields; the first four gate event registration for students
    year: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    dept: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    roll_no: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    mobile_number: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    designation: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    # Relationships
    registrations: Mapped[List["Registration"]] = relationship(
        "Registration",
        back_populates="user",
        cascade="all, delete-orphan",
        passive_deletes=True
    )

    @property
    def is_admin(self) -> bool:
        """Check if the member has the admin role."""
        return self.role == UserRole.ADMIN

    def __repr__(self) -> str:
        """String representation of the user."""
        return f"<User(id={self.id}, email='{self.email}', role={self.role.value})>"
