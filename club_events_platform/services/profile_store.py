"""
Read access to member profiles and the completeness rule that gates registration.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import store_operation
from ..models.user import User

logger = logging.getLogger(__name__)

# Attributes a student must fill in before signing up for an event
REQUIRED_PROFILE_FIELDS = ("year", "dept", "roll_no", "mobile_number")


@dataclass(frozen=True)
class ProfileCompleteness:
    """Result of a completeness check."""
    is_complete: bool
    missing_fields: List[str] = field(default_factory=list)


def check_profile_completeness(profile: User) -> ProfileCompleteness:
    """
    Check that every registration-gating attribute is present.

    Whitespace-only values count as missing.

    Args:
        profile: Member profile to check

    Returns:
        ProfileCompleteness listing the missing attributes in a stable order
    """
    missing = [
        name for name in REQUIRED_PROFILE_FIELDS
        if not (getattr(profile, name, None) or "").strip()
    ]
    return ProfileCompleteness(is_complete=not missing, missing_fields=missing)


class ProfileStore:
    """Accessor for mirrored member profiles."""

    def __init__(self, session: AsyncSession):
        self.session = session

    @store_operation
    async def get_profile(self, user_id: str) -> Optional[User]:
        """Fetch a profile by Identity Provider user id, or None."""
        result = await self.session.execute(
            select(User).where(User.id == user_id)
        )
        return result.scalar_one_or_none()
