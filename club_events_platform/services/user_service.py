"""
User service for mirroring Identity Provider accounts and managing profiles.
"""

import logging
from typing import List, Optional

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ..cache import CacheInvalidator
from ..models.registration import Registration
from ..models.user import User, UserRole
from ..schemas.user import UserProfileUpdate, UserSyncRequest
from ..utils.auth import IdentityClaims
from ..utils.exceptions import UserAlreadyExistsError, UserNotFoundError
from .event_store import EventStore
from .registration_ledger import RegistrationLedger

logger = logging.getLogger(__name__)


class UserService:
    """Service class for member profile operations."""

    def __init__(self, db: AsyncSession):
        """
        Initialize the user service.

        Args:
            db: Database session
        """
        self.db = db

    async def sync_user(self, identity: IdentityClaims, profile_data: UserSyncRequest) -> User:
        """
        Mirror a signed-in identity into the profile store.

        Calling this again for an existing identity returns the stored row
        unchanged, including when two first sign-ins race each other.

        Args:
            identity: Verified Identity Provider claims
            profile_data: Profile fields supplied by the client

        Returns:
            The stored profile

        Raises:
            UserAlreadyExistsError: If the email belongs to a different identity
        """
        existing = await self.get_user_by_id(identity.user_id)
        if existing:
            return existing

        user = User(
            id=identity.user_id,
            email=identity.email,
            name=profile_data.name,
            role=UserRole.STUDENT,
            year=profile_data.year,
            dept=profile_data.dept,
            roll_no=profile_data.roll_no,
            mobile_number=profile_data.mobile_number
        )

        try:
            self.db.add(user)
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            existing = await self.get_user_by_id(identity.user_id)
            if existing:
                return existing
            raise UserAlreadyExistsError(identity.email)

        logger.info(f"Mirrored new member {user.id}")
        return user

    async def get_user_by_id(self, user_id: str) -> Optional[User]:
        """
        Get a user by Identity Provider id.

        Returns:
            The user if found, None otherwise
        """
        result = await self.db.execute(
            select(User).where(User.id == user_id).execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def get_user(self, user_id: str) -> User:
        """Get a user or raise ``UserNotFoundError``."""
        user = await self.get_user_by_id(user_id)
        if not user:
            raise UserNotFoundError(user_id)
        return user

    async def update_profile(self, user_id: str, profile_data: UserProfileUpdate) -> User:
        """
        Update profile fields of a member.

        Only fields present in the request are written; admin-only fields
        are honoured when ``profile_data`` is an ``AdminUserUpdate``.

        Raises:
            UserNotFoundError: If the user does not exist
            UserAlreadyExistsError: If a new email is already taken
        """
        user = await self.get_user(user_id)

        for field, value in profile_data.model_dump(exclude_unset=True).items():
            setattr(user, field, value)

        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise UserAlreadyExistsError(str(getattr(profile_data, "email", user_id)))

        await self.db.refresh(user)
        return user

    async def list_users(self, role: Optional[UserRole] = None) -> List[User]:
        """List members, optionally filtered by role."""
        query = select(User).order_by(User.name.asc())
        if role:
            query = query.where(User.role == role)

        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def delete_user(self, user_id: str) -> None:
        """
        Delete a member profile together with their registrations.

        Seats held by the member are released on their events first.

        Raises:
            UserNotFoundError: If the user does not exist
        """
        await self.get_user(user_id)

        events = EventStore(self.db)
        released = []
        for registration, event in await RegistrationLedger(self.db).list_for_user(user_id):
            await events.update_event_count(event.id, -1)
            released.append(str(event.id))

        await self.db.execute(delete(Registration).where(Registration.user_id == user_id))
        await self.db.execute(delete(User).where(User.id == user_id))
        await self.db.commit()

        for event_id in released:
            await CacheInvalidator.invalidate_event_caches(event_id)
        logger.info(f"Deleted member {user_id}")
