"""
Registration ledger accessor.
"""

import logging
from typing import List, Optional, Tuple
from uuid import UUID

from sqlalchemy import func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import store_operation
from ..models.event import Event
from ..models.registration import Registration, RegistrationStatus
from ..models.user import User
from ..schemas.registration import RegistrationFilters, RegistrationRequest

logger = logging.getLogger(__name__)


class RegistrationLedger:
    """
    Accessor for registration rows.

    Rows are never deleted here: cancellation flips the status and the row
    stays for history. The partial unique index on (event_id, user_id) for
    confirmed rows is the final guard against double sign-up.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    @store_operation
    async def has_confirmed_registration(self, event_id: UUID, user_id: str) -> bool:
        """Check whether the user already holds a seat for the event."""
        result = await self.session.execute(
            select(Registration.id).where(
                Registration.event_id == event_id,
                Registration.user_id == user_id,
                Registration.status == RegistrationStatus.CONFIRMED
            ).limit(1)
        )
        return result.scalar_one_or_none() is not None

    @store_operation
    async def insert_registration(self, request: RegistrationRequest, profile: User) -> Registration:
        """
        Insert a confirmed registration carrying a snapshot of the profile.

        The row is flushed, not committed; the caller owns the transaction.

        Raises:
            IntegrityError: If a confirmed row for (event, user) already exists
        """
        registration = Registration(
            event_id=request.event_id,
            user_id=request.user_id,
            user_email=request.user_email,
            year=profile.year,
            dept=profile.dept,
            roll_no=profile.roll_no,
            mobile_number=profile.mobile_number,
            status=RegistrationStatus.CONFIRMED
        )
        self.session.add(registration)
        await self.session.flush()
        return registration

    @store_operation
    async def get_registration(self, registration_id: UUID) -> Optional[Registration]:
        """Fetch a registration with its latest stored values, or None."""
        result = await self.session.execute(
            select(Registration)
            .where(Registration.id == registration_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    @store_operation
    async def set_registration_status(
        self,
        registration: Registration,
        status: RegistrationStatus,
        expected: RegistrationStatus
    ) -> bool:
        """
        Move a registration from ``expected`` to ``status``.

        Returns:
            False when the row no longer had the expected status
        """
        result = await self.session.execute(
            update(Registration)
            .where(Registration.id == registration.id, Registration.status == expected)
            .values(status=status)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            return False

        await self.session.refresh(registration)
        return True

    @store_operation
    async def count_for_event(self, event_id: UUID) -> int:
        """Count every ledger row of an event, cancelled ones included."""
        result = await self.session.execute(
            select(func.count(Registration.id)).where(Registration.event_id == event_id)
        )
        return result.scalar_one()

    @store_operation
    async def confirmed_count(self, event_id: UUID) -> int:
        """Count the confirmed registrations of an event."""
        result = await self.session.execute(
            select(func.count(Registration.id)).where(
                Registration.event_id == event_id,
                Registration.status == RegistrationStatus.CONFIRMED
            )
        )
        return result.scalar_one()

    @store_operation
    async def list_for_user(
        self,
        user_id: str,
        include_cancelled: bool = False
    ) -> List[Tuple[Registration, Event]]:
        """A member's registrations joined with their events, soonest event first."""
        query = (
            select(Registration, Event)
            .join(Event, Registration.event_id == Event.id)
            .where(Registration.user_id == user_id)
            .order_by(Event.start_time.asc())
        )
        if not include_cancelled:
            query = query.where(Registration.status == RegistrationStatus.CONFIRMED)

        result = await self.session.execute(query)
        return [(row[0], row[1]) for row in result.all()]

    @store_operation
    async def list_registrations(self, filters: RegistrationFilters) -> List[Tuple[Registration, Event]]:
        """
        Admin listing of registrations with their events, newest first.

        Args:
            filters: event, year, dept, status and free-text search filters

        Returns:
            List of (registration, event) pairs
        """
        query = (
            select(Registration, Event)
            .join(Event, Registration.event_id == Event.id)
            .order_by(Registration.registered_at.desc())
        )

        if filters.event_id:
            query = query.where(Registration.event_id == filters.event_id)
        if filters.year:
            query = query.where(Registration.year == filters.year)
        if filters.dept:
            query = query.where(Registration.dept == filters.dept)
        if filters.status:
            query = query.where(Registration.status == filters.status)
        if filters.search:
            pattern = f"%{filters.search.strip().lower()}%"
            query = query.where(
                or_(
                    func.lower(Registration.user_email).like(pattern),
                    func.lower(Registration.roll_no).like(pattern),
                    func.lower(Registration.year).like(pattern),
                    func.lower(Registration.dept).like(pattern),
                    func.lower(Event.title).like(pattern),
                )
            )

        result = await self.session.execute(query)
        return [(row[0], row[1]) for row in result.all()]
