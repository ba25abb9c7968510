"""
Event store accessor: reads events and applies compare-and-swap count updates.
"""

import logging
from typing import Optional
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from ..config import get_settings
from ..database import store_operation
from ..models.base import utcnow
from ..models.event import Event, TERMINAL_STATUSES, derive_status
from ..utils.exceptions import (
    ConcurrencyError,
    EventFullError,
    EventNotFoundError,
    OptimisticLockError,
    RegistrationClosedError,
)
from ..utils.retry import RetryConfig, retry_async

logger = logging.getLogger(__name__)


class EventStore:
    """
    Accessor for event rows.

    Every count change is a single UPDATE guarded by the version read just
    before it. Increments additionally require spare capacity and a
    non-terminal status in the WHERE clause, so a seat can never be claimed
    past ``max_capacity`` even when callers race.
    """

    def __init__(self, session: AsyncSession, max_attempts: Optional[int] = None):
        self.session = session
        self.retry_config = RetryConfig(
            max_attempts=max_attempts or get_settings().registration_count_retry_attempts,
            base_delay=0.05,
            max_delay=1.0
        )

    @store_operation
    async def get_event(self, event_id: UUID) -> Optional[Event]:
        """Fetch an event with its latest stored values, or None."""
        result = await self.session.execute(
            select(Event)
            .where(Event.id == event_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    @store_operation
    async def lock_event(self, event_id: UUID) -> Optional[Event]:
        """
        Fetch an event and hold its row lock until the transaction ends.

        Registrations and cancellations change the count through the same
        row, so they wait for the lock holder to commit.
        """
        result = await self.session.execute(
            select(Event)
            .where(Event.id == event_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def update_event_count(self, event_id: UUID, delta: int) -> Event:
        """
        Add ``delta`` to the event's registration count and re-derive its status.

        Args:
            event_id: Event to update
            delta: +1 for a new registration, -1 for a cancellation

        Returns:
            The refreshed event

        Raises:
            EventNotFoundError: If the event no longer exists
            EventFullError: If an increment finds no capacity left
            RegistrationClosedError: If an increment hits a Closed/Completed event
            OptimisticLockError: If every attempt lost the race to another writer
            StoreUnavailableError: If the store cannot be reached
        """
        if delta == 0:
            raise ValueError("delta must be non-zero")

        return await retry_async(
            self._apply_count_delta,
            self.retry_config,
            event_id,
            delta,
            retryable_exceptions=(ConcurrencyError,)
        )

    async def set_event_count(self, event_id: UUID, count: int) -> Event:
        """
        Overwrite the registration count, used by reconciliation.

        The caller must compute ``count`` while holding ``lock_event`` on the
        same row, otherwise a sign-up committed after the count is lost.
        """
        return await retry_async(
            self._apply_absolute_count,
            self.retry_config,
            event_id,
            count,
            retryable_exceptions=(ConcurrencyError,)
        )

    async def _load(self, event_id: UUID) -> Event:
        event = await self.get_event(event_id)
        if event is None:
            raise EventNotFoundError(str(event_id))
        return event

    @store_operation
    async def _apply_count_delta(self, event_id: UUID, delta: int) -> Event:
        event = await self._load(event_id)

        if delta > 0:
            if not event.accepts_registrations:
                raise RegistrationClosedError(str(event_id), event.status.value)
            if event.current_count + delta > event.max_capacity:
                raise EventFullError(str(event_id), event.current_count, event.max_capacity)

        new_count = max(event.current_count + delta, 0)
        guards = []
        if delta > 0:
            guards = [
                Event.current_count + delta <= Event.max_capacity,
                Event.status.not_in(TERMINAL_STATUSES),
            ]

        return await self._compare_and_swap(event, new_count, *guards)

    @store_operation
    async def _apply_absolute_count(self, event_id: UUID, count: int) -> Event:
        event = await self._load(event_id)
        return await self._compare_and_swap(event, max(count, 0))

    async def _compare_and_swap(self, event: Event, new_count: int, *guards) -> Event:
        read_version = event.version
        new_status = derive_status(event.status, new_count, event.max_capacity)

        result = await self.session.execute(
            update(Event)
            .where(Event.id == event.id, Event.version == read_version, *guards)
            .values(
                current_count=new_count,
                status=new_status,
                version=read_version + 1,
                updated_at=utcnow()
            )
            .execution_options(synchronize_session=False)
        )

        if result.rowcount == 0:
            logger.warning(f"Count update for event {event.id} lost the race at version {read_version}")
            raise OptimisticLockError("Event", str(event.id))

        await self.session.refresh(event)
        logger.debug(
            f"Event {event.id} count -> {event.current_count}/{event.max_capacity}, "
            f"status {event.status.value}"
        )
        return event
