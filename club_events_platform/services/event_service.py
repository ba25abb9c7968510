"""
Event service for administering events and serving public listings.
"""

import hashlib
import logging
from datetime import datetime, timezone
from typing import Any, Dict
from uuid import UUID

from sqlalchemy import delete, func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ..cache import CacheInvalidator, CacheKeyBuilder, CacheTTL, get_cache
from ..models.base import utcnow
from ..models.event import Event, derive_status
from ..models.registration import Registration
from ..models.showcase import Glimpse
from ..schemas.event import (
    EventCreate,
    EventDeleteResponse,
    EventFilters,
    EventListResponse,
    EventResponse,
    EventUpdate,
)
from ..utils.exceptions import (
    CascadeNotConfirmedError,
    EventNotFoundError,
    OptimisticLockError,
    ValidationError,
)
from ..utils.logging_config import log_business_event
from ..utils.retry import retry_on_concurrency_error
from .registration_ledger import RegistrationLedger

logger = logging.getLogger(__name__)


class EventService:
    """Service class for event management operations."""

    def __init__(self, db: AsyncSession):
        """Initialize the event service with database session."""
        self.db = db
        self.cache = get_cache()
        self.ledger = RegistrationLedger(db)

    async def create_event(self, event_data: EventCreate) -> Event:
        """
        Create a new event.

        The registration count always starts at zero; a Full status is not
        accepted on an empty event and falls back to Open.

        Args:
            event_data: Event creation data

        Returns:
            Created event instance
        """
        event = Event(
            title=event_data.title,
            description=event_data.description,
            event_type=event_data.event_type,
            image_url=event_data.image_url,
            start_time=event_data.start_time,
            end_time=event_data.end_time,
            max_capacity=event_data.max_capacity,
            current_count=0,
            status=derive_status(event_data.status, 0, event_data.max_capacity),
            version=1
        )

        try:
            self.db.add(event)
            await self.db.commit()
        except IntegrityError as e:
            await self.db.rollback()
            raise ValidationError(f"Failed to create event: {e.orig}")

        await CacheInvalidator.invalidate_event_list_caches()
        logger.info(f"Created event {event.id} '{event.title}' with capacity {event.max_capacity}")

        return event

    async def get_event_by_id(self, event_id: UUID) -> Event:
        """
        Get an event straight from the database.

        Raises:
            EventNotFoundError: If event is not found
        """
        result = await self.db.execute(
            select(Event)
            .where(Event.id == event_id)
            .execution_options(populate_existing=True)
        )
        event = result.scalar_one_or_none()
        if not event:
            raise EventNotFoundError(str(event_id))
        return event

    async def get_event_detail(self, event_id: UUID) -> EventResponse:
        """
        Get the public view of an event, served from the cache when possible.

        Raises:
            EventNotFoundError: If event is not found
        """
        cache_key = CacheKeyBuilder.event_detail(str(event_id))
        cached_event = await self.cache.get(cache_key)
        if cached_event:
            return EventResponse.model_validate(cached_event)

        event = await self.get_event_by_id(event_id)
        response = EventResponse.model_validate(event)

        await self.cache.set(cache_key, response.model_dump(mode="json"), CacheTTL.EVENT_DETAIL)
        return response

    def _create_filters_hash(self, filters: EventFilters) -> str:
        """Create a hash of filters for cache key generation."""
        filters_str = str(sorted(filters.model_dump(mode="json").items()))
        return hashlib.md5(filters_str.encode()).hexdigest()

    async def list_events(self, filters: EventFilters) -> EventListResponse:
        """
        List events ordered by start time.

        Args:
            filters: Status, type and upcoming-only filters

        Returns:
            EventListResponse with the matching events
        """
        cache_key = CacheKeyBuilder.event_list(self._create_filters_hash(filters))
        cached_result = await self.cache.get(cache_key)
        if cached_result:
            return EventListResponse.model_validate(cached_result)

        query = select(Event).order_by(Event.start_time.asc())

        if filters.status:
            query = query.where(Event.status == filters.status)
        if filters.event_type:
            query = query.where(func.lower(Event.event_type) == filters.event_type.lower())
        if filters.upcoming_only:
            query = query.where(Event.end_time >= utcnow())

        result = await self.db.execute(query)
        events = [EventResponse.model_validate(event) for event in result.scalars().all()]
        response = EventListResponse(events=events, total=len(events))

        await self.cache.set(cache_key, response.model_dump(mode="json"), CacheTTL.EVENT_LIST)
        return response

    async def update_event(self, event_id: UUID, event_data: EventUpdate) -> Event:
        """
        Update an existing event.

        Lowering ``max_capacity`` below the current count is allowed: existing
        registrations stay and no new ones are admitted. The status is
        re-derived from the resulting count and capacity, keeping an explicit
        Closed or Completed.

        Args:
            event_id: Event UUID
            event_data: Event update data

        Returns:
            Updated event instance

        Raises:
            EventNotFoundError: If event is not found
            ValidationError: If the update would end the event before it starts
        """
        event = await self._apply_update(event_id, event_data.model_dump(exclude_unset=True))

        await self.db.commit()
        await CacheInvalidator.invalidate_event_caches(str(event_id))
        logger.info(f"Updated event {event_id} to version {event.version}")

        return event

    @retry_on_concurrency_error(max_attempts=3, base_delay=0.05, max_delay=1.0)
    async def _apply_update(self, event_id: UUID, changes: Dict[str, Any]) -> Event:
        changes = dict(changes)
        event = await self.get_event_by_id(event_id)

        start_time = _as_utc(changes.get("start_time", event.start_time))
        end_time = _as_utc(changes.get("end_time", event.end_time))
        if end_time < start_time:
            raise ValidationError(
                "end_time must not be before start_time",
                field_errors={"end_time": ["must not be before start_time"]}
            )

        requested_status = changes.pop("status", event.status)
        max_capacity = changes.get("max_capacity", event.max_capacity)
        read_version = event.version

        result = await self.db.execute(
            update(Event)
            .where(Event.id == event_id, Event.version == read_version)
            .values(
                **changes,
                status=derive_status(requested_status, event.current_count, max_capacity),
                version=read_version + 1,
                updated_at=utcnow()
            )
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            raise OptimisticLockError("Event", str(event_id))

        await self.db.refresh(event)
        return event

    async def delete_event(self, event_id: UUID, cascade: bool = False) -> EventDeleteResponse:
        """
        Delete an event together with all of its registrations and glimpses.

        Args:
            event_id: Event UUID
            cascade: Explicit confirmation that registrations are deleted too

        Returns:
            EventDeleteResponse with the number of registrations removed

        Raises:
            EventNotFoundError: If event is not found
            CascadeNotConfirmedError: If ``cascade`` was not set
        """
        await self.get_event_by_id(event_id)
        registration_count = await self.ledger.count_for_event(event_id)

        if not cascade:
            raise CascadeNotConfirmedError(str(event_id), registration_count)

        result = await self.db.execute(
            delete(Registration).where(Registration.event_id == event_id)
        )
        await self.db.execute(delete(Glimpse).where(Glimpse.event_id == event_id))
        await self.db.execute(delete(Event).where(Event.id == event_id))
        await self.db.commit()

        await CacheInvalidator.invalidate_event_caches(str(event_id))
        log_business_event(
            "event_deleted",
            {"event_id": str(event_id), "registrations_deleted": result.rowcount}
        )

        return EventDeleteResponse(
            event_id=event_id,
            registrations_deleted=result.rowcount,
            message=f"Event deleted along with {result.rowcount} registrations"
        )


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value
