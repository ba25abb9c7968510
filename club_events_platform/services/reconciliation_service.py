"""
Reconciliation of stored registration counts against the ledger.
"""

import logging
from typing import List, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..cache import CacheInvalidator
from ..models.event import Event
from ..schemas.registration import CountCorrection, ReconciliationReport
from ..utils.logging_config import log_business_event
from .event_store import EventStore
from .registration_ledger import RegistrationLedger

logger = logging.getLogger(__name__)


class ReconciliationService:
    """Recomputes ``current_count`` from confirmed registrations."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.events = EventStore(db)
        self.ledger = RegistrationLedger(db)

    async def reconcile(self, event_id: Optional[UUID] = None) -> ReconciliationReport:
        """
        Compare each event's stored count with its confirmed registrations
        and rewrite the ones that drifted.

        Each event is checked in its own transaction: the event row is locked
        first and the ledger is counted under that lock, so no sign-up or
        cancellation can commit between the count and the write.

        Args:
            event_id: Limit the run to one event

        Returns:
            ReconciliationReport listing every correction made
        """
        query = select(Event.id)
        if event_id is not None:
            query = query.where(Event.id == event_id)
        event_ids = list((await self.db.execute(query)).scalars().all())
        await self.db.commit()

        corrections: List[CountCorrection] = []
        for current_event_id in event_ids:
            correction = await self._reconcile_event(current_event_id)
            if correction is None:
                continue

            corrections.append(correction)
            await CacheInvalidator.invalidate_event_caches(str(correction.event_id))
            log_business_event(
                "count_reconciled",
                {
                    "event_id": str(correction.event_id),
                    "recorded_count": correction.recorded_count,
                    "actual_count": correction.actual_count,
                }
            )

        logger.info(f"Reconciled {len(event_ids)} events, corrected {len(corrections)}")
        return ReconciliationReport(events_checked=len(event_ids), corrections=corrections)

    async def _reconcile_event(self, event_id: UUID) -> Optional[CountCorrection]:
        event = await self.events.lock_event(event_id)
        if event is None:
            # Deleted since the listing
            await self.db.commit()
            return None

        recorded_count = event.current_count
        status_before = event.status
        actual = await self.ledger.confirmed_count(event_id)
        if actual == recorded_count:
            await self.db.commit()
            return None

        event = await self.events.set_event_count(event_id, actual)
        await self.db.commit()

        logger.warning(f"Event {event_id} count drifted: stored {recorded_count}, confirmed {actual}")
        return CountCorrection(
            event_id=event_id,
            recorded_count=recorded_count,
            actual_count=actual,
            status_before=status_before,
            status_after=event.status
        )
