"""
Showcase service for competition winners and event glimpses.
"""

import logging
from typing import List
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.showcase import Glimpse, Winner
from ..schemas.showcase import GlimpseCreate, WinnerCreate
from ..utils.exceptions import EventNotFoundError, NotFoundError
from ..utils.logging_config import log_business_event
from .event_store import EventStore

logger = logging.getLogger(__name__)


class ShowcaseService:
    """Service class for the public hall of fame and event photo galleries."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.events = EventStore(db)

    async def list_winners(self) -> List[Winner]:
        """Winners, most recent competition first."""
        result = await self.db.execute(
            select(Winner).order_by(Winner.event_date.desc(), Winner.created_at.desc())
        )
        return list(result.scalars().all())

    async def create_winner(self, data: WinnerCreate) -> Winner:
        """Record the podium of a competition."""
        winner = Winner(**data.model_dump())
        self.db.add(winner)
        await self.db.commit()

        log_business_event(
            "winner_recorded",
            {"winner_id": str(winner.id), "event_name": winner.event_name}
        )
        return winner

    async def delete_winner(self, winner_id: UUID) -> None:
        """
        Delete a winner record.

        Raises:
            NotFoundError: If the record does not exist
        """
        winner = await self.db.get(Winner, winner_id)
        if winner is None:
            raise NotFoundError(
                f"Winner record {winner_id} not found",
                resource_type="winner",
                resource_id=str(winner_id)
            )

        await self.db.delete(winner)
        await self.db.commit()
        logger.info(f"Deleted winner record {winner_id}")

    async def list_glimpses(self, event_id: UUID) -> List[Glimpse]:
        """Photos of one event, oldest first."""
        result = await self.db.execute(
            select(Glimpse)
            .where(Glimpse.event_id == event_id)
            .order_by(Glimpse.created_at.asc())
        )
        return list(result.scalars().all())

    async def create_glimpse(self, data: GlimpseCreate) -> Glimpse:
        """
        Attach a photo to an event.

        Raises:
            EventNotFoundError: If the event does not exist
        """
        if await self.events.get_event(data.event_id) is None:
            raise EventNotFoundError(str(data.event_id))

        glimpse = Glimpse(event_id=data.event_id, image_url=data.image_url, caption=data.caption)
        self.db.add(glimpse)
        await self.db.commit()

        logger.info(f"Added glimpse {glimpse.id} to event {data.event_id}")
        return glimpse

    async def delete_glimpse(self, glimpse_id: UUID) -> None:
        """
        Delete a glimpse.

        Raises:
            NotFoundError: If the glimpse does not exist
        """
        glimpse = await self.db.get(Glimpse, glimpse_id)
        if glimpse is None:
            raise NotFoundError(
                f"Glimpse {glimpse_id} not found",
                resource_type="glimpse",
                resource_id=str(glimpse_id)
            )

        await self.db.delete(glimpse)
        await self.db.commit()
        logger.info(f"Deleted glimpse {glimpse_id}")
