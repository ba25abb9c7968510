"""
Announcement service: admin publishing and the public notice board.
"""

import logging
from typing import List
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.announcement import Announcement
from ..schemas.announcement import AnnouncementCreate, AnnouncementUpdate
from ..utils.exceptions import NotFoundError
from ..utils.logging_config import log_business_event

logger = logging.getLogger(__name__)


class AnnouncementService:
    """Service class for announcement operations."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create_announcement(self, data: AnnouncementCreate) -> Announcement:
        """Publish an announcement."""
        announcement = Announcement(**data.model_dump())
        self.db.add(announcement)
        await self.db.commit()

        log_business_event(
            "announcement_published",
            {"announcement_id": str(announcement.id), "active": announcement.is_active}
        )
        return announcement

    async def list_announcements(self, include_inactive: bool = False) -> List[Announcement]:
        """Announcements, newest first. Members only see active ones."""
        query = select(Announcement).order_by(Announcement.created_at.desc())
        if not include_inactive:
            query = query.where(Announcement.is_active.is_(True))

        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def get_announcement(self, announcement_id: UUID) -> Announcement:
        """
        Get an announcement by ID.

        Raises:
            NotFoundError: If the announcement does not exist
        """
        announcement = await self.db.get(Announcement, announcement_id, populate_existing=True)
        if announcement is None:
            raise NotFoundError(
                f"Announcement {announcement_id} not found",
                resource_type="announcement",
                resource_id=str(announcement_id)
            )
        return announcement

    async def update_announcement(self, announcement_id: UUID, data: AnnouncementUpdate) -> Announcement:
        """Edit an announcement; setting ``is_active`` to false hides it."""
        announcement = await self.get_announcement(announcement_id)
        for field, value in data.model_dump(exclude_unset=True).items():
            setattr(announcement, field, value)

        await self.db.commit()
        logger.info(f"Updated announcement {announcement_id}")
        return announcement

    async def delete_announcement(self, announcement_id: UUID) -> None:
        """Remove an announcement for good."""
        announcement = await self.get_announcement(announcement_id)
        await self.db.delete(announcement)
        await self.db.commit()

        log_business_event("announcement_deleted", {"announcement_id": str(announcement_id)})
