"""
Inquiry service: contact form submissions and the admin inbox.
"""

import logging
from typing import List
from uuid import UUID

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.inquiry import Inquiry, InquiryStatus
from ..schemas.inquiry import InquiryCreate, InquiryFilters
from ..utils.exceptions import NotFoundError

logger = logging.getLogger(__name__)


class InquiryService:
    """Service class for inquiry operations."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def submit_inquiry(self, data: InquiryCreate) -> Inquiry:
        """Store a contact form message as a pending inquiry."""
        inquiry = Inquiry(
            name=data.name,
            email=str(data.email),
            message=data.message,
            status=InquiryStatus.PENDING
        )
        self.db.add(inquiry)
        await self.db.commit()

        logger.info(f"Inquiry {inquiry.id} received")
        return inquiry

    async def list_inquiries(self, filters: InquiryFilters) -> List[Inquiry]:
        """
        Admin inbox, newest first.

        Args:
            filters: status filter and free-text search over name, email and message

        Returns:
            List of matching inquiries
        """
        query = select(Inquiry).order_by(Inquiry.created_at.desc())

        if filters.status:
            query = query.where(Inquiry.status == filters.status)
        if filters.search:
            pattern = f"%{filters.search.strip().lower()}%"
            query = query.where(
                or_(
                    func.lower(Inquiry.name).like(pattern),
                    func.lower(Inquiry.email).like(pattern),
                    func.lower(Inquiry.message).like(pattern),
                )
            )

        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def count_pending(self) -> int:
        """Number of inquiries nobody has looked at yet."""
        result = await self.db.execute(
            select(func.count(Inquiry.id)).where(Inquiry.status == InquiryStatus.PENDING)
        )
        return result.scalar_one()

    async def get_inquiry(self, inquiry_id: UUID) -> Inquiry:
        """
        Get an inquiry by ID.

        Raises:
            NotFoundError: If the inquiry does not exist
        """
        inquiry = await self.db.get(Inquiry, inquiry_id, populate_existing=True)
        if inquiry is None:
            raise NotFoundError(
                f"Inquiry {inquiry_id} not found",
                resource_type="inquiry",
                resource_id=str(inquiry_id)
            )
        return inquiry

    async def set_status(self, inquiry_id: UUID, status: InquiryStatus) -> Inquiry:
        """Move an inquiry to a new inbox status."""
        inquiry = await self.get_inquiry(inquiry_id)
        inquiry.status = status
        await self.db.commit()

        logger.info(f"Inquiry {inquiry_id} marked {status.value}")
        return inquiry

    async def delete_inquiry(self, inquiry_id: UUID) -> None:
        inquiry = await self.get_inquiry(inquiry_id)
        await self.db.delete(inquiry)
        await self.db.commit()
