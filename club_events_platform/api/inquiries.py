"""
Inquiry API endpoints: the public contact form and the admin inbox.
"""

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import get_db
from ..models.inquiry import InquiryStatus
from ..models.user import User
from ..schemas.common import SuccessResponse
from ..schemas.inquiry import (
    InquiryCreate,
    InquiryFilters,
    InquiryListResponse,
    InquiryResponse,
    InquiryStatusUpdate,
)
from ..services.inquiry_service import InquiryService
from ..utils.dependencies import get_current_admin_user

router = APIRouter(prefix="/inquiries", tags=["inquiries"])


def get_inquiry_service(db: AsyncSession = Depends(get_db)) -> InquiryService:
    """Dependency to get inquiry service instance."""
    return InquiryService(db)


@router.post("", response_model=SuccessResponse, status_code=status.HTTP_201_CREATED)
async def submit_inquiry(
    data: InquiryCreate,
    inquiry_service: InquiryService = Depends(get_inquiry_service)
):
    """
    Send a message to the club.

    Public endpoint; no sign-in required. The message lands in the admin
    inbox as pending.
    """
    inquiry = await inquiry_service.submit_inquiry(data)
    return SuccessResponse(message="Message sent", data={"inquiry_id": str(inquiry.id)})


@router.get("", response_model=InquiryListResponse)
async def list_inquiries(
    inquiry_status: Optional[InquiryStatus] = Query(None, alias="status", description="Filter by status"),
    search: Optional[str] = Query(None, description="Name, email or message"),
    current_user: User = Depends(get_current_admin_user),
    inquiry_service: InquiryService = Depends(get_inquiry_service)
):
    """Admin inbox, newest first, with the number of pending inquiries."""
    inquiries = await inquiry_service.list_inquiries(InquiryFilters(status=inquiry_status, search=search))
    items = [InquiryResponse.model_validate(inquiry) for inquiry in inquiries]
    return InquiryListResponse(
        inquiries=items,
        total=len(items),
        pending=await inquiry_service.count_pending()
    )


@router.put("/{inquiry_id}", response_model=InquiryResponse)
async def update_inquiry_status(
    inquiry_id: UUID,
    data: InquiryStatusUpdate,
    current_user: User = Depends(get_current_admin_user),
    inquiry_service: InquiryService = Depends(get_inquiry_service)
):
    """Mark an inquiry read, replied or resolved (admin only)."""
    return await inquiry_service.set_status(inquiry_id, data.status)


@router.delete("/{inquiry_id}", response_model=SuccessResponse)
async def delete_inquiry(
    inquiry_id: UUID,
    current_user: User = Depends(get_current_admin_user),
    inquiry_service: InquiryService = Depends(get_inquiry_service)
):
    """Delete an inquiry (admin only)."""
    await inquiry_service.delete_inquiry(inquiry_id)
    return SuccessResponse(message="Inquiry deleted")
