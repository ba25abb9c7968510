"""
Announcement API endpoints.
"""

from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import get_db
from ..models.user import User
from ..schemas.announcement import (
    AnnouncementCreate,
    AnnouncementListResponse,
    AnnouncementResponse,
    AnnouncementUpdate,
)
from ..schemas.common import SuccessResponse
from ..services.announcement_service import AnnouncementService
from ..utils.dependencies import get_current_admin_user

router = APIRouter(prefix="/announcements", tags=["announcements"])


def get_announcement_service(db: AsyncSession = Depends(get_db)) -> AnnouncementService:
    """Dependency to get announcement service instance."""
    return AnnouncementService(db)


def announcement_list(announcements) -> AnnouncementListResponse:
    items = [AnnouncementResponse.model_validate(announcement) for announcement in announcements]
    return AnnouncementListResponse(announcements=items, total=len(items))


@router.get("", response_model=AnnouncementListResponse)
async def list_announcements(
    announcement_service: AnnouncementService = Depends(get_announcement_service)
):
    """Active announcements, newest first. Public endpoint."""
    return announcement_list(await announcement_service.list_announcements())


@router.get("/all", response_model=AnnouncementListResponse)
async def list_all_announcements(
    current_user: User = Depends(get_current_admin_user),
    announcement_service: AnnouncementService = Depends(get_announcement_service)
):
    """Every announcement including switched-off ones (admin only)."""
    return announcement_list(await announcement_service.list_announcements(include_inactive=True))


@router.post("", response_model=AnnouncementResponse, status_code=status.HTTP_201_CREATED)
async def create_announcement(
    data: AnnouncementCreate,
    current_user: User = Depends(get_current_admin_user),
    announcement_service: AnnouncementService = Depends(get_announcement_service)
):
    """Publish an announcement (admin only)."""
    return await announcement_service.create_announcement(data)


@router.patch("/{announcement_id}", response_model=AnnouncementResponse)
async def update_announcement(
    announcement_id: UUID,
    data: AnnouncementUpdate,
    current_user: User = Depends(get_current_admin_user),
    announcement_service: AnnouncementService = Depends(get_announcement_service)
):
    """Edit an announcement or switch it off (admin only)."""
    return await announcement_service.update_announcement(announcement_id, data)


@router.delete("/{announcement_id}", response_model=SuccessResponse)
async def delete_announcement(
    announcement_id: UUID,
    current_user: User = Depends(get_current_admin_user),
    announcement_service: AnnouncementService = Depends(get_announcement_service)
):
    """Delete an announcement (admin only)."""
    await announcement_service.delete_announcement(announcement_id)
    return SuccessResponse(message="Announcement deleted")
