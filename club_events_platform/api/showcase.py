"""
Showcase API endpoints: the winners board and event glimpses.
"""

from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import get_db
from ..models.user import User
from ..schemas.common import SuccessResponse
from ..schemas.showcase import (
    GlimpseCreate,
    GlimpseListResponse,
    GlimpseResponse,
    WinnerCreate,
    WinnerListResponse,
    WinnerResponse,
)
from ..services.showcase_service import ShowcaseService
from ..utils.dependencies import get_current_admin_user

winners_router = APIRouter(prefix="/winners", tags=["winners"])
glimpses_router = APIRouter(prefix="/glimpses", tags=["glimpses"])


def get_showcase_service(db: AsyncSession = Depends(get_db)) -> ShowcaseService:
    """Dependency to get showcase service instance."""
    return ShowcaseService(db)


@winners_router.get("", response_model=WinnerListResponse)
async def list_winners(showcase_service: ShowcaseService = Depends(get_showcase_service)):
    """Competition winners, most recent first. Public endpoint."""
    winners = [WinnerResponse.model_validate(winner) for winner in await showcase_service.list_winners()]
    return WinnerListResponse(winners=winners, total=len(winners))


@winners_router.post("", response_model=WinnerResponse, status_code=status.HTTP_201_CREATED)
async def create_winner(
    data: WinnerCreate,
    current_user: User = Depends(get_current_admin_user),
    showcase_service: ShowcaseService = Depends(get_showcase_service)
):
    """Record a competition podium (admin only)."""
    return await showcase_service.create_winner(data)


@winners_router.delete("/{winner_id}", response_model=SuccessResponse)
async def delete_winner(
    winner_id: UUID,
    current_user: User = Depends(get_current_admin_user),
    showcase_service: ShowcaseService = Depends(get_showcase_service)
):
    """Delete a winner record (admin only)."""
    await showcase_service.delete_winner(winner_id)
    return SuccessResponse(message="Winner record deleted")


@glimpses_router.get("", response_model=GlimpseListResponse)
async def list_glimpses(
    event_id: UUID = Query(..., description="Event whose photos to list"),
    showcase_service: ShowcaseService = Depends(get_showcase_service)
):
    """Photos of one event. Public endpoint."""
    glimpses = [GlimpseResponse.model_validate(glimpse) for glimpse in await showcase_service.list_glimpses(event_id)]
    return GlimpseListResponse(glimpses=glimpses, total=len(glimpses))


@glimpses_router.post("", response_model=GlimpseResponse, status_code=status.HTTP_201_CREATED)
async def create_glimpse(
    data: GlimpseCreate,
    current_user: User = Depends(get_current_admin_user),
    showcase_service: ShowcaseService = Depends(get_showcase_service)
):
    """Attach a photo to an event (admin only)."""
    return await showcase_service.create_glimpse(data)


@glimpses_router.delete("/{glimpse_id}", response_model=SuccessResponse)
async def delete_glimpse(
    glimpse_id: UUID,
    current_user: User = Depends(get_current_admin_user),
    showcase_service: ShowcaseService = Depends(get_showcase_service)
):
    """Delete a glimpse (admin only)."""
    await showcase_service.delete_glimpse(glimpse_id)
    return SuccessResponse(message="Glimpse deleted")
