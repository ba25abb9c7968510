"""API endpoints for the Club Events Platform."""

from fastapi import APIRouter
from .users import router as users_router
from .events import router as events_router
from .registrations import router as registrations_router
from .announcements import router as announcements_router
from .inquiries import router as inquiries_router
from .showcase import glimpses_router, winners_router

# Create main API router
api_router = APIRouter(prefix="/api/v1")

# Include all routers
api_router.include_router(users_router)
api_router.include_router(events_router)
api_router.include_router(registrations_router)
api_router.include_router(announcements_router)
api_router.include_router(inquiries_router)
api_router.include_router(winners_router)
api_router.include_router(glimpses_router)

__all__ = ["api_router"]
