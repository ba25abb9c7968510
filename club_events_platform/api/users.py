"""
Member profile API endpoints.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import get_db
from ..models.user import User, UserRole
from ..schemas.common import SuccessResponse
from ..schemas.user import (
    AdminUserUpdate,
    UserListResponse,
    UserProfile,
    UserProfileResponse,
    UserProfileUpdate,
    UserSyncRequest,
)
from ..services.profile_store import check_profile_completeness
from ..services.user_service import UserService
from ..utils.auth import IdentityClaims
from ..utils.dependencies import get_current_admin_user, get_current_user, get_identity

router = APIRouter(prefix="/users", tags=["users"])


def get_user_service(db: AsyncSession = Depends(get_db)) -> UserService:
    """Dependency to get user service instance."""
    return UserService(db)


def profile_response(user: User) -> UserProfileResponse:
    """Profile together with its registration readiness."""
    completeness = check_profile_completeness(user)
    return UserProfileResponse(
        profile=UserProfile.model_validate(user),
        profile_complete=completeness.is_complete,
        missing_fields=completeness.missing_fields
    )


@router.post("/sync", response_model=UserProfileResponse)
async def sync_user(
    profile_data: UserSyncRequest,
    identity: IdentityClaims = Depends(get_identity),
    user_service: UserService = Depends(get_user_service)
):
    """
    Mirror the signed-in identity into the member store.

    Safe to call on every sign-in; an existing profile is returned unchanged.
    """
    user = await user_service.sync_user(identity, profile_data)
    return profile_response(user)


@router.get("/me", response_model=UserProfileResponse)
async def get_my_profile(current_user: User = Depends(get_current_user)):
    """Get the signed-in member's profile."""
    return profile_response(current_user)


@router.put("/me", response_model=UserProfileResponse)
async def update_my_profile(
    profile_data: UserProfileUpdate,
    current_user: User = Depends(get_current_user),
    user_service: UserService = Depends(get_user_service)
):
    """Update the signed-in member's profile."""
    user = await user_service.update_profile(current_user.id, profile_data)
    return profile_response(user)


@router.get("", response_model=UserListResponse)
async def list_users(
    role: Optional[UserRole] = Query(None, description="Filter by role"),
    current_user: User = Depends(get_current_admin_user),
    user_service: UserService = Depends(get_user_service)
):
    """List members (admin only)."""
    users = await user_service.list_users(role)
    return UserListResponse(
        users=[UserProfile.model_validate(user) for user in users],
        total=len(users)
    )


@router.get("/{user_id}", response_model=UserProfileResponse)
async def get_user(
    user_id: str,
    current_user: User = Depends(get_current_admin_user),
    user_service: UserService = Depends(get_user_service)
):
    """Get any member's profile (admin only)."""
    return profile_response(await user_service.get_user(user_id))


@router.put("/{user_id}", response_model=UserProfileResponse)
async def update_user(
    user_id: str,
    profile_data: AdminUserUpdate,
    current_user: User = Depends(get_current_admin_user),
    user_service: UserService = Depends(get_user_service)
):
    """Edit any member, including role and designation (admin only)."""
    user = await user_service.update_profile(user_id, profile_data)
    return profile_response(user)


@router.delete("/{user_id}", response_model=SuccessResponse)
async def delete_user(
    user_id: str,
    current_user: User = Depends(get_current_admin_user),
    user_service: UserService = Depends(get_user_service)
):
    """Delete a member and their registrations (admin only)."""
    await user_service.delete_user(user_id)
    return SuccessResponse(message=f"User {user_id} deleted")
