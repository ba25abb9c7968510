"""
Member profile schemas.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, EmailStr, Field

from ..models.user import UserRole


class UserSyncRequest(BaseModel):
    """Profile data supplied on first sign-in; id and email come from the token."""
    name: str = Field(..., min_length=1, max_length=200)
    year: Optional[str] = Field(None, max_length=20)
    dept: Optional[str] = Field(None, max_length=100)
    roll_no: Optional[str] = Field(None, max_length=50)
    mobile_number: Optional[str] = Field(None, max_length=20)


class UserProfile(BaseModel):
    """Schema for member profile information."""
    id: str
    email: str
    name: str
    role: UserRole
    year: Optional[str] = None
    dept: Optional[str] = None
    roll_no: Optional[str] = None
    mobile_number: Optional[str] = None
    designation: Optional[str] = None
    created_at: datetime

    model_config = {"from_attributes": True}


class UserProfileResponse(BaseModel):
    """Profile plus its registration readiness."""
    profile: UserProfile
    profile_complete: bool
    missing_fields: List[str] = []


class UserProfileUpdate(BaseModel):
    """Schema for a member updating their own profile."""
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    year: Optional[str] = Field(None, max_length=20)
    dept: Optional[str] = Field(None, max_length=100)
    roll_no: Optional[str] = Field(None, max_length=50)
    mobile_number: Optional[str] = Field(None, max_length=20)


class AdminUserUpdate(UserProfileUpdate):
    """Schema for an administrator editing any member."""
    email: Optional[EmailStr] = None
    role: Optional[UserRole] = None
    designation: Optional[str] = Field(None, max_length=100)


class UserListResponse(BaseModel):
    """Schema for member listings."""
    users: List[UserProfile]
    total: int
