from pydantic import BaseModel, ConfigDict, EmailStr
from typing import Optional
from datetime import datetime
from app.core.constants import RoleEnum


class UserSummary(BaseModel):
    """Public-facing identity used in lists (followers, friends, tutors)."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    username: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    current_avatar_url: Optional[str] = None
    role: RoleEnum
    level: int


class UserProfile(UserSummary):
    email: EmailStr
    bio: Optional[str] = None
    is_active: bool
    xp_points: int
    avatar_unlock_tokens: int
    show_avatars: bool
    show_courses: bool
    created_at: Optional[datetime] = None


class UserProfileUpdate(BaseModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    bio: Optional[str] = None
    show_avatars: Optional[bool] = None
    show_courses: Optional[bool] = None
