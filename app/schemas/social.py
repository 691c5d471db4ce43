from pydantic import BaseModel, ConfigDict
from datetime import datetime
from typing import List, Optional
from app.core.constants import EnrollmentStatusEnum, FriendRequestStatusEnum, FriendStatusEnum
from app.schemas.avatar import Avatar
from app.schemas.user import UserSummary


class FriendRequest(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    requester_id: int
    recipient_id: int
    status: FriendRequestStatusEnum
    created_at: Optional[datetime] = None
    requester: Optional[UserSummary] = None


class ProfileCourse(BaseModel):
    course_id: int
    title: str
    thumbnail_url: Optional[str] = None
    status: EnrollmentStatusEnum


class PublicProfile(BaseModel):
    user: UserSummary
    bio: Optional[str] = None
    xp_points: int
    unlocked_avatars: List[Avatar] = []
    enrolled_courses: List[ProfileCourse] = []
    completed_courses: List[ProfileCourse] = []
    friend_status: FriendStatusEnum = FriendStatusEnum.NONE
    friend_request_id: Optional[int] = None
    followers_count: int = 0
    following_count: int = 0
