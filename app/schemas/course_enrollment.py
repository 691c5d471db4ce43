from decimal import Decimal
from pydantic import BaseModel, ConfigDict
from typing import List, Optional
from datetime import datetime
from app.core.constants import EnrollmentStatusEnum, PackageTierEnum
from app.schemas.avatar import Avatar
from app.schemas.course import Chapter


class CourseEnrollment(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    course_id: int
    package: PackageTierEnum
    status: EnrollmentStatusEnum
    amount_paid: Decimal
    progress: int
    is_course_reward_claimed: bool
    receipt_url: Optional[str] = None
    promo_code: Optional[str] = None
    promo_code_id: Optional[int] = None
    rejection_reason: Optional[str] = None
    completed_material_ids: List[int] = []
    completed_chapter_ids: List[int] = []
    claimed_chapter_ids: List[int] = []
    last_accessed_at: Optional[datetime] = None
    created_at: datetime
    updated_at: Optional[datetime] = None


class EnrolledCourseSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    thumbnail_url: Optional[str] = None
    description: Optional[str] = None
    total_duration: Optional[str] = None
    completion_xp_bonus: int


class MyEnrollment(CourseEnrollment):
    course: EnrolledCourseSummary


class EnrollmentCheck(BaseModel):
    is_enrolled: bool
    enrollment: Optional[CourseEnrollment] = None


class EnrollmentRejectRequest(BaseModel):
    reason: Optional[str] = None


class SecureCourseInfo(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    thumbnail_url: Optional[str] = None


class SecureCourseContent(BaseModel):
    """Chapters with only the materials the enrollment's package unlocks."""
    course: SecureCourseInfo
    chapters: List[Chapter]
    user_progress: CourseEnrollment


class MaterialToggleResult(BaseModel):
    completed: bool
    progress: int
    completed_chapters: List[int]
    status: EnrollmentStatusEnum


class RewardClaimResult(BaseModel):
    claimed_xp: int
    new_total_xp: int
    new_level: int
    leveled_up: bool
    tokens_earned: int
    new_tokens: int


class CourseRewardClaimResult(RewardClaimResult):
    reward_avatar: Optional[Avatar] = None
