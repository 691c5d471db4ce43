from decimal import Decimal
from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import List, Optional
from datetime import datetime
from app.core.constants import CourseLevelEnum, CourseStatusEnum, MaterialTypeEnum, PackageTierEnum


class CoursePackageBase(BaseModel):
    tier: PackageTierEnum
    price: Decimal = Field(default=Decimal("0"), ge=0)
    features: List[str] = []


class CoursePackageCreate(CoursePackageBase):
    pass


class CoursePackage(CoursePackageBase):
    model_config = ConfigDict(from_attributes=True)

    id: int


def _unique_tiers(packages):
    if packages is None:
        return packages
    tiers = [p.tier for p in packages]
    if len(tiers) != len(set(tiers)):
        raise ValueError("Each package tier may only be listed once.")
    return packages


class CourseBase(BaseModel):
    title: str
    description: Optional[str] = None
    thumbnail_url: Optional[str] = None
    category: Optional[str] = None
    level: CourseLevelEnum = CourseLevelEnum.BEGINNER
    status: CourseStatusEnum = CourseStatusEnum.ONGOING
    tutor_id: Optional[int] = None
    total_duration: Optional[str] = None
    completion_xp_bonus: int = Field(default=100, ge=0)
    reward_avatar_id: Optional[int] = None


class CourseCreate(CourseBase):
    packages: List[CoursePackageCreate] = []

    @field_validator("packages")
    @classmethod
    def check_unique_tiers(cls, v):
        return _unique_tiers(v)


class CourseUpdate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    thumbnail_url: Optional[str] = None
    category: Optional[str] = None
    level: Optional[CourseLevelEnum] = None
    status: Optional[CourseStatusEnum] = None
    tutor_id: Optional[int] = None
    total_duration: Optional[str] = None
    completion_xp_bonus: Optional[int] = Field(default=None, ge=0)
    reward_avatar_id: Optional[int] = None
    packages: Optional[List[CoursePackageCreate]] = None

    @field_validator("packages")
    @classmethod
    def check_unique_tiers(cls, v):
        return _unique_tiers(v)


class Course(CourseBase):
    model_config = ConfigDict(from_attributes=True)

    id: int
    enrolled_students: int
    total_chapters: int
    packages: List[CoursePackage] = []
    created_at: Optional[datetime] = None


class MaterialBase(BaseModel):
    title: str
    description: Optional[str] = None
    type: MaterialTypeEnum = MaterialTypeEnum.VIDEO
    url: Optional[str] = None
    min_package_tier: PackageTierEnum = PackageTierEnum.BASIC
    position: int = 0


class MaterialCreate(MaterialBase):
    pass


class MaterialUpdate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    type: Optional[MaterialTypeEnum] = None
    url: Optional[str] = None
    min_package_tier: Optional[PackageTierEnum] = None
    position: Optional[int] = None


class Material(MaterialBase):
    model_config = ConfigDict(from_attributes=True)

    id: int
    chapter_id: int


class ChapterBase(BaseModel):
    title: str
    description: Optional[str] = None
    position: int = 0
    is_free: bool = False
    xp_reward: int = Field(default=10, ge=0)


class ChapterCreate(ChapterBase):
    pass


class ChapterUpdate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    position: Optional[int] = None
    is_free: Optional[bool] = None
    xp_reward: Optional[int] = Field(default=None, ge=0)


class Chapter(ChapterBase):
    model_config = ConfigDict(from_attributes=True)

    id: int
    course_id: int
    materials: List[Material] = []


class CourseDetail(Course):
    chapters: List[Chapter] = []
