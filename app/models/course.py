from sqlalchemy import (
    CheckConstraint, Column, Integer, String, DateTime, ForeignKey, Enum, JSON, Numeric, Text, UniqueConstraint
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.core.database import Base
from app.core.constants import CourseLevelEnum, CourseStatusEnum, PackageTierEnum

class Course(Base):
    __tablename__ = "courses"
    __table_args__ = (
        CheckConstraint("completion_xp_bonus >= 0", name="ck_courses_completion_xp_non_negative"),
    )

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String, index=True, nullable=False)
    description = Column(Text, nullable=True)
    thumbnail_url = Column(String, nullable=True)
    category = Column(String, nullable=True)
    level = Column(Enum(CourseLevelEnum), nullable=False, default=CourseLevelEnum.BEGINNER)
    status = Column(Enum(CourseStatusEnum), nullable=False, default=CourseStatusEnum.ONGOING)
    tutor_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    total_duration = Column(String, nullable=True)
    completion_xp_bonus = Column(Integer, nullable=False, default=100)
    reward_avatar_id = Column(Integer, ForeignKey("avatars.id", ondelete="SET NULL"), nullable=True)
    # Derived from enrollments; refreshed by count, never incremented in place
    enrolled_students = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    tutor = relationship("User")
    reward_avatar = relationship("Avatar")
    packages = relationship("CoursePackage", back_populates="course", cascade="all, delete-orphan")
    chapters = relationship(
        "Chapter", back_populates="course", cascade="all, delete-orphan", order_by="Chapter.position"
    )
    enrollments = relationship("CourseEnrollment", back_populates="course")

    def get_package(self, tier):
        for package in self.packages:
            if package.tier == tier:
                return package
        return None

    @property
    def total_chapters(self) -> int:
        return len(self.chapters)


class CoursePackage(Base):
    __tablename__ = "course_packages"
    __table_args__ = (
        UniqueConstraint("course_id", "tier", name="uq_course_packages_course_tier"),
        CheckConstraint("price >= 0", name="ck_course_packages_price_non_negative"),
    )

    id = Column(Integer, primary_key=True, index=True)
    course_id = Column(Integer, ForeignKey("courses.id", ondelete="CASCADE"), nullable=False)
    tier = Column(Enum(PackageTierEnum), nullable=False)
    price = Column(Numeric(10, 2), nullable=False, default=0)
    features = Column(JSON, nullable=False, default=list)

    course = relationship("Course", back_populates="packages")
