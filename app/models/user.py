from sqlalchemy import Boolean, CheckConstraint, Column, String, Integer, DateTime, Text, Enum
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.core.database import Base
from app.core.constants import RoleEnum

class User(Base):
    """Gamification profile of an account owned by the identity provider."""
    __tablename__ = "users"
    __table_args__ = (
        CheckConstraint("xp_points >= 0", name="ck_users_xp_points_non_negative"),
        CheckConstraint("level >= 1", name="ck_users_level_positive"),
        CheckConstraint("avatar_unlock_tokens >= 0", name="ck_users_tokens_non_negative"),
    )

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String, unique=True, index=True, nullable=False)
    email = Column(String, unique=True, index=True, nullable=False)
    first_name = Column(String, nullable=True)
    last_name = Column(String, nullable=True)
    bio = Column(Text, nullable=True)
    role = Column(Enum(RoleEnum), nullable=False, default=RoleEnum.STUDENT)
    is_active = Column(Boolean(), default=True, nullable=False)

    xp_points = Column(Integer, nullable=False, default=0)
    level = Column(Integer, nullable=False, default=1)
    avatar_unlock_tokens = Column(Integer, nullable=False, default=0)
    current_avatar_url = Column(String, nullable=True)

    # Privacy settings for the public profile
    show_avatars = Column(Boolean(), nullable=False, default=True)
    show_courses = Column(Boolean(), nullable=False, default=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    course_enrollments = relationship("CourseEnrollment", back_populates="user")
    unlocked_avatars = relationship("UserAvatar", back_populates="user", cascade="all, delete-orphan")
    notifications = relationship("Notification", back_populates="user", cascade="all, delete-orphan")

    @property
    def display_name(self) -> str:
        return self.first_name or self.username
