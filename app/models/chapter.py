from sqlalchemy import CheckConstraint, Column, Integer, String, DateTime, ForeignKey, Enum, Boolean, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.core.database import Base
from app.core.constants import MaterialTypeEnum, PackageTierEnum

class Chapter(Base):
    __tablename__ = "chapters"
    __table_args__ = (
        CheckConstraint("xp_reward >= 0", name="ck_chapters_xp_reward_non_negative"),
    )

    id = Column(Integer, primary_key=True, index=True)
    course_id = Column(Integer, ForeignKey("courses.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    position = Column(Integer, nullable=False, default=0)
    is_free = Column(Boolean, nullable=False, default=False)
    xp_reward = Column(Integer, nullable=False, default=10)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    course = relationship("Course", back_populates="chapters")
    materials = relationship(
        "Material", back_populates="chapter", cascade="all, delete-orphan", order_by="Material.position"
    )
    completed_by = relationship(
        "CourseEnrollment", secondary="enrollment_completed_chapters", back_populates="completed_chapters"
    )
    claimed_by = relationship(
        "CourseEnrollment", secondary="enrollment_claimed_chapters", back_populates="claimed_chapters"
    )


class Material(Base):
    __tablename__ = "materials"

    id = Column(Integer, primary_key=True, index=True)
    chapter_id = Column(Integer, ForeignKey("chapters.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    type = Column(Enum(MaterialTypeEnum), nullable=False, default=MaterialTypeEnum.VIDEO)
    url = Column(String, nullable=True)
    min_package_tier = Column(Enum(PackageTierEnum), nullable=False, default=PackageTierEnum.BASIC)
    position = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    chapter = relationship("Chapter", back_populates="materials")
    completed_by = relationship(
        "CourseEnrollment", secondary="enrollment_completed_materials", back_populates="completed_materials"
    )
