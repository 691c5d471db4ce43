from sqlalchemy import (
    Boolean, CheckConstraint, Column, Integer, String, ForeignKey, DateTime, Enum as SQLEnum, Numeric, Table,
    UniqueConstraint, func
)
from sqlalchemy.orm import relationship
from app.core.database import Base
from app.core.constants import EnrollmentStatusEnum, PackageTierEnum

enrollment_completed_materials = Table(
    "enrollment_completed_materials",
    Base.metadata,
    Column("enrollment_id", Integer, ForeignKey("course_enrollments.id", ondelete="CASCADE"), primary_key=True),
    Column("material_id", Integer, ForeignKey("materials.id", ondelete="CASCADE"), primary_key=True),
)

enrollment_completed_chapters = Table(
    "enrollment_completed_chapters",
    Base.metadata,
    Column("enrollment_id", Integer, ForeignKey("course_enrollments.id", ondelete="CASCADE"), primary_key=True),
    Column("chapter_id", Integer, ForeignKey("chapters.id", ondelete="CASCADE"), primary_key=True),
)

# One row per granted chapter reward; the composite key makes a second grant impossible
enrollment_claimed_chapters = Table(
    "enrollment_claimed_chapters",
    Base.metadata,
    Column("enrollment_id", Integer, ForeignKey("course_enrollments.id", ondelete="CASCADE"), primary_key=True),
    Column("chapter_id", Integer, ForeignKey("chapters.id", ondelete="CASCADE"), primary_key=True),
    Column("claimed_at", DateTime(timezone=True), server_default=func.now()),
)

class CourseEnrollment(Base):
    __tablename__ = "course_enrollments"
    __table_args__ = (
        UniqueConstraint("user_id", "course_id", name="uq_course_enrollments_user_course"),
        CheckConstraint("amount_paid >= 0", name="ck_course_enrollments_amount_non_negative"),
        CheckConstraint("progress >= 0 AND progress <= 100", name="ck_course_enrollments_progress_range"),
    )

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    course_id = Column(Integer, ForeignKey("courses.id"), nullable=False, index=True)
    package = Column(SQLEnum(PackageTierEnum), nullable=False, default=PackageTierEnum.BASIC)
    status = Column(SQLEnum(EnrollmentStatusEnum), nullable=False, default=EnrollmentStatusEnum.PENDING)
    amount_paid = Column(Numeric(10, 2), nullable=False, default=0)
    progress = Column(Integer, nullable=False, default=0)
    is_course_reward_claimed = Column(Boolean, nullable=False, default=False)
    receipt_url = Column(String, nullable=True)
    promo_code = Column(String, nullable=True)
    promo_code_id = Column(Integer, ForeignKey("promo_codes.id", ondelete="SET NULL"), nullable=True)
    rejection_reason = Column(String, nullable=True)
    last_accessed_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=True)

    user = relationship("User", back_populates="course_enrollments")
    course = relationship("Course", back_populates="enrollments")
    completed_materials = relationship(
        "Material", secondary=enrollment_completed_materials, collection_class=set,
        back_populates="completed_by"
    )
    completed_chapters = relationship(
        "Chapter", secondary=enrollment_completed_chapters, collection_class=set,
        back_populates="completed_by"
    )
    claimed_chapters = relationship(
        "Chapter", secondary=enrollment_claimed_chapters, collection_class=set,
        back_populates="claimed_by"
    )

    @property
    def completed_material_ids(self):
        return sorted(m.id for m in self.completed_materials)

    @property
    def completed_chapter_ids(self):
        return sorted(c.id for c in self.completed_chapters)

    @property
    def claimed_chapter_ids(self):
        return sorted(c.id for c in self.claimed_chapters)
