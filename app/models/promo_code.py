from sqlalchemy import (
    Boolean, CheckConstraint, Column, Integer, String, DateTime, ForeignKey, Enum, JSON, Numeric, Table
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.core.database import Base
from app.core.constants import DiscountTypeEnum

promo_code_courses = Table(
    "promo_code_courses",
    Base.metadata,
    Column("promo_code_id", Integer, ForeignKey("promo_codes.id", ondelete="CASCADE"), primary_key=True),
    Column("course_id", Integer, ForeignKey("courses.id", ondelete="CASCADE"), primary_key=True),
)

class PromoCode(Base):
    __tablename__ = "promo_codes"
    __table_args__ = (
        CheckConstraint("discount_value >= 0", name="ck_promo_codes_discount_non_negative"),
        CheckConstraint("used_count >= 0", name="ck_promo_codes_used_count_non_negative"),
    )

    id = Column(Integer, primary_key=True, index=True)
    # Stored upper-cased so lookups are case-insensitive
    code = Column(String, unique=True, index=True, nullable=False)
    discount_type = Column(Enum(DiscountTypeEnum), nullable=False)
    discount_value = Column(Numeric(10, 2), nullable=False)
    valid_from = Column(DateTime, nullable=False)
    valid_until = Column(DateTime, nullable=False)
    usage_limit = Column(Integer, nullable=True)
    used_count = Column(Integer, nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)
    applicable_packages = Column(JSON, nullable=False, default=list)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    applicable_courses = relationship("Course", secondary=promo_code_courses)

    @property
    def applicable_course_ids(self):
        return [course.id for course in self.applicable_courses]
