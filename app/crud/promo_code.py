from typing import List, Optional
from sqlalchemy import or_
from sqlalchemy.orm import Session, selectinload

from app.crud.base import CRUDBase
from app.models.course import Course
from app.models.promo_code import PromoCode
from app.schemas.promo_code import PromoCodeCreate


class CRUDPromoCode(CRUDBase[PromoCode, PromoCodeCreate, PromoCodeCreate]):

    def get_by_code(self, db: Session, *, code: str) -> Optional[PromoCode]:
        return (
            db.query(PromoCode)
            .options(selectinload(PromoCode.applicable_courses))
            .filter(PromoCode.code == code.strip().upper())
            .first()
        )

    def get_multi_newest_first(self, db: Session, *, skip: int = 0, limit: int = 100) -> List[PromoCode]:
        return (
            db.query(PromoCode)
            .options(selectinload(PromoCode.applicable_courses))
            .order_by(PromoCode.created_at.desc(), PromoCode.id.desc())
            .offset(skip)
            .limit(limit)
            .all()
        )

    def create_with_courses(self, db: Session, *, obj_in: PromoCodeCreate, courses: List[Course], **overrides) -> PromoCode:
        data = obj_in.model_dump(exclude={"applicable_courses"})
        data["applicable_packages"] = [p.value for p in obj_in.applicable_packages]
        data.update(overrides)
        promo = PromoCode(**data)
        promo.applicable_courses = courses
        db.add(promo)
        db.flush()
        db.refresh(promo)
        return promo

    def increment_usage(self, db: Session, *, promo_code_id: int) -> bool:
        """Count one use unless the code is inactive or at its limit. False when nothing was counted."""
        updated = (
            db.query(PromoCode)
            .filter(
                PromoCode.id == promo_code_id,
                PromoCode.is_active.is_(True),
                or_(PromoCode.usage_limit.is_(None), PromoCode.used_count < PromoCode.usage_limit),
            )
            .update({PromoCode.used_count: PromoCode.used_count + 1}, synchronize_session=False)
        )
        return updated == 1

promo_code = CRUDPromoCode(PromoCode)
