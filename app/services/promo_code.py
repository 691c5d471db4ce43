import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from sqlalchemy.orm import Session

from app.core.constants import DiscountTypeEnum, PromoRejectionReasonEnum
from app.core.exceptions import ConflictError, InvalidPackageError, NotFoundError, PromoCodeRejectedError
from app.crud.course import course as crud_course
from app.crud.promo_code import promo_code as crud_promo_code
from app.models.promo_code import PromoCode
from app.schemas.promo_code import PromoCodeCreate, PromoCodeValidateRequest, PromoCodeValidation
from app.utils.dates import end_of_day, to_naive_utc, utcnow
from app.utils.money import to_money

logger = logging.getLogger(__name__)


@dataclass
class PromoEvaluation:
    """Result of pricing a code; ``reason`` is only set when ``valid`` is False."""
    valid: bool
    base_price: Decimal
    final_price: Decimal
    discount_amount: Decimal = Decimal("0.00")
    reason: Optional[PromoRejectionReasonEnum] = None
    promo_code: Optional[PromoCode] = None


class PromoCodeService:

    def rejection_reason(
        self,
        promo: Optional[PromoCode],
        *,
        course_id: Optional[int] = None,
        package_tier: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> Optional[PromoRejectionReasonEnum]:
        """First failing rule for ``promo``, or None when it can be applied.

        Course and package restrictions are only checked when the caller
        supplies a course or package.
        """
        now = now or utcnow()
        if promo is None:
            return PromoRejectionReasonEnum.NOT_FOUND
        if not promo.is_active:
            return PromoRejectionReasonEnum.INACTIVE
        if now < promo.valid_from:
            return PromoRejectionReasonEnum.NOT_YET_VALID
        if now > promo.valid_until:
            return PromoRejectionReasonEnum.EXPIRED
        if promo.usage_limit is not None and promo.used_count >= promo.usage_limit:
            return PromoRejectionReasonEnum.LIMIT_REACHED
        if course_id is not None and promo.applicable_courses:
            if course_id not in promo.applicable_course_ids:
                return PromoRejectionReasonEnum.COURSE_NOT_APPLICABLE
        if package_tier is not None and promo.applicable_packages:
            if package_tier not in promo.applicable_packages:
                return PromoRejectionReasonEnum.PACKAGE_NOT_APPLICABLE
        return None

    def discount_for(self, promo: PromoCode, base_price: Decimal) -> Decimal:
        # A percentage above 100 or a fixed amount above the price is floored by the caller
        if promo.discount_type == DiscountTypeEnum.PERCENTAGE:
            return to_money(Decimal(base_price) * Decimal(promo.discount_value) / Decimal(100))
        return to_money(promo.discount_value)

    def evaluate(
        self,
        db: Session,
        *,
        code: str,
        course_id: int,
        package_tier: str,
        base_price: Decimal,
        now: Optional[datetime] = None,
    ) -> PromoEvaluation:
        """Price ``base_price`` with ``code``. Never touches ``used_count``."""
        base_price = to_money(base_price)
        promo = crud_promo_code.get_by_code(db, code=code)
        reason = self.rejection_reason(promo, course_id=course_id, package_tier=package_tier, now=now)
        if reason is not None:
            logger.info(f"Promo code {code!r} rejected for course {course_id}: {reason.value}")
            return PromoEvaluation(valid=False, base_price=base_price, final_price=base_price, reason=reason)

        discount = self.discount_for(promo, base_price)
        final_price = max(Decimal("0.00"), base_price - discount)
        return PromoEvaluation(
            valid=True,
            base_price=base_price,
            final_price=to_money(final_price),
            discount_amount=discount,
            promo_code=promo,
        )

    def record_usage(self, db: Session, *, promo_code_id: int) -> bool:
        """Claim one use of the code for the current transaction.

        The check and the increment are a single conditional UPDATE, so two
        enrollments racing for the last use cannot both succeed.
        """
        claimed = crud_promo_code.increment_usage(db, promo_code_id=promo_code_id)
        if not claimed:
            logger.info(f"Promo code {promo_code_id} could not be claimed: inactive or usage limit reached")
        return claimed

    def validate_promo_code(self, db: Session, *, request: PromoCodeValidateRequest) -> PromoCodeValidation:
        promo = crud_promo_code.get_by_code(db, code=request.code)
        reason = self.rejection_reason(promo, course_id=request.course_id, package_tier=request.package_tier)
        if reason is not None:
            raise PromoCodeRejectedError(reason)

        result = PromoCodeValidation(
            valid=True,
            code=promo.code,
            discount_type=promo.discount_type,
            discount_value=promo.discount_value,
        )
        if request.course_id is not None and request.package_tier is not None:
            course = crud_course.get_with_content(db, id=request.course_id)
            if not course:
                raise NotFoundError("Course")
            package = course.get_package(request.package_tier)
            if package is None:
                raise InvalidPackageError(request.package_tier.value)
            base_price = to_money(package.price)
            discount = self.discount_for(promo, base_price)
            result.base_price = base_price
            result.discount_amount = discount
            result.final_price = to_money(max(Decimal("0.00"), base_price - discount))
        return result

    def create_promo_code(self, db: Session, *, obj_in: PromoCodeCreate) -> PromoCode:
        if crud_promo_code.get_by_code(db, code=obj_in.code):
            raise ConflictError("Promo code already exists")

        courses = []
        for course_id in dict.fromkeys(obj_in.applicable_courses):
            course = crud_course.get(db, id=course_id)
            if not course:
                raise NotFoundError("Course", f"Course {course_id} not found")
            courses.append(course)

        promo = crud_promo_code.create_with_courses(
            db,
            obj_in=obj_in,
            courses=courses,
            valid_from=to_naive_utc(obj_in.valid_from),
            valid_until=end_of_day(obj_in.valid_until),
        )
        logger.info(f"Promo code {promo.code} created")
        return promo

    def list_promo_codes(self, db: Session, *, skip: int = 0, limit: int = 100) -> List[PromoCode]:
        return crud_promo_code.get_multi_newest_first(db, skip=skip, limit=limit)

    def toggle_promo_code(self, db: Session, *, promo_code_id: int) -> PromoCode:
        promo = crud_promo_code.get_for_update(db, id=promo_code_id)
        if not promo:
            raise NotFoundError("Promo code")
        promo.is_active = not promo.is_active
        db.flush()
        return promo

promo_code_service = PromoCodeService()
