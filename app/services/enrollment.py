import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import List, Optional, Tuple

from sqlalchemy import exc
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.database import after_commit, after_rollback
from app.core.constants import (
    ENROLLED_STATUSES, FREE_ENROLLMENT_RECEIPT, EnrollmentStatusEnum, NotificationTypeEnum, PackageTierEnum
)
from app.core.exceptions import (
    AlreadyEnrolledError, InvalidPackageError, InvalidStatusTransitionError, NotEnrolledError, NotFoundError,
    ReceiptRequiredError
)
from app.crud.course import course as crud_course
from app.crud.course_enrollment import course_enrollment as crud_enrollment
from app.models.course import Course
from app.models.course_enrollment import CourseEnrollment
from app.models.promo_code import PromoCode
from app.models.user import User
from app.schemas.course import Chapter as ChapterSchema, Material as MaterialSchema
from app.schemas.course_enrollment import (
    CourseEnrollment as CourseEnrollmentSchema, EnrollmentCheck, SecureCourseContent, SecureCourseInfo
)
from app.services.course_progress import course_progress_service
from app.services.email import EmailService
from app.services.notification import notification_service
from app.services.promo_code import promo_code_service
from app.services.storage import UploadedFile, storage_service
from app.utils.money import to_money
from app.utils.package_access import materials_visible_to

logger = logging.getLogger(__name__)


@dataclass
class EnrollmentQuote:
    package: PackageTierEnum
    base_price: Decimal
    final_price: Decimal
    promo_code: Optional[PromoCode] = None

    @property
    def is_free(self) -> bool:
        return self.final_price == 0

    @property
    def initial_status(self) -> EnrollmentStatusEnum:
        return EnrollmentStatusEnum.ACTIVE if self.is_free else EnrollmentStatusEnum.PENDING


class EnrollmentService:

    def _get_course_or_raise(self, db: Session, course_id: int) -> Course:
        course = crud_course.get_with_content(db, id=course_id)
        if not course:
            raise NotFoundError("Course")
        return course

    def _can_renew(self, enrollment: CourseEnrollment, package: PackageTierEnum) -> bool:
        if enrollment.status in (EnrollmentStatusEnum.REJECTED, EnrollmentStatusEnum.PENDING):
            return True
        return enrollment.package != package

    def quote(self, db: Session, *, course: Course, package_tier: str, promo_code: Optional[str]) -> EnrollmentQuote:
        """Price a package, applying ``promo_code`` when it is valid.

        Codes that fail evaluation are ignored and the full price is charged.
        """
        try:
            package = PackageTierEnum(package_tier)
        except ValueError:
            raise InvalidPackageError(package_tier)
        course_package = course.get_package(package)
        if course_package is None:
            raise InvalidPackageError(package_tier)

        base_price = to_money(course_package.price)
        quote = EnrollmentQuote(package=package, base_price=base_price, final_price=base_price)
        if promo_code and promo_code.strip():
            evaluation = promo_code_service.evaluate(
                db, code=promo_code, course_id=course.id, package_tier=package, base_price=base_price
            )
            if evaluation.valid:
                quote.final_price = evaluation.final_price
                quote.promo_code = evaluation.promo_code
        return quote

    def _apply(self, enrollment: CourseEnrollment, quote: EnrollmentQuote, receipt_url: str) -> None:
        enrollment.package = quote.package
        enrollment.amount_paid = quote.final_price
        enrollment.status = quote.initial_status
        enrollment.receipt_url = receipt_url
        enrollment.rejection_reason = None
        enrollment.promo_code = quote.promo_code.code if quote.promo_code else None
        enrollment.promo_code_id = quote.promo_code.id if quote.promo_code else None

    def _create(self, db: Session, *, user_id: int, course_id: int, quote: EnrollmentQuote, receipt_url: str):
        enrollment = CourseEnrollment(user_id=user_id, course_id=course_id, progress=0)
        self._apply(enrollment, quote, receipt_url)
        try:
            with db.begin_nested():
                db.add(enrollment)
                db.flush()
        except exc.IntegrityError:
            # Lost a race with a concurrent enroll for the same (user, course)
            logger.warning(f"Concurrent enrollment detected for user {user_id} course {course_id}")
            return None
        return enrollment

    def enroll(
        self,
        db: Session,
        *,
        course_id: int,
        package_tier: str,
        current_user: User,
        promo_code: Optional[str] = None,
        receipt: Optional[UploadedFile] = None,
    ) -> Tuple[CourseEnrollment, bool]:
        """Create or renew the caller's enrollment. Returns ``(enrollment, created)``.

        A valid promo code is claimed before anything is written. When the
        claim fails (another enrollment took the last use since the code was
        evaluated) the package is re-priced without it.
        """
        course = self._get_course_or_raise(db, course_id)
        quote = self.quote(db, course=course, package_tier=package_tier, promo_code=promo_code)
        if quote.promo_code is not None:
            if not promo_code_service.record_usage(db, promo_code_id=quote.promo_code.id):
                quote = self.quote(db, course=course, package_tier=package_tier, promo_code=None)

        if not quote.is_free and receipt is None:
            raise ReceiptRequiredError()

        existing = crud_enrollment.get_by_user_and_course_for_update(db, current_user.id, course.id)
        if existing and not self._can_renew(existing, quote.package):
            raise AlreadyEnrolledError(f"You are already active on the {existing.package.value} package.")

        receipt_url = FREE_ENROLLMENT_RECEIPT
        if not quote.is_free:
            receipt_url = storage_service.upload_file(
                receipt.content, receipt.filename, receipt.content_type, folder=f"receipts/{course.id}"
            )
            after_rollback(db, storage_service.delete_file, receipt_url)

        created = False
        enrollment = existing
        if enrollment is None:
            enrollment = self._create(
                db, user_id=current_user.id, course_id=course.id, quote=quote, receipt_url=receipt_url
            )
            created = enrollment is not None
        if enrollment is None:
            enrollment = crud_enrollment.get_by_user_and_course_for_update(db, current_user.id, course.id)
            if not self._can_renew(enrollment, quote.package):
                raise AlreadyEnrolledError(f"You are already active on the {enrollment.package.value} package.")

        if not created:
            previous_receipt = enrollment.receipt_url
            self._apply(enrollment, quote, receipt_url)
            db.flush()
            if previous_receipt and previous_receipt not in (FREE_ENROLLMENT_RECEIPT, receipt_url):
                after_commit(db, storage_service.delete_file, previous_receipt)
            # Tier may have changed, so visible materials and progress may too
            course_progress_service.recalculate(db, enrollment)

        crud_course.refresh_enrolled_students(db, course_id=course.id)
        db.refresh(enrollment)
        logger.info(
            f"User {current_user.id} {'enrolled in' if created else 're-enrolled in'} course {course.id} "
            f"({quote.package.value}, paid {quote.final_price}, status {enrollment.status.value})"
        )
        return enrollment, created

    def _get_enrollment_or_raise(self, db: Session, enrollment_id: int) -> CourseEnrollment:
        enrollment = crud_enrollment.get(db, id=enrollment_id)
        if not enrollment:
            raise NotFoundError("Enrollment")
        return enrollment

    def approve_enrollment(self, db: Session, *, enrollment_id: int) -> CourseEnrollment:
        enrollment = self._get_enrollment_or_raise(db, enrollment_id)
        if not crud_enrollment.transition_status(
            db,
            enrollment_id=enrollment_id,
            from_status=EnrollmentStatusEnum.PENDING,
            to_status=EnrollmentStatusEnum.ACTIVE,
            rejection_reason=None,
        ):
            raise InvalidStatusTransitionError("Only pending enrollments can be approved.")

        enrollment = crud_enrollment.get_for_update(db, id=enrollment_id)
        course_progress_service.recalculate(db, enrollment)
        crud_course.refresh_enrolled_students(db, course_id=enrollment.course_id)

        user, course = enrollment.user, enrollment.course
        notification_service.create_notification(
            db,
            user_id=user.id,
            title="Enrollment Approved",
            message=f"Your enrollment for {course.title} has been approved!",
            type=NotificationTypeEnum.SUCCESS,
            link=f"/courses/{course.id}/learn",
        )
        after_commit(db, EmailService.send_enrollment_approved_email, user.email, user.display_name, course.title)
        logger.info(f"Enrollment {enrollment_id} approved")
        return enrollment

    def reject_enrollment(self, db: Session, *, enrollment_id: int, reason: Optional[str] = None) -> CourseEnrollment:
        enrollment = self._get_enrollment_or_raise(db, enrollment_id)
        reason = (reason or "").strip() or settings.DEFAULT_REJECTION_REASON
        if not crud_enrollment.transition_status(
            db,
            enrollment_id=enrollment_id,
            from_status=EnrollmentStatusEnum.PENDING,
            to_status=EnrollmentStatusEnum.REJECTED,
            rejection_reason=reason,
        ):
            raise InvalidStatusTransitionError("Only pending enrollments can be rejected.")

        enrollment = crud_enrollment.get_for_update(db, id=enrollment_id)
        crud_course.refresh_enrolled_students(db, course_id=enrollment.course_id)

        user, course = enrollment.user, enrollment.course
        notification_service.create_notification(
            db,
            user_id=user.id,
            title="Enrollment Rejected",
            message=f"Enrollment for {course.title} rejected. Reason: {reason}",
            type=NotificationTypeEnum.ERROR,
            link=f"/courses/{course.id}",
        )
        after_commit(
            db, EmailService.send_enrollment_rejected_email, user.email, user.display_name, course.title, reason
        )
        logger.info(f"Enrollment {enrollment_id} rejected: {reason}")
        return enrollment

    def get_secure_content(self, db: Session, *, course_id: int, current_user: User) -> SecureCourseContent:
        course = self._get_course_or_raise(db, course_id)
        enrollment = crud_enrollment.get_by_user_and_course(db, current_user.id, course_id)
        if not enrollment or enrollment.status not in ENROLLED_STATUSES:
            raise NotEnrolledError()

        chapters = []
        for chapter in course.chapters:
            visible = materials_visible_to(chapter.materials, enrollment.package)
            chapters.append(
                ChapterSchema.model_validate(chapter).model_copy(
                    update={"materials": [MaterialSchema.model_validate(m) for m in visible]}
                )
            )
        return SecureCourseContent(
            course=SecureCourseInfo.model_validate(course),
            chapters=chapters,
            user_progress=CourseEnrollmentSchema.model_validate(enrollment),
        )

    def check_enrollment(self, db: Session, *, course_id: int, current_user: User) -> EnrollmentCheck:
        enrollment = crud_enrollment.get_by_user_and_course(db, current_user.id, course_id)
        return EnrollmentCheck(
            is_enrolled=enrollment is not None,
            enrollment=CourseEnrollmentSchema.model_validate(enrollment) if enrollment else None,
        )

    def get_my_enrollments(self, db: Session, *, current_user: User) -> List[CourseEnrollment]:
        return crud_enrollment.get_by_user(db, current_user.id)

enrollment_service = EnrollmentService()
