from sqlalchemy import exc
from sqlalchemy.orm import Session, selectinload
from typing import List, Optional

from app.core.constants import EnrollmentStatusEnum
from app.crud.base import CRUDBase
from app.models.course_enrollment import CourseEnrollment, enrollment_claimed_chapters
from app.schemas.course_enrollment import CourseEnrollment as CourseEnrollmentSchema

class CRUDCourseEnrollment(CRUDBase[CourseEnrollment, CourseEnrollmentSchema, CourseEnrollmentSchema]):

    def _query_with_relationships(self, db: Session):
        return db.query(CourseEnrollment).options(
            selectinload(CourseEnrollment.completed_materials),
            selectinload(CourseEnrollment.completed_chapters),
            selectinload(CourseEnrollment.claimed_chapters),
        )

    def get_by_user_and_course(self, db: Session, user_id: int, course_id: int) -> Optional[CourseEnrollment]:
        return (
            self._query_with_relationships(db)
            .filter(CourseEnrollment.user_id == user_id)
            .filter(CourseEnrollment.course_id == course_id)
            .first()
        )

    def get_by_user_and_course_for_update(self, db: Session, user_id: int, course_id: int) -> Optional[CourseEnrollment]:
        return (
            db.query(CourseEnrollment)
            .filter(CourseEnrollment.user_id == user_id)
            .filter(CourseEnrollment.course_id == course_id)
            .with_for_update()
            .populate_existing()
            .first()
        )

    def get_by_user(self, db: Session, user_id: int, skip: int = 0, limit: int = 100) -> List[CourseEnrollment]:
        return (
            self._query_with_relationships(db)
            .options(selectinload(CourseEnrollment.course))
            .filter(CourseEnrollment.user_id == user_id)
            .order_by(CourseEnrollment.updated_at.desc(), CourseEnrollment.id.desc())
            .offset(skip)
            .limit(limit)
            .all()
        )

    def get_by_user_and_statuses(self, db: Session, user_id: int, statuses) -> List[CourseEnrollment]:
        return (
            db.query(CourseEnrollment)
            .options(selectinload(CourseEnrollment.course))
            .filter(CourseEnrollment.user_id == user_id, CourseEnrollment.status.in_(statuses))
            .order_by(CourseEnrollment.last_accessed_at.desc(), CourseEnrollment.id.desc())
            .all()
        )

    def get_course_ids(self, db: Session, course_id: int) -> List[int]:
        rows = db.query(CourseEnrollment.id).filter(CourseEnrollment.course_id == course_id).all()
        return [row.id for row in rows]

    def exists_for_course(self, db: Session, course_id: int) -> bool:
        return db.query(CourseEnrollment.id).filter(CourseEnrollment.course_id == course_id).first() is not None

    def transition_status(
        self,
        db: Session,
        *,
        enrollment_id: int,
        from_status: EnrollmentStatusEnum,
        to_status: EnrollmentStatusEnum,
        **values,
    ) -> bool:
        """Move an enrollment between statuses only if it is still in ``from_status``."""
        updated = (
            db.query(CourseEnrollment)
            .filter(CourseEnrollment.id == enrollment_id, CourseEnrollment.status == from_status)
            .update({"status": to_status, **values}, synchronize_session=False)
        )
        return updated == 1

    def mark_course_reward_claimed(self, db: Session, *, enrollment_id: int) -> bool:
        """Flip the course reward flag if the course is finished and the flag is still unset."""
        updated = (
            db.query(CourseEnrollment)
            .filter(
                CourseEnrollment.id == enrollment_id,
                CourseEnrollment.progress == 100,
                CourseEnrollment.is_course_reward_claimed == False,
            )
            .update({"is_course_reward_claimed": True}, synchronize_session=False)
        )
        return updated == 1

    def add_claimed_chapter(self, db: Session, *, enrollment: CourseEnrollment, chapter_id: int) -> bool:
        """Insert the claim row. False when the (enrollment, chapter) pair was already claimed."""
        try:
            with db.begin_nested():
                db.execute(
                    enrollment_claimed_chapters.insert().values(enrollment_id=enrollment.id, chapter_id=chapter_id)
                )
        except exc.IntegrityError:
            return False
        finally:
            db.expire(enrollment, ["claimed_chapters"])
        return True

course_enrollment = CRUDCourseEnrollment(CourseEnrollment)
