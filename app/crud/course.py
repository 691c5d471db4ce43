from typing import List, Optional, Sequence
from sqlalchemy import func
from sqlalchemy.orm import Session, selectinload

from app.core.constants import ENROLLED_STATUSES
from app.crud.base import CRUDBase
from app.models.chapter import Chapter
from app.models.course import Course, CoursePackage
from app.models.course_enrollment import CourseEnrollment
from app.schemas.course import CourseCreate, CourseUpdate


class CRUDCourse(CRUDBase[Course, CourseCreate, CourseUpdate]):

    def _query_with_content(self, db: Session):
        return db.query(Course).options(
            selectinload(Course.packages),
            selectinload(Course.chapters).selectinload(Chapter.materials),
        )

    def get_with_content(self, db: Session, id: int) -> Optional[Course]:
        return self._query_with_content(db).filter(Course.id == id).first()

    def get_multi_by_status(self, db: Session, *, statuses: Sequence, skip: int = 0, limit: int = 100) -> List[Course]:
        return (
            db.query(Course)
            .options(selectinload(Course.packages))
            .filter(Course.status.in_(statuses))
            .order_by(Course.created_at.desc(), Course.id.desc())
            .offset(skip)
            .limit(limit)
            .all()
        )

    def get_by_reward_avatar(self, db: Session, *, avatar_id: int) -> Optional[Course]:
        return db.query(Course).filter(Course.reward_avatar_id == avatar_id).first()

    def create_with_packages(self, db: Session, *, obj_in: CourseCreate) -> Course:
        data = obj_in.model_dump(exclude={"packages"})
        course = Course(**data)
        course.packages = [CoursePackage(**p.model_dump()) for p in obj_in.packages]
        db.add(course)
        db.flush()
        db.refresh(course)
        return course

    def replace_packages(self, db: Session, *, course: Course, packages) -> Course:
        existing = {p.tier: p for p in course.packages}
        wanted = {p.tier for p in packages}
        for package in packages:
            current = existing.get(package.tier)
            if current:
                current.price = package.price
                current.features = package.features
            else:
                course.packages.append(CoursePackage(**package.model_dump()))
        for tier, current in existing.items():
            if tier not in wanted:
                course.packages.remove(current)
        db.flush()
        return course

    def refresh_enrolled_students(self, db: Session, *, course_id: int) -> int:
        """Recount active/completed enrollments and store the result on the course."""
        count = (
            db.query(func.count(CourseEnrollment.id))
            .filter(
                CourseEnrollment.course_id == course_id,
                CourseEnrollment.status.in_(ENROLLED_STATUSES),
            )
            .scalar()
        )
        db.query(Course).filter(Course.id == course_id).update(
            {Course.enrolled_students: count}, synchronize_session=False
        )
        course = db.get(Course, course_id)
        if course is not None:
            db.refresh(course, attribute_names=["enrolled_students"])
        return count

course = CRUDCourse(Course)
