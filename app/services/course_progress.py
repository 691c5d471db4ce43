import logging
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Set

from sqlalchemy.orm import Session

from app.core.constants import EnrollmentStatusEnum
from app.core.exceptions import ForbiddenError, NotFoundError
from app.crud.chapter import chapter as crud_chapter, material as crud_material
from app.crud.course_enrollment import course_enrollment as crud_enrollment
from app.models.course_enrollment import CourseEnrollment
from app.models.user import User
from app.schemas.course_enrollment import MaterialToggleResult
from app.utils.dates import utcnow
from app.utils.package_access import materials_visible_to

logger = logging.getLogger(__name__)


@dataclass
class ProgressSnapshot:
    total_accessible: int
    completed_accessible: int
    progress: int
    completed_chapters: List = field(default_factory=list)


def round_half_up_percent(part: int, whole: int) -> int:
    if whole == 0:
        return 0
    return (200 * part + whole) // (2 * whole)


def compute_progress(chapters: Iterable, package_tier: Optional[str], completed_material_ids: Set[int]) -> ProgressSnapshot:
    """Progress over every chapter of a course, counting only materials the tier unlocks.

    A chapter is complete when it has at least one visible material and all of
    them are completed.
    """
    total = 0
    done = 0
    completed_chapters = []
    for chapter in chapters:
        visible = materials_visible_to(chapter.materials, package_tier)
        finished = sum(1 for m in visible if m.id in completed_material_ids)
        total += len(visible)
        done += finished
        if visible and finished == len(visible):
            completed_chapters.append(chapter)
    return ProgressSnapshot(
        total_accessible=total,
        completed_accessible=done,
        progress=round_half_up_percent(done, total),
        completed_chapters=completed_chapters,
    )


class CourseProgressService:

    def get_owned_enrollment_for_update(self, db: Session, enrollment_id: int, current_user: User) -> CourseEnrollment:
        enrollment = crud_enrollment.get_for_update(db, id=enrollment_id)
        if not enrollment:
            raise NotFoundError("Enrollment")
        if enrollment.user_id != current_user.id:
            raise ForbiddenError("You can only update your own enrollment.")
        return enrollment

    def recalculate(self, db: Session, enrollment: CourseEnrollment, chapters=None) -> ProgressSnapshot:
        """Rebuild progress, completed chapters and the active/completed status from scratch."""
        if chapters is None:
            chapters = crud_chapter.get_by_course(db, course_id=enrollment.course_id)
        completed_ids = {m.id for m in enrollment.completed_materials}
        snapshot = compute_progress(chapters, enrollment.package, completed_ids)

        enrollment.progress = snapshot.progress
        enrollment.completed_chapters = set(snapshot.completed_chapters)

        if snapshot.progress == 100 and enrollment.status == EnrollmentStatusEnum.ACTIVE:
            enrollment.status = EnrollmentStatusEnum.COMPLETED
        elif snapshot.progress < 100 and enrollment.status == EnrollmentStatusEnum.COMPLETED:
            enrollment.status = EnrollmentStatusEnum.ACTIVE
        db.flush()
        return snapshot

    def toggle_material(
        self, db: Session, *, enrollment_id: int, material_id: int, current_user: User
    ) -> MaterialToggleResult:
        enrollment = self.get_owned_enrollment_for_update(db, enrollment_id, current_user)
        material = crud_material.get_in_course(db, material_id=material_id, course_id=enrollment.course_id)
        if not material:
            raise NotFoundError("Material")

        completed = material not in enrollment.completed_materials
        if completed:
            enrollment.completed_materials.add(material)
        else:
            enrollment.completed_materials.discard(material)
        enrollment.last_accessed_at = utcnow()
        db.flush()

        snapshot = self.recalculate(db, enrollment)
        logger.info(
            f"Enrollment {enrollment.id}: material {material_id} "
            f"{'completed' if completed else 'reset'}, progress {snapshot.progress}%"
        )
        return MaterialToggleResult(
            completed=completed,
            progress=enrollment.progress,
            completed_chapters=enrollment.completed_chapter_ids,
            status=enrollment.status,
        )

    def recalculate_course_enrollments(self, db: Session, *, course_id: int) -> int:
        """Re-derive progress for every enrollment after the course content changed."""
        db.expire_all()
        chapters = crud_chapter.get_by_course(db, course_id=course_id)
        enrollment_ids = crud_enrollment.get_course_ids(db, course_id)
        for enrollment_id in enrollment_ids:
            enrollment = crud_enrollment.get_for_update(db, id=enrollment_id)
            self.recalculate(db, enrollment, chapters=chapters)
        return len(enrollment_ids)

course_progress_service = CourseProgressService()
