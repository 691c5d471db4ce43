import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from app.core.constants import CourseStatusEnum, RoleEnum
from app.core.database import after_commit, after_rollback
from app.core.exceptions import ConflictError, NotFoundError
from app.crud.avatar import avatar as crud_avatar
from app.crud.chapter import chapter as crud_chapter, material as crud_material
from app.crud.course import course as crud_course
from app.crud.course_enrollment import course_enrollment as crud_enrollment
from app.crud.user import user as crud_user
from app.models.chapter import Chapter, Material
from app.models.course import Course
from app.models.user import User
from app.schemas.course import (
    Chapter as ChapterSchema, ChapterCreate, ChapterUpdate, Course as CourseSchema, CourseCreate, CourseDetail,
    CourseUpdate, Material as MaterialSchema, MaterialCreate, MaterialUpdate
)
from app.services.course_progress import course_progress_service
from app.services.storage import UploadedFile, storage_service

logger = logging.getLogger(__name__)

PUBLIC_COURSE_STATUSES = (CourseStatusEnum.ONGOING, CourseStatusEnum.COMPLETE)


def _is_admin(user: Optional[User]) -> bool:
    return user is not None and user.role == RoleEnum.ADMIN


class CourseService:

    def _get_course_or_raise(self, db: Session, course_id: int) -> Course:
        course = crud_course.get_with_content(db, id=course_id)
        if not course:
            raise NotFoundError("Course")
        return course

    def _get_chapter_or_raise(self, db: Session, course_id: int, chapter_id: int) -> Chapter:
        chapter = crud_chapter.get_in_course(db, chapter_id=chapter_id, course_id=course_id)
        if not chapter:
            raise NotFoundError("Chapter")
        return chapter

    def _get_material_or_raise(self, db: Session, chapter_id: int, material_id: int) -> Material:
        material = crud_material.get_in_chapter(db, material_id=material_id, chapter_id=chapter_id)
        if not material:
            raise NotFoundError("Material")
        return material

    def _check_references(self, db: Session, tutor_id: Optional[int], reward_avatar_id: Optional[int]) -> None:
        if tutor_id is not None and not crud_user.get(db, id=tutor_id):
            raise NotFoundError("Tutor")
        if reward_avatar_id is not None and not crud_avatar.get(db, id=reward_avatar_id):
            raise NotFoundError("Avatar")

    def list_courses(
        self, db: Session, *, current_user: Optional[User] = None, skip: int = 0, limit: int = 100
    ) -> List[CourseSchema]:
        statuses = list(CourseStatusEnum) if _is_admin(current_user) else PUBLIC_COURSE_STATUSES
        courses = crud_course.get_multi_by_status(db, statuses=statuses, skip=skip, limit=limit)
        return [CourseSchema.model_validate(c) for c in courses]

    def get_course(self, db: Session, *, course_id: int, current_user: Optional[User] = None) -> CourseDetail:
        """Course outline. Material links are only shown for free preview chapters unless the caller is an admin."""
        course = self._get_course_or_raise(db, course_id)
        is_admin = _is_admin(current_user)
        if course.status == CourseStatusEnum.DISABLED and not is_admin:
            raise NotFoundError("Course")

        detail = CourseDetail.model_validate(course)
        if not is_admin:
            for chapter in detail.chapters:
                if not chapter.is_free:
                    chapter.materials = [m.model_copy(update={"url": None}) for m in chapter.materials]
        return detail

    def create_course(self, db: Session, *, course_in: CourseCreate) -> CourseDetail:
        self._check_references(db, course_in.tutor_id, course_in.reward_avatar_id)
        course = crud_course.create_with_packages(db, obj_in=course_in)
        logger.info(f"Course {course.id} '{course.title}' created")
        return CourseDetail.model_validate(self._get_course_or_raise(db, course.id))

    def update_course(self, db: Session, *, course_id: int, course_in: CourseUpdate) -> CourseDetail:
        course = self._get_course_or_raise(db, course_id)
        update_data = course_in.model_dump(exclude_unset=True, exclude={"packages"})
        self._check_references(db, update_data.get("tutor_id"), update_data.get("reward_avatar_id"))

        crud_course.update(db, db_obj=course, obj_in=update_data)
        if course_in.packages is not None:
            crud_course.replace_packages(db, course=course, packages=course_in.packages)
        logger.info(f"Course {course_id} updated")
        return CourseDetail.model_validate(self._get_course_or_raise(db, course_id))

    def delete_course(self, db: Session, *, course_id: int) -> CourseSchema:
        course = self._get_course_or_raise(db, course_id)
        if crud_enrollment.exists_for_course(db, course_id):
            raise ConflictError("Cannot delete a course that has enrollments. Disable it instead.")

        deleted = CourseSchema.model_validate(course)
        material_urls = [m.url for chapter in course.chapters for m in chapter.materials if m.url]
        crud_course.delete(db, id=course_id)
        for url in material_urls:
            after_commit(db, storage_service.delete_file, url)
        logger.info(f"Course {course_id} deleted")
        return deleted

    def add_chapter(self, db: Session, *, course_id: int, chapter_in: ChapterCreate) -> ChapterSchema:
        self._get_course_or_raise(db, course_id)
        chapter = crud_chapter.create(db, obj_in={**chapter_in.model_dump(), "course_id": course_id})
        return ChapterSchema.model_validate(chapter)

    def update_chapter(
        self, db: Session, *, course_id: int, chapter_id: int, chapter_in: ChapterUpdate
    ) -> ChapterSchema:
        chapter = self._get_chapter_or_raise(db, course_id, chapter_id)
        chapter = crud_chapter.update(db, db_obj=chapter, obj_in=chapter_in)
        return ChapterSchema.model_validate(chapter)

    def delete_chapter(self, db: Session, *, course_id: int, chapter_id: int) -> None:
        chapter = self._get_chapter_or_raise(db, course_id, chapter_id)
        material_urls = [m.url for m in chapter.materials if m.url]
        crud_chapter.delete(db, id=chapter.id)
        for url in material_urls:
            after_commit(db, storage_service.delete_file, url)
        affected = course_progress_service.recalculate_course_enrollments(db, course_id=course_id)
        logger.info(f"Chapter {chapter_id} deleted; recalculated {affected} enrollment(s)")

    def add_material(
        self,
        db: Session,
        *,
        course_id: int,
        chapter_id: int,
        material_in: MaterialCreate,
        file: Optional[UploadedFile] = None,
    ) -> MaterialSchema:
        self._get_chapter_or_raise(db, course_id, chapter_id)
        data = {**material_in.model_dump(), "chapter_id": chapter_id}
        if file is not None:
            data["url"] = storage_service.upload_file(
                file.content, file.filename, file.content_type, folder=f"materials/{course_id}"
            )
            after_rollback(db, storage_service.delete_file, data["url"])
        material = crud_material.create(db, obj_in=data)
        course_progress_service.recalculate_course_enrollments(db, course_id=course_id)
        return MaterialSchema.model_validate(crud_material.get(db, id=material.id))

    def update_material(
        self,
        db: Session,
        *,
        course_id: int,
        chapter_id: int,
        material_id: int,
        material_in: MaterialUpdate,
        file: Optional[UploadedFile] = None,
    ) -> MaterialSchema:
        self._get_chapter_or_raise(db, course_id, chapter_id)
        material = self._get_material_or_raise(db, chapter_id, material_id)
        update_data = material_in.model_dump(exclude_unset=True)
        old_url = material.url
        if file is not None:
            update_data["url"] = storage_service.upload_file(
                file.content, file.filename, file.content_type, folder=f"materials/{course_id}"
            )
            after_rollback(db, storage_service.delete_file, update_data["url"])
        tier_changed = "min_package_tier" in update_data and update_data["min_package_tier"] != material.min_package_tier

        crud_material.update(db, db_obj=material, obj_in=update_data)
        if old_url and "url" in update_data and update_data["url"] != old_url:
            after_commit(db, storage_service.delete_file, old_url)
        if tier_changed:
            course_progress_service.recalculate_course_enrollments(db, course_id=course_id)
        return MaterialSchema.model_validate(crud_material.get(db, id=material_id))

    def delete_material(self, db: Session, *, course_id: int, chapter_id: int, material_id: int) -> None:
        self._get_chapter_or_raise(db, course_id, chapter_id)
        material = self._get_material_or_raise(db, chapter_id, material_id)
        url = material.url
        crud_material.delete(db, id=material.id)
        if url:
            after_commit(db, storage_service.delete_file, url)
        affected = course_progress_service.recalculate_course_enrollments(db, course_id=course_id)
        logger.info(f"Material {material_id} deleted; recalculated {affected} enrollment(s)")

course_service = CourseService()
