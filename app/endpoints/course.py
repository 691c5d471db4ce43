from typing import List, Optional
from fastapi import APIRouter, Depends, File, UploadFile, status
from sqlalchemy.orm import Session

from app.models.user import User
from app.schemas.response import APIResponse
from app.schemas.course import (
    Chapter, ChapterCreate, ChapterUpdate, Course, CourseCreate, CourseDetail, CourseUpdate, Material,
    MaterialCreate, MaterialUpdate
)
from app.services.course import course_service
from app.services.storage import UploadedFile
from app.utils import deps

router = APIRouter()


@router.get("/", response_model=APIResponse[List[Course]])
def list_courses(
    db: Session = Depends(deps.get_db),
    current_user: Optional[User] = Depends(deps.get_optional_user),
    skip: int = 0,
    limit: int = 100
):
    courses = course_service.list_courses(db, current_user=current_user, skip=skip, limit=limit)
    return APIResponse(message="Courses retrieved successfully", data=courses)


@router.post("/", response_model=APIResponse[CourseDetail], status_code=status.HTTP_201_CREATED)
def create_course(
    *,
    db: Session = Depends(deps.get_transactional_db),
    course_in: CourseCreate,
    admin: User = Depends(deps.get_current_admin)
):
    course = course_service.create_course(db, course_in=course_in)
    return APIResponse(message="Course created successfully", data=course)


@router.get("/{course_id}", response_model=APIResponse[CourseDetail])
def get_course(
    *,
    db: Session = Depends(deps.get_db),
    course_id: int,
    current_user: Optional[User] = Depends(deps.get_optional_user)
):
    course = course_service.get_course(db, course_id=course_id, current_user=current_user)
    return APIResponse(message="Course retrieved successfully", data=course)


@router.put("/{course_id}", response_model=APIResponse[CourseDetail])
def update_course(
    *,
    db: Session = Depends(deps.get_transactional_db),
    course_id: int,
    course_in: CourseUpdate,
    admin: User = Depends(deps.get_current_admin)
):
    course = course_service.update_course(db, course_id=course_id, course_in=course_in)
    return APIResponse(message="Course updated successfully", data=course)


@router.delete("/{course_id}", response_model=APIResponse[Course])
def delete_course(
    *,
    db: Session = Depends(deps.get_transactional_db),
    course_id: int,
    admin: User = Depends(deps.get_current_admin)
):
    course = course_service.delete_course(db, course_id=course_id)
    return APIResponse(message="Course deleted successfully", data=course)


@router.post("/{course_id}/chapters", response_model=APIResponse[Chapter], status_code=status.HTTP_201_CREATED)
def create_chapter(
    *,
    db: Session = Depends(deps.get_transactional_db),
    course_id: int,
    chapter_in: ChapterCreate,
    admin: User = Depends(deps.get_current_admin)
):
    chapter = course_service.add_chapter(db, course_id=course_id, chapter_in=chapter_in)
    return APIResponse(message="Chapter created successfully", data=chapter)


@router.put("/{course_id}/chapters/{chapter_id}", response_model=APIResponse[Chapter])
def update_chapter(
    *,
    db: Session = Depends(deps.get_transactional_db),
    course_id: int,
    chapter_id: int,
    chapter_in: ChapterUpdate,
    admin: User = Depends(deps.get_current_admin)
):
    chapter = course_service.update_chapter(db, course_id=course_id, chapter_id=chapter_id, chapter_in=chapter_in)
    return APIResponse(message="Chapter updated successfully", data=chapter)


@router.delete("/{course_id}/chapters/{chapter_id}", response_model=APIResponse[None])
def delete_chapter(
    *,
    db: Session = Depends(deps.get_transactional_db),
    course_id: int,
    chapter_id: int,
    admin: User = Depends(deps.get_current_admin)
):
    course_service.delete_chapter(db, course_id=course_id, chapter_id=chapter_id)
    return APIResponse(message="Chapter deleted successfully")


@router.post(
    "/{course_id}/chapters/{chapter_id}/materials",
    response_model=APIResponse[Material],
    status_code=status.HTTP_201_CREATED
)
def create_material(
    *,
    db: Session = Depends(deps.get_transactional_db),
    course_id: int,
    chapter_id: int,
    material_in: MaterialCreate,
    admin: User = Depends(deps.get_current_admin)
):
    material = course_service.add_material(db, course_id=course_id, chapter_id=chapter_id, material_in=material_in)
    return APIResponse(message="Material created successfully", data=material)


@router.put("/{course_id}/chapters/{chapter_id}/materials/{material_id}", response_model=APIResponse[Material])
def update_material(
    *,
    db: Session = Depends(deps.get_transactional_db),
    course_id: int,
    chapter_id: int,
    material_id: int,
    material_in: MaterialUpdate,
    admin: User = Depends(deps.get_current_admin)
):
    material = course_service.update_material(
        db, course_id=course_id, chapter_id=chapter_id, material_id=material_id, material_in=material_in
    )
    return APIResponse(message="Material updated successfully", data=material)


@router.post(
    "/{course_id}/chapters/{chapter_id}/materials/{material_id}/file",
    response_model=APIResponse[Material]
)
def upload_material_file(
    *,
    db: Session = Depends(deps.get_transactional_db),
    course_id: int,
    chapter_id: int,
    material_id: int,
    file: UploadFile = File(...),
    admin: User = Depends(deps.get_current_admin)
):
    """Store a file for the material; a previously uploaded file is removed."""
    uploaded = UploadedFile(content=file.file.read(), filename=file.filename, content_type=file.content_type)
    material = course_service.update_material(
        db,
        course_id=course_id,
        chapter_id=chapter_id,
        material_id=material_id,
        material_in=MaterialUpdate(),
        file=uploaded,
    )
    return APIResponse(message="Material file uploaded successfully", data=material)


@router.delete("/{course_id}/chapters/{chapter_id}/materials/{material_id}", response_model=APIResponse[None])
def delete_material(
    *,
    db: Session = Depends(deps.get_transactional_db),
    course_id: int,
    chapter_id: int,
    material_id: int,
    admin: User = Depends(deps.get_current_admin)
):
    course_service.delete_material(db, course_id=course_id, chapter_id=chapter_id, material_id=material_id)
    return APIResponse(message="Material deleted successfully")
