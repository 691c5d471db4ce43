from typing import List, Optional
from fastapi import APIRouter, Depends, File, Form, Response, UploadFile, status
from sqlalchemy.orm import Session

from app.core.constants import EnrollmentStatusEnum
from app.models.user import User
from app.schemas.response import APIResponse
from app.schemas.course_enrollment import (
    CourseEnrollment, EnrollmentCheck, EnrollmentRejectRequest, MyEnrollment, SecureCourseContent
)
from app.services.enrollment import enrollment_service
from app.services.storage import UploadedFile
from app.utils import deps

router = APIRouter()


@router.post("/courses/{course_id}/enroll", response_model=APIResponse[CourseEnrollment])
def enroll_in_course(
    *,
    db: Session = Depends(deps.get_transactional_db),
    course_id: int,
    response: Response,
    package: str = Form(...),
    promo_code: Optional[str] = Form(None),
    receipt: Optional[UploadFile] = File(None),
    current_user: User = Depends(deps.get_current_user)
):
    """Enroll in (or renew) a course package. Paid enrollments wait for admin review."""
    uploaded = None
    if receipt is not None:
        uploaded = UploadedFile(
            content=receipt.file.read(), filename=receipt.filename, content_type=receipt.content_type
        )

    enrollment, created = enrollment_service.enroll(
        db,
        course_id=course_id,
        package_tier=package,
        current_user=current_user,
        promo_code=promo_code,
        receipt=uploaded,
    )
    response.status_code = status.HTTP_201_CREATED if created else status.HTTP_200_OK
    if enrollment.status == EnrollmentStatusEnum.PENDING:
        message = "Enrollment submitted. Awaiting admin approval"
    else:
        message = "Enrolled successfully"
    return APIResponse(message=message, data=CourseEnrollment.model_validate(enrollment))


@router.get("/courses/{course_id}/content", response_model=APIResponse[SecureCourseContent])
def get_course_content(
    *,
    db: Session = Depends(deps.get_db),
    course_id: int,
    current_user: User = Depends(deps.get_current_user)
):
    content = enrollment_service.get_secure_content(db, course_id=course_id, current_user=current_user)
    return APIResponse(message="Course content retrieved", data=content)


@router.get("/courses/{course_id}/enrollment", response_model=APIResponse[EnrollmentCheck])
def check_enrollment(
    *,
    db: Session = Depends(deps.get_db),
    course_id: int,
    current_user: User = Depends(deps.get_current_user)
):
    data = enrollment_service.check_enrollment(db, course_id=course_id, current_user=current_user)
    return APIResponse(message="Enrollment status retrieved", data=data)


@router.get("/enrollments/me", response_model=APIResponse[List[MyEnrollment]])
def get_my_enrollments(
    db: Session = Depends(deps.get_db),
    current_user: User = Depends(deps.get_current_user)
):
    enrollments = enrollment_service.get_my_enrollments(db, current_user=current_user)
    return APIResponse(
        message="Enrollments retrieved",
        data=[MyEnrollment.model_validate(e) for e in enrollments]
    )


@router.post("/enrollments/{enrollment_id}/approve", response_model=APIResponse[CourseEnrollment])
def approve_enrollment(
    *,
    db: Session = Depends(deps.get_transactional_db),
    enrollment_id: int,
    admin: User = Depends(deps.get_current_admin)
):
    enrollment = enrollment_service.approve_enrollment(db, enrollment_id=enrollment_id)
    return APIResponse(message="Enrollment approved", data=CourseEnrollment.model_validate(enrollment))


@router.post("/enrollments/{enrollment_id}/reject", response_model=APIResponse[CourseEnrollment])
def reject_enrollment(
    *,
    db: Session = Depends(deps.get_transactional_db),
    enrollment_id: int,
    reject_in: Optional[EnrollmentRejectRequest] = None,
    admin: User = Depends(deps.get_current_admin)
):
    reason = reject_in.reason if reject_in else None
    enrollment = enrollment_service.reject_enrollment(db, enrollment_id=enrollment_id, reason=reason)
    return APIResponse(message="Enrollment rejected", data=CourseEnrollment.model_validate(enrollment))
