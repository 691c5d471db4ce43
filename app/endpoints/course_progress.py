from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.models.user import User
from app.schemas.response import APIResponse
from app.schemas.course_enrollment import CourseRewardClaimResult, MaterialToggleResult, RewardClaimResult
from app.services.course_progress import course_progress_service
from app.services.reward import reward_service
from app.utils import deps

router = APIRouter()


@router.post(
    "/enrollments/{enrollment_id}/materials/{material_id}/toggle",
    response_model=APIResponse[MaterialToggleResult]
)
def toggle_material(
    *,
    db: Session = Depends(deps.get_transactional_db),
    enrollment_id: int,
    material_id: int,
    current_user: User = Depends(deps.get_current_user)
):
    """Mark a material done, or undo it when it already is."""
    result = course_progress_service.toggle_material(
        db, enrollment_id=enrollment_id, material_id=material_id, current_user=current_user
    )
    message = "Material marked as completed" if result.completed else "Material marked as not completed"
    return APIResponse(message=message, data=result)


@router.post(
    "/enrollments/{enrollment_id}/chapters/{chapter_id}/claim",
    response_model=APIResponse[RewardClaimResult]
)
def claim_chapter_reward(
    *,
    db: Session = Depends(deps.get_transactional_db),
    enrollment_id: int,
    chapter_id: int,
    current_user: User = Depends(deps.get_current_user)
):
    result = reward_service.claim_chapter_reward(
        db, enrollment_id=enrollment_id, chapter_id=chapter_id, current_user=current_user
    )
    return APIResponse(message=f"Claimed {result.claimed_xp} XP", data=result)


@router.post("/enrollments/{enrollment_id}/claim-rewards", response_model=APIResponse[CourseRewardClaimResult])
def claim_course_reward(
    *,
    db: Session = Depends(deps.get_transactional_db),
    enrollment_id: int,
    current_user: User = Depends(deps.get_current_user)
):
    result = reward_service.claim_course_reward(db, enrollment_id=enrollment_id, current_user=current_user)
    return APIResponse(message="Course rewards claimed", data=result)
