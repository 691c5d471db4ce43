from typing import Optional
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.models.user import User
from app.schemas.response import APIResponse
from app.schemas.social import PublicProfile
from app.schemas.user import UserProfile, UserProfileUpdate
from app.services.user import user_service
from app.utils import deps

router = APIRouter()


@router.get("/me", response_model=APIResponse[UserProfile])
def get_my_profile(
    db: Session = Depends(deps.get_db),
    current_user: User = Depends(deps.get_current_user)
):
    profile = user_service.get_profile(db, current_user=current_user)
    return APIResponse(message="Profile retrieved", data=profile)


@router.put("/me", response_model=APIResponse[UserProfile])
def update_my_profile(
    *,
    db: Session = Depends(deps.get_transactional_db),
    profile_in: UserProfileUpdate,
    current_user: User = Depends(deps.get_current_user)
):
    profile = user_service.update_profile(db, current_user=current_user, profile_in=profile_in)
    return APIResponse(message="Profile updated successfully", data=profile)


@router.get("/{user_id}/profile", response_model=APIResponse[PublicProfile])
def get_public_profile(
    *,
    db: Session = Depends(deps.get_db),
    user_id: int,
    viewer: Optional[User] = Depends(deps.get_optional_user)
):
    profile = user_service.get_public_profile(db, user_id=user_id, viewer=viewer)
    return APIResponse(message="Profile retrieved", data=profile)
