from typing import List
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.models.user import User
from app.schemas.response import APIResponse
from app.schemas.avatar import Avatar, AvatarCreate, AvatarUnlockResult, AvatarUpdate, AvatarWithStatus
from app.schemas.user import UserProfile
from app.services.avatar import avatar_service
from app.utils import deps

router = APIRouter()


@router.get("/", response_model=APIResponse[List[AvatarWithStatus]])
def get_avatar_gallery(
    db: Session = Depends(deps.get_db),
    current_user: User = Depends(deps.get_current_user)
):
    """Active avatars with the caller's unlock status."""
    gallery = avatar_service.get_gallery(db, current_user=current_user)
    return APIResponse(message="Avatars retrieved", data=gallery)


@router.get("/all", response_model=APIResponse[List[Avatar]])
def list_all_avatars(
    db: Session = Depends(deps.get_db),
    admin: User = Depends(deps.get_current_admin)
):
    return APIResponse(message="Avatars retrieved", data=avatar_service.list_avatars(db))


@router.post("/", response_model=APIResponse[Avatar], status_code=status.HTTP_201_CREATED)
def create_avatar(
    *,
    db: Session = Depends(deps.get_transactional_db),
    avatar_in: AvatarCreate,
    admin: User = Depends(deps.get_current_admin)
):
    avatar = avatar_service.create_avatar(db, avatar_in=avatar_in)
    return APIResponse(message="Avatar created successfully", data=avatar)


@router.put("/{avatar_id}", response_model=APIResponse[Avatar])
def update_avatar(
    *,
    db: Session = Depends(deps.get_transactional_db),
    avatar_id: int,
    avatar_in: AvatarUpdate,
    admin: User = Depends(deps.get_current_admin)
):
    avatar = avatar_service.update_avatar(db, avatar_id=avatar_id, avatar_in=avatar_in)
    return APIResponse(message="Avatar updated successfully", data=avatar)


@router.delete("/{avatar_id}", response_model=APIResponse[None])
def delete_avatar(
    *,
    db: Session = Depends(deps.get_transactional_db),
    avatar_id: int,
    admin: User = Depends(deps.get_current_admin)
):
    avatar_service.delete_avatar(db, avatar_id=avatar_id)
    return APIResponse(message="Avatar deleted successfully")


@router.post("/{avatar_id}/unlock", response_model=APIResponse[AvatarUnlockResult])
def unlock_avatar(
    *,
    db: Session = Depends(deps.get_transactional_db),
    avatar_id: int,
    current_user: User = Depends(deps.get_current_user)
):
    result = avatar_service.unlock_avatar(db, avatar_id=avatar_id, current_user=current_user)
    return APIResponse(message="Avatar unlocked", data=result)


@router.post("/{avatar_id}/equip", response_model=APIResponse[UserProfile])
def equip_avatar(
    *,
    db: Session = Depends(deps.get_transactional_db),
    avatar_id: int,
    current_user: User = Depends(deps.get_current_user)
):
    profile = avatar_service.equip_avatar(db, avatar_id=avatar_id, current_user=current_user)
    return APIResponse(message="Avatar equipped", data=profile)
