from typing import List
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.models.user import User
from app.schemas.response import APIResponse
from app.schemas.social import FriendRequest
from app.schemas.user import UserSummary
from app.services.social import social_service
from app.utils import deps

router = APIRouter()


@router.post("/follow/{user_id}", response_model=APIResponse[None], status_code=status.HTTP_201_CREATED)
def follow_user(
    *,
    db: Session = Depends(deps.get_transactional_db),
    user_id: int,
    current_user: User = Depends(deps.get_current_user)
):
    social_service.follow_user(db, user_id=user_id, current_user=current_user)
    return APIResponse(message="User followed")


@router.delete("/follow/{user_id}", response_model=APIResponse[None])
def unfollow_user(
    *,
    db: Session = Depends(deps.get_transactional_db),
    user_id: int,
    current_user: User = Depends(deps.get_current_user)
):
    social_service.unfollow_user(db, user_id=user_id, current_user=current_user)
    return APIResponse(message="User unfollowed")


@router.get("/following", response_model=APIResponse[List[UserSummary]])
def get_following(
    db: Session = Depends(deps.get_db),
    current_user: User = Depends(deps.get_current_user)
):
    return APIResponse(message="Following retrieved", data=social_service.get_following(db, user_id=current_user.id))


@router.get("/followers", response_model=APIResponse[List[UserSummary]])
def get_followers(
    db: Session = Depends(deps.get_db),
    current_user: User = Depends(deps.get_current_user)
):
    return APIResponse(message="Followers retrieved", data=social_service.get_followers(db, user_id=current_user.id))


@router.get("/friends", response_model=APIResponse[List[UserSummary]])
def get_friends(
    db: Session = Depends(deps.get_db),
    current_user: User = Depends(deps.get_current_user)
):
    return APIResponse(message="Friends retrieved", data=social_service.get_friends(db, current_user=current_user))


@router.get("/friends/requests", response_model=APIResponse[List[FriendRequest]])
def get_incoming_friend_requests(
    db: Session = Depends(deps.get_db),
    current_user: User = Depends(deps.get_current_user)
):
    requests = social_service.get_incoming_requests(db, current_user=current_user)
    return APIResponse(message="Friend requests retrieved", data=requests)


@router.post(
    "/friends/requests/{user_id}",
    response_model=APIResponse[FriendRequest],
    status_code=status.HTTP_201_CREATED
)
def send_friend_request(
    *,
    db: Session = Depends(deps.get_transactional_db),
    user_id: int,
    current_user: User = Depends(deps.get_current_user)
):
    request = social_service.send_friend_request(db, user_id=user_id, current_user=current_user)
    return APIResponse(message="Friend request sent", data=request)


@router.post("/friends/requests/{request_id}/accept", response_model=APIResponse[FriendRequest])
def accept_friend_request(
    *,
    db: Session = Depends(deps.get_transactional_db),
    request_id: int,
    current_user: User = Depends(deps.get_current_user)
):
    request = social_service.accept_friend_request(db, request_id=request_id, current_user=current_user)
    return APIResponse(message="Friend request accepted", data=request)


@router.delete("/friends/requests/{request_id}", response_model=APIResponse[None])
def remove_friend_request(
    *,
    db: Session = Depends(deps.get_transactional_db),
    request_id: int,
    current_user: User = Depends(deps.get_current_user)
):
    """Reject an incoming request, cancel an outgoing one, or unfriend."""
    social_service.remove_friend_request(db, request_id=request_id, current_user=current_user)
    return APIResponse(message="Friend request removed")
