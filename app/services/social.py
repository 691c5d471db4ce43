import logging
from typing import List

from sqlalchemy import exc
from sqlalchemy.orm import Session

from app.core.constants import FriendRequestStatusEnum, NotificationTypeEnum
from app.core.exceptions import ConflictError, ForbiddenError, NotFoundError, ValidationFailedError
from app.crud.social import follow as crud_follow, friend_request as crud_friend_request
from app.crud.user import user as crud_user
from app.models.social import Follow, FriendRequest
from app.models.user import User
from app.schemas.social import FriendRequest as FriendRequestSchema
from app.schemas.user import UserSummary
from app.services.notification import notification_service

logger = logging.getLogger(__name__)


class SocialService:

    def _get_other_user_or_raise(self, db: Session, user_id: int, current_user: User, action: str) -> User:
        if user_id == current_user.id:
            raise ValidationFailedError(f"You cannot {action} yourself")
        user = crud_user.get(db, id=user_id)
        if not user or not user.is_active:
            raise NotFoundError("User")
        return user

    def follow_user(self, db: Session, *, user_id: int, current_user: User) -> None:
        target = self._get_other_user_or_raise(db, user_id, current_user, "follow")
        if crud_follow.get_pair(db, follower_id=current_user.id, following_id=target.id):
            raise ConflictError("Already following this user")
        try:
            with db.begin_nested():
                db.add(Follow(follower_id=current_user.id, following_id=target.id))
                db.flush()
        except exc.IntegrityError:
            raise ConflictError("Already following this user")

        notification_service.create_notification(
            db,
            user_id=target.id,
            title="New Follower",
            message=f"{current_user.username} started following you.",
            type=NotificationTypeEnum.INFO,
            link=f"/users/{current_user.id}",
        )

    def unfollow_user(self, db: Session, *, user_id: int, current_user: User) -> None:
        follow = crud_follow.get_pair(db, follower_id=current_user.id, following_id=user_id)
        if not follow:
            raise NotFoundError("Follow", "You are not following this user")
        crud_follow.delete(db, id=follow.id)

    def get_following(self, db: Session, *, user_id: int) -> List[UserSummary]:
        return [UserSummary.model_validate(u) for u in crud_follow.get_following(db, user_id=user_id)]

    def get_followers(self, db: Session, *, user_id: int) -> List[UserSummary]:
        return [UserSummary.model_validate(u) for u in crud_follow.get_followers(db, user_id=user_id)]

    def send_friend_request(self, db: Session, *, user_id: int, current_user: User) -> FriendRequestSchema:
        target = self._get_other_user_or_raise(db, user_id, current_user, "befriend")
        existing = crud_friend_request.get_between(db, user_a=current_user.id, user_b=target.id)
        if existing is not None:
            if existing.status == FriendRequestStatusEnum.ACCEPTED:
                raise ConflictError("You are already friends")
            if existing.requester_id == current_user.id:
                raise ConflictError("Friend request already sent")
            raise ConflictError("This user has already sent you a friend request")

        request = FriendRequest(
            requester_id=current_user.id, recipient_id=target.id, status=FriendRequestStatusEnum.PENDING
        )
        try:
            with db.begin_nested():
                db.add(request)
                db.flush()
        except exc.IntegrityError:
            raise ConflictError("Friend request already sent")
        db.refresh(request)

        notification_service.create_notification(
            db,
            user_id=target.id,
            title="Friend Request",
            message=f"{current_user.username} sent you a friend request.",
            type=NotificationTypeEnum.INFO,
            link=f"/users/{current_user.id}",
        )
        return FriendRequestSchema.model_validate(request)

    def accept_friend_request(self, db: Session, *, request_id: int, current_user: User) -> FriendRequestSchema:
        request = crud_friend_request.get_for_update(db, id=request_id)
        if not request:
            raise NotFoundError("Friend request")
        if request.recipient_id != current_user.id:
            raise ForbiddenError("Only the recipient can accept this request")
        if request.status == FriendRequestStatusEnum.ACCEPTED:
            raise ConflictError("You are already friends")

        request = crud_friend_request.update(db, db_obj=request, obj_in={"status": FriendRequestStatusEnum.ACCEPTED})
        notification_service.create_notification(
            db,
            user_id=request.requester_id,
            title="Friend Request Accepted",
            message=f"{current_user.username} accepted your friend request.",
            type=NotificationTypeEnum.SUCCESS,
            link=f"/users/{current_user.id}",
        )
        logger.info(f"Users {request.requester_id} and {request.recipient_id} are now friends")
        return FriendRequestSchema.model_validate(request)

    def remove_friend_request(self, db: Session, *, request_id: int, current_user: User) -> None:
        """Reject, cancel or unfriend; either side of the request may remove it."""
        request = crud_friend_request.get(db, id=request_id)
        if not request:
            raise NotFoundError("Friend request")
        if current_user.id not in (request.requester_id, request.recipient_id):
            raise ForbiddenError("Not authorized to modify this friend request")
        crud_friend_request.delete(db, id=request.id)

    def get_friends(self, db: Session, *, current_user: User) -> List[UserSummary]:
        return [UserSummary.model_validate(u) for u in crud_friend_request.get_friends(db, user_id=current_user.id)]

    def get_incoming_requests(self, db: Session, *, current_user: User) -> List[FriendRequestSchema]:
        requests = crud_friend_request.get_incoming(db, user_id=current_user.id)
        return [FriendRequestSchema.model_validate(r) for r in requests]

social_service = SocialService()
