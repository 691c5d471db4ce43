from typing import List, Optional
from sqlalchemy import and_, or_
from sqlalchemy.orm import Session, selectinload

from app.core.constants import FriendRequestStatusEnum
from app.crud.base import CRUDBase
from app.models.social import Follow, FriendRequest
from app.models.user import User


class CRUDFollow(CRUDBase[Follow, Follow, Follow]):

    def get_pair(self, db: Session, *, follower_id: int, following_id: int) -> Optional[Follow]:
        return (
            db.query(Follow)
            .filter(Follow.follower_id == follower_id, Follow.following_id == following_id)
            .first()
        )

    def get_following(self, db: Session, *, user_id: int) -> List[User]:
        return (
            db.query(User)
            .join(Follow, Follow.following_id == User.id)
            .filter(Follow.follower_id == user_id)
            .order_by(Follow.created_at.desc(), Follow.id.desc())
            .all()
        )

    def get_followers(self, db: Session, *, user_id: int) -> List[User]:
        return (
            db.query(User)
            .join(Follow, Follow.follower_id == User.id)
            .filter(Follow.following_id == user_id)
            .order_by(Follow.created_at.desc(), Follow.id.desc())
            .all()
        )

    def count_followers(self, db: Session, *, user_id: int) -> int:
        return db.query(Follow).filter(Follow.following_id == user_id).count()

    def count_following(self, db: Session, *, user_id: int) -> int:
        return db.query(Follow).filter(Follow.follower_id == user_id).count()


class CRUDFriendRequest(CRUDBase[FriendRequest, FriendRequest, FriendRequest]):

    def _between(self, user_a: int, user_b: int):
        return or_(
            and_(FriendRequest.requester_id == user_a, FriendRequest.recipient_id == user_b),
            and_(FriendRequest.requester_id == user_b, FriendRequest.recipient_id == user_a),
        )

    def get_between(self, db: Session, *, user_a: int, user_b: int) -> Optional[FriendRequest]:
        return db.query(FriendRequest).filter(self._between(user_a, user_b)).first()

    def get_friends(self, db: Session, *, user_id: int) -> List[User]:
        relationships = (
            db.query(FriendRequest)
            .options(selectinload(FriendRequest.requester), selectinload(FriendRequest.recipient))
            .filter(
                or_(FriendRequest.requester_id == user_id, FriendRequest.recipient_id == user_id),
                FriendRequest.status == FriendRequestStatusEnum.ACCEPTED,
            )
            .order_by(FriendRequest.id)
            .all()
        )
        return [r.recipient if r.requester_id == user_id else r.requester for r in relationships]

    def get_incoming(self, db: Session, *, user_id: int) -> List[FriendRequest]:
        return (
            db.query(FriendRequest)
            .options(selectinload(FriendRequest.requester))
            .filter(
                FriendRequest.recipient_id == user_id,
                FriendRequest.status == FriendRequestStatusEnum.PENDING,
            )
            .order_by(FriendRequest.created_at.desc(), FriendRequest.id.desc())
            .all()
        )

follow = CRUDFollow(Follow)
friend_request = CRUDFriendRequest(FriendRequest)
