from typing import List, Optional, Set
from sqlalchemy import exc
from sqlalchemy.orm import Session, selectinload

from app.core.constants import AvatarTypeEnum
from app.crud.base import CRUDBase
from app.models.avatar import Avatar, UserAvatar
from app.schemas.avatar import AvatarCreate, AvatarUpdate


class CRUDAvatar(CRUDBase[Avatar, AvatarCreate, AvatarUpdate]):

    def get_active(self, db: Session) -> List[Avatar]:
        return db.query(Avatar).filter(Avatar.is_active == True).order_by(Avatar.id).all()

    def get_all_newest_first(self, db: Session) -> List[Avatar]:
        return db.query(Avatar).order_by(Avatar.created_at.desc(), Avatar.id.desc()).all()

    def get_active_defaults(self, db: Session) -> List[Avatar]:
        return (
            db.query(Avatar)
            .filter(Avatar.type == AvatarTypeEnum.DEFAULT, Avatar.is_active == True)
            .order_by(Avatar.id)
            .all()
        )


class CRUDUserAvatar(CRUDBase[UserAvatar, AvatarCreate, AvatarUpdate]):

    def get_by_user_and_avatar(self, db: Session, *, user_id: int, avatar_id: int) -> Optional[UserAvatar]:
        return (
            db.query(UserAvatar)
            .filter(UserAvatar.user_id == user_id, UserAvatar.avatar_id == avatar_id)
            .first()
        )

    def get_unlocked_ids(self, db: Session, *, user_id: int) -> Set[int]:
        rows = db.query(UserAvatar.avatar_id).filter(UserAvatar.user_id == user_id).all()
        return {row.avatar_id for row in rows}

    def get_unlocked_avatars(self, db: Session, *, user_id: int) -> List[Avatar]:
        records = (
            db.query(UserAvatar)
            .options(selectinload(UserAvatar.avatar))
            .filter(UserAvatar.user_id == user_id)
            .order_by(UserAvatar.id)
            .all()
        )
        return [record.avatar for record in records]

    def grant(self, db: Session, *, user_id: int, avatar_id: int) -> bool:
        """Record an unlock. Returns False when the user already owned the avatar."""
        if self.get_by_user_and_avatar(db, user_id=user_id, avatar_id=avatar_id):
            return False
        try:
            with db.begin_nested():
                db.add(UserAvatar(user_id=user_id, avatar_id=avatar_id))
                db.flush()
        except exc.IntegrityError:
            # A concurrent request unlocked it first
            return False
        return True

avatar = CRUDAvatar(Avatar)
user_avatar = CRUDUserAvatar(UserAvatar)
