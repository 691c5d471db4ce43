from typing import List, Optional
from sqlalchemy.orm import Session

from app.crud.base import CRUDBase
from app.models.user import User
from app.schemas.user import UserProfileUpdate


class CRUDUser(CRUDBase[User, UserProfileUpdate, UserProfileUpdate]):
    def get_by_email(self, db: Session, *, email: str) -> Optional[User]:
        return db.query(User).filter(User.email == email).first()

    def get_by_username(self, db: Session, *, username: str) -> Optional[User]:
        return db.query(User).filter(User.username == username).first()

    def get_many(self, db: Session, *, ids: List[int]) -> List[User]:
        if not ids:
            return []
        return db.query(User).filter(User.id.in_(ids)).all()

    def spend_unlock_token(self, db: Session, *, user_id: int) -> bool:
        """Atomically take one avatar unlock token; False when none are left."""
        updated = (
            db.query(User)
            .filter(User.id == user_id, User.avatar_unlock_tokens >= 1)
            .update({User.avatar_unlock_tokens: User.avatar_unlock_tokens - 1}, synchronize_session=False)
        )
        return updated == 1

user = CRUDUser(User)
