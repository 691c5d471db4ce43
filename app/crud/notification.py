from sqlalchemy.orm import Session
from typing import List, Optional

from app.crud.base import CRUDBase
from app.models.notification import Notification
from app.schemas.notification import NotificationCreate

class CRUDNotification(CRUDBase[Notification, NotificationCreate, NotificationCreate]):
    """CRUD operations for Notifications."""

    def get_for_user(self, db: Session, *, user_id: int, skip: int = 0, limit: int = 100) -> List[Notification]:
        return (
            db.query(self.model)
            .filter(self.model.user_id == user_id)
            .order_by(self.model.created_at.desc(), self.model.id.desc())
            .offset(skip)
            .limit(limit)
            .all()
        )

    def count_unread(self, db: Session, *, user_id: int) -> int:
        return db.query(self.model).filter(self.model.user_id == user_id, self.model.is_read == False).count()

    def mark_as_read(self, db: Session, *, notification: Notification) -> Notification:
        notification.is_read = True
        db.add(notification)
        db.flush()
        return notification

    def mark_all_as_read(self, db: Session, *, user_id: int) -> int:
        return (
            db.query(self.model)
            .filter(self.model.user_id == user_id, self.model.is_read == False)
            .update({"is_read": True}, synchronize_session="evaluate")
        )

notification = CRUDNotification(Notification)
