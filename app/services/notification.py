from sqlalchemy.orm import Session
from typing import Optional

from app.core.constants import NOTIFICATION_FEED_LIMIT, NotificationTypeEnum
from app.core.exceptions import ForbiddenError, NotFoundError
from app.crud.notification import notification as crud_notification
from app.models.notification import Notification
from app.schemas.notification import NotificationCreate, NotificationFeed, Notification as NotificationSchema

class NotificationService:
    def create_notification(
        self,
        db: Session,
        *,
        user_id: int,
        title: str,
        message: str,
        type: NotificationTypeEnum = NotificationTypeEnum.INFO,
        link: Optional[str] = None,
    ) -> Notification:
        notification_in = NotificationCreate(user_id=user_id, title=title, message=message, type=type, link=link)
        return crud_notification.create(db, obj_in=notification_in)

    def notify_level_up(self, db: Session, *, user_id: int, new_level: int, tokens_earned: int) -> Notification:
        return self.create_notification(
            db,
            user_id=user_id,
            title="Level Up!",
            message=f"You reached Level {new_level} and earned {tokens_earned} Token(s)!",
            type=NotificationTypeEnum.SUCCESS,
        )

    def get_feed(self, db: Session, *, user_id: int) -> NotificationFeed:
        notifications = crud_notification.get_for_user(db, user_id=user_id, limit=NOTIFICATION_FEED_LIMIT)
        return NotificationFeed(
            notifications=[NotificationSchema.model_validate(n) for n in notifications],
            unread_count=crud_notification.count_unread(db, user_id=user_id),
        )

    def mark_notification_as_read(self, db: Session, *, notification_id: int, user_id: int) -> Notification:
        notification = crud_notification.get(db, id=notification_id)
        if not notification:
            raise NotFoundError("Notification")
        if notification.user_id != user_id:
            raise ForbiddenError("Not authorized to modify this notification")
        return crud_notification.mark_as_read(db, notification=notification)

    def mark_all_notifications_as_read(self, db: Session, *, user_id: int) -> int:
        return crud_notification.mark_all_as_read(db, user_id=user_id)

notification_service = NotificationService()
