from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.models.user import User
from app.schemas.response import APIResponse
from app.utils import deps
from app.schemas.notification import Notification, NotificationFeed
from app.services.notification import notification_service

router = APIRouter()

@router.get("/", response_model=APIResponse[NotificationFeed])
def get_my_notifications(
    db: Session = Depends(deps.get_db),
    user: User = Depends(deps.get_current_user)
):
    """Latest notifications for the current user plus the unread count."""
    data = notification_service.get_feed(db, user_id=user.id)
    return APIResponse(message="Notifications fetched successfully", data=data)

@router.post("/mark_all_read", response_model=APIResponse[int])
def mark_all_notifications_as_read(
    db: Session = Depends(deps.get_transactional_db),
    user: User = Depends(deps.get_current_user)
):
    """Mark all unread notifications for the current user as read."""
    updated = notification_service.mark_all_notifications_as_read(db, user_id=user.id)
    return APIResponse(message="All notifications marked as read", data=updated)

@router.post("/{notification_id}/read", response_model=APIResponse[Notification])
def mark_notification_as_read(
    notification_id: int,
    db: Session = Depends(deps.get_transactional_db),
    user: User = Depends(deps.get_current_user)
):
    """Mark a specific notification as read."""
    notification = notification_service.mark_notification_as_read(db, notification_id=notification_id, user_id=user.id)
    return APIResponse(message="Notification marked as read", data=Notification.model_validate(notification))
