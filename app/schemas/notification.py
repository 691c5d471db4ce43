from pydantic import BaseModel, ConfigDict
from datetime import datetime
from typing import List, Optional
from app.core.constants import NotificationTypeEnum

class NotificationBase(BaseModel):
    """Base schema for a notification."""
    title: str
    message: str
    type: NotificationTypeEnum = NotificationTypeEnum.INFO
    link: Optional[str] = None

class NotificationCreate(NotificationBase):
    """Schema for creating a notification."""
    user_id: int

class Notification(NotificationBase):
    """Schema for reading a notification, includes ID and status."""
    id: int
    user_id: int
    is_read: bool
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

class NotificationFeed(BaseModel):
    notifications: List[Notification]
    unread_count: int
