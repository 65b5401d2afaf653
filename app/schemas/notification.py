# app/schemas/notification.py
from pydantic import BaseModel
from typing import Optional
from datetime import datetime
from app.models.notification import NotificationType


class NotificationTaskRef(BaseModel):
    id: int
    title: str

    model_config = {
        "from_attributes": True
    }


class NotificationOut(BaseModel):
    id: int
    user_id: int
    type: NotificationType
    title: str
    message: str
    task_id: Optional[int] = None
    is_read: bool
    created_at: datetime
    task: Optional[NotificationTaskRef] = None

    model_config = {
        "from_attributes": True
    }


class UnreadCount(BaseModel):
    count: int


class BulkResult(BaseModel):
    count: int
