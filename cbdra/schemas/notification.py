from typing import Optional
from pydantic import BaseModel
from datetime import datetime

from cbdra.models.notification import NotificationType


class Notification(BaseModel):
    id: int
    type: NotificationType
    title: str
    message: str
    time: datetime
    read: bool
    incident_id: Optional[int] = None
    allocation_id: Optional[int] = None

    @classmethod
    def from_model(cls, notification) -> "Notification":
        return cls(
            id=notification.id,
            type=notification.type,
            title=notification.title,
            message=notification.message,
            time=notification.created_at,
            read=notification.read,
            incident_id=notification.incident_id,
            allocation_id=notification.allocation_id,
        )


class MarkReadResult(BaseModel):
    success: bool = True
