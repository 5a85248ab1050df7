from enum import Enum

from pydantic import Field
from pymongo import ASCENDING, IndexModel

from .base import BaseModel


class NotificationType(str, Enum):
    APPLICATION = "application"


class NotificationStatus(str, Enum):
    UNREAD = "unread"
    READ = "read"


class Notification(BaseModel):
    """Notification for the owner of a casting call"""

    applicant_id: str
    recipient_id: str
    casting_call_id: str
    type: NotificationType = Field(default=NotificationType.APPLICATION)
    status: NotificationStatus = Field(default=NotificationStatus.UNREAD)

    class Settings:
        name = "notifications"
        indexes = [
            "recipient_id",
            IndexModel([("applicant_id", ASCENDING), ("casting_call_id", ASCENDING)]),
        ]

    def __repr__(self):
        return f"<Notification(type='{self.type}', recipient_id='{self.recipient_id}')>"
