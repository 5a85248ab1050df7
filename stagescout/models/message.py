from pydantic import Field
from pymongo import ASCENDING, IndexModel

from .base import BaseModel


class Message(BaseModel):
    """Chat message model for MongoDB"""

    conversation_id: str
    sender_id: str
    receiver_id: str
    text: str = Field(..., min_length=1)

    class Settings:
        name = "messages"
        indexes = [
            "conversation_id",
            "sender_id",
            IndexModel([("conversation_id", ASCENDING), ("created_at", ASCENDING)]),
        ]

    def __repr__(self):
        return f"<Message(id='{self.id}', text='{self.text[:50]}...')>"
