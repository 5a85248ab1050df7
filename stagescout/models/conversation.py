from typing import List

from pydantic import Field

from .base import BaseModel


class Conversation(BaseModel):
    """Direct-message conversation between users"""

    participant_ids: List[str] = Field(default_factory=list)

    class Settings:
        name = "conversations"
        indexes = [
            "participant_ids",
        ]

    def __repr__(self):
        return f"<Conversation(participants={self.participant_ids})>"
