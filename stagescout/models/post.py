from datetime import datetime
from enum import Enum
from typing import List, Optional

from beanie import PydanticObjectId
from pydantic import BaseModel as PydanticModel, Field

from .base import BaseModel


class MediaType(str, Enum):
    PHOTO = "Photo"
    VIDEO = "Video"


class Reaction(PydanticModel):
    user_id: str
    emoji: str = Field(..., min_length=1, max_length=16)


class Comment(PydanticModel):
    id: PydanticObjectId = Field(default_factory=PydanticObjectId)
    user_id: str
    text: str = Field(..., min_length=1, max_length=2000)
    created_at: datetime = Field(default_factory=datetime.utcnow)


class Post(BaseModel):
    """Post model for MongoDB"""

    user_id: str
    group_id: Optional[str] = Field(None)  # Null for feed posts

    title: str = Field(..., min_length=1)
    description: Optional[str] = Field(None)

    # Media is optional, not every post has it
    media_url: Optional[str] = Field(None)
    media_type: Optional[MediaType] = Field(None)

    # Embedded engagement
    likes: List[str] = Field(default_factory=list)
    reactions: List[Reaction] = Field(default_factory=list)
    comments: List[Comment] = Field(default_factory=list)

    class Settings:
        name = "posts"
        indexes = [
            "user_id",
            "group_id",
            "created_at",
        ]

    def find_comment(self, comment_id: str) -> Optional[Comment]:
        for comment in self.comments:
            if str(comment.id) == comment_id:
                return comment
        return None

    def __repr__(self):
        return f"<Post(title='{self.title[:50]}', user_id='{self.user_id}')>"
