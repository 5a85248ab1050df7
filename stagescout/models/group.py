from typing import List

from pydantic import Field

from .base import BaseModel

DEFAULT_GROUP_COVER_URL = "https://placehold.co/1200x400/1a202c/4f46e5?text=StageScout+Group"


class Group(BaseModel):
    """Group model for MongoDB"""

    name: str = Field(..., min_length=1, max_length=100)
    description: str = Field(..., min_length=1, max_length=1000)
    cover_image: str = Field(default=DEFAULT_GROUP_COVER_URL)

    admin_id: str
    member_ids: List[str] = Field(default_factory=list)
    moderator_ids: List[str] = Field(default_factory=list)
    is_private: bool = Field(default=False)

    class Settings:
        name = "groups"
        indexes = [
            "name",
            "admin_id",
            "member_ids",
            "is_private",
        ]

    def is_member(self, user_id: str) -> bool:
        return user_id in self.member_ids

    def is_admin(self, user_id: str) -> bool:
        return self.admin_id == user_id

    def __repr__(self):
        return f"<Group(name='{self.name}', admin_id='{self.admin_id}')>"
