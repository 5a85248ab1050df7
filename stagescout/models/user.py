from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import EmailStr, Field

from .base import BaseModel

DEFAULT_AVATAR_URL = "https://placehold.co/150x150/1a202c/ffffff?text=Avatar"


class UserRole(str, Enum):
    ACTOR = "Actor"
    MODEL = "Model"
    FILMMAKER = "Filmmaker"
    DIRECTOR = "Director"
    WRITER = "Writer"
    PHOTOGRAPHER = "Photographer"
    EDITOR = "Editor"
    MUSICIAN = "Musician"
    CREATOR = "Creator"
    STUDENT = "Student"
    PRODUCTION_HOUSE = "Production House"


class User(BaseModel):
    """User model for MongoDB"""

    # Basic info
    full_name: str = Field(..., min_length=1, max_length=100)
    username: Optional[str] = Field(None, min_length=3, max_length=50)
    email: EmailStr
    role: Optional[UserRole] = Field(None)
    location: Optional[str] = Field(None, max_length=200)

    # Security
    password_hash: Optional[str] = Field(None)
    username_last_changed: Optional[datetime] = Field(None)

    # Profile
    bio: str = Field(default="", max_length=500)
    skills: List[str] = Field(default_factory=list)
    profile_picture_url: str = Field(default=DEFAULT_AVATAR_URL)
    cover_photo_url: str = Field(default="")
    resume_url: str = Field(default="")

    # Social graph, stored as user id strings
    followers: List[str] = Field(default_factory=list)
    following: List[str] = Field(default_factory=list)

    is_verified: bool = Field(default=False)
    is_new_user: bool = Field(default=True)

    class Settings:
        name = "users"
        indexes = [
            "email",
            "username",
            "role",
            "full_name",
        ]

    def __repr__(self):
        return f"<User(username='{self.username}', email='{self.email}')>"
