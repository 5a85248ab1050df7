from datetime import datetime
from enum import Enum

from pydantic import EmailStr, Field

from .base import BaseModel


class ProjectType(str, Enum):
    FEATURE_FILM = "Feature Film"
    SHORT_FILM = "Short Film"
    WEB_SERIES = "Web Series"
    ADVERTISEMENT = "Advertisement"
    THEATRE = "Theatre"


class RoleType(str, Enum):
    LEAD = "Lead"
    SUPPORTING = "Supporting"
    CAMEO = "Cameo"
    BACKGROUND = "Background"


class CastingCall(BaseModel):
    """Casting call posted by a director or production house"""

    user_id: str
    project_title: str = Field(..., min_length=1)
    project_type: ProjectType
    role_description: str = Field(..., min_length=1)
    role_type: RoleType
    location: str = Field(..., min_length=1)
    application_deadline: datetime
    contact_email: EmailStr
    is_active: bool = Field(default=True)

    class Settings:
        name = "casting_calls"
        indexes = [
            "user_id",
            "is_active",
            "created_at",
        ]

    def __repr__(self):
        return f"<CastingCall(project_title='{self.project_title}', role_type='{self.role_type}')>"
