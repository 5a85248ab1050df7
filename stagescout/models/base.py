from datetime import datetime

from beanie import Document, before_event, Replace, Save, SaveChanges, Update
from pydantic import Field


class BaseModel(Document):
    """Base document with creation and update timestamps"""

    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    @before_event(Save, Replace, SaveChanges, Update)
    def touch(self):
        self.updated_at = datetime.utcnow()
