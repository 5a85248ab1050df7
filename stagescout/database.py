import logging
from typing import Optional

from beanie import init_beanie
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase

from stagescout.config import settings
from stagescout.models import DOCUMENT_MODELS

logger = logging.getLogger(__name__)


class Database:
    client: Optional[AsyncIOMotorClient] = None
    database: Optional[AsyncIOMotorDatabase] = None


db = Database()


async def init_database():
    """Initialize database connection and collections"""
    db.client = AsyncIOMotorClient(settings.MONGODB_URL)
    db.database = db.client[settings.DATABASE_NAME]

    # Initialize Beanie with the database
    await init_beanie(database=db.database, document_models=DOCUMENT_MODELS)
    logger.info(f"MongoDB connected: {settings.DATABASE_NAME}")


async def close_database():
    """Close database connection"""
    if db.client:
        db.client.close()
        db.client = None
        db.database = None
