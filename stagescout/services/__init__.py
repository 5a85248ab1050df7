from .messaging import MessagingService
from .media import MediaStore, media_store
from .leaderboard import build_leaderboard_pipeline, get_leaderboard

__all__ = [
    "MessagingService",
    "MediaStore",
    "media_store",
    "build_leaderboard_pipeline",
    "get_leaderboard",
]
