from typing import Optional

from fastapi import APIRouter, Query

from stagescout.config import settings
from stagescout.services.leaderboard import get_leaderboard

router = APIRouter()


@router.get("")
async def leaderboard(
    limit: int = Query(settings.LEADERBOARD_DEFAULT_LIMIT, ge=1, le=100),
    role: Optional[str] = Query(None)
):
    """Top users by engagement"""
    return await get_leaderboard(limit, role)
