from fastapi import APIRouter, Depends

from stagescout.models.user import User
from stagescout.realtime.connection_manager import ConnectionManager
from stagescout.realtime.endpoint import get_connection_manager
from stagescout.routes.deps import get_current_user

router = APIRouter()


@router.get("")
async def get_roster(
    current_user: User = Depends(get_current_user),
    manager: ConnectionManager = Depends(get_connection_manager)
):
    """Who is online right now"""
    return {
        'users': [entry.model_dump() for entry in manager.directory.snapshot()],
        'online_user_ids': manager.get_online_users(),
    }


@router.get("/{user_id}")
async def get_user_presence(
    user_id: str,
    current_user: User = Depends(get_current_user),
    manager: ConnectionManager = Depends(get_connection_manager)
):
    entry = manager.directory.find(user_id)
    return {
        'user_id': user_id,
        'online': entry is not None,
        'connection_id': entry.connection_id if entry else None,
    }
