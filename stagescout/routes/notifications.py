from fastapi import APIRouter, Depends

from stagescout.models.user import User
from stagescout.routes.deps import get_current_user
from stagescout.services.notifications import list_notifications

router = APIRouter()


@router.get("")
async def get_notifications(current_user: User = Depends(get_current_user)):
    """All notifications for the logged-in user, newest first"""
    return await list_notifications(str(current_user.id))
