import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, EmailStr

from stagescout.errors import ConflictError, PermissionDeniedError
from stagescout.models.casting_call import CastingCall, ProjectType, RoleType
from stagescout.models.notification import Notification, NotificationType
from stagescout.models.user import User, UserRole
from stagescout.realtime.endpoint import get_message_relay
from stagescout.realtime.relay import MessageRelay
from stagescout.routes.deps import get_current_user, get_or_404
from stagescout.services.notifications import list_notifications, push_notification
from stagescout.services.users import author_summary, load_user_map

logger = logging.getLogger(__name__)

router = APIRouter()

CASTING_ROLES = {UserRole.DIRECTOR, UserRole.FILMMAKER, UserRole.PRODUCTION_HOUSE}


class CreateCastingCallRequest(BaseModel):
    project_title: str
    project_type: ProjectType
    role_description: str
    role_type: RoleType
    location: str
    application_deadline: datetime
    contact_email: EmailStr


def serialize_casting_call(call: CastingCall, owner: Optional[User] = None) -> dict:
    return {
        'id': str(call.id),
        'user': author_summary(owner) if owner else None,
        'project_title': call.project_title,
        'project_type': call.project_type,
        'role_description': call.role_description,
        'role_type': call.role_type,
        'location': call.location,
        'application_deadline': call.application_deadline.isoformat(),
        'contact_email': call.contact_email,
        'is_active': call.is_active,
        'created_at': call.created_at.isoformat(),
    }


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_casting_call(request: CreateCastingCallRequest, current_user: User = Depends(get_current_user)):
    if current_user.role not in CASTING_ROLES:
        raise PermissionDeniedError("You are not authorized to post casting calls.")

    call = CastingCall(user_id=str(current_user.id), **request.model_dump())
    await call.insert()

    logger.info(f"Casting call {call.id} posted by {current_user.id}")
    return serialize_casting_call(call, current_user)


@router.get("")
async def list_casting_calls(current_user: User = Depends(get_current_user)):
    """Active casting calls, newest first"""
    calls = await CastingCall.find(CastingCall.is_active == True).sort('-created_at').to_list()  # noqa: E712
    owners = await load_user_map(call.user_id for call in calls)
    return [serialize_casting_call(call, owners.get(call.user_id)) for call in calls]


@router.get("/notifications")
async def get_casting_notifications(current_user: User = Depends(get_current_user)):
    return await list_notifications(str(current_user.id))


@router.post("/{casting_call_id}/apply", status_code=status.HTTP_201_CREATED)
async def apply_to_casting_call(
    casting_call_id: str,
    current_user: User = Depends(get_current_user),
    relay: MessageRelay = Depends(get_message_relay)
):
    """Apply once to a casting call; the owner is notified, live if online"""
    call = await get_or_404(CastingCall, casting_call_id, "Casting call")
    applicant_id = str(current_user.id)

    existing = await Notification.find_one(
        Notification.applicant_id == applicant_id,
        Notification.casting_call_id == casting_call_id,
    )
    if existing:
        raise ConflictError("You have already applied to this casting call.")

    notification = Notification(
        applicant_id=applicant_id,
        recipient_id=call.user_id,
        casting_call_id=casting_call_id,
        type=NotificationType.APPLICATION,
    )
    await notification.insert()

    # Stored first; the live push may miss and that is fine
    await push_notification(relay, notification, current_user, call)

    return {'success': True, 'message': 'Application submitted successfully'}
