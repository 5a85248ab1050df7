import logging
from typing import Any, Dict, List, Optional

from beanie import PydanticObjectId
from bson import ObjectId

from stagescout.models.casting_call import CastingCall
from stagescout.models.notification import Notification
from stagescout.models.user import User
from stagescout.realtime.relay import MessageRelay, RelayOutcome
from stagescout.services.users import author_summary, load_user_map

logger = logging.getLogger(__name__)


def serialize_notification(notification: Notification, applicant: Optional[User] = None, casting_call: Optional[CastingCall] = None) -> Dict[str, Any]:
    return {
        'id': str(notification.id),
        'type': notification.type,
        'status': notification.status,
        'recipient_id': notification.recipient_id,
        'applicant': author_summary(applicant) if applicant else None,
        'casting_call': {
            'id': str(casting_call.id),
            'project_title': casting_call.project_title,
            'project_type': casting_call.project_type,
            'role_type': casting_call.role_type,
        } if casting_call else None,
        'created_at': notification.created_at.isoformat(),
    }


async def list_notifications(recipient_id: str) -> List[Dict[str, Any]]:
    """Notifications for a user, newest first, with applicant and casting call resolved"""
    notifications = await Notification.find(
        Notification.recipient_id == recipient_id
    ).sort('-created_at').to_list()

    applicants = await load_user_map(n.applicant_id for n in notifications)

    call_ids = {n.casting_call_id for n in notifications if ObjectId.is_valid(n.casting_call_id)}
    calls = await CastingCall.find({'_id': {'$in': [PydanticObjectId(cid) for cid in call_ids]}}).to_list()
    calls_by_id = {str(call.id): call for call in calls}

    return [
        serialize_notification(n, applicants.get(n.applicant_id), calls_by_id.get(n.casting_call_id))
        for n in notifications
    ]


async def push_notification(relay: MessageRelay, notification: Notification, applicant: User, casting_call: CastingCall) -> RelayOutcome:
    """Best-effort live push of a stored notification to its recipient"""
    event = {
        'type': 'notification',
        'notification': serialize_notification(notification, applicant, casting_call),
    }
    outcome = await relay.push(notification.recipient_id, event)
    logger.debug(f"Notification {notification.id} push to {notification.recipient_id}: {outcome.value}")
    return outcome
