"""
Durable direct messages.

Messages are stored first. A POST may additionally ask for a live relay to
the receiver; the relay outcome is reported back but never changes whether
the message was stored.
"""

import logging

from fastapi import APIRouter, Depends, Response, status
from pydantic import BaseModel

from stagescout.models.conversation import Conversation
from stagescout.models.message import Message
from stagescout.models.user import User
from stagescout.realtime.endpoint import get_message_relay
from stagescout.realtime.relay import MessageRelay
from stagescout.routes.deps import get_current_user, get_messaging_service
from stagescout.services.messaging import MessagingService
from stagescout.services.users import author_summary, load_user_map

logger = logging.getLogger(__name__)

router = APIRouter()


class StartConversationRequest(BaseModel):
    receiver_id: str


class SendMessageRequest(BaseModel):
    conversation_id: str
    receiver_id: str
    text: str
    relay: bool = False


def serialize_conversation(conversation: Conversation, users: dict) -> dict:
    return {
        'id': str(conversation.id),
        'participants': [
            author_summary(users[uid]) if uid in users else {'id': uid}
            for uid in conversation.participant_ids
        ],
        'created_at': conversation.created_at.isoformat(),
        'updated_at': conversation.updated_at.isoformat(),
    }


def serialize_message(message: Message) -> dict:
    return {
        'id': str(message.id),
        'conversation_id': message.conversation_id,
        'sender_id': message.sender_id,
        'receiver_id': message.receiver_id,
        'text': message.text,
        'created_at': message.created_at.isoformat(),
    }


@router.post("/conversations")
async def start_conversation(
    request: StartConversationRequest,
    response: Response,
    current_user: User = Depends(get_current_user),
    service: MessagingService = Depends(get_messaging_service)
):
    """Return the conversation with ``receiver_id``, creating it if needed"""
    conversation, created = await service.find_or_create_conversation(str(current_user.id), request.receiver_id)
    response.status_code = status.HTTP_201_CREATED if created else status.HTTP_200_OK

    users = await load_user_map(conversation.participant_ids)
    return serialize_conversation(conversation, users)


@router.get("/conversations")
async def get_conversations(
    current_user: User = Depends(get_current_user),
    service: MessagingService = Depends(get_messaging_service)
):
    conversations = await service.list_conversations(str(current_user.id))
    users = await load_user_map(uid for c in conversations for uid in c.participant_ids)
    return [serialize_conversation(c, users) for c in conversations]


@router.post("", status_code=status.HTTP_201_CREATED)
async def send_message(
    request: SendMessageRequest,
    current_user: User = Depends(get_current_user),
    service: MessagingService = Depends(get_messaging_service),
    relay: MessageRelay = Depends(get_message_relay)
):
    sender_id = str(current_user.id)
    message = await service.create_message(request.conversation_id, sender_id, request.receiver_id, request.text)

    result = serialize_message(message)
    if request.relay:
        outcome = await relay.relay(sender_id, request.receiver_id, result)
        result['relay_outcome'] = outcome.value

    return result


@router.get("/{conversation_id}")
async def get_messages(
    conversation_id: str,
    current_user: User = Depends(get_current_user),
    service: MessagingService = Depends(get_messaging_service)
):
    """Messages of a conversation, oldest first"""
    await service.get_conversation(conversation_id, str(current_user.id))
    messages = await service.list_messages(conversation_id)
    return [serialize_message(m) for m in messages]
