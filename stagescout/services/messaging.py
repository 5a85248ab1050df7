import logging
from typing import List, Tuple

from bson import ObjectId

from stagescout.errors import NotFoundError, PermissionDeniedError, ValidationFailedError
from stagescout.models.conversation import Conversation
from stagescout.models.message import Message
from stagescout.security.validation import validate_message

logger = logging.getLogger(__name__)


class MessagingService:
    """
    Durable direct messages.

    Persistence only: live delivery is the realtime relay's job and the two
    are never coupled here. Callers that want both persist first and relay
    afterwards.
    """

    async def find_or_create_conversation(self, sender_id: str, receiver_id: str) -> Tuple[Conversation, bool]:
        """Return the conversation between two users and whether it was just created"""
        if sender_id == receiver_id:
            raise ValidationFailedError("Cannot start a conversation with yourself")

        conversation = await Conversation.find_one({
            'participant_ids': {'$all': [sender_id, receiver_id], '$size': 2}
        })
        if conversation:
            return conversation, False

        conversation = Conversation(participant_ids=[sender_id, receiver_id])
        await conversation.insert()
        logger.info(f"Conversation {conversation.id} created between {sender_id} and {receiver_id}")
        return conversation, True

    async def list_conversations(self, user_id: str) -> List[Conversation]:
        return await Conversation.find({'participant_ids': user_id}).sort('-updated_at').to_list()

    async def get_conversation(self, conversation_id: str, user_id: str) -> Conversation:
        conversation = await Conversation.get(conversation_id) if ObjectId.is_valid(conversation_id) else None
        if not conversation:
            raise NotFoundError("Conversation not found")

        if user_id not in conversation.participant_ids:
            raise PermissionDeniedError("You are not a participant in this conversation")

        return conversation

    async def create_message(self, conversation_id: str, sender_id: str, receiver_id: str, text: str) -> Message:
        """Store a message in a conversation both users take part in"""
        validation = validate_message(text or "")
        if not validation['is_valid']:
            raise ValidationFailedError(' '.join(validation['errors']))

        conversation = await self.get_conversation(conversation_id, sender_id)
        if receiver_id not in conversation.participant_ids:
            raise ValidationFailedError("Receiver is not a participant in this conversation")

        message = Message(
            conversation_id=conversation_id,
            sender_id=sender_id,
            receiver_id=receiver_id,
            text=text,
        )
        await message.insert()

        # Bump the conversation so it sorts first in the inbox
        await conversation.save()

        logger.info(f"Message {message.id} stored in conversation {conversation_id}")
        return message

    async def list_messages(self, conversation_id: str) -> List[Message]:
        """Messages of a conversation, oldest first"""
        return await Message.find(Message.conversation_id == conversation_id).sort('+created_at').to_list()
