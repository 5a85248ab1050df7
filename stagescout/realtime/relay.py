import logging
from enum import Enum
from typing import Any, Dict

from pydantic import BaseModel, ConfigDict

from stagescout.realtime.connection_manager import ConnectionManager

logger = logging.getLogger(__name__)


class RelayOutcome(str, Enum):
    DELIVERED = "delivered"  # handed to the receiver's connection
    OFFLINE = "offline"      # receiver not in the directory
    DROPPED = "dropped"      # receiver found, push failed on the transport


class SendIntent(BaseModel):
    """One live send attempt; never stored"""

    model_config = ConfigDict(frozen=True)

    sender_id: str
    receiver_id: str
    payload: Any = None


class MessageRelay:
    """
    Best-effort, at-most-once live delivery.

    Looks the receiver up in the presence directory at the moment of sending
    and pushes to that one connection. There is no ack, no retry and no
    buffering; a message that misses the live path is only as durable as
    whatever the caller persisted beforehand. The relay only reads the
    directory, it never changes it.
    """

    def __init__(self, connection_manager: ConnectionManager):
        self.connection_manager = connection_manager

    async def relay(self, sender_id: str, receiver_id: str, payload: Any) -> RelayOutcome:
        intent = SendIntent(sender_id=sender_id, receiver_id=receiver_id, payload=payload)
        return await self.deliver(intent)

    async def deliver(self, intent: SendIntent) -> RelayOutcome:
        event = {
            'type': 'incoming_message',
            'sender_id': intent.sender_id,
            'payload': intent.payload,
        }
        outcome = await self.push(intent.receiver_id, event)
        logger.info(f"Relay {intent.sender_id} -> {intent.receiver_id}: {outcome.value}")
        return outcome

    async def push(self, user_id: str, event: Dict[str, Any]) -> RelayOutcome:
        """Push an arbitrary event to the user's current connection, if any"""
        entry = self.connection_manager.directory.find(user_id)
        if entry is None:
            logger.debug(f"User {user_id} is offline, live push skipped")
            return RelayOutcome.OFFLINE

        if await self.connection_manager.send_to_connection(entry.connection_id, event):
            return RelayOutcome.DELIVERED
        return RelayOutcome.DROPPED
