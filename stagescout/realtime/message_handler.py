import logging
from datetime import datetime
from typing import Any, Dict, Optional

from stagescout.config import settings
from stagescout.realtime.connection_manager import ConnectionManager
from stagescout.realtime.relay import MessageRelay

logger = logging.getLogger(__name__)


def _is_valid_id(value: Any) -> bool:
    return isinstance(value, str) and bool(value.strip())


class MessageHandler:
    """
    Protocol boundary for inbound realtime frames.

    Malformed frames are answered with an ``error`` event here and never
    reach the presence directory. When the connection was opened with a
    bearer token, clients may only identify and send as that token's user.
    """

    def __init__(self, connection_manager: ConnectionManager, relay: MessageRelay):
        self.connection_manager = connection_manager
        self.relay = relay

    def get_current_time(self) -> str:
        """Get current timestamp in ISO format"""
        return datetime.utcnow().isoformat()

    def error(self, message: str) -> Dict[str, Any]:
        return {
            'type': 'error',
            'message': message,
            'timestamp': self.get_current_time()
        }

    async def handle_message(
        self,
        connection_id: str,
        message_data: Any,
        authenticated_user_id: Optional[str] = None,
    ) -> Optional[Dict[str, Any]]:
        """Dispatch one decoded frame; returns the reply for the sending connection"""
        if not isinstance(message_data, dict):
            return self.error('Message must be a JSON object')

        message_type = message_data.get('type')

        if message_type == 'ping':
            return await self.handle_ping(connection_id, message_data)
        elif message_type == 'identify':
            return await self.handle_identify(connection_id, message_data, authenticated_user_id)
        elif message_type == 'send_message':
            return await self.handle_send_message(connection_id, message_data, authenticated_user_id)
        else:
            return self.error(f'Unknown message type: {message_type}')

    async def handle_ping(self, connection_id: str, message_data: Dict[str, Any]) -> Dict[str, Any]:
        return {
            'type': 'pong',
            'timestamp': self.get_current_time()
        }

    async def handle_identify(
        self,
        connection_id: str,
        message_data: Dict[str, Any],
        authenticated_user_id: Optional[str],
    ) -> Dict[str, Any]:
        user_id = message_data.get('user_id')

        if not _is_valid_id(user_id):
            return self.error('user_id is required')

        if authenticated_user_id is not None and user_id != authenticated_user_id:
            logger.warning(f"Connection {connection_id} tried to identify as {user_id}, token is for {authenticated_user_id}")
            return self.error('Cannot identify as another user')

        entry = await self.connection_manager.identify(connection_id, user_id)

        return {
            'type': 'identified',
            'user_id': entry.user_id,
            'connection_id': entry.connection_id,
            'timestamp': self.get_current_time()
        }

    async def handle_send_message(
        self,
        connection_id: str,
        message_data: Dict[str, Any],
        authenticated_user_id: Optional[str],
    ) -> Dict[str, Any]:
        sender_id = message_data.get('sender_id')
        receiver_id = message_data.get('receiver_id')
        payload = message_data.get('payload', message_data.get('text'))

        if not _is_valid_id(sender_id) or not _is_valid_id(receiver_id):
            return self.error('sender_id and receiver_id are required')

        if authenticated_user_id is not None and sender_id != authenticated_user_id:
            return self.error('Cannot send as another user')

        if isinstance(payload, str) and len(payload) > settings.MAX_MESSAGE_LENGTH:
            return self.error(f'Message too long. Maximum {settings.MAX_MESSAGE_LENGTH} characters allowed.')

        outcome = await self.relay.relay(sender_id, receiver_id, payload)

        return {
            'type': 'message_relayed',
            'receiver_id': receiver_id,
            'outcome': outcome.value,
            'timestamp': self.get_current_time()
        }
