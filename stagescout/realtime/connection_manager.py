import asyncio
import logging
import time
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from fastapi import WebSocket

from stagescout.config import settings
from stagescout.realtime.presence import PresenceDirectory, PresenceEntry
from stagescout.realtime.roster import RosterBroadcaster

logger = logging.getLogger(__name__)


class ConnectionState(str, Enum):
    CONNECTED = "connected"
    IDENTIFIED = "identified"
    CLOSED = "closed"


class IdentifyPolicy(str, Enum):
    APPEND = "append"    # every identify adds an entry for its connection
    REPLACE = "replace"  # identify drops the user's entries on other connections


class ConnectionNotFound(Exception):
    """Raised when an operation names a connection that is not open"""


@dataclass
class Connection:
    connection_id: str
    websocket: WebSocket
    state: ConnectionState = ConnectionState.CONNECTED
    user_id: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)
    connected_at: datetime = field(default_factory=datetime.utcnow)

    # Serialises outbound frames so each connection sees them in send order
    send_lock: asyncio.Lock = field(default_factory=asyncio.Lock)

    # Rate limiting
    window_started: float = field(default_factory=time.monotonic)
    messages_in_window: int = 0
    blocked_until: Optional[float] = None


class ConnectionManager:
    """
    Owns the open realtime connections and the presence directory.

    Connection lifecycle: ``connected`` when the transport is accepted,
    ``identified`` once the client says which user it is, ``closed`` when the
    transport goes away. Every directory change is followed by a roster
    broadcast to all open connections.

    The directory change and the snapshot that gets broadcast happen without
    an await in between, so on a single event loop no other event can land
    between them. Frames to one connection go out one at a time, in the
    order they were sent.
    """

    def __init__(self, identify_policy: str = IdentifyPolicy.APPEND, rate_limit_per_minute: Optional[int] = None):
        self.directory = PresenceDirectory()
        self.roster = RosterBroadcaster(self.send_to_connection)
        self.identify_policy = IdentifyPolicy(identify_policy)
        self.rate_limit_per_minute = rate_limit_per_minute or settings.RATE_LIMIT_PER_MINUTE

        # Open connections: {connection_id: Connection}
        self._connections: Dict[str, Connection] = {}

    async def connect(self, websocket: WebSocket, metadata: Optional[Dict[str, Any]] = None) -> str:
        """Accept a transport connection and hand out its connection id"""
        await websocket.accept()

        connection_id = uuid.uuid4().hex
        self._connections[connection_id] = Connection(
            connection_id=connection_id,
            websocket=websocket,
            metadata=dict(metadata or {}),
        )

        logger.info(f"Connection {connection_id} opened")
        return connection_id

    async def identify(self, connection_id: str, user_id: str) -> PresenceEntry:
        """Bind an open connection to ``user_id`` and broadcast the new roster"""
        connection = self._connections.get(connection_id)
        if connection is None:
            raise ConnectionNotFound(connection_id)

        if self.identify_policy is IdentifyPolicy.REPLACE:
            for stale in self.directory.remove_user(user_id):
                if stale.connection_id == connection_id:
                    continue
                superseded = self._connections.get(stale.connection_id)
                if superseded is not None:
                    superseded.state = ConnectionState.CONNECTED
                    superseded.user_id = None
                logger.info(f"User {user_id} replaced on connection {stale.connection_id}")

        entry = self.directory.add(user_id, connection_id)
        connection.state = ConnectionState.IDENTIFIED
        connection.user_id = user_id

        logger.info(f"Connection {connection_id} identified as user {user_id}")
        await self._broadcast_roster()
        return entry

    async def disconnect(self, connection_id: str, reason: str = "Connection closed") -> Optional[PresenceEntry]:
        """
        Forget a closed connection and broadcast the new roster.

        Safe for connections that never identified and for repeated calls;
        only the first call for a connection broadcasts.
        """
        connection = self._connections.pop(connection_id, None)
        entry = self.directory.remove(connection_id)

        if connection is None:
            logger.debug(f"Connection {connection_id} already closed")
            return entry

        connection.state = ConnectionState.CLOSED
        logger.info(f"Connection {connection_id} closed (user {connection.user_id}): {reason}")

        await self._broadcast_roster()
        return entry

    async def send_to_connection(self, connection_id: str, message: Dict[str, Any]) -> bool:
        """Push one event to one connection; False if it is gone or the send fails"""
        connection = self._connections.get(connection_id)
        if connection is None:
            return False

        try:
            async with connection.send_lock:
                await connection.websocket.send_json(message)
            return True
        except Exception as e:
            logger.warning(f"Error sending to connection {connection_id}: {e}")
            return False

    async def _broadcast_roster(self) -> int:
        snapshot = self.directory.snapshot()
        recipients = list(self._connections)
        return await self.roster.broadcast(snapshot, recipients)

    def rate_limit_check(self, connection_id: str) -> bool:
        """Count one inbound frame; False while the connection is over its budget"""
        connection = self._connections.get(connection_id)
        if connection is None:
            return False

        now = time.monotonic()

        # Reset counter if a minute has passed
        if now - connection.window_started > 60:
            connection.window_started = now
            connection.messages_in_window = 0
            connection.blocked_until = None

        if connection.blocked_until is not None and now < connection.blocked_until:
            return False

        if connection.messages_in_window >= self.rate_limit_per_minute:
            connection.blocked_until = now + 60
            return False

        connection.messages_in_window += 1
        return True

    def state_of(self, connection_id: str) -> ConnectionState:
        connection = self._connections.get(connection_id)
        return connection.state if connection else ConnectionState.CLOSED

    def get_metadata(self, connection_id: str) -> Dict[str, Any]:
        connection = self._connections.get(connection_id)
        return dict(connection.metadata) if connection else {}

    def connection_ids(self) -> List[str]:
        return list(self._connections)

    def get_online_users(self) -> List[str]:
        return self.directory.online_user_ids()
