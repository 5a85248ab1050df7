from .presence import PresenceDirectory, PresenceEntry
from .roster import RosterBroadcaster
from .connection_manager import ConnectionManager, ConnectionNotFound, ConnectionState, IdentifyPolicy
from .relay import MessageRelay, RelayOutcome, SendIntent
from .message_handler import MessageHandler

__all__ = [
    "PresenceDirectory",
    "PresenceEntry",
    "RosterBroadcaster",
    "ConnectionManager",
    "ConnectionNotFound",
    "ConnectionState",
    "IdentifyPolicy",
    "MessageRelay",
    "RelayOutcome",
    "SendIntent",
    "MessageHandler",
]
