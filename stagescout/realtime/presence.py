import logging
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict

logger = logging.getLogger(__name__)


class PresenceEntry(BaseModel):
    """A user reachable on one live connection"""

    model_config = ConfigDict(frozen=True)

    user_id: str
    connection_id: str


def _require_id(value: str, name: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"{name} must be a non-empty string")
    return value


class PresenceDirectory:
    """
    In-memory directory of online users and the connections they identified on.

    Entries are keyed by connection id, so one connection owns at most one
    entry. A user that identifies on several connections owns one entry per
    connection, and each of them only goes away when its own connection
    closes. ``find`` resolves a user to the most recently added entry.

    Not thread-safe. Every call must run on the event loop that owns the
    directory; that is what keeps add/remove and the following ``snapshot``
    consistent without a lock.
    """

    def __init__(self):
        # {connection_id: PresenceEntry}, oldest first
        self._entries: Dict[str, PresenceEntry] = {}

    def add(self, user_id: str, connection_id: str) -> PresenceEntry:
        """Register that ``user_id`` is reachable at ``connection_id``"""
        _require_id(user_id, "user_id")
        _require_id(connection_id, "connection_id")

        entry = PresenceEntry(user_id=user_id, connection_id=connection_id)

        # Re-identifying on the same connection moves it to the newest slot
        self._entries.pop(connection_id, None)
        self._entries[connection_id] = entry
        logger.debug(f"Presence add: user_id={user_id} connection_id={connection_id}")
        return entry

    def remove(self, connection_id: str) -> Optional[PresenceEntry]:
        """Drop the entry owned by ``connection_id``; no-op when there is none"""
        entry = self._entries.pop(connection_id, None)
        if entry is not None:
            logger.debug(f"Presence remove: user_id={entry.user_id} connection_id={connection_id}")
        return entry

    def remove_user(self, user_id: str) -> List[PresenceEntry]:
        """Drop every entry for ``user_id``"""
        removed = [entry for entry in self._entries.values() if entry.user_id == user_id]
        for entry in removed:
            del self._entries[entry.connection_id]
        return removed

    def find(self, user_id: str) -> Optional[PresenceEntry]:
        """Most recent entry for ``user_id``, or None when the user is offline"""
        for entry in reversed(self._entries.values()):
            if entry.user_id == user_id:
                return entry
        return None

    def find_connection(self, connection_id: str) -> Optional[PresenceEntry]:
        return self._entries.get(connection_id)

    def snapshot(self) -> List[PresenceEntry]:
        """Point-in-time copy of all entries, oldest first"""
        return list(self._entries.values())

    def online_user_ids(self) -> List[str]:
        return list(dict.fromkeys(entry.user_id for entry in self._entries.values()))

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, connection_id: object) -> bool:
        return connection_id in self._entries
