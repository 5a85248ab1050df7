import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, Iterable, List

from stagescout.realtime.presence import PresenceEntry

logger = logging.getLogger(__name__)

SendFn = Callable[[str, Dict[str, Any]], Awaitable[bool]]


class RosterBroadcaster:
    """Pushes the full roster to every connected party"""

    def __init__(self, send: SendFn):
        self._send = send

    @staticmethod
    def build_event(snapshot: List[PresenceEntry]) -> Dict[str, Any]:
        return {
            'type': 'roster_update',
            'users': [entry.model_dump() for entry in snapshot],
        }

    async def broadcast(self, snapshot: List[PresenceEntry], recipients: Iterable[str]) -> int:
        """
        Send ``snapshot`` as a roster-replace event to each recipient.

        Sends to all recipients are started together, in the order broadcasts
        are made, so a slow connection never holds up the others and every
        connection receives rosters in mutation order. A failure for one
        recipient is logged and skipped. Returns how many sends succeeded.
        """
        event = self.build_event(snapshot)
        recipients = list(recipients)

        results = await asyncio.gather(
            *(self._send(connection_id, event) for connection_id in recipients),
            return_exceptions=True,
        )

        sent_count = 0
        for connection_id, result in zip(recipients, results):
            if isinstance(result, BaseException):
                logger.warning(f"Roster broadcast to connection {connection_id} failed: {result}")
            elif result:
                sent_count += 1

        logger.debug(f"Roster of {len(snapshot)} entries sent to {sent_count} connections")
        return sent_count
