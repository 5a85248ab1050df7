"""
Pytest configuration for StageScout backend tests.
"""

import os

# Settings are read at import time
os.environ.setdefault("SECRET_KEY", "test-secret-key-with-at-least-thirty-two-chars")

import pytest

from stagescout.realtime.connection_manager import ConnectionManager
from stagescout.realtime.message_handler import MessageHandler
from stagescout.realtime.relay import MessageRelay


class FakeWebSocket:
    """Stands in for a Starlette WebSocket in unit tests"""

    def __init__(self, fail_sends: bool = False):
        self.accepted = False
        self.fail_sends = fail_sends
        self.sent = []

    async def accept(self):
        self.accepted = True

    async def send_json(self, data):
        if self.fail_sends:
            raise RuntimeError("socket is closed")
        self.sent.append(data)

    def events(self, event_type: str):
        return [event for event in self.sent if event.get('type') == event_type]


@pytest.fixture
def make_socket():
    return FakeWebSocket


@pytest.fixture
def manager():
    return ConnectionManager()


@pytest.fixture
def relay(manager):
    return MessageRelay(manager)


@pytest.fixture
def handler(manager, relay):
    return MessageHandler(manager, relay)
