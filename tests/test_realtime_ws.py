"""
End-to-end websocket tests against the realtime router.

Every test builds its own app around a fresh ConnectionManager, so presence
never leaks between tests. The TestClient is used as a context manager so all
websocket sessions share one event loop, like in a real server process.
"""

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from starlette.websockets import WebSocketDisconnect

from stagescout.config import settings
from stagescout.realtime import endpoint
from stagescout.realtime.connection_manager import ConnectionManager
from stagescout.security.auth import create_user_token


@pytest.fixture
def ws_manager():
    return ConnectionManager()


def build_app(manager: ConnectionManager) -> FastAPI:
    app = FastAPI()
    app.include_router(endpoint.router)
    app.dependency_overrides[endpoint.get_connection_manager] = lambda: manager
    return app


@pytest.fixture
def client(ws_manager):
    with TestClient(build_app(ws_manager)) as test_client:
        yield test_client


def ws_url(user_id: str) -> str:
    return f"/ws?token={create_user_token(user_id)}"


def identify(ws, user_id: str):
    """Identify and return (roster, identified) as the server sends them"""
    ws.send_json({'type': 'identify', 'user_id': user_id})
    roster = ws.receive_json()
    identified = ws.receive_json()
    return roster, identified


def test_connection_without_token_is_rejected(client):
    with pytest.raises(WebSocketDisconnect) as exc_info:
        with client.websocket_connect("/ws") as ws:
            ws.receive_json()

    assert exc_info.value.code == 4001


def test_connection_with_bad_token_is_rejected(client):
    with pytest.raises(WebSocketDisconnect) as exc_info:
        with client.websocket_connect("/ws?token=not-a-jwt") as ws:
            ws.receive_json()

    assert exc_info.value.code == 4001


def test_identify_flow(client, ws_manager):
    with client.websocket_connect(ws_url("u1")) as ws:
        established = ws.receive_json()
        assert established['type'] == 'connection_established'
        connection_id = established['connection_id']

        roster, identified = identify(ws, "u1")

        assert roster == {
            'type': 'roster_update',
            'users': [{'user_id': 'u1', 'connection_id': connection_id}],
        }
        assert identified['type'] == 'identified'
        assert identified['connection_id'] == connection_id
        assert ws_manager.directory.find("u1").connection_id == connection_id


def test_chat_between_two_users(client, ws_manager):
    with client.websocket_connect(ws_url("u1")) as alice:
        alice.receive_json()
        identify(alice, "u1")

        with client.websocket_connect(ws_url("u2")) as bob:
            bob.receive_json()
            identify(bob, "u2")

            # Alice sees Bob arrive
            roster = alice.receive_json()
            assert [user['user_id'] for user in roster['users']] == ["u1", "u2"]

            alice.send_json({'type': 'send_message', 'sender_id': 'u1', 'receiver_id': 'u2', 'text': 'hi'})
            assert bob.receive_json() == {'type': 'incoming_message', 'sender_id': 'u1', 'payload': 'hi'}
            assert alice.receive_json()['outcome'] == 'delivered'

            alice.send_json({'type': 'send_message', 'sender_id': 'u1', 'receiver_id': 'u3', 'text': 'hey'})
            assert alice.receive_json()['outcome'] == 'offline'

        # Bob left: Alice gets the shrunken roster
        roster = alice.receive_json()
        assert [user['user_id'] for user in roster['users']] == ["u1"]
        assert ws_manager.directory.find("u2") is None


def test_disconnect_clears_presence(client, ws_manager):
    with client.websocket_connect(ws_url("u1")) as ws:
        ws.receive_json()
        identify(ws, "u1")

    # Leaving the session waits for the server side cleanup to finish
    with client.websocket_connect(ws_url("u2")) as ws:
        ws.receive_json()
        roster, _ = identify(ws, "u2")

    assert [user['user_id'] for user in roster['users']] == ["u2"]
    assert ws_manager.directory.find("u1") is None


def test_cannot_identify_as_someone_else(client, ws_manager):
    with client.websocket_connect(ws_url("u1")) as ws:
        ws.receive_json()
        ws.send_json({'type': 'identify', 'user_id': 'u2'})

        response = ws.receive_json()

        assert response['type'] == 'error'
        assert response['message'] == 'Cannot identify as another user'
        assert len(ws_manager.directory) == 0


def test_invalid_json_keeps_connection_open(client):
    with client.websocket_connect(ws_url("u1")) as ws:
        ws.receive_json()

        ws.send_text("{not json")
        assert ws.receive_json()['message'] == 'Invalid JSON format'

        ws.send_json({'type': 'ping'})
        assert ws.receive_json()['type'] == 'pong'


def test_garbage_frames_count_against_rate_limit():
    manager = ConnectionManager(rate_limit_per_minute=2)

    with TestClient(build_app(manager)) as test_client:
        with test_client.websocket_connect(ws_url("u1")) as ws:
            ws.receive_json()

            ws.send_text("{not json")
            ws.send_text("{not json")
            assert ws.receive_json()['message'] == 'Invalid JSON format'
            assert ws.receive_json()['message'] == 'Invalid JSON format'

            ws.send_text("{not json")
            assert ws.receive_json()['message'] == 'Rate limit exceeded. Please slow down.'


def test_tokenless_connections_when_token_not_required(client, ws_manager, monkeypatch):
    monkeypatch.setattr(settings, "WS_REQUIRE_TOKEN", False)

    with client.websocket_connect("/ws") as alice:
        alice.receive_json()
        identify(alice, "guest-1")

        with client.websocket_connect("/ws") as bob:
            bob.receive_json()
            _, identified = identify(bob, "guest-2")
            assert identified['user_id'] == "guest-2"

            roster = alice.receive_json()
            assert [user['user_id'] for user in roster['users']] == ["guest-1", "guest-2"]

            alice.send_json({'type': 'send_message', 'sender_id': 'guest-1', 'receiver_id': 'guest-2', 'text': 'hello'})
            assert bob.receive_json() == {'type': 'incoming_message', 'sender_id': 'guest-1', 'payload': 'hello'}
            assert alice.receive_json()['outcome'] == 'delivered'

        assert ws_manager.get_metadata(ws_manager.directory.find("guest-1").connection_id)['authenticated_user_id'] is None
