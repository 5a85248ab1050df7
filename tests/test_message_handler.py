"""
Inbound frame handling at the protocol boundary.
"""

import pytest

from stagescout.config import settings


async def open_connection(manager, make_socket):
    socket = make_socket()
    return await manager.connect(socket), socket


async def test_ping_gets_pong(handler, manager, make_socket):
    connection_id, _ = await open_connection(manager, make_socket)

    response = await handler.handle_message(connection_id, {'type': 'ping'})

    assert response['type'] == 'pong'
    assert 'timestamp' in response


async def test_identify_registers_presence(handler, manager, make_socket):
    connection_id, _ = await open_connection(manager, make_socket)

    response = await handler.handle_message(connection_id, {'type': 'identify', 'user_id': 'u1'})

    assert response['type'] == 'identified'
    assert response['user_id'] == 'u1'
    assert response['connection_id'] == connection_id
    assert manager.directory.find('u1').connection_id == connection_id


@pytest.mark.parametrize("frame", [
    {'type': 'identify'},
    {'type': 'identify', 'user_id': ''},
    {'type': 'identify', 'user_id': 42},
    {'type': 'identify', 'user_id': None},
])
async def test_malformed_identify_never_reaches_directory(handler, manager, make_socket, frame):
    connection_id, _ = await open_connection(manager, make_socket)

    response = await handler.handle_message(connection_id, frame)

    assert response['type'] == 'error'
    assert len(manager.directory) == 0


async def test_unknown_type_is_an_error(handler, manager, make_socket):
    connection_id, _ = await open_connection(manager, make_socket)

    response = await handler.handle_message(connection_id, {'type': 'teleport'})

    assert response == {
        'type': 'error',
        'message': 'Unknown message type: teleport',
        'timestamp': response['timestamp'],
    }


async def test_non_object_frame_is_an_error(handler, manager, make_socket):
    connection_id, _ = await open_connection(manager, make_socket)

    response = await handler.handle_message(connection_id, ["identify", "u1"])

    assert response['type'] == 'error'


async def test_identify_must_match_token_user(handler, manager, make_socket):
    connection_id, _ = await open_connection(manager, make_socket)

    response = await handler.handle_message(
        connection_id, {'type': 'identify', 'user_id': 'u2'}, authenticated_user_id='u1'
    )

    assert response['message'] == 'Cannot identify as another user'
    assert manager.directory.find('u2') is None


async def test_send_message_reports_relay_outcome(handler, manager, make_socket):
    sender_id, _ = await open_connection(manager, make_socket)
    receiver_id, receiver = await open_connection(manager, make_socket)
    await manager.identify(sender_id, 'u1')
    await manager.identify(receiver_id, 'u2')

    delivered = await handler.handle_message(
        sender_id, {'type': 'send_message', 'sender_id': 'u1', 'receiver_id': 'u2', 'text': 'hi'}
    )
    offline = await handler.handle_message(
        sender_id, {'type': 'send_message', 'sender_id': 'u1', 'receiver_id': 'u3', 'text': 'hey'}
    )

    assert delivered['type'] == 'message_relayed'
    assert delivered['outcome'] == 'delivered'
    assert offline['outcome'] == 'offline'
    assert receiver.events('incoming_message')[0]['payload'] == 'hi'


async def test_send_message_prefers_payload_over_text(handler, manager, make_socket):
    sender_id, _ = await open_connection(manager, make_socket)
    receiver_id, receiver = await open_connection(manager, make_socket)
    await manager.identify(receiver_id, 'u2')

    await handler.handle_message(sender_id, {
        'type': 'send_message', 'sender_id': 'u1', 'receiver_id': 'u2',
        'payload': {'text': 'hi', 'message_id': 'm1'}, 'text': 'ignored',
    })

    assert receiver.events('incoming_message')[0]['payload'] == {'text': 'hi', 'message_id': 'm1'}


async def test_send_message_requires_ids(handler, manager, make_socket):
    connection_id, _ = await open_connection(manager, make_socket)

    response = await handler.handle_message(connection_id, {'type': 'send_message', 'sender_id': 'u1', 'text': 'hi'})

    assert response['type'] == 'error'


async def test_send_message_cannot_spoof_sender(handler, manager, make_socket):
    connection_id, _ = await open_connection(manager, make_socket)

    response = await handler.handle_message(
        connection_id,
        {'type': 'send_message', 'sender_id': 'u2', 'receiver_id': 'u3', 'text': 'hi'},
        authenticated_user_id='u1',
    )

    assert response['message'] == 'Cannot send as another user'


async def test_send_message_rejects_oversized_text(handler, manager, make_socket):
    connection_id, _ = await open_connection(manager, make_socket)

    response = await handler.handle_message(connection_id, {
        'type': 'send_message', 'sender_id': 'u1', 'receiver_id': 'u2',
        'text': 'x' * (settings.MAX_MESSAGE_LENGTH + 1),
    })

    assert response['type'] == 'error'
    assert response['message'].startswith('Message too long')
