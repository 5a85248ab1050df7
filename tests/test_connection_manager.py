"""
Connection lifecycle and roster broadcast tests.
"""

import asyncio

import pytest

from stagescout.realtime.connection_manager import (
    ConnectionManager,
    ConnectionNotFound,
    ConnectionState,
    IdentifyPolicy,
)


def roster_of(event):
    return [(user['user_id'], user['connection_id']) for user in event['users']]


class SlowWebSocket:
    """Accepts at once but holds every send until the gate opens"""

    def __init__(self, gate: asyncio.Event):
        self.gate = gate
        self.sent = []

    async def accept(self):
        pass

    async def send_json(self, data):
        await self.gate.wait()
        self.sent.append(data)


def last_roster_users(sent):
    rosters = [event for event in sent if event.get('type') == 'roster_update']
    return [user['user_id'] for user in rosters[-1]['users']]


async def test_connect_accepts_without_touching_presence(manager, make_socket):
    socket = make_socket()

    connection_id = await manager.connect(socket, {'ip_address': '127.0.0.1'})

    assert socket.accepted
    assert manager.state_of(connection_id) is ConnectionState.CONNECTED
    assert manager.get_metadata(connection_id) == {'ip_address': '127.0.0.1'}
    assert len(manager.directory) == 0
    assert socket.sent == []


async def test_connection_ids_are_unique(manager, make_socket):
    ids = {await manager.connect(make_socket()) for _ in range(5)}

    assert len(ids) == 5


async def test_identify_then_disconnect(manager, make_socket):
    connection_id = await manager.connect(make_socket())

    entry = await manager.identify(connection_id, "u1")
    assert entry.connection_id == connection_id
    assert manager.state_of(connection_id) is ConnectionState.IDENTIFIED
    assert manager.directory.find("u1").connection_id == connection_id

    removed = await manager.disconnect(connection_id)
    assert removed == entry
    assert manager.state_of(connection_id) is ConnectionState.CLOSED
    assert manager.directory.find("u1") is None


async def test_roster_reaches_every_connection_including_trigger(manager, make_socket):
    watcher = make_socket()
    trigger = make_socket()
    await manager.connect(watcher)
    trigger_id = await manager.connect(trigger)

    await manager.identify(trigger_id, "u1")

    for socket in (watcher, trigger):
        rosters = socket.events('roster_update')
        assert len(rosters) == 1
        assert roster_of(rosters[0]) == [("u1", trigger_id)]


async def test_disconnect_broadcasts_roster_without_the_closed_connection(manager, make_socket):
    first, second = make_socket(), make_socket()
    first_id = await manager.connect(first)
    second_id = await manager.connect(second)
    await manager.identify(first_id, "u1")
    await manager.identify(second_id, "u2")

    await manager.disconnect(first_id)

    assert roster_of(second.events('roster_update')[-1]) == [("u2", second_id)]
    # The closed connection gets nothing further
    assert len(first.events('roster_update')) == 2


async def test_disconnect_is_idempotent(manager, make_socket):
    watcher = make_socket()
    await manager.connect(watcher)
    connection_id = await manager.connect(make_socket())
    await manager.identify(connection_id, "u1")

    await manager.disconnect(connection_id)
    broadcasts = len(watcher.events('roster_update'))

    assert await manager.disconnect(connection_id) is None
    assert len(watcher.events('roster_update')) == broadcasts


async def test_disconnect_of_unidentified_connection(manager, make_socket):
    connection_id = await manager.connect(make_socket())

    assert await manager.disconnect(connection_id) is None
    assert await manager.disconnect("never-opened") is None


async def test_identify_unknown_connection_raises(manager):
    with pytest.raises(ConnectionNotFound):
        await manager.identify("missing", "u1")


async def test_failed_send_does_not_stop_broadcast(manager, make_socket):
    broken = make_socket(fail_sends=True)
    healthy = make_socket()
    await manager.connect(broken)
    healthy_id = await manager.connect(healthy)

    await manager.identify(healthy_id, "u1")

    assert len(healthy.events('roster_update')) == 1
    assert manager.directory.find("u1") is not None


async def test_send_to_connection_reports_failure(manager, make_socket):
    connection_id = await manager.connect(make_socket(fail_sends=True))

    assert await manager.send_to_connection(connection_id, {'type': 'pong'}) is False
    assert await manager.send_to_connection("missing", {'type': 'pong'}) is False


async def test_append_policy_keeps_an_entry_per_connection(manager, make_socket):
    first_id = await manager.connect(make_socket())
    second_id = await manager.connect(make_socket())

    await manager.identify(first_id, "u1")
    await manager.identify(second_id, "u1")

    assert len(manager.directory) == 2
    assert manager.directory.find("u1").connection_id == second_id

    await manager.disconnect(second_id)
    assert manager.directory.find("u1").connection_id == first_id


async def test_replace_policy_keeps_one_entry_per_user(make_socket):
    manager = ConnectionManager(identify_policy=IdentifyPolicy.REPLACE)
    first_id = await manager.connect(make_socket())
    second_id = await manager.connect(make_socket())

    await manager.identify(first_id, "u1")
    await manager.identify(second_id, "u1")

    assert [entry.connection_id for entry in manager.directory.snapshot()] == [second_id]

    # Closing the superseded connection leaves the newer entry alone
    await manager.disconnect(first_id)
    assert manager.directory.find("u1").connection_id == second_id


async def test_rate_limit_blocks_after_budget(make_socket):
    manager = ConnectionManager(rate_limit_per_minute=3)
    connection_id = await manager.connect(make_socket())

    assert [manager.rate_limit_check(connection_id) for _ in range(4)] == [True, True, True, False]
    assert manager.rate_limit_check("missing") is False


async def test_slow_connection_does_not_reorder_rosters(manager, make_socket):
    gate = asyncio.Event()
    slow = SlowWebSocket(gate)
    first, second = make_socket(), make_socket()
    await manager.connect(slow)
    first_id = await manager.connect(first)
    second_id = await manager.connect(second)

    identifies = asyncio.gather(
        manager.identify(first_id, "u1"),
        manager.identify(second_id, "u2"),
    )
    for _ in range(5):
        await asyncio.sleep(0)

    # The held connection does not delay anyone else
    assert slow.sent == []
    assert last_roster_users(first.sent) == ["u1", "u2"]
    assert last_roster_users(second.sent) == ["u1", "u2"]

    gate.set()
    await identifies

    assert [[user['user_id'] for user in event['users']] for event in slow.sent] == [["u1"], ["u1", "u2"]]
    assert last_roster_users(first.sent) == manager.get_online_users()


async def test_replaced_connection_falls_back_to_connected(make_socket):
    manager = ConnectionManager(identify_policy=IdentifyPolicy.REPLACE)
    first_id = await manager.connect(make_socket())
    second_id = await manager.connect(make_socket())

    await manager.identify(first_id, "u1")
    await manager.identify(second_id, "u1")

    assert manager.state_of(first_id) is ConnectionState.CONNECTED
    assert manager.state_of(second_id) is ConnectionState.IDENTIFIED
    assert manager._connections[first_id].user_id is None
