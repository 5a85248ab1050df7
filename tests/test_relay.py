"""
Live relay outcomes.
"""

from stagescout.realtime.relay import RelayOutcome, SendIntent


async def identified(manager, socket, user_id):
    connection_id = await manager.connect(socket)
    await manager.identify(connection_id, user_id)
    return connection_id


async def test_relay_reaches_only_the_receiver(manager, relay, make_socket):
    alice, bob = make_socket(), make_socket()
    await identified(manager, alice, "u1")
    await identified(manager, bob, "u2")

    outcome = await relay.relay("u1", "u2", "hi")

    assert outcome is RelayOutcome.DELIVERED
    assert bob.events('incoming_message') == [
        {'type': 'incoming_message', 'sender_id': 'u1', 'payload': 'hi'}
    ]
    assert alice.events('incoming_message') == []


async def test_relay_to_unknown_user_is_offline(manager, relay, make_socket):
    await identified(manager, make_socket(), "u2")
    before = manager.directory.snapshot()

    outcome = await relay.relay("u2", "u3", "hey")

    assert outcome is RelayOutcome.OFFLINE
    assert manager.directory.snapshot() == before


async def test_relay_after_disconnect_is_offline(manager, relay, make_socket):
    connection_id = await identified(manager, make_socket(), "u1")
    await manager.disconnect(connection_id)

    assert await relay.relay("u2", "u1", "still there?") is RelayOutcome.OFFLINE


async def test_failed_push_is_dropped_not_raised(manager, relay, make_socket):
    socket = make_socket()
    await identified(manager, socket, "u1")
    socket.fail_sends = True

    assert await relay.relay("u2", "u1", "hello") is RelayOutcome.DROPPED
    # Dropping never evicts the entry; only a close does
    assert manager.directory.find("u1") is not None


async def test_relay_goes_to_most_recent_connection(manager, relay, make_socket):
    old, new = make_socket(), make_socket()
    await identified(manager, old, "u1")
    await identified(manager, new, "u1")

    await relay.relay("u2", "u1", "ping")

    assert len(new.events('incoming_message')) == 1
    assert old.events('incoming_message') == []


async def test_same_receiver_relays_keep_order(manager, relay, make_socket):
    bob = make_socket()
    await identified(manager, bob, "u2")

    for text in ("one", "two", "three"):
        await relay.relay("u1", "u2", text)

    assert [event['payload'] for event in bob.events('incoming_message')] == ["one", "two", "three"]


async def test_deliver_accepts_structured_payload(manager, relay, make_socket):
    bob = make_socket()
    await identified(manager, bob, "u2")

    intent = SendIntent(sender_id="u1", receiver_id="u2", payload={'text': 'hi', 'id': 'm1'})

    assert await relay.deliver(intent) is RelayOutcome.DELIVERED
    assert bob.events('incoming_message')[0]['payload'] == {'text': 'hi', 'id': 'm1'}


async def test_push_sends_arbitrary_events(manager, relay, make_socket):
    bob = make_socket()
    await identified(manager, bob, "u2")

    outcome = await relay.push("u2", {'type': 'notification', 'notification': {'id': 'n1'}})

    assert outcome is RelayOutcome.DELIVERED
    assert bob.events('notification') == [{'type': 'notification', 'notification': {'id': 'n1'}}]
