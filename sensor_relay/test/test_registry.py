"""Connection registry and handle lifecycle tests"""

import random

import pytest

from sensor_relay.exceptions import DuplicateConnection, SendSkipped
from sensor_relay.hub import Connection, ConnectionRegistry
from sensor_relay.protocol import ConnectionState

from .conftest import FakeWebSocket


def make_connection(queue_size: int = 64, connection_id: str = None) -> Connection:
    return Connection(FakeWebSocket(), queue_size=queue_size, connection_id=connection_id)


def test_add_and_snapshot(registry):
    first, second = make_connection(), make_connection()
    registry.add(first)
    registry.add(second)

    assert len(registry) == 2
    assert set(registry.snapshot()) == {first, second}
    assert first in registry
    assert registry.get(first.connection_id) is first


def test_duplicate_id_rejected(registry):
    registry.add(make_connection(connection_id="dup"))

    with pytest.raises(DuplicateConnection) as excinfo:
        registry.add(make_connection(connection_id="dup"))

    assert excinfo.value.connection_id == "dup"
    assert len(registry) == 1


def test_remove_absent_is_noop(registry):
    connection = make_connection()

    assert registry.remove(connection) is False
    registry.add(connection)
    assert registry.remove(connection) is True
    assert registry.remove(connection) is False
    assert len(registry) == 0


def test_remove_ignores_other_handle_with_same_id(registry):
    registered = make_connection(connection_id="same")
    stranger = make_connection(connection_id="same")
    registry.add(registered)

    assert registry.remove(stranger) is False
    assert registered in registry


def test_snapshot_is_point_in_time(registry):
    first = make_connection()
    registry.add(first)
    snapshot = registry.snapshot()

    registry.add(make_connection())
    registry.remove(first)

    assert snapshot == (first,)
    assert isinstance(snapshot, tuple)


def test_membership_matches_open_connections(router, registry):
    rng = random.Random(7)
    connections = []

    for _ in range(200):
        live = [c for c in connections if c.state == ConnectionState.OPEN]
        if live and rng.random() < 0.45:
            target = rng.choice(live)
            router.on_disconnect(target)
            if rng.random() < 0.5:
                router.on_disconnect(target)
        else:
            connection = make_connection()
            router.on_connect(connection)
            connections.append(connection)

        open_ids = {c.connection_id for c in connections if c.is_open}
        registered_ids = {c.connection_id for c in registry.snapshot()}
        assert registered_ids == open_ids
        assert len(registry) == len(open_ids)


def test_handle_state_transitions():
    connection = make_connection()
    assert connection.state == ConnectionState.CONNECTING

    connection.mark_open()
    assert connection.is_open

    assert connection.begin_close() is True
    assert connection.state == ConnectionState.CLOSING
    assert connection.close_requested
    assert connection.begin_close() is False

    connection.mark_closed()
    assert connection.state == ConnectionState.CLOSED
    assert connection.begin_close() is False


def test_enqueue_requires_open():
    connection = make_connection()

    with pytest.raises(SendSkipped) as excinfo:
        connection.put_nowait("{}")
    assert excinfo.value.details["reason"] == "not_open"

    connection.mark_open()
    assert connection.enqueue("{}") is True


def test_enqueue_skips_when_full():
    connection = make_connection(queue_size=1)
    connection.mark_open()

    assert connection.enqueue("a") is True
    assert connection.enqueue("b") is False
    with pytest.raises(SendSkipped) as excinfo:
        connection.put_nowait("c")
    assert excinfo.value.details["reason"] == "queue_full"


def test_mark_closed_drains_queue():
    connection = make_connection()
    connection.mark_open()
    connection.enqueue("a")
    connection.enqueue("b")

    assert connection.mark_closed() == 2
    assert connection.queue.empty()


async def test_next_outbound_returns_queued_then_none_on_close():
    connection = make_connection()
    connection.mark_open()
    connection.enqueue("first")

    assert await connection.next_outbound() == "first"

    connection.begin_close()
    assert await connection.next_outbound() is None


def test_registry_stats(registry):
    connection = make_connection()
    connection.mark_open()
    connection.enqueue("x")
    registry.add(connection)

    assert registry.get_stats() == {"total": 1, "queued": 1}
