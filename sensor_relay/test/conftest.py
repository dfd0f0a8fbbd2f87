"""Shared fixtures for the sensor_relay tests."""

import asyncio

import pytest
from websockets.exceptions import ConnectionClosed

from sensor_relay.hub import Connection, ConnectionRegistry, HubServer, MessageRouter
from sensor_relay.utils import RelayConfig


class FakeWebSocket:
    """In-memory stand-in for a server-side WebSocket connection"""

    def __init__(self, frames=()):
        self.incoming: asyncio.Queue = asyncio.Queue()
        for frame in frames:
            self.incoming.put_nowait(frame)
        self.sent = []
        self.closed = False
        self.close_calls = 0
        self.remote_address = ("127.0.0.1", 50000)

    def feed(self, frame) -> None:
        self.incoming.put_nowait(frame)

    def hang_up(self) -> None:
        self.incoming.put_nowait(None)

    def __aiter__(self):
        return self

    async def __anext__(self):
        frame = await self.incoming.get()
        if frame is None:
            raise StopAsyncIteration
        return frame

    async def send(self, payload) -> None:
        if self.closed:
            raise ConnectionClosed(None, None)
        self.sent.append(payload)

    async def close(self, code: int = 1000, reason: str = "") -> None:
        self.close_calls += 1
        if not self.closed:
            self.closed = True
            self.incoming.put_nowait(None)


@pytest.fixture
def registry() -> ConnectionRegistry:
    return ConnectionRegistry()


@pytest.fixture
def router(registry) -> MessageRouter:
    return MessageRouter(registry)


@pytest.fixture
def connect(router):
    """Register a new open connection backed by a FakeWebSocket"""

    def _connect(queue_size: int = 64) -> Connection:
        connection = Connection(FakeWebSocket(), queue_size=queue_size)
        router.on_connect(connection)
        return connection

    return _connect


def drain(connection: Connection) -> list:
    """Pop everything currently queued for a connection"""
    items = []
    while not connection.queue.empty():
        items.append(connection.queue.get_nowait())
    return items


async def wait_for(predicate, timeout: float = 2.0) -> None:
    """Poll until predicate() is true"""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("condition not met before timeout")
        await asyncio.sleep(0.01)


@pytest.fixture
def relay_config() -> RelayConfig:
    return RelayConfig(
        host="127.0.0.1",
        port=0,
        ping_interval=None,
        close_timeout=1.0,
        enable_rich_logging=False,
    )


@pytest.fixture
async def hub_server(relay_config):
    server = HubServer(relay_config)
    await server.start()
    try:
        yield server
    finally:
        await server.stop()
