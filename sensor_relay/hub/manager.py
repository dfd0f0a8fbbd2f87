"""Hub 连接管理器

``Connection`` is the per-peer handle (id, lifecycle state, bounded send
queue, close signal). ``ConnectionRegistry`` is the set of live handles, the
only state shared between connection tasks.
"""

import asyncio
import threading
import time
import uuid
from typing import Any, Dict, Optional, Tuple

from ..exceptions import DuplicateConnection, SendSkipped
from ..protocol import ConnectionState

DEFAULT_QUEUE_SIZE = 64


class Connection:
    """客户端连接

    Owned by its adapter; the registry only references it. The send queue has
    many producers (every concurrent broadcast) and a single consumer (the
    adapter's write loop).
    """

    def __init__(
        self,
        websocket: Any,
        queue_size: int = DEFAULT_QUEUE_SIZE,
        connection_id: Optional[str] = None,
    ):
        self.connection_id = connection_id or uuid.uuid4().hex
        self.websocket = websocket
        self.state = ConnectionState.CONNECTING
        self.queue: "asyncio.Queue[str]" = asyncio.Queue(maxsize=queue_size)
        self.connected_at = time.time()
        self.remote_address = getattr(websocket, "remote_address", None)
        self._close_signal = asyncio.Event()

    def __repr__(self) -> str:
        return f"<Connection {self.connection_id} {self.state.value}>"

    @property
    def is_open(self) -> bool:
        return self.state == ConnectionState.OPEN

    @property
    def close_requested(self) -> bool:
        return self._close_signal.is_set()

    def mark_open(self) -> None:
        """CONNECTING -> OPEN"""
        if self.state == ConnectionState.CONNECTING:
            self.state = ConnectionState.OPEN

    def begin_close(self) -> bool:
        """进入 CLOSING 状态并触发关闭信号

        Safe to call from the read loop, the write loop or an external
        force-close.

        Returns:
            True only for the call that performed the transition
        """
        if self.state in (ConnectionState.CLOSING, ConnectionState.CLOSED):
            return False
        self.state = ConnectionState.CLOSING
        self._close_signal.set()
        return True

    def mark_closed(self) -> int:
        """CLOSING -> CLOSED，丢弃未发送的消息

        Returns:
            被丢弃的消息数量
        """
        self.begin_close()
        self.state = ConnectionState.CLOSED
        dropped = 0
        while True:
            try:
                self.queue.get_nowait()
            except asyncio.QueueEmpty:
                break
            dropped += 1
        return dropped

    def put_nowait(self, payload: str) -> None:
        """非阻塞入队

        Raises:
            SendSkipped: 连接未打开或队列已满
        """
        if self.state != ConnectionState.OPEN:
            raise SendSkipped(
                f"Connection {self.connection_id} is {self.state.value}",
                details={"reason": "not_open"},
            )
        try:
            self.queue.put_nowait(payload)
        except asyncio.QueueFull:
            raise SendSkipped(
                f"Send queue full for {self.connection_id}",
                details={"reason": "queue_full", "size": self.queue.maxsize},
            )

    def enqueue(self, payload: str) -> bool:
        """Non-blocking enqueue; False when the send was skipped"""
        try:
            self.put_nowait(payload)
        except SendSkipped:
            return False
        return True

    async def wait_close_signal(self) -> None:
        await self._close_signal.wait()

    async def next_outbound(self) -> Optional[str]:
        """等待下一条待发送消息

        Returns:
            下一条消息；关闭信号先到达时返回 None
        """
        if self._close_signal.is_set():
            return None
        if not self.queue.empty():
            return self.queue.get_nowait()

        get_task = asyncio.ensure_future(self.queue.get())
        close_task = asyncio.ensure_future(self._close_signal.wait())
        try:
            done, _ = await asyncio.wait(
                {get_task, close_task}, return_when=asyncio.FIRST_COMPLETED
            )
        finally:
            for task in (get_task, close_task):
                if not task.done():
                    task.cancel()

        if get_task in done and not get_task.cancelled():
            return get_task.result()
        return None


class ConnectionRegistry:
    """连接注册表

    All mutation and iteration happen under one lock. Broadcasts iterate a
    snapshot, never the live mapping.
    """

    def __init__(self):
        # 连接映射：connection_id -> Connection
        self._connections: Dict[str, Connection] = {}
        self._lock = threading.Lock()

    def add(self, connection: Connection) -> None:
        """添加连接

        Raises:
            DuplicateConnection: id 已存在
        """
        with self._lock:
            if connection.connection_id in self._connections:
                raise DuplicateConnection(connection.connection_id)
            self._connections[connection.connection_id] = connection

    def remove(self, connection: Connection) -> bool:
        """移除连接

        Returns:
            是否确实移除；连接不存在时为 False
        """
        with self._lock:
            current = self._connections.get(connection.connection_id)
            if current is not connection:
                return False
            del self._connections[connection.connection_id]
            return True

    def snapshot(self) -> Tuple[Connection, ...]:
        """当前连接的不可变快照"""
        with self._lock:
            return tuple(self._connections.values())

    def get(self, connection_id: str) -> Optional[Connection]:
        with self._lock:
            return self._connections.get(connection_id)

    def clear(self) -> None:
        with self._lock:
            self._connections.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._connections)

    def __contains__(self, connection: object) -> bool:
        if not isinstance(connection, Connection):
            return False
        with self._lock:
            return self._connections.get(connection.connection_id) is connection

    def get_stats(self) -> Dict[str, int]:
        """获取连接统计"""
        connections = self.snapshot()
        return {
            "total": len(connections),
            "queued": sum(c.queue.qsize() for c in connections),
        }
