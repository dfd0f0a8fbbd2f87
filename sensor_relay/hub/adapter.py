"""Hub 连接适配器

Bridges one WebSocket connection to the router with two independent loops:
the read loop hands inbound frames to ``MessageRouter.on_message``; the write
loop drains the connection's send queue. Only the write loop sends, so frames
on one transport are never interleaved.
"""

import asyncio
from typing import Any, Optional

from websockets.exceptions import ConnectionClosed

from .manager import Connection, DEFAULT_QUEUE_SIZE
from .router import MessageRouter
from ..exceptions import DuplicateConnection, TransportError
from ..utils import get_logger


class ConnectionAdapter:
    """单个连接的读写循环"""

    def __init__(
        self,
        websocket: Any,
        router: MessageRouter,
        queue_size: int = DEFAULT_QUEUE_SIZE,
    ):
        self.websocket = websocket
        self.router = router
        self.queue_size = queue_size
        self.connection: Optional[Connection] = None
        self._cleaned_up = False
        self.logger = get_logger("sensor_relay.hub.adapter")

    async def run(self) -> None:
        """运行连接直到关闭

        Returns once the connection is CLOSED and no longer registered.
        """
        connection = Connection(self.websocket, queue_size=self.queue_size)
        self.connection = connection

        try:
            self.router.on_connect(connection)
        except DuplicateConnection:
            connection.mark_closed()
            await self._close_transport(code=1011, reason="Duplicate connection")
            return

        reader = asyncio.ensure_future(self._read_loop(connection))
        writer = asyncio.ensure_future(self._write_loop(connection))
        closer = asyncio.ensure_future(connection.wait_close_signal())
        tasks = (reader, writer, closer)

        try:
            done, _ = await asyncio.wait(tasks, return_when=asyncio.FIRST_COMPLETED)
            for task in done:
                if task is closer or task.cancelled():
                    continue
                error = task.exception()
                if error is not None:
                    self.logger.warning(
                        f"客户端 {connection.connection_id} 传输错误: {error}"
                    )
        finally:
            await self._cleanup(connection, tasks)

    async def _read_loop(self, connection: Connection) -> None:
        """读循环：逐帧交给路由器"""
        try:
            async for frame in self.websocket:
                self.router.on_message(connection, frame)
        except ConnectionClosed as e:
            self.logger.debug(f"客户端 {connection.connection_id} 连接已关闭: {e}")
        except (OSError, asyncio.TimeoutError) as e:
            raise TransportError(
                f"Read failed: {e}", details={"connection_id": connection.connection_id}
            ) from e

    async def _write_loop(self, connection: Connection) -> None:
        """写循环：发送队列中的消息直到关闭信号"""
        while True:
            payload = await connection.next_outbound()
            if payload is None:
                return
            try:
                await self.websocket.send(payload)
            except ConnectionClosed as e:
                self.logger.debug(f"客户端 {connection.connection_id} 写入时已关闭: {e}")
                return
            except OSError as e:
                raise TransportError(
                    f"Write failed: {e}",
                    details={"connection_id": connection.connection_id},
                ) from e

    async def _cleanup(self, connection: Connection, tasks) -> None:
        """关闭清理，只执行一次"""
        if self._cleaned_up:
            return
        self._cleaned_up = True

        connection.begin_close()
        for task in tasks:
            if not task.done():
                task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)

        self.router.on_disconnect(connection)
        await self._close_transport()

        dropped = connection.mark_closed()
        if dropped:
            self.logger.debug(
                f"客户端 {connection.connection_id} 关闭时丢弃 {dropped} 条未发送消息"
            )

    async def _close_transport(self, code: int = 1000, reason: str = "") -> None:
        try:
            await self.websocket.close(code=code, reason=reason)
        except (ConnectionClosed, OSError) as e:
            self.logger.debug(f"关闭连接失败: {e}")
