"""Hub 消息路由器

Parses inbound telemetry frames and fans them out to every registered
connection. Delivery is best-effort: a target that is not open or whose
send queue is full is skipped, never awaited and never retried.
"""

from dataclasses import asdict, dataclass
from typing import Dict, Optional, Union

from .manager import Connection, ConnectionRegistry
from ..exceptions import DuplicateConnection, MalformedMessage, SendSkipped
from ..protocol import TelemetryMessage
from ..utils import get_logger


@dataclass
class RouterStats:
    """路由统计"""

    received: int = 0
    malformed: int = 0
    broadcasts: int = 0
    delivered: int = 0
    skipped: int = 0

    def to_dict(self) -> Dict[str, int]:
        return asdict(self)


class MessageRouter:
    """消息路由器"""

    def __init__(self, registry: ConnectionRegistry, include_sender: bool = True):
        self.registry = registry
        self.include_sender = include_sender
        self.stats = RouterStats()
        self.logger = get_logger("sensor_relay.hub.router")

    def on_connect(self, connection: Connection) -> None:
        """注册新连接

        Raises:
            DuplicateConnection: 连接 id 已注册
        """
        try:
            self.registry.add(connection)
        except DuplicateConnection:
            self.logger.error(f"重复连接 {connection.connection_id}，拒绝注册")
            raise
        connection.mark_open()
        self.logger.info(
            f"客户端连接: {connection.connection_id}，当前连接数: {len(self.registry)}"
        )

    def on_disconnect(self, connection: Connection) -> bool:
        """注销连接（幂等）

        Returns:
            本次调用是否从注册表中移除了连接
        """
        connection.begin_close()
        removed = self.registry.remove(connection)
        if removed:
            self.logger.info(
                f"客户端断开: {connection.connection_id}，剩余连接数: {len(self.registry)}"
            )
        return removed

    def on_message(self, source: Connection, raw: Union[str, bytes]) -> int:
        """处理入站消息并广播

        Args:
            source: 发送者连接
            raw: 原始帧（文本或 UTF-8 字节）

        Returns:
            成功入队的目标数量
        """
        self.stats.received += 1
        try:
            message = TelemetryMessage.from_json(raw)
        except MalformedMessage as e:
            self.stats.malformed += 1
            self.logger.warning(
                f"丢弃来自 {source.connection_id} 的无效消息: {e.message}"
            )
            return 0

        self.logger.debug(f"收到 {source.connection_id} 的数据: {message.to_dict()}")
        return self.broadcast(message, source)

    def broadcast(
        self, message: TelemetryMessage, source: Optional[Connection] = None
    ) -> int:
        """广播消息到注册表快照中的所有连接

        Args:
            message: 要广播的消息
            source: 发送者；include_sender 为 False 时跳过

        Returns:
            成功入队的目标数量
        """
        payload = message.to_json()
        delivered = 0
        skipped = 0

        for target in self.registry.snapshot():
            if target is source and not self.include_sender:
                continue
            try:
                target.put_nowait(payload)
            except SendSkipped as e:
                skipped += 1
                self.logger.debug(f"跳过 {target.connection_id}: {e.message}")
                continue
            delivered += 1

        self.stats.broadcasts += 1
        self.stats.delivered += delivered
        self.stats.skipped += skipped
        self.logger.debug(f"广播完成: 成功 {delivered}，跳过 {skipped}")
        return delivered

    def close_all(self) -> int:
        """向所有已注册连接发送关闭信号

        Handles leave the registry immediately; their adapters observe the
        signal and run their normal cleanup.

        Returns:
            收到关闭信号的连接数量
        """
        connections = self.registry.snapshot()
        for connection in connections:
            self.on_disconnect(connection)
        return len(connections)

    def get_stats(self) -> Dict[str, int]:
        return self.stats.to_dict()
