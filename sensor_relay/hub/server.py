"""Hub WebSocket 服务器"""

import asyncio
import threading
from http import HTTPStatus
from typing import Optional, Set
from urllib.parse import urlsplit

from websockets.asyncio.server import Server, ServerConnection, serve
from websockets.datastructures import Headers
from websockets.http11 import Request, Response

from .adapter import ConnectionAdapter
from .manager import ConnectionRegistry
from .router import MessageRouter
from ..exceptions import InvalidUpgradeRequest
from ..utils import RelayConfig, get_logger


def validate_upgrade(headers: Headers) -> None:
    """检查请求是否为 WebSocket 升级请求

    Raises:
        InvalidUpgradeRequest: 缺少或错误的 Upgrade 头
    """
    upgrade = headers.get("Upgrade")
    if not upgrade:
        raise InvalidUpgradeRequest("Expected websocket", details={"upgrade": None})
    protocols = [token.strip().lower() for token in upgrade.split(",")]
    if "websocket" not in protocols:
        raise InvalidUpgradeRequest("Expected websocket", details={"upgrade": upgrade})


class HubServer:
    """Hub WebSocket 服务器"""

    _instance: Optional["HubServer"] = None
    _instance_lock = threading.Lock()

    def __init__(
        self,
        config: Optional[RelayConfig] = None,
        registry: Optional[ConnectionRegistry] = None,
    ):
        self.config = config or RelayConfig()

        # 核心组件
        self.registry = registry if registry is not None else ConnectionRegistry()
        self.router = MessageRouter(
            self.registry, include_sender=self.config.include_sender
        )

        # 服务器状态
        self.server: Optional[Server] = None
        self.running = False
        self._adapters: Set[ConnectionAdapter] = set()

        self.logger = get_logger("sensor_relay.hub.server")

    @classmethod
    def get_instance(cls, config: Optional[RelayConfig] = None) -> "HubServer":
        """获取进程内唯一的 Hub 实例（首次调用时创建）

        ``config`` is only used by the call that creates the instance.
        """
        with cls._instance_lock:
            if cls._instance is None:
                cls._instance = cls(config)
            return cls._instance

    @classmethod
    def reset_instance(cls) -> None:
        """丢弃唯一实例，用于测试"""
        with cls._instance_lock:
            cls._instance = None

    @property
    def port(self) -> Optional[int]:
        """实际监听端口（支持 port=0）"""
        if not self.server:
            return None
        for sock in self.server.sockets:
            return sock.getsockname()[1]
        return None

    @property
    def url(self) -> str:
        return f"ws://{self.config.host}:{self.port or self.config.port}{self.config.ws_path}"

    async def start(self) -> None:
        """启动服务器"""
        if self.running:
            self.logger.warning("服务器已经在运行")
            return

        try:
            self.logger.info(
                f"启动 Hub 服务器: {self.config.host}:{self.config.port}{self.config.ws_path}"
            )
            self.server = await serve(
                self._handle_client,
                self.config.host,
                self.config.port,
                process_request=self._process_request,
                max_size=self.config.max_message_size,
                ping_interval=self.config.ping_interval,
                ping_timeout=self.config.ping_timeout,
                close_timeout=self.config.close_timeout,
            )
            self.running = True
            self.logger.info(f"Hub 服务器启动成功: {self.url}")
        except OSError as e:
            self.logger.error(f"启动服务器失败: {e}")
            raise

    async def stop(self) -> None:
        """停止服务器

        Every registered connection is signalled first so its adapter runs
        the normal cleanup path, then the listener is closed.
        """
        if not self.running:
            return

        self.logger.info("停止 Hub 服务器")
        self.running = False

        closed = self.router.close_all()
        if closed:
            self.logger.info(f"正在关闭 {closed} 个客户端连接")

        if self.server:
            self.server.close()
            await self.server.wait_closed()
            self.server = None

        self.logger.info("Hub 服务器已停止")

    async def serve_forever(self, stop_event: Optional[asyncio.Event] = None) -> None:
        """启动并运行直到 stop_event 被设置"""
        stop_event = stop_event or asyncio.Event()
        await self.start()
        try:
            await stop_event.wait()
        finally:
            await self.stop()

    def _process_request(
        self, connection: ServerConnection, request: Request
    ) -> Optional[Response]:
        """在握手之前校验升级请求

        Returns:
            None 继续握手；否则为拒绝响应
        """
        try:
            path = urlsplit(request.path).path
            if path != self.config.ws_path:
                return connection.respond(HTTPStatus.NOT_FOUND, "Not found\n")

            validate_upgrade(request.headers)

            if len(self.registry) >= self.config.max_connections:
                self.logger.warning("拒绝连接: 超过最大连接数")
                return connection.respond(
                    HTTPStatus.SERVICE_UNAVAILABLE, "Server overloaded\n"
                )
        except InvalidUpgradeRequest as e:
            self.logger.warning(f"拒绝非升级请求 {request.path}: {e.message}")
            return connection.respond(HTTPStatus.BAD_REQUEST, f"{e.message}\n")
        except Exception as e:
            self.logger.error(f"WebSocket 升级错误: {e}")
            return connection.respond(
                HTTPStatus.INTERNAL_SERVER_ERROR, "WebSocket upgrade error\n"
            )
        return None

    async def _handle_client(self, websocket: ServerConnection) -> None:
        """处理客户端连接"""
        adapter = ConnectionAdapter(
            websocket, self.router, queue_size=self.config.queue_size
        )
        self._adapters.add(adapter)
        try:
            await adapter.run()
        finally:
            self._adapters.discard(adapter)

    def get_stats(self) -> dict:
        """获取服务器统计信息"""
        return {
            "server": {
                "running": self.running,
                "host": self.config.host,
                "port": self.port or self.config.port,
                "path": self.config.ws_path,
                "max_connections": self.config.max_connections,
                "include_sender": self.router.include_sender,
            },
            "connections": {
                **self.registry.get_stats(),
                "adapters": len(self._adapters),
            },
            "messages": self.router.get_stats(),
        }


# 便捷的启动函数
async def start_hub_server(config: Optional[RelayConfig] = None) -> HubServer:
    """启动 Hub 服务器

    Args:
        config: 服务器配置

    Returns:
        Hub 服务器实例
    """
    server = HubServer(config)
    await server.start()
    return server
