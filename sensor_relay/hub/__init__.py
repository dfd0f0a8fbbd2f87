"""
Hub 服务器模块

中央广播和连接管理：
- 服务器实现
- 路由逻辑
- 连接管理
"""

from .server import HubServer, start_hub_server, validate_upgrade
from .router import MessageRouter, RouterStats
from .manager import ConnectionRegistry, Connection
from .adapter import ConnectionAdapter

__all__ = [
    "HubServer",
    "start_hub_server",
    "validate_upgrade",
    "MessageRouter",
    "RouterStats",
    "ConnectionRegistry",
    "Connection",
    "ConnectionAdapter",
]
