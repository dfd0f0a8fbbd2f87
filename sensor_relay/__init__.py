"""
Sensor Relay - 实时传感器遥测中继

主要组件：
- protocol: 遥测消息格式和连接状态
- hub: 广播中心（连接注册表、路由器、连接适配器、服务器）
- client: 查看器和发布者
- monitor: rich 终端仪表盘
- utils: 配置和日志
"""

__version__ = "1.0.0"
__description__ = "Real-time sensor telemetry relay hub"

from .protocol import ConnectionState, TelemetryMessage, ChartSample
from .hub import (
    HubServer,
    start_hub_server,
    MessageRouter,
    ConnectionRegistry,
    Connection,
    ConnectionAdapter,
)
from .client import TelemetryViewer, ChartHistory, SensorPublisher
from .utils import RelayConfig, configure_logging, get_logger
from .exceptions import (
    RelayError,
    InvalidUpgradeRequest,
    DuplicateConnection,
    MalformedMessage,
    TransportError,
    SendSkipped,
)

__all__ = [
    "__version__",
    "__description__",
    # 协议
    "ConnectionState",
    "TelemetryMessage",
    "ChartSample",
    # Hub
    "HubServer",
    "start_hub_server",
    "MessageRouter",
    "ConnectionRegistry",
    "Connection",
    "ConnectionAdapter",
    # 客户端
    "TelemetryViewer",
    "ChartHistory",
    "SensorPublisher",
    # 工具
    "RelayConfig",
    "configure_logging",
    "get_logger",
    # 异常
    "RelayError",
    "InvalidUpgradeRequest",
    "DuplicateConnection",
    "MalformedMessage",
    "TransportError",
    "SendSkipped",
]
