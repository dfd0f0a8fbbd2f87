"""Sensor Relay 配置管理

Configuration for the hub, viewer and publisher. Every field has a working
default; ``SENSOR_RELAY_*`` environment variables may override them.
Priority: explicit update() > environment variables > defaults.
"""

import os
from dataclasses import dataclass, field, fields
from typing import Any, Dict, Optional

ENV_PREFIX = "SENSOR_RELAY_"


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class RelayConfig:
    """Sensor Relay 配置类"""

    # Hub 服务器配置
    host: str = "localhost"
    port: int = 8000
    ws_path: str = "/api/ws"
    max_connections: int = 1000

    # 广播配置
    queue_size: int = 64
    include_sender: bool = True

    # WebSocket 配置
    ping_interval: Optional[float] = 30.0
    ping_timeout: Optional[float] = 10.0
    close_timeout: float = 10.0
    max_message_size: Optional[int] = 1 << 20

    # 日志配置
    log_level: str = "INFO"
    log_file: Optional[str] = None
    enable_rich_logging: bool = True

    # Viewer 配置
    history_size: int = 20

    # 自定义配置
    custom: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_env(cls) -> "RelayConfig":
        """从环境变量创建配置

        Returns:
            从环境变量读取的配置实例
        """
        config = cls()

        config.host = os.getenv(ENV_PREFIX + "HOST", config.host)
        config.port = int(os.getenv(ENV_PREFIX + "PORT", str(config.port)))
        config.ws_path = os.getenv(ENV_PREFIX + "WS_PATH", config.ws_path)
        config.max_connections = int(
            os.getenv(ENV_PREFIX + "MAX_CONNECTIONS", str(config.max_connections))
        )

        config.queue_size = int(
            os.getenv(ENV_PREFIX + "QUEUE_SIZE", str(config.queue_size))
        )
        config.include_sender = _env_bool(
            ENV_PREFIX + "INCLUDE_SENDER", config.include_sender
        )

        if os.getenv(ENV_PREFIX + "PING_INTERVAL"):
            config.ping_interval = float(os.environ[ENV_PREFIX + "PING_INTERVAL"])
        if os.getenv(ENV_PREFIX + "PING_TIMEOUT"):
            config.ping_timeout = float(os.environ[ENV_PREFIX + "PING_TIMEOUT"])
        config.close_timeout = float(
            os.getenv(ENV_PREFIX + "CLOSE_TIMEOUT", str(config.close_timeout))
        )

        config.log_level = os.getenv(ENV_PREFIX + "LOG_LEVEL", config.log_level)
        config.log_file = os.getenv(ENV_PREFIX + "LOG_FILE", config.log_file)
        config.enable_rich_logging = _env_bool(
            ENV_PREFIX + "ENABLE_RICH_LOGGING", config.enable_rich_logging
        )

        config.history_size = int(
            os.getenv(ENV_PREFIX + "HISTORY_SIZE", str(config.history_size))
        )

        return config

    def update(self, **kwargs) -> None:
        """更新配置项

        Unknown keys land in ``custom``.

        Args:
            **kwargs: 要更新的配置项
        """
        for key, value in kwargs.items():
            if key != "custom" and hasattr(self, key):
                setattr(self, key, value)
            else:
                self.custom[key] = value

    def get(self, key: str, default: Any = None) -> Any:
        """获取配置项"""
        if key != "custom" and hasattr(self, key):
            return getattr(self, key)
        return self.custom.get(key, default)

    @property
    def url(self) -> str:
        """WebSocket URL clients connect to"""
        return f"ws://{self.host}:{self.port}{self.ws_path}"

    def to_dict(self) -> Dict[str, Any]:
        """转换为字典"""
        result = {f.name: getattr(self, f.name) for f in fields(self) if f.name != "custom"}
        result.update(self.custom)
        return result
