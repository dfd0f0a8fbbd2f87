"""
Sensor Relay 协议模块

- 连接状态 (ConnectionState)
- 遥测消息 (TelemetryMessage, ChartSample)
"""

from .types import ConnectionState
from .messages import (
    TelemetryMessage,
    ChartSample,
    TEMPERATURE_FIELD,
    HUMIDITY_FIELD,
)

__all__ = [
    "ConnectionState",
    "TelemetryMessage",
    "ChartSample",
    "TEMPERATURE_FIELD",
    "HUMIDITY_FIELD",
]
