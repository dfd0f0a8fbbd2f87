"""
客户端模块

- TelemetryViewer: 订阅并展示读数
- SensorPublisher: 发布读数
"""

from .viewer import TelemetryViewer, ChartHistory, DEFAULT_HISTORY_SIZE
from .publisher import SensorPublisher, simulate_readings

__all__ = [
    "TelemetryViewer",
    "ChartHistory",
    "DEFAULT_HISTORY_SIZE",
    "SensorPublisher",
    "simulate_readings",
]
