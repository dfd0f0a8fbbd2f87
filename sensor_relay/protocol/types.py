"""Sensor Relay 协议类型定义"""

from enum import Enum


class ConnectionState(Enum):
    """连接生命周期状态

    CONNECTING -> OPEN -> CLOSING -> CLOSED; CLOSING is never skipped.
    """

    CONNECTING = "connecting"
    OPEN = "open"
    CLOSING = "closing"
    CLOSED = "closed"
