"""Sensor Relay 消息格式定义

Wire format in both directions is a UTF-8 text frame holding one JSON object.
``temperature`` and ``humidity`` are the recognized fields; any other field is
carried through untouched when the message is re-serialized.
"""

import json
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Dict, Iterator, Mapping, Optional, Union

from ..exceptions import MalformedMessage

TEMPERATURE_FIELD = "temperature"
HUMIDITY_FIELD = "humidity"


class TelemetryMessage(Mapping[str, Any]):
    """遥测消息

    Read-only mapping over a parsed JSON object. Values are not validated:
    ``{"temperature": "not-a-number"}`` is a valid message.
    """

    def __init__(self, data: Mapping[str, Any]):
        self._data = MappingProxyType(dict(data))

    def __getitem__(self, key: str) -> Any:
        return self._data[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __repr__(self) -> str:
        return f"TelemetryMessage({dict(self._data)!r})"

    def __eq__(self, other: object) -> bool:
        if isinstance(other, TelemetryMessage):
            return dict(self._data) == dict(other._data)
        if isinstance(other, Mapping):
            return dict(self._data) == dict(other)
        return NotImplemented

    __hash__ = None

    @property
    def temperature(self) -> Optional[Any]:
        """温度读数，不存在时为 None"""
        return self._data.get(TEMPERATURE_FIELD)

    @property
    def humidity(self) -> Optional[Any]:
        """湿度读数，不存在时为 None"""
        return self._data.get(HUMIDITY_FIELD)

    @property
    def has_reading(self) -> bool:
        """Both temperature and humidity are present"""
        return TEMPERATURE_FIELD in self._data and HUMIDITY_FIELD in self._data

    def to_dict(self) -> Dict[str, Any]:
        """序列化为字典"""
        return dict(self._data)

    def to_json(self) -> str:
        """序列化为 JSON 字符串"""
        return json.dumps(self.to_dict(), ensure_ascii=False, separators=(",", ":"))

    @classmethod
    def from_json(cls, raw: Union[str, bytes, bytearray]) -> "TelemetryMessage":
        """从 JSON 反序列化

        Args:
            raw: 文本帧或 UTF-8 字节

        Returns:
            TelemetryMessage 实例

        Raises:
            MalformedMessage: 编码错误、JSON 无效或顶层不是对象
        """
        if isinstance(raw, (bytes, bytearray)):
            try:
                raw = bytes(raw).decode("utf-8")
            except UnicodeDecodeError as e:
                raise MalformedMessage(f"Invalid UTF-8 payload: {e}")

        try:
            data = json.loads(raw)
        except (TypeError, ValueError, RecursionError) as e:
            raise MalformedMessage(
                f"Invalid JSON payload: {e}", details={"preview": str(raw)[:64]}
            )

        if not isinstance(data, dict):
            raise MalformedMessage(
                f"Expected JSON object, got {type(data).__name__}",
                details={"preview": str(raw)[:64]},
            )

        return cls(data)

    @classmethod
    def reading(cls, temperature: Any, humidity: Any, **extra: Any) -> "TelemetryMessage":
        """Build a message from a temperature/humidity reading"""
        data = dict(extra)
        data[TEMPERATURE_FIELD] = temperature
        data[HUMIDITY_FIELD] = humidity
        return cls(data)


@dataclass(frozen=True)
class ChartSample:
    """图表采样点"""

    temperature: Any
    humidity: Any
    timestamp: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "temperature": self.temperature,
            "humidity": self.humidity,
            "timestamp": self.timestamp,
        }
