"""Telemetry viewer client

Opens one connection to the hub, tracks the latest temperature/humidity
reading and keeps a bounded history of samples for charting.
"""

import inspect
import json
from collections import deque
from datetime import datetime
from typing import Any, Callable, Iterator, List, Optional, Union

from websockets.asyncio.client import ClientConnection, connect
from websockets.exceptions import ConnectionClosed, InvalidHandshake

from ..protocol import ChartSample, HUMIDITY_FIELD, TEMPERATURE_FIELD
from ..utils import get_logger

DEFAULT_HISTORY_SIZE = 20


class ChartHistory:
    """最近采样的有界 FIFO，超出容量时淘汰最旧的"""

    def __init__(self, maxlen: int = DEFAULT_HISTORY_SIZE):
        if maxlen <= 0:
            raise ValueError("maxlen must be positive")
        self._samples: "deque[ChartSample]" = deque(maxlen=maxlen)

    @property
    def maxlen(self) -> int:
        return self._samples.maxlen

    def append(self, sample: ChartSample) -> None:
        self._samples.append(sample)

    def latest(self) -> Optional[ChartSample]:
        return self._samples[-1] if self._samples else None

    def clear(self) -> None:
        self._samples.clear()

    def to_list(self) -> List[ChartSample]:
        return list(self._samples)

    def __iter__(self) -> Iterator[ChartSample]:
        return iter(list(self._samples))

    def __len__(self) -> int:
        return len(self._samples)


class TelemetryViewer:
    """遥测查看器

    Usage:
        viewer = TelemetryViewer("ws://localhost:8000/api/ws")

        @viewer.on_update
        def refresh(sample):
            print(sample.temperature, sample.humidity)

        await viewer.run()
    """

    def __init__(self, url: str, history_size: int = DEFAULT_HISTORY_SIZE):
        self.url = url
        self.history = ChartHistory(history_size)
        self.connected = False
        self.current_temperature: Any = 0
        self.current_humidity: Any = 0
        self.last_update: Optional[datetime] = None

        self.websocket: Optional[ClientConnection] = None
        self._update_handlers: List[Callable] = []
        self._connection_handlers: List[Callable] = []
        self._stopping = False

        self.logger = get_logger("sensor_relay.client.viewer")

    def on_update(self, func: Callable) -> Callable:
        """注册读数更新处理器（装饰器），处理器接收 ChartSample"""
        self._update_handlers.append(func)
        return func

    def on_connection_change(self, func: Callable) -> Callable:
        """注册连接状态变化处理器（装饰器），处理器接收 bool"""
        self._connection_handlers.append(func)
        return func

    def handle_frame(self, raw: Union[str, bytes]) -> Optional[ChartSample]:
        """处理一帧数据

        Only frames carrying both temperature and humidity update the state.

        Returns:
            新的采样点；帧被忽略时返回 None
        """
        try:
            message = json.loads(raw)
        except (TypeError, ValueError, RecursionError) as e:
            self.logger.warning(f"解析消息失败: {e}")
            return None

        if not isinstance(message, dict):
            return None
        if TEMPERATURE_FIELD not in message or HUMIDITY_FIELD not in message:
            return None

        now = datetime.now()
        self.current_temperature = message[TEMPERATURE_FIELD]
        self.current_humidity = message[HUMIDITY_FIELD]
        self.last_update = now

        sample = ChartSample(
            temperature=self.current_temperature,
            humidity=self.current_humidity,
            timestamp=now.strftime("%H:%M:%S"),
        )
        self.history.append(sample)
        return sample

    async def run(self) -> None:
        """连接并持续接收数据，直到连接关闭或调用 stop()"""
        self._stopping = False
        try:
            async with connect(self.url) as websocket:
                self.websocket = websocket
                await self._set_connected(True)
                self.logger.info(f"已连接到 {self.url}")

                async for frame in websocket:
                    sample = self.handle_frame(frame)
                    if sample is not None:
                        await self._notify(self._update_handlers, sample)
        except ConnectionClosed as e:
            self.logger.info(f"连接已关闭: {e}")
        except (OSError, InvalidHandshake) as e:
            if not self._stopping:
                self.logger.error(f"连接失败: {e}")
                raise
        finally:
            self.websocket = None
            await self._set_connected(False)

    async def stop(self) -> None:
        """关闭连接"""
        self._stopping = True
        if self.websocket is not None:
            await self.websocket.close()

    async def _set_connected(self, connected: bool) -> None:
        if self.connected == connected:
            return
        self.connected = connected
        await self._notify(self._connection_handlers, connected)

    async def _notify(self, handlers: List[Callable], value: Any) -> None:
        for handler in handlers:
            try:
                result = handler(value)
                if inspect.isawaitable(result):
                    await result
            except Exception as e:
                self.logger.error(f"处理器执行失败: {e}")
