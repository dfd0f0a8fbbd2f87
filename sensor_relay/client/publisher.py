"""Sensor publisher client

Sends temperature/humidity readings to the hub. ``simulate_readings`` yields
a random walk around a starting point for demos and load testing.
"""

import asyncio
import random
from typing import Any, Iterator, Optional

from websockets.asyncio.client import ClientConnection, connect

from ..protocol import TelemetryMessage
from ..utils import get_logger


def simulate_readings(
    temperature: float = 21.5,
    humidity: float = 44.0,
    temperature_step: float = 0.3,
    humidity_step: float = 1.0,
    seed: Optional[int] = None,
) -> Iterator[TelemetryMessage]:
    """生成模拟读数（随机游走）

    Humidity is clamped to [0, 100]. Values are rounded to one decimal.
    """
    rng = random.Random(seed)
    while True:
        temperature += rng.uniform(-temperature_step, temperature_step)
        humidity = min(100.0, max(0.0, humidity + rng.uniform(-humidity_step, humidity_step)))
        yield TelemetryMessage.reading(round(temperature, 1), round(humidity, 1))


class SensorPublisher:
    """传感器数据发布者"""

    def __init__(self, url: str, sensor_id: Optional[str] = None):
        self.url = url
        self.sensor_id = sensor_id
        self.websocket: Optional[ClientConnection] = None
        self.sent = 0
        self.logger = get_logger("sensor_relay.client.publisher")

    @property
    def connected(self) -> bool:
        return self.websocket is not None

    async def connect(self) -> None:
        """连接到 Hub"""
        if self.websocket is not None:
            return
        self.websocket = await connect(self.url)
        self.logger.info(f"发布者已连接到 {self.url}")

    async def close(self) -> None:
        """断开连接"""
        if self.websocket is None:
            return
        websocket, self.websocket = self.websocket, None
        await websocket.close()
        self.logger.info(f"发布者已断开，共发送 {self.sent} 条读数")

    async def __aenter__(self) -> "SensorPublisher":
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def publish(self, message: TelemetryMessage) -> None:
        """发送一条消息"""
        if self.websocket is None:
            raise RuntimeError("Publisher is not connected")
        if self.sensor_id and "sensor_id" not in message:
            message = TelemetryMessage({**message.to_dict(), "sensor_id": self.sensor_id})
        await self.websocket.send(message.to_json())
        self.sent += 1
        self.logger.debug(f"已发送: {message.to_json()}")

    async def send_reading(self, temperature: Any, humidity: Any, **extra: Any) -> None:
        """发送温湿度读数"""
        await self.publish(TelemetryMessage.reading(temperature, humidity, **extra))

    async def run_simulation(
        self, interval: float = 2.0, count: Optional[int] = None, seed: Optional[int] = None
    ) -> int:
        """按固定间隔发送模拟读数

        Args:
            interval: 发送间隔（秒）
            count: 发送条数，None 表示一直发送
            seed: 随机种子

        Returns:
            本次发送的条数
        """
        sent = 0
        for message in simulate_readings(seed=seed):
            if count is not None and sent >= count:
                break
            await self.publish(message)
            sent += 1
            if count is None or sent < count:
                await asyncio.sleep(interval)
        return sent
