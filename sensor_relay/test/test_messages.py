"""Telemetry wire format tests"""

import json

import pytest

from sensor_relay.exceptions import MalformedMessage
from sensor_relay.protocol import ChartSample, TelemetryMessage


def test_parse_reading():
    message = TelemetryMessage.from_json('{"temperature": 21.5, "humidity": 40.2}')

    assert message.temperature == 21.5
    assert message.humidity == 40.2
    assert message.has_reading
    assert message == {"temperature": 21.5, "humidity": 40.2}


def test_parse_bytes():
    message = TelemetryMessage.from_json(b'{"temperature": 20, "humidity": 50}')
    assert message.temperature == 20


def test_unknown_fields_pass_through():
    raw = '{"temperature": 19.0, "humidity": 55, "sensor_id": "kitchen", "battery": {"level": 0.8}}'
    message = TelemetryMessage.from_json(raw)

    assert message["sensor_id"] == "kitchen"
    assert json.loads(message.to_json()) == json.loads(raw)


def test_values_are_not_validated():
    message = TelemetryMessage.from_json('{"temperature": "not-a-number"}')

    assert message.temperature == "not-a-number"
    assert message.humidity is None
    assert not message.has_reading


@pytest.mark.parametrize(
    "raw",
    ["not json at all", "", "{", b"\xff\xfe", "[1, 2, 3]", "42", "null"],
)
def test_malformed_payloads(raw):
    with pytest.raises(MalformedMessage) as excinfo:
        TelemetryMessage.from_json(raw)
    assert excinfo.value.error_code == "MSG001"


def test_message_is_read_only():
    message = TelemetryMessage.reading(21.5, 40.2)
    with pytest.raises(TypeError):
        message["temperature"] = 0


def test_reading_keeps_extra_fields():
    message = TelemetryMessage.reading(21.5, 40.2, sensor_id="s1")
    assert message.to_dict() == {"sensor_id": "s1", "temperature": 21.5, "humidity": 40.2}


def test_chart_sample_to_dict():
    sample = ChartSample(temperature=21.5, humidity=40.2, timestamp="10:30:00")
    assert sample.to_dict() == {
        "temperature": 21.5,
        "humidity": 40.2,
        "timestamp": "10:30:00",
    }


def test_deeply_nested_json_is_malformed():
    with pytest.raises(MalformedMessage):
        TelemetryMessage.from_json("[" * 200000)
    with pytest.raises(MalformedMessage):
        TelemetryMessage.from_json('{"a":' * 200000)
