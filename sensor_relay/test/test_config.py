"""Configuration and CLI tests"""

from sensor_relay.cli import build_parser
from sensor_relay.utils import RelayConfig, configure_logging, get_logger


def test_defaults():
    config = RelayConfig()

    assert config.ws_path == "/api/ws"
    assert config.include_sender is True
    assert config.history_size == 20
    assert config.url == "ws://localhost:8000/api/ws"


def test_from_env(monkeypatch):
    monkeypatch.setenv("SENSOR_RELAY_PORT", "9100")
    monkeypatch.setenv("SENSOR_RELAY_WS_PATH", "/telemetry")
    monkeypatch.setenv("SENSOR_RELAY_INCLUDE_SENDER", "false")
    monkeypatch.setenv("SENSOR_RELAY_QUEUE_SIZE", "8")
    monkeypatch.setenv("SENSOR_RELAY_PING_INTERVAL", "5")

    config = RelayConfig.from_env()

    assert config.port == 9100
    assert config.ws_path == "/telemetry"
    assert config.include_sender is False
    assert config.queue_size == 8
    assert config.ping_interval == 5.0


def test_update_and_custom_keys():
    config = RelayConfig()
    config.update(port=9000, dashboard_title="Lab")

    assert config.port == 9000
    assert config.get("dashboard_title") == "Lab"
    assert config.to_dict()["dashboard_title"] == "Lab"
    assert "custom" not in config.to_dict()


def test_get_logger_nests_under_package():
    assert get_logger("hub").name == "sensor_relay.hub"
    assert get_logger("sensor_relay.hub.router").name == "sensor_relay.hub.router"


def test_configure_logging_replaces_handlers(tmp_path):
    log_file = tmp_path / "relay.log"
    logger = configure_logging(level="debug", log_file=str(log_file), enable_rich=False)
    configure_logging(level="debug", log_file=str(log_file), enable_rich=False)

    assert len(logger.handlers) == 2
    get_logger("sensor_relay.test").info("hello")
    for handler in logger.handlers:
        handler.flush()
    assert "hello" in log_file.read_text()

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()


def test_cli_parser():
    parser = build_parser(RelayConfig())

    args = parser.parse_args(["serve", "--port", "9000", "--no-echo"])
    assert args.command == "serve"
    assert args.port == 9000
    assert args.no_echo is True

    args = parser.parse_args(["publish", "--count", "3"])
    assert args.count == 3
    assert args.url == "ws://localhost:8000/api/ws"
