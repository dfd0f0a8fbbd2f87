"""sensor-relay 命令行入口

    sensor-relay serve   [--host H] [--port P] [--path /api/ws] [--no-echo]
    sensor-relay view    [--url URL]
    sensor-relay publish [--url URL] [--interval S] [--count N]
"""

import argparse
import asyncio
import signal
import sys
from typing import List, Optional

from .client import SensorPublisher, TelemetryViewer
from .hub import HubServer
from .monitor import run_dashboard
from .utils import RelayConfig, configure_logging, get_logger


def build_parser(config: RelayConfig) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="sensor-relay", description="Real-time sensor telemetry relay"
    )
    parser.add_argument("--log-level", default=config.log_level, help="Log level")
    parser.add_argument("--log-file", default=config.log_file, help="Log file path")
    parser.add_argument(
        "--plain-logs", action="store_true", help="Disable rich log formatting"
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    serve = subparsers.add_parser("serve", help="Run the broadcast hub")
    serve.add_argument("--host", default=config.host, help="Host address")
    serve.add_argument("--port", type=int, default=config.port, help="Port number")
    serve.add_argument("--path", default=config.ws_path, help="WebSocket endpoint path")
    serve.add_argument(
        "--max-connections", type=int, default=config.max_connections
    )
    serve.add_argument(
        "--queue-size", type=int, default=config.queue_size,
        help="Per-connection send queue size",
    )
    serve.add_argument(
        "--no-echo", action="store_true", help="Do not echo messages back to the sender"
    )

    view = subparsers.add_parser("view", help="Show a live terminal dashboard")
    view.add_argument("--url", default=config.url, help="Hub WebSocket URL")
    view.add_argument("--history", type=int, default=config.history_size)

    publish = subparsers.add_parser("publish", help="Publish simulated readings")
    publish.add_argument("--url", default=config.url, help="Hub WebSocket URL")
    publish.add_argument("--interval", type=float, default=2.0, help="Seconds between readings")
    publish.add_argument("--count", type=int, default=None, help="Number of readings")
    publish.add_argument("--sensor-id", default=None)
    publish.add_argument("--seed", type=int, default=None)

    return parser


def _install_signal_handlers(stop_event: asyncio.Event) -> None:
    loop = asyncio.get_running_loop()
    if sys.platform == "win32":
        return
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop_event.set)
        except NotImplementedError:
            pass


async def serve(args: argparse.Namespace, config: RelayConfig) -> None:
    config.update(
        host=args.host,
        port=args.port,
        ws_path=args.path,
        max_connections=args.max_connections,
        queue_size=args.queue_size,
        include_sender=config.include_sender and not args.no_echo,
    )
    server = HubServer.get_instance(config)
    stop_event = asyncio.Event()
    _install_signal_handlers(stop_event)
    await server.serve_forever(stop_event)


async def view(args: argparse.Namespace) -> None:
    viewer = TelemetryViewer(args.url, history_size=args.history)
    await run_dashboard(viewer)


async def publish(args: argparse.Namespace) -> None:
    async with SensorPublisher(args.url, sensor_id=args.sensor_id) as publisher:
        await publisher.run_simulation(
            interval=args.interval, count=args.count, seed=args.seed
        )


def main(argv: Optional[List[str]] = None) -> int:
    config = RelayConfig.from_env()
    args = build_parser(config).parse_args(argv)

    configure_logging(
        level=args.log_level,
        log_file=args.log_file,
        enable_rich=config.enable_rich_logging and not args.plain_logs,
    )
    logger = get_logger("sensor_relay.cli")

    if args.command == "serve":
        coro = serve(args, config)
    elif args.command == "view":
        coro = view(args)
    else:
        coro = publish(args)

    try:
        asyncio.run(coro)
    except KeyboardInterrupt:
        logger.info("已中断")
    except OSError as e:
        logger.error(f"程序异常退出: {e}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
