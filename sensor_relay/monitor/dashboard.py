"""终端仪表盘

Rich rendering of a TelemetryViewer: connection indicator, current reading
and the rolling sample history.
"""

import asyncio
from typing import Optional

from rich.console import Console, Group
from rich.live import Live
from rich.panel import Panel
from rich.table import Table

from ..client import TelemetryViewer


def _format_value(value, unit: str) -> str:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return f"{value:.1f}{unit}"
    return f"{value}{unit}"


def render_status(viewer: TelemetryViewer) -> Panel:
    """状态面板：连接指示和当前读数"""
    status_table = Table(show_header=False, box=None)
    if viewer.connected:
        status_table.add_row("Status:", "[green]● Connected[/green]")
    else:
        status_table.add_row("Status:", "[red]● Disconnected[/red]")
    status_table.add_row(
        "Temperature:", f"[bold]{_format_value(viewer.current_temperature, '°C')}[/bold]"
    )
    status_table.add_row(
        "Humidity:", f"[bold]{_format_value(viewer.current_humidity, '%')}[/bold]"
    )
    last_update = (
        viewer.last_update.strftime("%Y-%m-%d %H:%M:%S")
        if viewer.last_update
        else "No data received yet"
    )
    status_table.add_row("Last update:", last_update)

    return Panel(
        status_table,
        title="[bold cyan]IoT Dashboard[/bold cyan]",
        border_style="cyan",
    )


def render_history(viewer: TelemetryViewer) -> Panel:
    """历史面板：最近的采样点，最新的在最后"""
    history_table = Table(show_header=True, header_style="bold magenta")
    history_table.add_column("Time", style="dim", width=10)
    history_table.add_column("Temperature", justify="right")
    history_table.add_column("Humidity", justify="right")

    for sample in viewer.history:
        history_table.add_row(
            sample.timestamp,
            _format_value(sample.temperature, "°C"),
            _format_value(sample.humidity, "%"),
        )

    return Panel(
        history_table,
        title=f"[bold yellow]History (last {viewer.history.maxlen})[/bold yellow]",
        border_style="yellow",
    )


def render_dashboard(viewer: TelemetryViewer) -> Group:
    """完整仪表盘"""
    return Group(render_status(viewer), render_history(viewer))


async def run_dashboard(
    viewer: TelemetryViewer,
    refresh_per_second: float = 2,
    console: Optional[Console] = None,
) -> None:
    """运行实时仪表盘直到查看器断开"""
    with Live(
        render_dashboard(viewer),
        refresh_per_second=refresh_per_second,
        console=console,
    ) as live:

        def refresh(_value) -> None:
            live.update(render_dashboard(viewer))

        viewer.on_update(refresh)
        viewer.on_connection_change(refresh)
        viewer_task = asyncio.ensure_future(viewer.run())
        try:
            await viewer_task
        finally:
            if not viewer_task.done():
                await viewer.stop()
                viewer_task.cancel()
            live.update(render_dashboard(viewer))
