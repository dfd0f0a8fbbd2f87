"""
Sensor Relay 监控模块

基于 rich 的终端仪表盘
"""

from .dashboard import render_dashboard, render_history, render_status, run_dashboard

__all__ = [
    "render_dashboard",
    "render_history",
    "render_status",
    "run_dashboard",
]
