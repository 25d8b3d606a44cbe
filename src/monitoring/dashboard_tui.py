# rich-based TUI dashboard
#src/monitoring/dashboard_tui.py
"""
Terminal dashboard for the companion.

A lightweight terminal UI (using `rich`) that subscribes to the EventBus
and renders:

- Companion status: connection, vitals, position, task, target
- Recent events (last few log entries, colored by category)
- Recent safety alerts

This is a local convenience observer for whoever runs the process; the
parent-facing surface is the WebSocket/HTTP server in app.server.
"""

from __future__ import annotations

import time
from collections import deque
from typing import Any, Deque, Dict

from rich.console import Console
from rich.layout import Layout
from rich.live import Live
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from .bus import EventBus

CATEGORY_STYLES = {
    "system": "cyan",
    "chat": "white",
    "action": "green",
    "companion": "magenta",
    "error": "bold red",
}


# ============================================================
# TUI Dashboard
# ============================================================

class TuiDashboard:
    """
    Live terminal dashboard bound to an EventBus.

    It consumes bus messages and keeps a small in-memory state
    representation, which is rendered periodically via rich.
    """

    def __init__(self, bus: EventBus, *, max_lines: int = 15, max_alerts: int = 5) -> None:
        self._bus = bus
        self._console = Console()

        self._status: Dict[str, Any] = bus.status_dict()
        self._entries: Deque[Dict[str, Any]] = deque(bus.recent_events(max_lines), maxlen=max_lines)
        self._alerts: Deque[Dict[str, Any]] = deque(
            reversed(bus.recent_alerts(max_alerts)), maxlen=max_alerts
        )

        self._closed = False
        self._bus.subscribe(self._on_message)

    # --------------------------------------------------------
    # Observer
    # --------------------------------------------------------

    def _on_message(self, message: Dict[str, Any]) -> None:
        """
        Update dashboard state from one bus message.
        This should be cheap and non-blocking.
        """
        kind = message.get("type")
        if kind == "status":
            self._status = dict(message.get("status") or {})
        elif kind == "log":
            self._entries.append(message.get("entry") or {})
        elif kind == "safety_alert":
            self._alerts.append(message.get("alert") or {})

    def close(self) -> None:
        self._closed = True
        self._bus.unsubscribe(self._on_message)

    # --------------------------------------------------------
    # Rendering helpers
    # --------------------------------------------------------

    def _render_status_panel(self) -> Panel:
        status = self._status
        connected = status.get("connected")
        position = status.get("position") or {}

        txt = Text()
        txt.append("Connected: ", style="bold")
        txt.append("yes\n" if connected else "no\n", style="green" if connected else "red")
        txt.append("Task: ", style="bold")
        txt.append(f"{status.get('task') or '-'}\n")
        txt.append("Target: ", style="bold")
        txt.append(f"{status.get('target_player') or '<none>'}\n")
        txt.append("Health/Food: ", style="bold")
        txt.append(f"{status.get('health')}/{status.get('food')}\n")
        txt.append("Position: ", style="bold")
        if position:
            txt.append(f"{position.get('x')}, {position.get('y')}, {position.get('z')}\n")
        else:
            txt.append("-\n")
        txt.append("AI: ", style="bold")
        txt.append("on" if status.get("ai_enabled") else "fallback")

        return Panel(txt, title="Companion", border_style="cyan")

    def _render_log_panel(self) -> Panel:
        table = Table.grid(padding=(0, 1))
        table.add_column(style="dim", no_wrap=True)
        table.add_column()

        if not self._entries:
            table.add_row("", "<no events yet>")
        for entry in list(self._entries):
            kind = entry.get("type", "system")
            stamp = str(entry.get("time", ""))[11:19]
            who = entry.get("username")
            body = f"{who}: {entry.get('message', '')}" if who else str(entry.get("message", ""))
            table.add_row(stamp, Text(body, style=CATEGORY_STYLES.get(kind, "white")))

        return Panel(table, title="Activity", border_style="green")

    def _render_alert_panel(self) -> Panel:
        table = Table.grid()
        table.add_column()

        if not self._alerts:
            table.add_row("[bold green]No alerts.[/bold green]")
        for alert in reversed(list(self._alerts)):
            concerns = ", ".join(alert.get("concerns") or [])
            table.add_row(f"[bold red]{concerns}[/bold red] {alert.get('username')}: {alert.get('message')}")

        return Panel(table, title="Safety", border_style="red")

    def _build_layout(self) -> Layout:
        """
        Construct the overall layout for the dashboard.
        """
        layout = Layout()
        layout.split(
            Layout(name="top", size=9),
            Layout(name="middle", ratio=1),
            Layout(name="bottom", size=8),
        )
        layout["top"].update(self._render_status_panel())
        layout["middle"].update(self._render_log_panel())
        layout["bottom"].update(self._render_alert_panel())
        return layout

    # --------------------------------------------------------
    # Main loop
    # --------------------------------------------------------

    def run(self, refresh_per_second: float = 4.0) -> None:
        """
        Run the TUI render loop.

        Blocks the calling thread until close() is called; run it in a
        separate thread next to the event loop.
        """
        refresh_delay = 1.0 / max(refresh_per_second, 0.1)
        with Live(self._build_layout(), console=self._console, refresh_per_second=refresh_per_second) as live:
            while not self._closed:
                live.update(self._build_layout())
                time.sleep(refresh_delay)


__all__ = ["TuiDashboard"]
