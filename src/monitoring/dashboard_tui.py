# rich-based TUI dashboard
#src/monitoring/dashboard_tui.py
"""
Terminal dashboard for one or more agents.

Subscribes to a monitoring EventBus and renders one row per agent
(keyed by the event correlation id, i.e. the agent name):

- lifecycle state
- last decision (source + action)
- health / food at the last decision
- commands dispatched / decision ticks skipped
- last oracle fallback

This runs entirely in-process. No web server, no external services.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Dict, Optional

from rich.console import Console
from rich.live import Live
from rich.panel import Panel
from rich.table import Table

from .bus import EventBus
from .events import EventType, MonitoringEvent


@dataclass
class AgentRow:
    state: str = "unknown"
    last_decision: str = "-"
    health: Optional[float] = None
    food: Optional[float] = None
    commands_dispatched: int = 0
    ticks_skipped: int = 0
    last_fallback: str = ""


class TuiDashboard:
    """
    Live terminal dashboard bound to a monitoring.EventBus.

    It consumes MonitoringEvents and keeps a small per-agent state table,
    which is rendered periodically via rich.
    """

    def __init__(self, bus: EventBus, console: Optional[Console] = None) -> None:
        self._bus = bus
        self._console = console or Console()
        self._rows: Dict[str, AgentRow] = {}
        self._lock = threading.Lock()
        self._bus.subscribe(self._on_event)

    # --------------------------------------------------------
    # Event handler
    # --------------------------------------------------------

    def _on_event(self, event: MonitoringEvent) -> None:
        """Update dashboard state from one event. Cheap and non-blocking."""
        name = event.correlation_id or "<anonymous>"
        et = event.event_type
        payload = event.payload

        with self._lock:
            row = self._rows.setdefault(name, AgentRow())

            if et == EventType.AGENT_STATE_CHANGE:
                row.state = str(payload.get("to", row.state))

            elif et == EventType.DECISION_MADE:
                action = payload.get("action") or {}
                row.last_decision = f"{payload.get('source', '?')}: {action.get('action', '?')}"
                row.health = payload.get("health", row.health)
                row.food = payload.get("food", row.food)

            elif et == EventType.COMMAND_DISPATCHED:
                row.commands_dispatched += 1

            elif et == EventType.TICK_SKIPPED:
                row.ticks_skipped += 1

            elif et == EventType.ORACLE_FALLBACK:
                row.last_fallback = str(payload.get("error", ""))[:40]

    def rows(self) -> Dict[str, AgentRow]:
        """Copy of the current per-agent rows."""
        with self._lock:
            return {k: AgentRow(**vars(v)) for k, v in self._rows.items()}

    # --------------------------------------------------------
    # Rendering
    # --------------------------------------------------------

    def render(self) -> Panel:
        table = Table(show_header=True, header_style="bold magenta")
        table.add_column("Agent", style="bold")
        table.add_column("State")
        table.add_column("Last decision")
        table.add_column("HP", justify="right")
        table.add_column("Food", justify="right")
        table.add_column("Cmds", justify="right")
        table.add_column("Skipped", justify="right")
        table.add_column("Oracle fallback")

        rows = self.rows()
        if not rows:
            table.add_row("<none>", "-", "-", "-", "-", "-", "-", "")
        for name, row in sorted(rows.items()):
            state_style = "green" if row.state == "active" else "yellow"
            table.add_row(
                name,
                f"[{state_style}]{row.state}[/{state_style}]",
                row.last_decision,
                "-" if row.health is None else f"{row.health:.0f}",
                "-" if row.food is None else f"{row.food:.0f}",
                str(row.commands_dispatched),
                str(row.ticks_skipped),
                row.last_fallback,
            )
        return Panel(table, title="Agents", border_style="cyan")

    # --------------------------------------------------------
    # Main loop
    # --------------------------------------------------------

    def run(self, stop: threading.Event, refresh_per_second: float = 4.0) -> None:
        """
        Render until `stop` is set.

        This blocks the current thread. Use a separate thread if needed.
        """
        refresh_delay = 1.0 / max(refresh_per_second, 0.1)
        with Live(self.render(), console=self._console, refresh_per_second=refresh_per_second) as live:
            while not stop.wait(refresh_delay):
                live.update(self.render())

    def close(self) -> None:
        self._bus.unsubscribe(self._on_event)


def start_dashboard_in_background(bus: EventBus, stop: threading.Event) -> threading.Thread:
    """Run a TuiDashboard on a daemon thread until `stop` is set."""
    dashboard = TuiDashboard(bus)

    def _run() -> None:
        try:
            dashboard.run(stop)
        finally:
            dashboard.close()

    t = threading.Thread(target=_run, name="TuiDashboardThread")
    t.daemon = True
    t.start()
    return t
