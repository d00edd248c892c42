# rich-based TUI dashboard
#src/monitoring/dashboard_tui.py
"""
TUI dashboard for the world agent.

A lightweight terminal UI (using `rich`) that subscribes to the monitoring
EventBus and renders:

- Agent status:
    - Phase
    - Cycle count
    - Connection status

- Last placement (item, position, ring label)
- Last sleep attempt outcome
- Game mode corrections

Runs in-process; start it on its own thread next to the agent runtime.
"""

from __future__ import annotations

import threading
import time
from typing import Any, Dict

from rich.console import Console
from rich.layout import Layout
from rich.live import Live
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from .bus import EventBus
from .events import EventType, MonitoringEvent


class TuiDashboard:
    """
    Live terminal dashboard bound to a monitoring.EventBus.

    Keeps a small snapshot of the latest events and re-renders it
    periodically via rich.
    """

    def __init__(self, bus: EventBus, console: Console | None = None) -> None:
        self._bus = bus
        self._console = console or Console()
        self._stop = threading.Event()

        self._state: Dict[str, Any] = {
            "phase": "IDLE",
            "cycle_count": 0,
            "connection": "starting",
            "last_abort": None,
            "placement": None,      # {item, success, position, label}
            "sleep": None,          # {outcome, detail}
            "mode": None,           # {observed, required, corrected}
        }

        self._bus.subscribe(self._on_event)

    @property
    def state(self) -> Dict[str, Any]:
        return dict(self._state)

    # --------------------------------------------------------
    # Event handler
    # --------------------------------------------------------

    def _on_event(self, event: MonitoringEvent) -> None:
        et = event.event_type
        p = event.payload

        if et == EventType.AGENT_PHASE_CHANGE:
            self._state["phase"] = p.get("phase", "UNKNOWN")
            self._state["cycle_count"] = p.get("cycle_count", self._state["cycle_count"])
        elif et == EventType.CYCLE_STARTED:
            self._state["cycle_count"] = p.get("cycle", self._state["cycle_count"])
        elif et == EventType.CYCLE_ABORTED:
            self._state["last_abort"] = p.get("reason")
        elif et == EventType.PLACEMENT_RESULT:
            self._state["placement"] = {
                "item": p.get("item"),
                "success": p.get("success"),
                "position": p.get("position"),
                "label": p.get("label"),
            }
        elif et == EventType.SLEEP_ATTEMPT:
            self._state["sleep"] = {
                "outcome": p.get("outcome"),
                "detail": p.get("detail", ""),
            }
        elif et == EventType.GAME_MODE_CORRECTION:
            self._state["mode"] = dict(p)
        elif et == EventType.CONNECTION:
            self._state["connection"] = p.get("status", "unknown")

    # --------------------------------------------------------
    # Rendering helpers
    # --------------------------------------------------------

    def _render_agent_panel(self) -> Panel:
        txt = Text()
        txt.append("Phase: ", style="bold")
        txt.append(f"{self._state['phase']}    ")
        txt.append("Cycles: ", style="bold")
        txt.append(f"{self._state['cycle_count']}    ")
        txt.append("Connection: ", style="bold")
        txt.append(f"{self._state['connection']}\n")
        abort = self._state["last_abort"]
        txt.append("Last abort: ", style="bold")
        txt.append(abort or "<none>")
        return Panel(txt, title="Agent Status", border_style="cyan")

    def _render_placement_panel(self) -> Panel:
        table = Table.grid()
        table.add_column(justify="left")
        placement = self._state["placement"]
        if placement is None:
            table.add_row("<no placements yet>")
        else:
            ok = "[bold green]ok[/bold green]" if placement["success"] else "[bold red]failed[/bold red]"
            table.add_row(f"[bold]Item:[/bold] {placement['item']} {ok}")
            table.add_row(f"[bold]At:[/bold] {placement['position'] or '-'}")
            table.add_row(f"[bold]Site:[/bold] {placement['label'] or '-'}")
        return Panel(table, title="Last Placement", border_style="green")

    def _render_sleep_panel(self) -> Panel:
        sleep = self._state["sleep"]
        if sleep is None:
            body = Text("<no sleep attempts yet>")
        else:
            body = Text()
            body.append("Outcome: ", style="bold")
            body.append(f"{sleep['outcome']}\n")
            if sleep["detail"]:
                body.append(sleep["detail"])
        return Panel(body, title="Sleep", border_style="magenta")

    def _render_mode_panel(self) -> Panel:
        mode = self._state["mode"]
        table = Table.grid()
        table.add_column(justify="left")
        if mode is None:
            table.add_row("[bold green]No corrections recorded.[/bold green]")
        else:
            table.add_row(f"[bold]Observed:[/bold] {mode.get('observed')}")
            table.add_row(f"[bold]Required:[/bold] {mode.get('required')}")
            table.add_row(f"[bold]Corrected:[/bold] {mode.get('corrected')}")
        return Panel(table, title="Game Mode", border_style="yellow")

    def _build_layout(self) -> Layout:
        layout = Layout()
        layout.split(
            Layout(name="top", size=4),
            Layout(name="middle", ratio=1),
        )
        layout["top"].update(self._render_agent_panel())
        layout["middle"].split_row(
            Layout(name="placement"),
            Layout(name="sleep"),
            Layout(name="mode"),
        )
        layout["placement"].update(self._render_placement_panel())
        layout["sleep"].update(self._render_sleep_panel())
        layout["mode"].update(self._render_mode_panel())
        return layout

    # --------------------------------------------------------
    # Main loop
    # --------------------------------------------------------

    def run(self, refresh_per_second: float = 4.0) -> None:
        """
        Run the TUI loop until stop() is called.

        This blocks the current thread.
        """
        refresh_delay = 1.0 / max(refresh_per_second, 0.1)
        with Live(self._build_layout(), console=self._console, refresh_per_second=refresh_per_second) as live:
            while not self._stop.is_set():
                live.update(self._build_layout())
                time.sleep(refresh_delay)

    def start_in_thread(self, refresh_per_second: float = 4.0) -> threading.Thread:
        thread = threading.Thread(
            target=self.run,
            args=(refresh_per_second,),
            name="tui-dashboard",
            daemon=True,
        )
        thread.start()
        return thread

    def stop(self) -> None:
        self._stop.set()
        self._bus.unsubscribe(self._on_event)
