# status file consumed by the supervisor
"""
Status file writer.

Subscribes to the EventBus and keeps `logs/status.json` current with the
agent's coarse status, cycle counter and phase:

    {"status": "running", "cycle_count": 4, "phase": "PATROLLING", "ts": 1700000000.0}

The supervisor process reads this file to answer its HTTP status endpoint.
Writes go through a temp file + os.replace so readers never see a torn file.
"""

from __future__ import annotations

import json
import logging
import os
import time
from pathlib import Path
from typing import Any, Dict, Optional

from .bus import EventBus
from .events import EventType, MonitoringEvent

log = logging.getLogger(__name__)

DEFAULT_STATUS_PATH = Path("logs") / "status.json"

# CONNECTION status -> coarse process status
_CONNECTION_STATUS = {
    "connecting": "starting",
    "reconnecting": "starting",
    "connected": "running",
    "disconnected": "starting",
    "failed": "error",
    "stopped": "stopped",
}


class StatusFileWriter:
    """Bus subscriber that mirrors status/cycle/phase into a JSON file."""

    def __init__(self, path: Path, bus: EventBus) -> None:
        self._path = path
        self._bus = bus
        self._state: Dict[str, Any] = {
            "status": "starting",
            "cycle_count": 0,
            "phase": "IDLE",
            "ts": time.time(),
        }
        path.parent.mkdir(parents=True, exist_ok=True)
        self._write()
        bus.subscribe(self._on_event)

    @property
    def state(self) -> Dict[str, Any]:
        return dict(self._state)

    def _on_event(self, event: MonitoringEvent) -> None:
        et = event.event_type
        payload = event.payload
        changed = False

        if et == EventType.AGENT_PHASE_CHANGE:
            self._state["phase"] = payload.get("phase", self._state["phase"])
            if "cycle_count" in payload:
                self._state["cycle_count"] = payload["cycle_count"]
            changed = True
        elif et in (EventType.CYCLE_STARTED, EventType.CYCLE_COMPLETED):
            self._state["cycle_count"] = payload.get("cycle", self._state["cycle_count"])
            changed = True
        elif et == EventType.CONNECTION:
            status = _CONNECTION_STATUS.get(payload.get("status", ""))
            if status is not None:
                self._state["status"] = status
                if payload.get("status") == "connected":
                    # fresh session, fresh counter
                    self._state["cycle_count"] = 0
                    self._state["phase"] = "IDLE"
                changed = True

        if changed:
            self._state["ts"] = event.ts
            self._write()

    def _write(self) -> None:
        tmp = self._path.with_suffix(self._path.suffix + ".tmp")
        try:
            tmp.write_text(json.dumps(self._state), encoding="utf-8")
            os.replace(tmp, self._path)
        except OSError as exc:
            log.warning("Could not write status file %s: %s", self._path, exc)

    def close(self) -> None:
        self._bus.unsubscribe(self._on_event)


def read_status_file(path: Path) -> Optional[Dict[str, Any]]:
    """Return the parsed status file, or None if missing/unreadable."""
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        return None
    except (OSError, ValueError) as exc:
        log.debug("Unreadable status file %s: %s", path, exc)
        return None
