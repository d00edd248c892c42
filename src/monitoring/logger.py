# JSON logger subscribing to EventBus
"""
Structured logging for the monitoring layer.

Provides:
- JsonFileLogger: subscribes to an EventBus and writes MonitoringEvents as JSONL.
- log_event: convenience helper for publishing MonitoringEvents via the EventBus.

Usage:

    bus = EventBus()
    logger = JsonFileLogger(Path("logs/monitoring/events.log"), bus)

    log_event(
        bus=bus,
        module="behavior.orchestrator",
        event_type=EventType.CYCLE_STARTED,
        message="Cycle 3 started",
        payload={"cycle": 3},
    )
"""

from __future__ import annotations

import json
import logging
import time
from pathlib import Path
from typing import Any, Dict, Optional

from .bus import EventBus
from .events import EventType, MonitoringEvent

log = logging.getLogger(__name__)


class JsonFileLogger:
    """
    JSON-lines logger for MonitoringEvent instances.

    - Subscribes to an EventBus and writes one JSON object per line.
    - Creates the parent directory if needed.
    """

    def __init__(self, path: Path, bus: EventBus) -> None:
        self._path = path
        path.parent.mkdir(parents=True, exist_ok=True)
        self._file = path.open("a", encoding="utf-8")
        self._bus = bus
        bus.subscribe(self._on_event)

    def _on_event(self, event: MonitoringEvent) -> None:
        line = json.dumps(event.to_dict(), ensure_ascii=False, default=str)
        try:
            self._file.write(line + "\n")
            self._file.flush()
        except (OSError, ValueError):
            # Disk full or handle already closed; keep the process alive.
            log.warning("Dropping monitoring event %s: log file unavailable", event.event_type.name)

    def close(self) -> None:
        """Unsubscribe and close the file. Call at shutdown."""
        self._bus.unsubscribe(self._on_event)
        self._file.close()


def log_event(
    bus: EventBus,
    module: str,
    event_type: EventType,
    message: str,
    payload: Optional[Dict[str, Any]] = None,
    correlation_id: Optional[str] = None,
) -> None:
    """
    Create and publish a MonitoringEvent.

    Parameters
    ----------
    bus:
        EventBus instance to publish the event to.
    module:
        Source module name ("behavior.sleep", "runtime.connection", ...).
    event_type:
        EventType member describing the event.
    message:
        Short human-readable description.
    payload:
        JSON-safe structured data.
    correlation_id:
        Optional id linking related events (e.g. "cycle-12").
    """
    event = MonitoringEvent(
        ts=time.time(),
        module=module,
        event_type=event_type,
        message=message,
        payload=payload or {},
        correlation_id=correlation_id,
    )
    bus.publish(event)
