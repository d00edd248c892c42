# path: src/monitoring/events.py
"""
Event schema for the monitoring layer.

This module defines:
- EventType enum
- MonitoringEvent (structured system events)

All events are JSON-serializable via `.to_dict()` and are intended
for use with monitoring.bus.EventBus and monitoring.logger.JsonFileLogger.
"""

from __future__ import annotations

from dataclasses import dataclass, asdict
from enum import Enum, auto
from typing import Any, Dict, Optional


# ============================================================
# Event Types
# ============================================================

class EventType(Enum):
    """Typed monitoring events emitted by the behavior core and runtime."""

    # State machine phase transitions (Idle, Patrolling, Sleeping, ...)
    AGENT_PHASE_CHANGE = auto()

    # Cycle lifecycle
    CYCLE_STARTED = auto()
    CYCLE_COMPLETED = auto()
    CYCLE_ABORTED = auto()          # preempted or faulted

    # Placement planner outcome (build block, bed, container)
    PLACEMENT_RESULT = auto()

    # Sleep routine outcome (rejected, aborted, sleeping, woke)
    SLEEP_ATTEMPT = auto()

    # Game-mode drift corrections
    GAME_MODE_CORRECTION = auto()

    # Session connect / disconnect / reconnect
    CONNECTION = auto()

    # Generic log messages
    LOG = auto()


# ============================================================
# Monitoring Event Structure
# ============================================================

@dataclass
class MonitoringEvent:
    """
    Runtime event emitted by the orchestrator, the sleep routine, the
    interrupt monitors or the session runtime.

    All fields must be JSON-safe.
    """

    ts: float                   # UNIX timestamp (seconds)
    module: str                 # Source module string ("behavior.orchestrator", ...)
    event_type: EventType       # Enum describing the event class
    message: str                # Short human-readable description
    payload: Dict[str, Any]     # Structured data (phase, cycle, position, ...)
    correlation_id: Optional[str] = None  # Groups events, e.g. per cycle

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a JSON-safe dict for loggers."""
        data = asdict(self)
        data["event_type"] = self.event_type.name  # store name, not enum
        return data
