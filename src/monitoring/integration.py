# path: src/monitoring/integration.py
"""
Integration helpers for the monitoring layer.

Convenience functions for emitting well-structured MonitoringEvents from:

- behavior.state (phase transitions)
- behavior.orchestrator (cycle lifecycle)
- behavior.placement (placement outcomes)
- behavior.sleep (sleep attempts)
- behavior.monitors (game-mode corrections)
- runtime.connection (session connect / disconnect)

All functions are thin wrappers around monitoring.logger.log_event
and keep payload shapes consistent across the codebase.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from .bus import EventBus
from .events import EventType
from .logger import log_event


JsonDict = Dict[str, Any]


def _cycle_id(cycle: Optional[int]) -> Optional[str]:
    return f"cycle-{cycle}" if cycle is not None else None


# ============================================================
# State machine
# ============================================================

def emit_phase_change(
    bus: EventBus,
    previous: str,
    phase: str,
    cycle_count: int,
) -> None:
    """
    Emit an AGENT_PHASE_CHANGE event.

    Phases: "IDLE", "PATROLLING", "BUILDING", "INTERACTING",
    "ATTEMPTING_SLEEP", "SLEEPING".
    """
    log_event(
        bus=bus,
        module="behavior.state",
        event_type=EventType.AGENT_PHASE_CHANGE,
        message=f"Phase {previous} -> {phase}",
        payload={"previous": previous, "phase": phase, "cycle_count": cycle_count},
    )


# ============================================================
# Cycle lifecycle
# ============================================================

def emit_cycle_started(bus: EventBus, cycle: int) -> None:
    log_event(
        bus=bus,
        module="behavior.orchestrator",
        event_type=EventType.CYCLE_STARTED,
        message=f"Cycle {cycle} started",
        payload={"cycle": cycle},
        correlation_id=_cycle_id(cycle),
    )


def emit_cycle_completed(bus: EventBus, cycle: int, duration_s: float) -> None:
    log_event(
        bus=bus,
        module="behavior.orchestrator",
        event_type=EventType.CYCLE_COMPLETED,
        message=f"Cycle {cycle} completed",
        payload={"cycle": cycle, "duration_s": round(duration_s, 3)},
        correlation_id=_cycle_id(cycle),
    )


def emit_cycle_aborted(
    bus: EventBus,
    cycle: int,
    reason: str,
    step: Optional[str] = None,
) -> None:
    """
    Emit a CYCLE_ABORTED event.

    `reason` is "night" for preemption or "error" for a faulted cycle body.
    """
    log_event(
        bus=bus,
        module="behavior.orchestrator",
        event_type=EventType.CYCLE_ABORTED,
        message=f"Cycle {cycle} aborted ({reason})",
        payload={"cycle": cycle, "reason": reason, "step": step},
        correlation_id=_cycle_id(cycle),
    )


# ============================================================
# Placement / sleep / mode
# ============================================================

def emit_placement_result(
    bus: EventBus,
    item: str,
    success: bool,
    position: Optional[Any] = None,
    label: Optional[str] = None,
    attempts: int = 0,
) -> None:
    payload: JsonDict = {
        "item": item,
        "success": success,
        "position": list(position) if position is not None else None,
        "label": label,
        "attempts": attempts,
    }
    msg = f"Placed {item} {label}" if success else f"Could not place {item}"
    log_event(
        bus=bus,
        module="behavior.placement",
        event_type=EventType.PLACEMENT_RESULT,
        message=msg,
        payload=payload,
    )


def emit_sleep_attempt(
    bus: EventBus,
    outcome: str,
    detail: str = "",
    bed: Optional[Any] = None,
) -> None:
    """
    Emit a SLEEP_ATTEMPT event.

    Outcomes: "debounced", "busy", "no_bed", "sleep_failed", "sleeping", "woke".
    """
    log_event(
        bus=bus,
        module="behavior.sleep",
        event_type=EventType.SLEEP_ATTEMPT,
        message=f"Sleep attempt: {outcome}" + (f" ({detail})" if detail else ""),
        payload={
            "outcome": outcome,
            "detail": detail,
            "bed": list(bed) if bed is not None else None,
        },
    )


def emit_mode_correction(
    bus: EventBus,
    observed: str,
    required: str,
    corrected: Optional[bool],
) -> None:
    """`corrected` is None when the command was issued but not yet re-verified."""
    if corrected is None:
        msg = f"Game mode {observed}, switching to {required}"
    elif corrected:
        msg = f"Game mode corrected to {required}"
    else:
        msg = f"Game mode still {observed} after correction"
    log_event(
        bus=bus,
        module="behavior.monitors",
        event_type=EventType.GAME_MODE_CORRECTION,
        message=msg,
        payload={"observed": observed, "required": required, "corrected": corrected},
    )


# ============================================================
# Connection
# ============================================================

def emit_connection(
    bus: EventBus,
    status: str,
    attempt: int = 0,
    reason: Optional[str] = None,
) -> None:
    """
    Emit a CONNECTION event.

    Status values: "connecting", "connected", "disconnected", "reconnecting",
    "failed", "stopped".
    """
    log_event(
        bus=bus,
        module="runtime.connection",
        event_type=EventType.CONNECTION,
        message=f"Connection {status}" + (f": {reason}" if reason else ""),
        payload={"status": status, "attempt": attempt, "reason": reason},
    )


def emit_log(bus: EventBus, module: str, message: str, **extra: Any) -> None:
    """Generic LOG event carrying arbitrary JSON-safe fields."""
    log_event(
        bus=bus,
        module=module,
        event_type=EventType.LOG,
        message=message,
        payload=dict(extra),
    )
