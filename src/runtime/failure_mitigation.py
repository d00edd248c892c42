# path: src/runtime/failure_mitigation.py

"""
Failure handling helpers for the agent runtime.

Turns process-level failures into structured monitoring events before the
entrypoint exits. Nothing here decides whether to exit; callers do.

Failure classes covered:

1) Configuration errors (fatal at startup)
     emit_config_error(...)
2) Authentication failures (fatal, never retried)
     emit_auth_failure(...)
3) Reconnection budget exhausted (fatal)
     emit_reconnect_exhausted(...)
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from monitoring.bus import EventBus
from monitoring.events import EventType
from monitoring.logger import log_event


JsonDict = Dict[str, Any]


def emit_config_error(
    bus: EventBus,
    message: str,
    *,
    config_path: Optional[str] = None,
    error_repr: Optional[str] = None,
) -> None:
    """
    Emit a LOG event for a configuration error.

        try:
            cfg = load_behavior_config(path)
        except ConfigError as exc:
            emit_config_error(bus, "Invalid behavior config", error_repr=repr(exc))
            return 1
    """
    payload: JsonDict = {
        "subtype": "CONFIG_ERROR",
        "config_path": config_path,
        "error": error_repr,
    }
    log_event(
        bus=bus,
        module="runtime.config",
        event_type=EventType.LOG,
        message=message,
        payload=payload,
    )


def emit_auth_failure(bus: EventBus, auth_mode: str, error_repr: str) -> None:
    payload: JsonDict = {
        "subtype": "AUTH_FAILURE",
        "auth": auth_mode,
        "error": error_repr,
    }
    log_event(
        bus=bus,
        module="runtime.connection",
        event_type=EventType.LOG,
        message="Authentication failed",
        payload=payload,
    )


def emit_reconnect_exhausted(bus: EventBus, attempts: int, reason: str) -> None:
    payload: JsonDict = {
        "subtype": "RECONNECT_EXHAUSTED",
        "attempts": attempts,
        "reason": reason,
    }
    log_event(
        bus=bus,
        module="runtime.connection",
        event_type=EventType.LOG,
        message=f"Gave up after {attempts} reconnect attempts",
        payload=payload,
    )
