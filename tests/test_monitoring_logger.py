#tests/test_monitoring_logger.py
"""
Tests for monitoring.logger.JsonFileLogger and log_event.

Covers:
- one valid JSON object per line, enum stored by name
- payloads from the behavior helpers survive encoding
- parent directories are created
- close() unsubscribes
"""

from __future__ import annotations

import json
from pathlib import Path

from monitoring.bus import EventBus
from monitoring.events import EventType
from monitoring.integration import emit_placement_result, emit_sleep_attempt
from monitoring.logger import JsonFileLogger, log_event
from spec.types import BlockPos


def _lines(path: Path):
    return [json.loads(line) for line in path.read_text(encoding="utf-8").splitlines()]


def test_json_file_logger_writes_valid_json(tmp_path: Path):
    bus = EventBus()
    log_path = tmp_path / "events.log"
    logger = JsonFileLogger(log_path, bus)

    log_event(
        bus=bus,
        module="behavior.orchestrator",
        event_type=EventType.CYCLE_STARTED,
        message="Cycle 3 started",
        payload={"cycle": 3},
        correlation_id="cycle-3",
    )
    emit_placement_result(bus, "stone", True, BlockPos(2, 64, 0), "2m east", 1)
    emit_sleep_attempt(bus, "no_bed")
    logger.close()

    first, placement, sleep = _lines(log_path)

    assert first["module"] == "behavior.orchestrator"
    assert first["event_type"] == "CYCLE_STARTED"
    assert first["payload"] == {"cycle": 3}
    assert first["correlation_id"] == "cycle-3"
    assert isinstance(first["ts"], (int, float))

    assert placement["event_type"] == "PLACEMENT_RESULT"
    assert placement["payload"]["position"] == [2, 64, 0]
    assert placement["payload"]["label"] == "2m east"

    assert sleep["payload"] == {"outcome": "no_bed", "detail": "", "bed": None}


def test_logger_creates_parent_dir_and_stops_after_close(tmp_path: Path):
    log_path = tmp_path / "nested" / "monitoring" / "events.log"
    bus = EventBus()
    logger = JsonFileLogger(log_path, bus)

    log_event(bus=bus, module="runtime.connection", event_type=EventType.CONNECTION, message="Connection connected")
    logger.close()
    log_event(bus=bus, module="runtime.connection", event_type=EventType.CONNECTION, message="Connection stopped")

    assert log_path.exists()
    assert [e["message"] for e in _lines(log_path)] == ["Connection connected"]
