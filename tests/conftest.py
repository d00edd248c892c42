# tests/conftest.py

from __future__ import annotations

import sys
from pathlib import Path
from typing import Any, Callable, List

import pytest

# Ensure src/ is on sys.path for test imports like `import env`, `import behavior`.
PROJECT_ROOT = Path(__file__).resolve().parents[1]
SRC_ROOT = PROJECT_ROOT / "src"

if str(SRC_ROOT) not in sys.path:
    sys.path.insert(0, str(SRC_ROOT))

from bot_core.testing import FakeClock, FakeWorld, RecordingScheduler  # noqa: E402
from env.schema import (  # noqa: E402
    BehaviorConfig,
    ContainerConfig,
    PatrolConfig,
    TimingConfig,
)
from monitoring.bus import EventBus  # noqa: E402
from monitoring.events import MonitoringEvent  # noqa: E402
from spec.types import BlockPos  # noqa: E402


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def world() -> FakeWorld:
    return FakeWorld()


@pytest.fixture
def scheduler() -> RecordingScheduler:
    return RecordingScheduler()


@pytest.fixture
def bus() -> EventBus:
    return EventBus()


@pytest.fixture
def captured(bus: EventBus) -> List[MonitoringEvent]:
    """Every event published on `bus`, in order."""
    events: List[MonitoringEvent] = []
    bus.subscribe(events.append)
    return events


@pytest.fixture
def make_config() -> Callable[..., BehaviorConfig]:
    """
    Small, fast config: 4-point ring of radius 3, one lap per leg,
    no walk pause, containers disabled.
    """

    def _make(**overrides: Any) -> BehaviorConfig:
        values: dict = dict(
            patrol=PatrolConfig(center=BlockPos(0, 64, 0), radius=3, points_per_lap=4, laps_per_leg=1),
            timing=TimingConfig(walk_pause_s=0.0, delay_between_actions_s=2.0),
            container=ContainerConfig(enabled=False),
        )
        values.update(overrides)
        return BehaviorConfig(**values)

    return _make
