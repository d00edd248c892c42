# Path: tools/fake_world_demo.py
"""
Offline smoke run of the behavior core.

Runs a BehaviorSession against the in-memory FakeWorld on a virtual clock:
a few patrol/build cycles, then nightfall, a sleep attempt and a wake-up.
No bridge process and no real waiting.

    python tools/fake_world_demo.py --cycles 2
    python tools/fake_world_demo.py --config config/behavior.yaml --events logs/demo-events.log
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import Optional

PROJECT_ROOT = Path(__file__).resolve().parents[1]
sys.path.append(str(PROJECT_ROOT / "src"))

from bot_core.testing import FakeClock, FakeWorld  # noqa: E402
from env.loader import load_behavior_config  # noqa: E402
from env.schema import BehaviorConfig  # noqa: E402
from monitoring.bus import EventBus  # noqa: E402
from monitoring.logger import JsonFileLogger  # noqa: E402
from runtime.logging_config import configure_logging  # noqa: E402
from runtime.session import BehaviorSession  # noqa: E402

log = logging.getLogger("fake_world_demo")

# loop turns to wait for a milestone before giving up
MAX_TURNS = 200_000


async def _wait_until(predicate, what: str) -> bool:
    for _ in range(MAX_TURNS):
        if predicate():
            return True
        await asyncio.sleep(0)
    log.warning("Gave up waiting for %s", what)
    return False


async def run_demo(config: BehaviorConfig, cycles: int, bus: EventBus) -> None:
    clock = FakeClock()
    world = FakeWorld(position_value=config.patrol.center.as_vec3())
    world.ground_y = config.patrol.center.y
    session = BehaviorSession(world, config, clock=clock, bus=bus)

    session.start(settle=0.0)
    await _wait_until(lambda: session.state.cycle_count > cycles, f"{cycles} cycles")

    log.info("Demo: nightfall")
    world.time = 14000
    if await _wait_until(lambda: session.state.is_sleeping, "sleep"):
        world.time = 0
        world.emit("wake")
        await _wait_until(lambda: session.state.is_processing, "resume after waking")

    session.close()
    log.info(
        "Demo finished: %d cycles, %d blocks dug, %d sleep actions, %.0f virtual seconds",
        cycles,
        len(world.ops("dig")),
        len(world.ops("sleep_in")),
        clock.now() - 1000.0,
    )


def main(argv: Optional[list] = None) -> None:
    parser = argparse.ArgumentParser(description="Run the behavior core against an in-memory world.")
    parser.add_argument("--config", type=Path, default=None)
    parser.add_argument("--cycles", type=int, default=2)
    parser.add_argument("--events", type=Path, default=None, help="also write monitoring events as JSONL")
    parser.add_argument("--log-level", default="INFO")
    args = parser.parse_args(argv)

    configure_logging(args.log_level)
    config = load_behavior_config(args.config)

    bus = EventBus()
    event_log = JsonFileLogger(args.events, bus) if args.events else None
    try:
        asyncio.run(run_demo(config, args.cycles, bus))
    finally:
        if event_log is not None:
            event_log.close()


if __name__ == "__main__":
    main()
