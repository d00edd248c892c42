# src/behavior/movement.py
"""
Bounded movement waits.

The capability layer only accepts a goal; arrival is observed by polling
position. Every wait has a hard deadline so an unreachable target cannot
stall the agent.
"""

from __future__ import annotations

import logging
from typing import Callable, Optional, Union

from spec.capabilities import Clock, WorldCapabilities
from spec.types import BlockPos, MoveOutcome, Vec3

from .constants import (
    ARRIVAL_THRESHOLD,
    ARRIVAL_TIMEOUT_S,
    GOAL_TOLERANCE,
    POLL_INTERVAL_S,
)

log = logging.getLogger(__name__)

Target = Union[BlockPos, Vec3]


async def wait_for_arrival(
    world: WorldCapabilities,
    clock: Clock,
    target: Target,
    *,
    threshold: float = ARRIVAL_THRESHOLD,
    timeout: float = ARRIVAL_TIMEOUT_S,
    poll: float = POLL_INTERVAL_S,
    cancel: Optional[Callable[[], bool]] = None,
) -> MoveOutcome:
    """Poll until within `threshold` of `target`, `cancel()` is true, or `timeout` elapses."""
    deadline = clock.now() + timeout
    while True:
        if world.position().distance_to(target) < threshold:
            return MoveOutcome.ARRIVED
        if cancel is not None and cancel():
            return MoveOutcome.CANCELED
        if clock.now() >= deadline:
            return MoveOutcome.TIMED_OUT
        await clock.sleep(poll)


async def travel_to(
    world: WorldCapabilities,
    clock: Clock,
    target: BlockPos,
    *,
    tolerance: float = GOAL_TOLERANCE,
    threshold: float = ARRIVAL_THRESHOLD,
    timeout: float = ARRIVAL_TIMEOUT_S,
    cancel: Optional[Callable[[], bool]] = None,
) -> MoveOutcome:
    """Set a goal, wait for it, and always clear the goal afterwards."""
    world.set_goal(target, tolerance)
    try:
        outcome = await wait_for_arrival(
            world,
            clock,
            target,
            threshold=threshold,
            timeout=timeout,
            cancel=cancel,
        )
    finally:
        world.clear_goal()
    if outcome is not MoveOutcome.ARRIVED:
        log.info("Travel to %s ended %s", target, outcome.name.lower())
    return outcome
