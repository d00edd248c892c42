# src/behavior/patrol.py
"""
Patrol leg executor: walk the ring of points a number of laps in one direction.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Callable, Optional

from env.schema import PatrolConfig, TimingConfig
from spec.capabilities import Clock, WorldCapabilities
from spec.types import BlockPos, MoveOutcome, PatrolDirection

from .constants import ARRIVAL_THRESHOLD, ARRIVAL_TIMEOUT_S, GOAL_TOLERANCE, HOP_INTERVAL_S
from .geometry import patrol_ring
from .movement import wait_for_arrival

log = logging.getLogger(__name__)


@dataclass
class LegResult:
    """What happened during one leg."""

    direction: PatrolDirection
    laps: int
    visited: int = 0
    arrived: int = 0
    timed_out: int = 0
    preempted: bool = False
    canceled: bool = False

    def record(self, outcome: MoveOutcome) -> None:
        self.visited += 1
        if outcome is MoveOutcome.ARRIVED:
            self.arrived += 1
        elif outcome is MoveOutcome.TIMED_OUT:
            self.timed_out += 1
        else:
            self.canceled = True

    @property
    def completed(self) -> bool:
        return not (self.preempted or self.canceled)


class PatrolLegExecutor:
    """
    Visits the patrol ring point by point.

    Arrival is best-effort: a point that times out is counted in
    LegResult.timed_out and the walk moves on. `preempt` is checked before
    every point; when it returns True the leg ends early.
    """

    def __init__(
        self,
        world: WorldCapabilities,
        clock: Clock,
        patrol: PatrolConfig,
        timing: TimingConfig,
        preempt: Callable[[], bool],
        stop_requested: Optional[Callable[[], bool]] = None,
    ) -> None:
        self._world = world
        self._clock = clock
        self._patrol = patrol
        self._timing = timing
        self._preempt = preempt
        self._stop_requested = stop_requested

    async def walk(self, direction: PatrolDirection, laps: int) -> LegResult:
        points = patrol_ring(
            self._patrol.center,
            self._patrol.radius,
            self._patrol.points_per_lap,
            direction,
        )
        result = LegResult(direction=direction, laps=laps)
        log.info("Walking %s for %d laps", direction.label, laps)

        for lap in range(1, laps + 1):
            log.info("  Lap %d/%d (%s)", lap, laps, direction.label)
            for i, point in enumerate(points, start=1):
                if self._preempt():
                    log.info("Night detected during walk; leaving the %s leg", direction.label)
                    result.preempted = True
                    return result

                log.debug("    Walking to point %d/%d %s", i, len(points), point)
                outcome = await self._visit(point)
                result.record(outcome)
                if outcome is MoveOutcome.CANCELED:
                    return result
                await self._clock.sleep(self._timing.walk_pause_s)

        if result.timed_out:
            log.info(
                "Completed %d %s laps (%d/%d points timed out)",
                laps, direction.label, result.timed_out, result.visited,
            )
        else:
            log.info("Completed %d %s laps", laps, direction.label)
        return result

    async def _visit(self, point: BlockPos) -> MoveOutcome:
        self._world.set_goal(point, GOAL_TOLERANCE)
        hop: Optional[asyncio.Task] = None
        if self._patrol.jump_while_walking:
            hop = asyncio.get_running_loop().create_task(self._hop(), name="patrol-hop")
        try:
            return await wait_for_arrival(
                self._world,
                self._clock,
                point,
                threshold=ARRIVAL_THRESHOLD,
                timeout=ARRIVAL_TIMEOUT_S,
                cancel=self._stop_requested,
            )
        finally:
            if hop is not None:
                hop.cancel()
                try:
                    await hop
                except asyncio.CancelledError:
                    pass
                self._world.set_jump(False)
            self._world.clear_goal()

    async def _hop(self) -> None:
        while True:
            if self._world.is_moving():
                self._world.set_jump(True)
            await self._clock.sleep(HOP_INTERVAL_S)
