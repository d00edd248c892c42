# src/behavior/orchestrator.py
"""
Cycle orchestrator.

One cycle, strictly in order:

    patrol clockwise -> [night?] -> delay -> [night?] -> build+break -> delay
    -> container interaction
    -> patrol counter-clockwise -> [night?] -> delay -> [night?] -> build+break -> delay

Each [night?] checkpoint abandons the rest of the cycle and hands off to
the sleep routine. A completed cycle re-enters run_cycle() immediately; a
faulted one is retried after the configured inter-action delay. All of
these go through schedule_cycle(), so at most one run_cycle() is queued.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from env.schema import BehaviorConfig
from monitoring.bus import EventBus
from monitoring.integration import (
    emit_cycle_aborted,
    emit_cycle_completed,
    emit_cycle_started,
)
from spec.capabilities import Clock, WorldCapabilities
from spec.types import PatrolDirection

from .build import BuildStep
from .constants import POST_LEG_DELAY_S, RESUME_DELAY_S
from .containers import ContainerInteraction
from .monitors import night_preempts
from .patrol import PatrolLegExecutor
from .sleep import SleepOutcome, SleepRoutine
from .state import AgentPhase, CycleState

log = logging.getLogger(__name__)


class CycleOrchestrator:
    def __init__(
        self,
        *,
        world: WorldCapabilities,
        clock: Clock,
        state: CycleState,
        scheduler: Any,
        config: BehaviorConfig,
        patrol: PatrolLegExecutor,
        build: BuildStep,
        containers: ContainerInteraction,
        sleep: Optional[SleepRoutine] = None,
        bus: Optional[EventBus] = None,
    ) -> None:
        self._world = world
        self._clock = clock
        self._state = state
        self._scheduler = scheduler
        self._config = config
        self._patrol = patrol
        self._build = build
        self._containers = containers
        self._sleep = sleep
        self._bus = bus
        self._cycle_queued = False

    def attach_sleep(self, sleep: SleepRoutine) -> None:
        """The sleep routine resumes the orchestrator, so it is wired after construction."""
        self._sleep = sleep

    def schedule_cycle(self, delay: float = 0.0) -> None:
        """Queue run_cycle after `delay` seconds. At most one run is queued at a time."""
        if self._cycle_queued:
            log.debug("run_cycle already queued")
            return
        self._cycle_queued = True
        if delay > 0:
            self._scheduler.call_later(delay, self.run_cycle)
        else:
            self._scheduler.call_soon(self.run_cycle)

    def preempted(self) -> bool:
        return night_preempts(self._config.auto_sleep, self._world, self._state)

    async def run_cycle(self) -> None:
        """Run one cycle. A no-op unless the agent is idle."""
        self._cycle_queued = False
        if self._state.phase is not AgentPhase.IDLE:
            log.debug("run_cycle skipped: phase %s", self._state.phase.name)
            return

        if self.preempted():
            await self._hand_off_to_sleep()
            return

        if not self._state.begin_cycle():
            return
        cycle = self._state.cycle_count
        started = self._clock.now()
        log.info("========== CYCLE %d START ==========", cycle)
        if self._bus is not None:
            emit_cycle_started(self._bus, cycle)

        step = "start"
        try:
            for direction in (PatrolDirection.CLOCKWISE, PatrolDirection.COUNTER_CLOCKWISE):
                step = f"patrol {direction.label}"
                if not self._state.enter(AgentPhase.PATROLLING):
                    return
                await self._patrol.walk(direction, self._config.patrol.laps_per_leg)
                if await self._checkpoint(cycle, step):
                    return

                await self._clock.sleep(POST_LEG_DELAY_S)

                step = f"build after {direction.label} leg"
                if await self._checkpoint(cycle, step):
                    return
                if not self._state.enter(AgentPhase.BUILDING):
                    return
                await self._build.place_and_break()
                await self._clock.sleep(self._config.timing.delay_between_actions_s)

                if direction is PatrolDirection.CLOCKWISE:
                    step = "container interaction"
                    if not self._state.enter(AgentPhase.INTERACTING):
                        return
                    await self._containers.run()
        except Exception:
            log.exception("Error in cycle %d during %s", cycle, step)
            self._state.end_cycle()
            if self._bus is not None:
                emit_cycle_aborted(self._bus, cycle, "error", step)
            self.schedule_cycle(self._config.timing.delay_between_actions_s)
            return

        log.info("========== CYCLE %d COMPLETE ==========", cycle)
        self._state.end_cycle()
        if self._bus is not None:
            emit_cycle_completed(self._bus, cycle, self._clock.now() - started)
        self.schedule_cycle()

    async def _checkpoint(self, cycle: int, step: str) -> bool:
        """True when night preempted the cycle (control already handed to sleep)."""
        if not self.preempted():
            return False
        log.info("Night detected after %s; abandoning cycle %d", step, cycle)
        self._state.end_cycle()
        if self._bus is not None:
            emit_cycle_aborted(self._bus, cycle, "night", step)
        await self._hand_off_to_sleep()
        return True

    async def _hand_off_to_sleep(self) -> None:
        if self._sleep is None:
            log.warning("Night preemption without a sleep routine; retrying cycle later")
            self.schedule_cycle(RESUME_DELAY_S)
            return
        outcome = await self._sleep.attempt()
        if outcome is SleepOutcome.DEBOUNCED:
            self.schedule_cycle(RESUME_DELAY_S)
