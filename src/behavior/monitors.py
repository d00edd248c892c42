# src/behavior/monitors.py
"""
Interrupt monitors.

Both the world time and the game mode are only available by query, so
each monitor is a periodic loop on the session scheduler:

- NightMonitor: every 2s, starts a sleep attempt when it is night and the
  agent is idle.
- ModeMonitor: every 3s, compares the observed game mode with the last
  observation and issues a correction when it drifted away from the
  required mode, re-verifying 1s later.

Neither blocks the orchestrator; they only start routines that guard
themselves through CycleState.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Optional

from monitoring.bus import EventBus
from monitoring.integration import emit_mode_correction
from spec.capabilities import Clock, WorldCapabilities
from spec.types import GameMode

from .constants import (
    MODE_CHECK_INTERVAL_S,
    MODE_REVERIFY_DELAY_S,
    NIGHT_CHECK_INTERVAL_S,
    NIGHT_END,
    NIGHT_START,
)
from .sleep import SleepRoutine
from .state import AgentPhase, CycleState

log = logging.getLogger(__name__)


def is_night(time_of_day: Optional[int]) -> bool:
    """Night is [13000, 23000); unknown time is never night."""
    if time_of_day is None:
        return False
    return NIGHT_START <= time_of_day < NIGHT_END


def night_preempts(auto_sleep: bool, world: WorldCapabilities, state: CycleState) -> bool:
    """Checkpoint predicate: should the current activity give way to sleep?"""
    return auto_sleep and is_night(world.time_of_day()) and not state.sleep_in_progress


class _PeriodicMonitor:
    name = "monitor"

    def __init__(self, clock: Clock, scheduler: Any, interval: float) -> None:
        self._clock = clock
        self._scheduler = scheduler
        self._interval = interval
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._task = self._scheduler.spawn(self._loop(), name=self.name)

    def stop(self) -> None:
        if self._task is not None:
            self._task.cancel()
            self._task = None

    async def _loop(self) -> None:
        while True:
            await self._clock.sleep(self._interval)
            try:
                self.check()
            except Exception:
                log.exception("%s check failed", self.name)

    def check(self) -> bool:
        raise NotImplementedError


class NightMonitor(_PeriodicMonitor):
    name = "night-monitor"

    def __init__(
        self,
        world: WorldCapabilities,
        clock: Clock,
        state: CycleState,
        scheduler: Any,
        sleep: SleepRoutine,
        interval: float = NIGHT_CHECK_INTERVAL_S,
    ) -> None:
        super().__init__(clock, scheduler, interval)
        self._world = world
        self._state = state
        self._sleep = sleep

    def check(self) -> bool:
        """One tick. Returns True when a sleep attempt was started."""
        if not is_night(self._world.time_of_day()):
            return False
        if self._state.phase is not AgentPhase.IDLE:
            return False
        log.info("Night detected while idle, starting sleep attempt")
        self._scheduler.spawn(self._sleep.attempt(), name="sleep-attempt")
        return True


class ModeMonitor(_PeriodicMonitor):
    name = "mode-monitor"

    def __init__(
        self,
        world: WorldCapabilities,
        clock: Clock,
        state: CycleState,
        scheduler: Any,
        required: GameMode,
        bus: Optional[EventBus] = None,
        interval: float = MODE_CHECK_INTERVAL_S,
    ) -> None:
        super().__init__(clock, scheduler, interval)
        self._world = world
        self._state = state
        self._required = required
        self._bus = bus
        self._observed: Optional[GameMode] = None

    def check_and_switch(self) -> bool:
        """Startup check: correct any mode other than the required one."""
        mode = self._world.game_mode()
        self._observe(mode)
        log.info("Current game mode: %s", mode.label)
        if mode is self._required:
            log.info("Already in %s mode", self._required.label)
            return False
        self._correct(mode)
        return True

    def check(self) -> bool:
        """Periodic tick: correct only a change away from the required mode."""
        previous = self._observed
        current = self._world.game_mode()
        self._observe(current)
        if previous is None or current is previous or current is self._required:
            return False
        log.warning("Game mode changed to %s, switching back to %s", current.label, self._required.label)
        self._correct(current)
        return True

    def _observe(self, mode: GameMode) -> None:
        self._observed = mode
        self._state.game_mode = mode

    def _correct(self, observed: GameMode) -> None:
        self._world.send_command(f"/gamemode {self._required.label}")
        if self._bus is not None:
            emit_mode_correction(self._bus, observed.label, self._required.label, None)
        self._scheduler.call_later(MODE_REVERIFY_DELAY_S, self._verify, observed)

    def _verify(self, observed: GameMode) -> bool:
        current = self._world.game_mode()
        self._observe(current)
        ok = current is self._required
        if ok:
            log.info("Switched to %s mode", self._required.label)
        else:
            log.warning("Still in %s mode; may need permissions", current.label)
        if self._bus is not None:
            emit_mode_correction(self._bus, observed.label, self._required.label, ok)
        return ok
