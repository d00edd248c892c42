# src/behavior/sleep.py
"""
Sleep routine.

    IDLE -> ATTEMPTING_SLEEP (search bed / place bed / travel / sleep) -> SLEEPING -> IDLE

Every way out of an attempt other than falling asleep clears the sleep
phase and asks for a resume after RESUME_DELAY_S; the next
night check re-triggers a new attempt once the debounce window is over.
"""

from __future__ import annotations

import logging
from enum import Enum, auto
from typing import Any, Callable, Optional

from bot_core.errors import BridgeRequestError
from monitoring.bus import EventBus
from monitoring.integration import emit_sleep_attempt
from spec.capabilities import Clock, WorldCapabilities
from spec.types import BED_NAMES, Block

from .constants import (
    BED_APPROACH_THRESHOLD,
    BED_APPROACH_TIMEOUT_S,
    PRE_SLEEP_DELAY_S,
    RESUME_DELAY_S,
    SLEEP_DEBOUNCE_S,
)
from .geometry import SHELTER_RING
from .movement import travel_to
from .placement import PlacementPlanner, block_in
from .provisioning import ProvisioningGate
from .state import CycleState, SleepGate

log = logging.getLogger(__name__)


class SleepOutcome(Enum):
    DEBOUNCED = auto()      # rejected by the debounce window, nothing done
    BUSY = auto()           # another attempt in flight, or already asleep
    NO_BED = auto()         # none found, none carried or none placeable
    SLEEP_FAILED = auto()   # the world refused the sleep action
    SLEEPING = auto()
    ERROR = auto()          # unexpected fault during the attempt


class SleepRoutine:
    def __init__(
        self,
        world: WorldCapabilities,
        clock: Clock,
        state: CycleState,
        planner: PlacementPlanner,
        gate: ProvisioningGate,
        bed_search_radius: float,
        resume: Callable[[float], Any],
        bus: Optional[EventBus] = None,
    ) -> None:
        self._world = world
        self._clock = clock
        self._state = state
        self._planner = planner
        self._gate = gate
        self._bed_search_radius = bed_search_radius
        self._resume = resume
        self._bus = bus

    async def attempt(self) -> SleepOutcome:
        gate = self._state.begin_sleep_attempt(self._clock.now(), SLEEP_DEBOUNCE_S)
        if gate is SleepGate.BUSY:
            log.debug("Sleep attempt skipped: already %s", self._state.phase.name)
            return SleepOutcome.BUSY
        if gate is SleepGate.DEBOUNCED:
            log.debug("Sleep attempt skipped: last attempt under %.0fs ago", SLEEP_DEBOUNCE_S)
            self._publish("debounced")
            return SleepOutcome.DEBOUNCED

        log.info("Night has fallen, looking for a bed")
        try:
            return await self._attempt()
        except BridgeRequestError as exc:
            log.warning("Error during sleep attempt: %s", exc.message)
            self._abandon("error", exc.message)
            return SleepOutcome.ERROR
        except Exception as exc:
            log.exception("Unexpected error during sleep attempt")
            self._abandon("error", repr(exc))
            return SleepOutcome.ERROR

    async def _attempt(self) -> SleepOutcome:
        self._world.clear_goal()

        bed = await self._find_or_place_bed()
        if bed is None:
            log.warning("No bed available. Continuing without sleep.")
            self._abandon("no_bed")
            return SleepOutcome.NO_BED

        if self._world.position().distance_to(bed.position) > BED_APPROACH_THRESHOLD:
            log.info("Walking to bed at %s", bed.position)
            # best-effort: a timeout still tries to sleep from where we are
            await travel_to(
                self._world,
                self._clock,
                bed.position,
                tolerance=0.0,
                threshold=BED_APPROACH_THRESHOLD,
                timeout=BED_APPROACH_TIMEOUT_S,
            )

        await self._clock.sleep(PRE_SLEEP_DELAY_S)
        log.info("Going to sleep")
        try:
            await self._world.sleep_in(bed)
        except BridgeRequestError as exc:
            log.warning("Could not sleep: %s", exc.message)
            self._abandon("sleep_failed", exc.message, bed)
            return SleepOutcome.SLEEP_FAILED

        self._state.mark_sleeping()
        self._world.once("wake", self._on_wake)
        log.info("Now sleeping; will wake when morning comes")
        self._publish("sleeping", bed=bed)
        return SleepOutcome.SLEEPING

    async def _find_or_place_bed(self) -> Optional[Block]:
        bed = await self._world.find_block(BED_NAMES, self._bed_search_radius)
        if bed is not None:
            log.info("Found %s at %s", bed.name, bed.position)
            return bed

        log.info("No bed within %.0f blocks, checking inventory", self._bed_search_radius)
        if self._world.game_mode().is_elevated:
            await self._gate.ensure("red_bed", 1)

        bed_item = next(
            (s for s in await self._world.inventory_items() if s.name in BED_NAMES),
            None,
        )
        if bed_item is None:
            log.warning("No bed in inventory")
            return None

        log.info("Placing %s from inventory", bed_item.name)
        result = await self._planner.place_near(
            self._world.position(),
            bed_item,
            SHELTER_RING,
            verify=block_in(BED_NAMES),
        )
        return result.placed if result.success else None

    def _on_wake(self, _payload: Any = None) -> None:
        log.info("Good morning! Woke up; resuming in %.0fs", RESUME_DELAY_S)
        self._state.finish_sleep()
        self._publish("woke")
        self._resume(RESUME_DELAY_S)

    def _abandon(self, outcome: str, detail: str = "", bed: Optional[Block] = None) -> None:
        self._state.finish_sleep()
        self._publish(outcome, detail, bed)
        self._resume(RESUME_DELAY_S)

    def _publish(self, outcome: str, detail: str = "", bed: Optional[Block] = None) -> None:
        if self._bus is not None:
            emit_sleep_attempt(
                self._bus,
                outcome,
                detail,
                bed=bed.position if bed is not None else None,
            )
