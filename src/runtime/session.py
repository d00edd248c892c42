# path: src/runtime/session.py
"""
Per-connection behavior session.

A BehaviorSession owns every piece of mutable behavior state for one
connection: the CycleState, the provisioning gate, the monitors and the
scheduler holding their tasks. It is created after login and discarded on
disconnect; nothing carries over to the next connection.
"""

from __future__ import annotations

import logging
import random
from typing import Any, Dict, Optional

from behavior.build import BuildStep
from behavior.constants import SPAWN_SETTLE_S
from behavior.containers import ContainerInteraction
from behavior.inventory import check_required_inventory
from behavior.monitors import ModeMonitor, NightMonitor, night_preempts
from behavior.orchestrator import CycleOrchestrator
from behavior.patrol import PatrolLegExecutor
from behavior.placement import PlacementPlanner
from behavior.provisioning import ProvisioningGate
from behavior.scheduling import SystemClock, TaskScheduler
from behavior.sleep import SleepRoutine
from behavior.state import CycleState
from env.schema import BehaviorConfig
from monitoring.bus import EventBus
from spec.capabilities import Clock, WorldCapabilities

log = logging.getLogger(__name__)


class BehaviorSession:
    def __init__(
        self,
        world: WorldCapabilities,
        config: BehaviorConfig,
        *,
        clock: Optional[Clock] = None,
        scheduler: Any = None,
        bus: Optional[EventBus] = None,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.world = world
        self.config = config
        self.clock = clock or SystemClock()
        self.scheduler = scheduler or TaskScheduler(self.clock)
        self.state = CycleState(bus=bus)
        self._closed = False

        self.planner = PlacementPlanner(world, self.clock, bus)
        self.gate = ProvisioningGate(world, self.clock, rng)

        patrol = PatrolLegExecutor(
            world,
            self.clock,
            config.patrol,
            config.timing,
            preempt=lambda: night_preempts(config.auto_sleep, world, self.state),
            stop_requested=lambda: self._closed,
        )
        build = BuildStep(world, self.clock, self.planner, self.gate, config.block_type)
        containers = ContainerInteraction(world, self.clock, self.planner, self.gate, config.container)

        self.orchestrator = CycleOrchestrator(
            world=world,
            clock=self.clock,
            state=self.state,
            scheduler=self.scheduler,
            config=config,
            patrol=patrol,
            build=build,
            containers=containers,
            bus=bus,
        )
        self.sleep = SleepRoutine(
            world,
            self.clock,
            self.state,
            self.planner,
            self.gate,
            config.bed_search_radius,
            resume=self.orchestrator.schedule_cycle,
            bus=bus,
        )
        self.orchestrator.attach_sleep(self.sleep)

        world.on("death", self._on_death)
        world.on("chat", self._on_chat)

        self.night_monitor = NightMonitor(world, self.clock, self.state, self.scheduler, self.sleep)
        self.mode_monitor = ModeMonitor(
            world,
            self.clock,
            self.state,
            self.scheduler,
            config.required_game_mode,
            bus=bus,
        )

    @property
    def closed(self) -> bool:
        return self._closed

    def start(self, settle: float = SPAWN_SETTLE_S) -> None:
        """Begin orchestration after the spawn settle delay."""
        self.scheduler.spawn(self._startup(settle), name="session-startup")

    async def _startup(self, settle: float) -> None:
        await self.clock.sleep(settle)

        self.mode_monitor.check_and_switch()
        self.mode_monitor.start()

        if self.config.required_inventory:
            await check_required_inventory(self.world, self.config.required_inventory)

        patrol = self.config.patrol
        log.info(
            "Starting patrol around %s, radius %s blocks, %d points per lap",
            patrol.center,
            patrol.radius,
            patrol.points_per_lap,
        )
        if self.config.auto_sleep:
            log.info("Night monitoring enabled")
            self.night_monitor.start()

        await self.orchestrator.run_cycle()

    def close(self) -> None:
        """Stop monitors and cancel every task of this session."""
        if self._closed:
            return
        self._closed = True
        self.night_monitor.stop()
        self.mode_monitor.stop()
        self.scheduler.cancel_all()
        self.state.reset()
        log.info("Behavior session closed")

    def _on_death(self, _payload: Any = None) -> None:
        log.info("Agent died, respawning")

    def _on_chat(self, payload: Any = None) -> None:
        payload = payload or {}
        log.info("<%s> %s", payload.get("username", "?"), payload.get("message", ""))

    def status(self) -> Dict[str, Any]:
        return {
            "phase": self.state.phase.name,
            "cycle_count": self.state.cycle_count,
            "game_mode": self.state.game_mode.label,
        }
