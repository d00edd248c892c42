# src/behavior/containers.py
"""
Container interaction step.

Finds (or places) a chest near the agent, deposits and withdraws the items
named in the container manifest, and always closes the window again.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Optional

from bot_core.errors import BridgeRequestError
from env.schema import ContainerConfig
from spec.capabilities import Clock, ContainerHandle, WorldCapabilities
from spec.types import CONTAINER_NAMES, Block, matches_item

from .constants import (
    CONTAINER_APPROACH_DISTANCE,
    CONTAINER_SEARCH_RADIUS,
    CONTAINER_STEP_DELAY_S,
    CONTAINER_STOCK,
)
from .geometry import SHELTER_RING
from .movement import travel_to
from .placement import PlacementPlanner, block_in
from .provisioning import ProvisioningGate

log = logging.getLogger(__name__)

# items that can be placed as a container
_PLACEABLE_CONTAINERS = ("chest", "trapped_chest")


@dataclass
class ContainerReport:
    container: Block
    deposited: Dict[str, int] = field(default_factory=dict)
    withdrawn: Dict[str, int] = field(default_factory=dict)


def _describe(handle: ContainerHandle) -> str:
    items = handle.items()
    if not items:
        return "(empty)"
    return ", ".join(f"{s.count}x {s.name}" for s in items)


class ContainerInteraction:
    def __init__(
        self,
        world: WorldCapabilities,
        clock: Clock,
        planner: PlacementPlanner,
        gate: ProvisioningGate,
        config: ContainerConfig,
    ) -> None:
        self._world = world
        self._clock = clock
        self._planner = planner
        self._gate = gate
        self._config = config

    async def run(self) -> Optional[ContainerReport]:
        """Returns None when disabled or when no container could be used."""
        if not self._config.enabled:
            return None
        log.info("=== CONTAINER INTERACTION START ===")
        try:
            report = await self._interact()
        except BridgeRequestError as exc:
            log.warning("Error during container interaction: %s", exc.message)
            return None
        if report is not None:
            log.info("=== CONTAINER INTERACTION COMPLETE ===")
        return report

    async def _interact(self) -> Optional[ContainerReport]:
        chest = await self._world.find_block(CONTAINER_NAMES, CONTAINER_SEARCH_RADIUS)
        if chest is None:
            log.info("No container found nearby, placing one")
            chest = await self._place_container()
            if chest is None:
                log.warning("Could not place a container. Skipping container interaction.")
                return None
        else:
            log.info("Found %s at %s", chest.name, chest.position)

        if self._world.position().distance_to(chest.position) > CONTAINER_APPROACH_DISTANCE:
            log.info("Walking to %s", chest.name)
            await travel_to(self._world, self._clock, chest.position)
            await self._clock.sleep(CONTAINER_STEP_DELAY_S)

        try:
            handle = await self._world.open_container(chest)
        except BridgeRequestError as exc:
            log.warning("Failed to open %s at %s: %s", chest.name, chest.position, exc.message)
            return None

        report = ContainerReport(container=chest)
        try:
            log.info("Container contents: %s", _describe(handle))
            for name, count in self._config.deposit_items.items():
                report.deposited[name] = await self._deposit(handle, name, count)
            for name, count in self._config.withdraw_items.items():
                report.withdrawn[name] = await self._withdraw(handle, name, count)
            log.info("Final container contents: %s", _describe(handle))
        finally:
            handle.close()
            log.info("Container closed")
        return report

    async def _place_container(self) -> Optional[Block]:
        if self._world.game_mode().is_elevated:
            await self._gate.ensure("chest", CONTAINER_STOCK)

        stack = next(
            (s for s in await self._world.inventory_items() if s.name in _PLACEABLE_CONTAINERS),
            None,
        )
        if stack is None:
            log.warning("No chest in inventory")
            return None

        result = await self._planner.place_near(
            self._world.position(),
            stack,
            SHELTER_RING,
            verify=block_in(CONTAINER_NAMES),
        )
        return result.placed if result.success else None

    async def _deposit(self, handle: ContainerHandle, name: str, count: Optional[int]) -> int:
        """Deposit up to `count` (None: all) of every stack matching `name`."""
        stacks = [s for s in await self._world.inventory_items() if matches_item(s.name, name)]
        if not stacks:
            log.info("No %s in inventory to deposit", name)
            return 0

        total = 0
        try:
            for stack in stacks:
                amount = stack.count if count is None else min(count - total, stack.count)
                if amount <= 0:
                    break
                log.info("Depositing %dx %s", amount, stack.name)
                await handle.deposit(stack, amount)
                total += amount
                await self._clock.sleep(CONTAINER_STEP_DELAY_S)
        except BridgeRequestError as exc:
            log.warning("Error depositing %s: %s", name, exc.message)
        log.info("Deposited %dx %s", total, name)
        return total

    async def _withdraw(self, handle: ContainerHandle, name: str, count: int) -> int:
        stacks = [s for s in handle.items() if matches_item(s.name, name)]
        if not stacks:
            log.info("No %s in container to withdraw", name)
            return 0

        total = 0
        try:
            for stack in stacks:
                amount = min(count - total, stack.count)
                if amount <= 0:
                    break
                log.info("Withdrawing %dx %s", amount, stack.name)
                await handle.withdraw(stack, amount)
                total += amount
                await self._clock.sleep(CONTAINER_STEP_DELAY_S)
        except BridgeRequestError as exc:
            log.warning("Error withdrawing %s: %s", name, exc.message)
        log.info("Withdrew %dx %s", total, name)
        return total
