# src/behavior/build.py
"""
Build-and-break step: place one block of the configured kind next to the
agent, then dig it out again and check the cell is empty.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from bot_core.errors import BridgeRequestError
from spec.capabilities import Clock, WorldCapabilities
from spec.types import BlockPos, is_empty, is_solid

from .constants import BUILD_STOCK, POST_BREAK_VERIFY_S, PRE_BREAK_DELAY_S
from .geometry import BUILD_RING
from .placement import PlacementPlanner
from .provisioning import ProvisioningGate

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class BuildResult:
    placed_at: Optional[BlockPos] = None
    broken: bool = False

    @property
    def placed(self) -> bool:
        return self.placed_at is not None


class BuildStep:
    def __init__(
        self,
        world: WorldCapabilities,
        clock: Clock,
        planner: PlacementPlanner,
        gate: ProvisioningGate,
        block_type: str,
    ) -> None:
        self._world = world
        self._clock = clock
        self._planner = planner
        self._gate = gate
        self._block_type = block_type

    async def place_and_break(self) -> BuildResult:
        """Never raises for world-action failures; they end the step early."""
        try:
            return await self._run()
        except BridgeRequestError as exc:
            log.warning("Build step for %s failed: %s", self._block_type, exc.message)
            return BuildResult()

    async def _run(self) -> BuildResult:
        block_type = self._block_type
        log.info("Attempting to place %s block", block_type)

        if not await self._world.is_known_item(block_type):
            log.warning("Block type %r not found in game data", block_type)
            return BuildResult()

        if self._world.game_mode().is_elevated:
            await self._gate.ensure(block_type, BUILD_STOCK)

        stack = next(
            (s for s in await self._world.inventory_items() if s.name == block_type),
            None,
        )
        if stack is None:
            log.warning("No %s in inventory. Skipping placement.", block_type)
            return BuildResult()
        log.info("Found %d %s in inventory", stack.count, block_type)

        placement = await self._planner.place_near(self._world.position(), stack, BUILD_RING)
        if not placement.success or placement.position is None:
            return BuildResult()
        pos = placement.position

        await self._clock.sleep(PRE_BREAK_DELAY_S)

        block = await self._world.block_at(pos)
        if not is_solid(block):
            log.warning("Block at %s disappeared before breaking", pos)
            return BuildResult(placed_at=pos)
        assert block is not None
        if not await self._world.can_dig(block):
            log.warning("Cannot dig %s (might need tool or permissions)", block.name)
            return BuildResult(placed_at=pos)

        log.info("Breaking block at %s", pos)
        try:
            await self._world.dig(block)
        except BridgeRequestError as exc:
            if "digging aborted" in exc.message.lower():
                log.info("Digging was interrupted at %s; this is usually okay", pos)
            else:
                log.warning("Failed to break block at %s: %s", pos, exc.message)
            return BuildResult(placed_at=pos)

        await self._clock.sleep(POST_BREAK_VERIFY_S)
        after = await self._world.block_at(pos)
        if is_empty(after):
            log.info("Block breaking verified at %s", pos)
            return BuildResult(placed_at=pos, broken=True)
        log.warning(
            "Block still exists after breaking: %s",
            after.name if after is not None else "unknown",
        )
        return BuildResult(placed_at=pos)
