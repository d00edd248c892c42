# src/behavior/placement.py
"""
Placement planner.

One routine places any item near the agent: build blocks (ring 2-4),
beds and chests (ring 2-5). Candidates are tried nearest first; a
candidate counts only after the target cell is re-read and matches.

Design constraints:
- Candidates with an occupied/unloaded target or a non-solid reference
  are skipped without equipping or placing.
- A rejected place action or a failed verification moves on to the next
  candidate; only an exhausted ring is reported as failure.
- Ordinary failure is a PlacementResult, never an exception.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Optional, Union

from bot_core.errors import BridgeRequestError
from monitoring.bus import EventBus
from monitoring.integration import emit_placement_result
from spec.capabilities import Clock, WorldCapabilities
from spec.types import FACE_UP, Block, BlockPos, ItemStack, Vec3, is_empty, is_solid

from .constants import EQUIP_SETTLE_S, PLACE_SETTLE_S
from .geometry import PlacementCandidate, RingSpec, ring_candidates

log = logging.getLogger(__name__)

VerifyFn = Callable[[Optional[Block]], bool]


@dataclass(frozen=True)
class PlacementResult:
    success: bool
    position: Optional[BlockPos] = None
    label: Optional[str] = None
    attempts: int = 0                  # candidates where a placement was issued
    placed: Optional[Block] = None     # the verified block


def block_named(name: str) -> VerifyFn:
    """Verification predicate: target now holds exactly `name`."""

    def _verify(block: Optional[Block]) -> bool:
        return block is not None and block.name == name

    return _verify


def block_in(names) -> VerifyFn:
    """Verification predicate: target now holds any of `names`."""
    wanted = frozenset(names)

    def _verify(block: Optional[Block]) -> bool:
        return block is not None and block.name in wanted

    return _verify


class PlacementPlanner:
    def __init__(
        self,
        world: WorldCapabilities,
        clock: Clock,
        bus: Optional[EventBus] = None,
    ) -> None:
        self._world = world
        self._clock = clock
        self._bus = bus

    async def place_near(
        self,
        origin: Union[BlockPos, Vec3],
        item: ItemStack,
        ring: RingSpec,
        verify: Optional[VerifyFn] = None,
    ) -> PlacementResult:
        """
        Place `item` at the first valid candidate around `origin`.

        `verify` decides whether the re-read target cell counts as success;
        it defaults to "block name equals the item name".
        """
        if isinstance(origin, Vec3):
            origin = origin.floored()
        check = verify or block_named(item.name)
        attempts = 0

        for candidate in ring_candidates(origin, ring):
            reference = await self._precheck(candidate)
            if reference is None:
                continue

            attempts += 1
            log.info("Trying to place %s %s at %s against %s", item.name, candidate.label, candidate.target, reference.name)
            try:
                await self._world.equip(item, "hand")
                await self._clock.sleep(EQUIP_SETTLE_S)
                await self._world.place_block(reference, FACE_UP)
            except BridgeRequestError as exc:
                log.warning("Failed to place %s %s: %s", item.name, candidate.label, exc.message)
                continue

            await self._clock.sleep(PLACE_SETTLE_S)
            placed = await self._world.block_at(candidate.target)
            if check(placed):
                log.info("Placed %s %s at %s", item.name, candidate.label, candidate.target)
                self._publish(item.name, True, candidate, attempts)
                return PlacementResult(
                    success=True,
                    position=candidate.target,
                    label=candidate.label,
                    attempts=attempts,
                    placed=placed,
                )
            log.warning(
                "Placement verification failed for %s, found: %s",
                candidate.label,
                placed.name if placed is not None else "nothing",
            )

        log.warning(
            "Could not find a suitable location to place %s within %d blocks",
            item.name,
            ring.max_distance,
        )
        self._publish(item.name, False, None, attempts)
        return PlacementResult(success=False, attempts=attempts)

    async def _precheck(self, candidate: PlacementCandidate) -> Optional[Block]:
        """Return the reference block when the candidate is structurally valid."""
        target = await self._world.block_at(candidate.target)
        if not is_empty(target):
            log.debug(
                "Skipping %s: target %s",
                candidate.label,
                "not loaded" if target is None else f"occupied by {target.name}",
            )
            return None
        reference = await self._world.block_at(candidate.reference)
        if not is_solid(reference):
            log.debug("Skipping %s: no solid reference block", candidate.label)
            return None
        return reference

    def _publish(
        self,
        item: str,
        success: bool,
        candidate: Optional[PlacementCandidate],
        attempts: int,
    ) -> None:
        if self._bus is None:
            return
        emit_placement_result(
            self._bus,
            item=item,
            success=success,
            position=candidate.target if candidate else None,
            label=candidate.label if candidate else None,
            attempts=attempts,
        )
