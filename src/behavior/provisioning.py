# src/behavior/provisioning.py

from __future__ import annotations

import logging
import random
from typing import Optional

from bot_core.errors import BridgeRequestError
from spec.capabilities import Clock, WorldCapabilities
from spec.types import count_items

from .constants import (
    CREATIVE_FALLBACK_SLOTS,
    CREATIVE_SLOT_END,
    CREATIVE_SLOT_START,
    PROVISION_SETTLE_S,
)

log = logging.getLogger(__name__)


class ProvisioningGate:
    """
    Single-flight creative-inventory injection.

    ensure() while another ensure() is in flight returns False at once;
    requests are never queued. The gate is released on every exit path.
    """

    def __init__(
        self,
        world: WorldCapabilities,
        clock: Clock,
        rng: Optional[random.Random] = None,
    ) -> None:
        self._world = world
        self._clock = clock
        self._rng = rng or random.Random()
        self._locked = False

    @property
    def locked(self) -> bool:
        return self._locked

    async def ensure(self, name: str, count: int) -> bool:
        """Make sure at least `count` of `name` is held. True on success."""
        if self._locked:
            log.info("Creative inventory is busy, skipping request for %s", name)
            return False

        self._locked = True
        try:
            return await self._provision(name, count)
        except BridgeRequestError as exc:
            log.warning("Creative inventory error for %s: %s", name, exc.message)
            return False
        finally:
            self._locked = False

    async def _provision(self, name: str, count: int) -> bool:
        held = count_items(await self._world.inventory_items(), name)
        if held >= count:
            return True

        mode = self._world.game_mode()
        if not mode.is_elevated:
            log.warning("Not in creative mode (%s), cannot get %s from creative inventory", mode.label, name)
            return False

        if not await self._world.is_known_item(name):
            log.warning("Item %r not found in game data", name)
            return False

        slot = await self._world.first_empty_slot(CREATIVE_SLOT_START, CREATIVE_SLOT_END)
        if slot is None:
            # inventory full: overwrite a main-inventory slot
            slot = CREATIVE_SLOT_START + self._rng.randrange(CREATIVE_FALLBACK_SLOTS)
            log.info("No free slot, overwriting slot %d with %s", slot, name)

        log.info("Getting %dx %s from creative inventory into slot %d", count, name, slot)
        await self._world.set_creative_slot(slot, name, count)
        await self._clock.sleep(PROVISION_SETTLE_S)

        new_total = count_items(await self._world.inventory_items(), name)
        if new_total > held:
            log.info("Got %s from creative inventory (now have %dx)", name, new_total)
            return True
        log.warning("Failed to verify %s in inventory after injection", name)
        return False
