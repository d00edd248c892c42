# src/behavior/inventory.py

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum, auto
from typing import List, Mapping

from spec.capabilities import WorldCapabilities
from spec.types import count_items

log = logging.getLogger(__name__)


class InventoryStatus(Enum):
    OK = auto()
    PARTIAL = auto()
    MISSING = auto()


@dataclass(frozen=True)
class InventoryCheck:
    name: str
    held: int
    required: int
    status: InventoryStatus


async def check_required_inventory(
    world: WorldCapabilities,
    manifest: Mapping[str, int],
) -> List[InventoryCheck]:
    """Compare held items against the manifest and log one line per entry."""
    items = await world.inventory_items()
    log.info("Checking inventory: %d stacks held", len(items))

    report: List[InventoryCheck] = []
    for name, required in manifest.items():
        held = count_items(items, name, exact=False)
        if held >= required:
            status = InventoryStatus.OK
            log.info("  %s: %d/%d", name, held, required)
        elif held > 0:
            status = InventoryStatus.PARTIAL
            log.warning("  %s: %d/%d (need more)", name, held, required)
        else:
            status = InventoryStatus.MISSING
            log.warning("  %s: 0/%d (MISSING)", name, required)
        report.append(InventoryCheck(name, held, required, status))
    return report
