# src/behavior/geometry.py
"""
Pure geometry: patrol rings and placement candidate rings.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterator, List

from spec.types import BlockPos, PatrolDirection


def patrol_ring(
    center: BlockPos,
    radius: float,
    points: int,
    direction: PatrolDirection,
) -> List[BlockPos]:
    """
    Points evenly spaced on a circle around `center`, starting at angle 0.

    Counter-clockwise negates the angular step, so it mirrors the clockwise
    ring across the x axis. Coordinates are floored; y is the center's y.
    """
    if radius <= 0:
        raise ValueError(f"radius must be > 0, got {radius}")
    if points < 1:
        raise ValueError(f"points must be >= 1, got {points}")

    sign = 1.0 if direction is PatrolDirection.CLOCKWISE else -1.0
    ring: List[BlockPos] = []
    for i in range(points):
        angle = sign * (2.0 * math.pi * i) / points
        x = math.floor(center.x + radius * math.cos(angle))
        z = math.floor(center.z + radius * math.sin(angle))
        ring.append(BlockPos(x, center.y, z))
    return ring


@dataclass(frozen=True)
class PlacementCandidate:
    """One trial site: place at `target`, against the block at `reference`."""

    target: BlockPos
    reference: BlockPos
    label: str


@dataclass(frozen=True)
class RingSpec:
    """Inclusive distance bounds of a candidate ring."""

    min_distance: int = 2
    max_distance: int = 4

    def __post_init__(self) -> None:
        if self.min_distance < 1 or self.max_distance < self.min_distance:
            raise ValueError(f"invalid ring bounds {self.min_distance}..{self.max_distance}")


BUILD_RING = RingSpec(2, 4)
SHELTER_RING = RingSpec(2, 5)

# name, dx, dz; fixed try order at each distance
_CARDINALS = (
    ("east", 1, 0),
    ("west", -1, 0),
    ("south", 0, 1),
    ("north", 0, -1),
)


def ring_candidates(origin: BlockPos, ring: RingSpec) -> Iterator[PlacementCandidate]:
    """Nearest first; at each distance east, west, south, north. Reference is one below."""
    for d in range(ring.min_distance, ring.max_distance + 1):
        for name, dx, dz in _CARDINALS:
            target = origin.offset(dx * d, 0, dz * d)
            yield PlacementCandidate(
                target=target,
                reference=target.offset(0, -1, 0),
                label=f"{d}m {name}",
            )
