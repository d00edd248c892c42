# core shared types: positions, blocks, items, game modes, move outcomes
# src/spec/types.py

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum, auto
from typing import Any, NamedTuple, Optional


# ---------------------------------------------------------------------------
# Positions
# ---------------------------------------------------------------------------

class Vec3(NamedTuple):
    """Continuous world position (entity coordinates)."""

    x: float
    y: float
    z: float

    def distance_to(self, other: "Vec3 | BlockPos") -> float:
        return math.sqrt(
            (self.x - other.x) ** 2
            + (self.y - other.y) ** 2
            + (self.z - other.z) ** 2
        )

    def floored(self) -> "BlockPos":
        return BlockPos(math.floor(self.x), math.floor(self.y), math.floor(self.z))


class BlockPos(NamedTuple):
    """Integer block coordinates."""

    x: int
    y: int
    z: int

    def offset(self, dx: int = 0, dy: int = 0, dz: int = 0) -> "BlockPos":
        return BlockPos(self.x + dx, self.y + dy, self.z + dz)

    def distance_to(self, other: "Vec3 | BlockPos") -> float:
        return math.sqrt(
            (self.x - other.x) ** 2
            + (self.y - other.y) ** 2
            + (self.z - other.z) ** 2
        )

    def as_vec3(self) -> Vec3:
        return Vec3(float(self.x), float(self.y), float(self.z))

    def __str__(self) -> str:
        return f"({self.x}, {self.y}, {self.z})"


# Face vector used for "place on top of reference block".
FACE_UP = BlockPos(0, 1, 0)


# ---------------------------------------------------------------------------
# Blocks and items
# ---------------------------------------------------------------------------

# Block names the world reports for empty / traversable cells.
AIR_BLOCKS = frozenset({"air", "cave_air", "void_air"})

BED_NAMES = (
    "red_bed",
    "blue_bed",
    "green_bed",
    "yellow_bed",
    "white_bed",
    "black_bed",
    "brown_bed",
    "cyan_bed",
    "gray_bed",
    "light_blue_bed",
    "light_gray_bed",
    "lime_bed",
    "magenta_bed",
    "orange_bed",
    "pink_bed",
    "purple_bed",
)

CONTAINER_NAMES = ("chest", "trapped_chest", "ender_chest")


@dataclass(frozen=True)
class Block:
    """A block observed at a position."""

    name: str
    position: BlockPos

    @property
    def is_air(self) -> bool:
        return self.name in AIR_BLOCKS


def is_empty(block: Optional[Block]) -> bool:
    """True when the cell is loaded and holds an air-like block."""
    return block is not None and block.is_air


def is_solid(block: Optional[Block]) -> bool:
    """True when the cell is loaded and holds something other than air."""
    return block is not None and not block.is_air


@dataclass(frozen=True)
class ItemStack:
    """
    One inventory or container stack.

    `slot` is the window slot index when known; `type_id` is the numeric
    item id some bridges need for deposit/withdraw calls.
    """

    name: str
    count: int
    slot: Optional[int] = None
    type_id: Optional[int] = None


def matches_item(stack_name: str, wanted: str) -> bool:
    """Loose item-name match (exact or substring) used by manifests."""
    return stack_name == wanted or wanted in stack_name


def count_items(items: "list[ItemStack]", name: str, *, exact: bool = True) -> int:
    """Total held quantity of `name` across stacks."""
    if exact:
        return sum(s.count for s in items if s.name == name)
    return sum(s.count for s in items if matches_item(s.name, name))


# ---------------------------------------------------------------------------
# Game mode
# ---------------------------------------------------------------------------

class GameMode(Enum):
    """World game modes, valued by their protocol ids."""

    SURVIVAL = 0
    CREATIVE = 1
    ADVENTURE = 2
    SPECTATOR = 3
    UNKNOWN = -1

    @classmethod
    def from_raw(cls, raw: Any) -> "GameMode":
        """Accept either the numeric id or the lowercase name."""
        if isinstance(raw, GameMode):
            return raw
        if isinstance(raw, str):
            try:
                return cls[raw.strip().upper()]
            except KeyError:
                return cls.UNKNOWN
        try:
            return cls(int(raw))
        except (TypeError, ValueError):
            return cls.UNKNOWN

    @property
    def label(self) -> str:
        return self.name.lower()

    @property
    def is_elevated(self) -> bool:
        """Creative mode grants unlimited item acquisition."""
        return self is GameMode.CREATIVE


# ---------------------------------------------------------------------------
# Movement
# ---------------------------------------------------------------------------

class MoveOutcome(Enum):
    """Result of a bounded wait for arrival."""

    ARRIVED = auto()
    TIMED_OUT = auto()
    CANCELED = auto()


class PatrolDirection(Enum):
    CLOCKWISE = auto()
    COUNTER_CLOCKWISE = auto()

    @property
    def label(self) -> str:
        return "clockwise" if self is PatrolDirection.CLOCKWISE else "counter-clockwise"
