# src/spec/__init__.py

from __future__ import annotations

"""
Public spec surface shared by the behavior core and the capability layer.

Re-exports *interfaces and data types* only:
  - world value types (Vec3, BlockPos, Block, ItemStack, GameMode, ...)
  - capability protocols (WorldCapabilities, ContainerHandle, Clock)

Deliberately does NOT export concrete implementations; those live in
bot_core/ (capability adapters) and behavior/ (orchestration).
"""

from .capabilities import (
    Clock,
    ContainerHandle,
    WorldCapabilities,
)
from .types import (
    AIR_BLOCKS,
    BED_NAMES,
    CONTAINER_NAMES,
    FACE_UP,
    Block,
    BlockPos,
    GameMode,
    ItemStack,
    MoveOutcome,
    PatrolDirection,
    Vec3,
)

__all__ = [
    # Protocols
    "Clock",
    "ContainerHandle",
    "WorldCapabilities",
    # Types
    "AIR_BLOCKS",
    "BED_NAMES",
    "CONTAINER_NAMES",
    "FACE_UP",
    "Block",
    "BlockPos",
    "GameMode",
    "ItemStack",
    "MoveOutcome",
    "PatrolDirection",
    "Vec3",
]
