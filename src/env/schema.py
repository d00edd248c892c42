# BehaviorConfig and its sections
# src/env/schema.py

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Optional

from spec.types import BlockPos, GameMode


@dataclass(frozen=True)
class BridgeConfig:
    """How to reach the world bridge process."""
    host: str = "127.0.0.1"
    port: int = 25590
    username: str = "Placer"
    auth: str = "offline"          # "offline" or "microsoft"
    version: Optional[str] = None  # game version the bridge should speak


@dataclass(frozen=True)
class PatrolConfig:
    """Geometry of the patrol ring."""
    center: BlockPos
    radius: float
    points_per_lap: int = 8
    laps_per_leg: int = 2
    jump_while_walking: bool = False


@dataclass(frozen=True)
class TimingConfig:
    """Delays, all in seconds."""
    walk_pause_s: float = 0.5              # pause after each patrol point
    delay_between_actions_s: float = 2.0   # after each build step / fault retry


@dataclass(frozen=True)
class ContainerConfig:
    """Container interaction manifest. A None deposit count means 'all'."""
    enabled: bool = False
    deposit_items: Dict[str, Optional[int]] = field(default_factory=dict)
    withdraw_items: Dict[str, int] = field(default_factory=dict)


@dataclass(frozen=True)
class BehaviorConfig:
    """Immutable behavior configuration, loaded once at startup."""
    patrol: PatrolConfig
    timing: TimingConfig = field(default_factory=TimingConfig)
    block_type: str = "stone"
    auto_sleep: bool = True
    bed_search_radius: float = 20.0
    required_inventory: Dict[str, int] = field(default_factory=dict)
    container: ContainerConfig = field(default_factory=ContainerConfig)
    required_game_mode: GameMode = GameMode.CREATIVE
    bridge: BridgeConfig = field(default_factory=BridgeConfig)
