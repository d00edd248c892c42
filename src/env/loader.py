# src/env/loader.py
"""
Behavior config loader: YAML file -> validated, frozen BehaviorConfig.

Connection settings may be overridden from the environment
(GAME_BRIDGE_HOST, GAME_BRIDGE_PORT, GAME_USERNAME, GAME_AUTH, GAME_VERSION).
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml

from spec.types import BlockPos, GameMode
from .schema import (
    BehaviorConfig,
    BridgeConfig,
    ContainerConfig,
    PatrolConfig,
    TimingConfig,
)


# ---------------------------------------------------------------------------
# Errors / paths
# ---------------------------------------------------------------------------


class ConfigError(ValueError):
    """Malformed or missing behavior configuration. Fatal at startup."""


PROJECT_ROOT = Path(__file__).resolve().parents[2]
CONFIG_ROOT = PROJECT_ROOT / "config"
DEFAULT_CONFIG_PATH = CONFIG_ROOT / "behavior.yaml"


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _load_yaml(path: Path) -> Dict[str, Any]:
    """Load a YAML mapping from `path`."""
    if not path.exists():
        raise ConfigError(f"Missing config file: {path}")
    try:
        with path.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as exc:
        raise ConfigError(f"Invalid YAML in {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"Expected mapping at top of {path}, got {type(data)}")
    return data


def _section(raw: Mapping[str, Any], key: str) -> Dict[str, Any]:
    value = raw.get(key) or {}
    if not isinstance(value, dict):
        raise ConfigError(f"'{key}' must be a mapping, got {type(value).__name__}")
    return value


def _number(raw: Mapping[str, Any], key: str, default: Any = None) -> float:
    value = raw.get(key, default)
    if value is None:
        raise ConfigError(f"Missing required key '{key}'")
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ConfigError(f"'{key}' must be a number, got {value!r}")
    return float(value)


def _integer(raw: Mapping[str, Any], key: str, default: Any = None) -> int:
    value = raw.get(key, default)
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigError(f"'{key}' must be an integer, got {value!r}")
    return value


def _manifest(raw: Any, key: str, *, allow_null: bool = False) -> Dict[str, Any]:
    """Validate a {item_name: count} manifest."""
    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise ConfigError(f"'{key}' must be a mapping of item -> count")
    out: Dict[str, Any] = {}
    for name, count in raw.items():
        if count is None and allow_null:
            out[str(name)] = None
            continue
        if isinstance(count, bool) or not isinstance(count, int) or count <= 0:
            raise ConfigError(f"'{key}.{name}' must be a positive integer, got {count!r}")
        out[str(name)] = count
    return out


def _parse_patrol(raw: Mapping[str, Any]) -> PatrolConfig:
    center_raw = raw.get("center")
    if not isinstance(center_raw, dict):
        raise ConfigError("'patrol.center' must be a mapping with x, y, z")
    try:
        center = BlockPos(
            int(center_raw["x"]), int(center_raw["y"]), int(center_raw["z"])
        )
    except (KeyError, TypeError, ValueError) as exc:
        raise ConfigError(f"'patrol.center' needs integer x, y, z: {exc}") from exc

    return PatrolConfig(
        center=center,
        radius=_number(raw, "radius"),
        points_per_lap=_integer(raw, "points_per_lap", 8),
        laps_per_leg=_integer(raw, "laps_per_leg", 2),
        jump_while_walking=bool(raw.get("jump_while_walking", False)),
    )


def _parse_bridge(raw: Mapping[str, Any], environ: Mapping[str, str]) -> BridgeConfig:
    # Environment variables win over the YAML file (mirrors .env handling).
    host = environ.get("GAME_BRIDGE_HOST") or raw.get("host") or "127.0.0.1"
    port_raw = environ.get("GAME_BRIDGE_PORT") or raw.get("port") or 25590
    try:
        port = int(port_raw)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"bridge port must be an integer, got {port_raw!r}") from exc

    return BridgeConfig(
        host=str(host),
        port=port,
        username=str(environ.get("GAME_USERNAME") or raw.get("username") or "Placer"),
        auth=str(environ.get("GAME_AUTH") or raw.get("auth") or "offline"),
        version=environ.get("GAME_VERSION") or raw.get("version"),
    )


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def parse_behavior_config(
    raw: Mapping[str, Any],
    environ: Optional[Mapping[str, str]] = None,
) -> BehaviorConfig:
    """Build and validate a BehaviorConfig from an already-parsed mapping."""
    environ = os.environ if environ is None else environ

    patrol = _parse_patrol(_section(raw, "patrol"))

    timing_raw = _section(raw, "timing")
    timing = TimingConfig(
        walk_pause_s=_number(timing_raw, "walk_pause_s", 0.5),
        delay_between_actions_s=_number(timing_raw, "delay_between_actions_s", 2.0),
    )

    container_raw = _section(raw, "container_interaction")
    container = ContainerConfig(
        enabled=bool(container_raw.get("enabled", False)),
        deposit_items=_manifest(
            container_raw.get("deposit_items"),
            "container_interaction.deposit_items",
            allow_null=True,
        ),
        withdraw_items=_manifest(
            container_raw.get("withdraw_items"),
            "container_interaction.withdraw_items",
        ),
    )

    mode = GameMode.from_raw(raw.get("required_game_mode", "creative"))
    if mode is GameMode.UNKNOWN:
        raise ConfigError(f"Unknown required_game_mode: {raw.get('required_game_mode')!r}")

    block_type = raw.get("block_type", "stone")
    if not isinstance(block_type, str) or not block_type:
        raise ConfigError(f"'block_type' must be a non-empty string, got {block_type!r}")

    cfg = BehaviorConfig(
        patrol=patrol,
        timing=timing,
        block_type=block_type,
        auto_sleep=bool(raw.get("auto_sleep", True)),
        bed_search_radius=_number(raw, "bed_search_radius", 20),
        required_inventory=_manifest(raw.get("required_inventory"), "required_inventory"),
        container=container,
        required_game_mode=mode,
        bridge=_parse_bridge(_section(raw, "bridge"), environ),
    )

    _validate_config(cfg)
    return cfg


def load_behavior_config(path: Optional[Path] = None) -> BehaviorConfig:
    """
    Main entry point: returns a validated BehaviorConfig.

    The path resolves from the argument, then the AGENT_CONFIG environment
    variable, then config/behavior.yaml.
    """
    if path is None:
        env_path = os.getenv("AGENT_CONFIG")
        path = Path(env_path) if env_path else DEFAULT_CONFIG_PATH
    return parse_behavior_config(_load_yaml(Path(path)))


def _validate_config(cfg: BehaviorConfig) -> None:
    """Sanity checks the rest of the system relies on."""
    if cfg.patrol.radius <= 0:
        raise ConfigError(f"patrol.radius must be > 0, got {cfg.patrol.radius}")
    if cfg.patrol.points_per_lap < 3:
        raise ConfigError(
            f"patrol.points_per_lap must be >= 3, got {cfg.patrol.points_per_lap}"
        )
    if cfg.patrol.laps_per_leg < 1:
        raise ConfigError(f"patrol.laps_per_leg must be >= 1, got {cfg.patrol.laps_per_leg}")
    if cfg.timing.walk_pause_s < 0 or cfg.timing.delay_between_actions_s < 0:
        raise ConfigError("timing delays must be >= 0")
    if cfg.bed_search_radius <= 0:
        raise ConfigError(f"bed_search_radius must be > 0, got {cfg.bed_search_radius}")
    if cfg.bridge.auth not in ("offline", "microsoft"):
        raise ConfigError(f"bridge.auth must be 'offline' or 'microsoft', got {cfg.bridge.auth!r}")
