"""Game configuration - loads tunable constants from config/game.yaml.

Provides a single ``GameConfig`` dataclass that is loaded once at startup
and then passed (or injected) wherever constants are needed.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from hexsnake.engine.pathfinding import (
    Fallback,
    PathCosts,
    PathFinder,
    ShortestWeighted,
    SpaceFilling,
    pathfinder_from_config,
)
from hexsnake.engine.spawn_policy import SpawnEvent
from hexsnake.loaders.schedule_loader import parse_schedule
from hexsnake.loaders.seed_loader import parse_point, parse_seeds
from hexsnake.models.hex import HexPoint
from hexsnake.models.snake import Seed
from hexsnake.util import constants

log = logging.getLogger(__name__)

DEFAULT_GAME_CONFIG_PATH = "config/game.yaml"

SPAWN_POLICY_KINDS = ("none", "random", "scheduled")


def _default_competitor_pathfinder() -> PathFinder:
    return Fallback(primary=ShortestWeighted(), backup=SpaceFilling())


@dataclass
class GameConfig:
    """All tunable simulation constants.

    Loaded from ``config/game.yaml``.  Every field has a sensible default
    so a game can start even without the file.
    """

    # -- Board -------------------------------------------------------
    board_width: int = constants.BOARD_WIDTH
    board_height: int = constants.BOARD_HEIGHT
    wraparound: bool = False
    obstacles: set[HexPoint] = field(default_factory=set)

    # -- Timing ------------------------------------------------------
    tick_interval_ms: float = constants.TICK_INTERVAL_MS
    rng_seed: int | None = None

    # -- Pathfinding -------------------------------------------------
    costs: PathCosts = field(default_factory=PathCosts)
    space_filling_depth: int = constants.SPACE_FILLING_DEPTH

    # -- Apples ------------------------------------------------------
    spawn_policy: str = "random"
    apple_count: int = constants.APPLE_COUNT
    apple_food: int = constants.APPLE_FOOD
    food_weight: float = constants.FOOD_WEIGHT
    spawn_snake_weight: float = constants.SPAWN_SNAKE_WEIGHT
    spawn_killer_weight: float = constants.SPAWN_KILLER_WEIGHT
    spawn_rain_weight: float = constants.SPAWN_RAIN_WEIGHT
    rain_burst_size: int = constants.RAIN_BURST_SIZE
    max_placement_attempts: int = constants.MAX_PLACEMENT_ATTEMPTS
    special_apple_cooldown: int = constants.SPECIAL_APPLE_COOLDOWN
    schedule: list[SpawnEvent] = field(default_factory=list)

    # -- Spawned snakes ----------------------------------------------
    spawn_snake_length: int = constants.SPAWN_SNAKE_LENGTH
    competitor_life: int | None = constants.COMPETITOR_LIFE
    killer_life: int | None = constants.KILLER_LIFE
    competitor_pathfinder: PathFinder = field(default_factory=_default_competitor_pathfinder)

    # -- Initial snakes ----------------------------------------------
    snakes: list[Seed] = field(default_factory=list)

    def __post_init__(self) -> None:
        if self.board_width <= 0 or self.board_height <= 0:
            raise ValueError(
                f"board dimensions must be positive, got {self.board_width}x{self.board_height}"
            )
        if self.spawn_policy not in SPAWN_POLICY_KINDS:
            raise ValueError(f"unknown spawn_policy {self.spawn_policy!r}")
        if self.spawn_policy == "scheduled" and not self.schedule:
            raise ValueError("spawn_policy scheduled needs a non-empty schedule")
        for name in ("food_weight", "spawn_snake_weight", "spawn_killer_weight", "spawn_rain_weight"):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must not be negative")
        if self.apple_count < 0 or self.max_placement_attempts < 1:
            raise ValueError("apple_count must be >= 0 and max_placement_attempts >= 1")
        for cell in self.obstacles:
            if not (0 <= cell.h < self.board_width and 0 <= cell.v < self.board_height):
                raise ValueError(f"obstacle {cell!r} lies outside the board")

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> GameConfig:
        """Build a config from a parsed YAML mapping.

        Unknown keys are ignored; nested sections are converted to their
        dataclasses.
        """
        raw = dict(raw)

        costs_raw = raw.pop("costs", None)
        costs = PathCosts(**costs_raw) if isinstance(costs_raw, dict) else PathCosts()

        obstacles = {parse_point(p) for p in raw.pop("obstacles", None) or []}
        seeds = parse_seeds(raw.pop("snakes", None) or [])
        schedule = parse_schedule(raw.pop("schedule", None) or [])

        pf_raw = raw.pop("competitor_pathfinder", None)
        competitor_pathfinder = (
            pathfinder_from_config(pf_raw) if pf_raw is not None else _default_competitor_pathfinder()
        )

        ignored = sorted(k for k in raw if k not in cls.__dataclass_fields__)
        if ignored:
            log.warning("Ignoring unknown config keys: %s", ", ".join(ignored))

        return cls(
            costs=costs,
            obstacles=obstacles,
            snakes=seeds,
            schedule=schedule,
            competitor_pathfinder=competitor_pathfinder,
            **{k: v for k, v in raw.items() if k in cls.__dataclass_fields__},
        )


def load_game_config(path: str | Path = DEFAULT_GAME_CONFIG_PATH) -> GameConfig:
    """Load game configuration from a YAML file.

    Missing keys fall back to dataclass defaults.  If the file does not
    exist, a warning is logged and pure defaults are returned.
    """
    p = Path(path)
    if not p.exists():
        log.warning("Game config not found at %s - using defaults", p)
        return GameConfig()

    with p.open() as f:
        raw = yaml.safe_load(f) or {}

    log.info("Loaded game config from %s (%d keys)", p, len(raw))
    return GameConfig.from_dict(raw)
