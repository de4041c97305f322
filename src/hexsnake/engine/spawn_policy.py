"""Apple spawn policy - keeps the board stocked with apples.

Runs once per tick, after moves and eating have been applied:
1. Count the deficit against the target apple count
2. Draw an apple type per missing apple (food, or rarely a special)
3. Sample a free cell for each, giving up after a bounded number of tries
4. Place any pending rain bursts as plain food

A drawn rain apple never lands on the board; it becomes a rain burst
straight away. Rain apples from an earlier burst are cleared when a new
burst lands.
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Union

from hexsnake.engine.controllers import AutopilotTemplate, ControllerTemplate, KillerTemplate
from hexsnake.engine.pathfinding import Fallback, PathFinder, ShortestWeighted, SpaceFilling
from hexsnake.models.apple import Apple, AppleType, Food, SpawnRain, SpawnSnake
from hexsnake.models.hex import Dir, HexPoint
from hexsnake.models.snake import Seed, SnakeType
from hexsnake.util import constants

if TYPE_CHECKING:
    from hexsnake.loaders.game_config_loader import GameConfig
    from hexsnake.models.board import Board

log = logging.getLogger(__name__)


class SpawnPolicyKind(Enum):
    NONE = "none"  # no apples
    RANDOM = "random"  # random cells, random types
    SCHEDULED = "scheduled"  # fixed cycle of spawns and waits


@dataclass(frozen=True)
class ScheduledSpawn:
    pos: HexPoint
    apple_type: AppleType


@dataclass(frozen=True)
class ScheduledWait:
    ticks: int


SpawnEvent = Union[ScheduledSpawn, ScheduledWait]


@dataclass
class SpawnResult:
    """What one replenishment pass did to the board."""

    placed: list[Apple] = field(default_factory=list)
    removed: list[Apple] = field(default_factory=list)
    rain_bursts: int = 0


def random_free_cell(
    board: Board,
    occupied: set[HexPoint],
    rng: random.Random,
    max_attempts: int,
) -> HexPoint | None:
    """Sample cells uniformly until one is free, or give up after ``max_attempts``."""
    taken = sum(1 for cell in occupied if board.in_bounds(cell))
    if taken >= board.cell_count:
        return None
    for _ in range(max_attempts):
        pos = HexPoint(rng.randrange(board.width), rng.randrange(board.height))
        if pos not in occupied:
            return pos
    return None


@dataclass
class SpawnPolicy:
    """Per-game apple spawning state.

    Attributes:
        kind: Which spawning behaviour is active.
        apple_count: Target number of live apples.
        apple_food: Food value of a plain apple.
        food_weight / spawn_snake_weight / spawn_killer_weight /
            spawn_rain_weight: Relative odds of each apple type.
        rain_burst_size: Food apples placed per rain burst.
        max_placement_attempts: Sampling bound per apple.
        special_apple_cooldown: Ticks after a special apple during which
            only food is drawn.
        schedule: Spawn cycle for the scheduled kind.
    """

    kind: SpawnPolicyKind = SpawnPolicyKind.RANDOM
    apple_count: int = constants.APPLE_COUNT
    apple_food: int = constants.APPLE_FOOD
    food_weight: float = constants.FOOD_WEIGHT
    spawn_snake_weight: float = constants.SPAWN_SNAKE_WEIGHT
    spawn_killer_weight: float = constants.SPAWN_KILLER_WEIGHT
    spawn_rain_weight: float = constants.SPAWN_RAIN_WEIGHT
    rain_burst_size: int = constants.RAIN_BURST_SIZE
    max_placement_attempts: int = constants.MAX_PLACEMENT_ATTEMPTS
    special_apple_cooldown: int = constants.SPECIAL_APPLE_COOLDOWN
    spawn_snake_length: int = constants.SPAWN_SNAKE_LENGTH
    competitor_life: int | None = constants.COMPETITOR_LIFE
    killer_life: int | None = constants.KILLER_LIFE
    competitor_pathfinder: PathFinder = field(
        default_factory=lambda: Fallback(primary=ShortestWeighted(), backup=SpaceFilling())
    )
    schedule: list[SpawnEvent] = field(default_factory=list)

    # -- Mutable state -----------------------------------------------
    next_index: int = 0
    current_wait: int = 0
    cooldown_remaining: int = 0
    pending_rain: list[int] = field(default_factory=list)

    @classmethod
    def from_config(cls, cfg: GameConfig, schedule: list[SpawnEvent] | None = None) -> SpawnPolicy:
        return cls(
            kind=SpawnPolicyKind(cfg.spawn_policy),
            apple_count=cfg.apple_count,
            apple_food=cfg.apple_food,
            food_weight=cfg.food_weight,
            spawn_snake_weight=cfg.spawn_snake_weight,
            spawn_killer_weight=cfg.spawn_killer_weight,
            spawn_rain_weight=cfg.spawn_rain_weight,
            rain_burst_size=cfg.rain_burst_size,
            max_placement_attempts=cfg.max_placement_attempts,
            special_apple_cooldown=cfg.special_apple_cooldown,
            spawn_snake_length=cfg.spawn_snake_length,
            competitor_life=cfg.competitor_life,
            killer_life=cfg.killer_life,
            competitor_pathfinder=cfg.competitor_pathfinder,
            schedule=list(cfg.schedule if schedule is None else schedule),
        )

    def reset(self) -> None:
        self.next_index = 0
        self.current_wait = 0
        self.cooldown_remaining = 0
        self.pending_rain.clear()

    def request_rain(self, amount: int | None = None) -> None:
        """Queue a rain burst for the next replenishment pass."""
        self.pending_rain.append(self.rain_burst_size if amount is None else amount)

    # -- Replenishment -----------------------------------------------

    def replenish(self, board: Board, rng: random.Random) -> SpawnResult:
        """Top up the board's apples; mutates ``board.apples`` in place."""
        result = SpawnResult()
        occupied = board.occupied_cells()
        if self.cooldown_remaining > 0:
            self.cooldown_remaining -= 1

        if self.kind is SpawnPolicyKind.RANDOM:
            self._spawn_random(board, occupied, rng, result)
        elif self.kind is SpawnPolicyKind.SCHEDULED:
            self._spawn_scheduled(board, occupied, result)

        while self.pending_rain:
            self._rain(board, occupied, rng, self.pending_rain.pop(0), result)

        board.apples.extend(result.placed)
        return result

    def _spawn_random(
        self,
        board: Board,
        occupied: set[HexPoint],
        rng: random.Random,
        result: SpawnResult,
    ) -> None:
        deficit = self.apple_count - len(board.apples)
        for _ in range(max(0, deficit)):
            apple_type = self._draw_type(board, occupied, rng)
            if isinstance(apple_type, SpawnRain):
                self.request_rain(apple_type.amount)
                continue

            excluded = occupied
            if isinstance(apple_type, SpawnSnake):
                excluded = occupied | {apple_type.seed.pos}
            pos = random_free_cell(board, excluded, rng, self.max_placement_attempts)
            if pos is None:
                log.debug("No free cell for a new apple (%d missing)",
                          self.apple_count - len(board.apples) - len(result.placed))
                break
            occupied.add(pos)
            result.placed.append(Apple(pos, apple_type))

    def _draw_type(self, board: Board, occupied: set[HexPoint], rng: random.Random) -> AppleType:
        food_w = self.food_weight
        specials = self.cooldown_remaining == 0
        snake_w = self.spawn_snake_weight if specials else 0.0
        killer_w = self.spawn_killer_weight if specials else 0.0
        rain_w = self.spawn_rain_weight if specials else 0.0
        total = food_w + snake_w + killer_w + rain_w
        if total <= 0:
            return Food(self.apple_food)

        roll = rng.random() * total
        if roll < food_w:
            return Food(self.apple_food)
        if roll < food_w + snake_w + killer_w:
            if roll < food_w + snake_w:
                seed = self._make_seed(board, occupied, rng, SnakeType.COMPETITOR,
                                       AutopilotTemplate(self.competitor_pathfinder), self.competitor_life)
            else:
                seed = self._make_seed(board, occupied, rng, SnakeType.KILLER,
                                       KillerTemplate(), self.killer_life)
            if seed is None:
                return Food(self.apple_food)
            self.cooldown_remaining = self.special_apple_cooldown
            return SpawnSnake(seed)
        self.cooldown_remaining = self.special_apple_cooldown
        return SpawnRain()

    def _make_seed(
        self,
        board: Board,
        occupied: set[HexPoint],
        rng: random.Random,
        snake_type: SnakeType,
        controller: ControllerTemplate,
        life: int | None,
    ) -> Seed | None:
        pos = random_free_cell(board, occupied, rng, self.max_placement_attempts)
        if pos is None:
            return None
        return Seed(
            pos=pos,
            dir=rng.choice(list(Dir)),
            length=self.spawn_snake_length,
            snake_type=snake_type,
            controller=controller,
            life=life,
        )

    def _spawn_scheduled(self, board: Board, occupied: set[HexPoint], result: SpawnResult) -> None:
        if not self.schedule:
            return
        # at most one pass over the schedule per tick
        for _ in range(len(self.schedule)):
            if len(board.apples) + len(result.placed) >= self.apple_count:
                return
            event = self.schedule[self.next_index]
            if isinstance(event, ScheduledWait):
                if self.current_wait >= event.ticks - 1:
                    self.current_wait = 0
                    self.next_index = (self.next_index + 1) % len(self.schedule)
                else:
                    self.current_wait += 1
                return

            self.next_index = (self.next_index + 1) % len(self.schedule)
            if event.pos in occupied or not board.in_bounds(event.pos):
                log.warning("Scheduled apple at %r skipped: cell unavailable", event.pos)
                continue
            occupied.add(event.pos)
            result.placed.append(Apple(event.pos, event.apple_type))

    def _rain(
        self,
        board: Board,
        occupied: set[HexPoint],
        rng: random.Random,
        amount: int,
        result: SpawnResult,
    ) -> None:
        stale = [a for a in board.apples if a.from_rain]
        stale += [a for a in result.placed if a.from_rain]
        for apple in stale:
            if apple in board.apples:
                board.apples.remove(apple)
            else:
                result.placed.remove(apple)
            occupied.discard(apple.pos)
            result.removed.append(apple)

        result.rain_bursts += 1
        placed = 0
        for _ in range(amount):
            pos = random_free_cell(board, occupied, rng, self.max_placement_attempts)
            if pos is None:
                break
            occupied.add(pos)
            result.placed.append(Apple(pos, Food(self.apple_food), from_rain=True))
            placed += 1
        log.info("Rain burst: %d food apples placed (%d requested, %d cleared)",
                 placed, amount, len(stale))
