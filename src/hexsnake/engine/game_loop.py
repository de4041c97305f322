"""Main game loop - the turn resolver.

One tick (``advance_tick``), in this order:
1. Every living snake's controller decides on its next direction
   against the pre-tick state (no body moves before all have decided)
2. Every next head cell is computed from the pre-tick state
3. Collisions: wall, obstacle, head-on, self, other snakes
4. Moves, eating, growth and apple removal; life countdown
5. Apple spawn policy (replenishment, rain bursts)
6. Dead snakes are removed; snakes from eaten spawn apples are placed

The loop owns the board, the snakes and the apples for the whole tick.
``run`` drives ``advance_tick`` in real time for the presentation shell.
"""

from __future__ import annotations

import asyncio
import logging
import random
import time
from collections import Counter
from typing import TYPE_CHECKING

from hexsnake.engine.controllers import Direct
from hexsnake.engine.pathfinding import GameContext
from hexsnake.engine.spawn_policy import SpawnPolicy
from hexsnake.loaders.game_config_loader import GameConfig
from hexsnake.models.apple import Food, SpawnRain, SpawnSnake
from hexsnake.models.board import Board
from hexsnake.models.snake import Seed, Snake
from hexsnake.models.snapshot import AppleView, CellView, SnakeView, WorldSnapshot
from hexsnake.util.events import (
    AppleEaten,
    EventBus,
    RainStarted,
    SnakeDied,
    SnakeSpawned,
    TickEvent,
)

if TYPE_CHECKING:
    from hexsnake.models.hex import Dir, HexPoint

log = logging.getLogger(__name__)


class GameLoop:
    """Owns the simulation state and advances it one tick at a time.

    Args:
        config: Tunables; defaults are used when omitted.
        event_bus: Bus the tick events are emitted on.
        spawn_policy: Apple policy; built from the config when omitted.
        rng: Random source; seeded from ``config.rng_seed`` when omitted.
    """

    def __init__(
        self,
        config: GameConfig | None = None,
        event_bus: EventBus | None = None,
        spawn_policy: SpawnPolicy | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self.config = config or GameConfig()
        self._events = event_bus or EventBus()
        self.board = Board(
            width=self.config.board_width,
            height=self.config.board_height,
            wraparound=self.config.wraparound,
            obstacles=set(self.config.obstacles),
        )
        self.spawn_policy = spawn_policy or SpawnPolicy.from_config(self.config)
        self.rng = rng or random.Random(self.config.rng_seed)
        self.frame_stamp: int = 0
        self._next_sid = 1
        self._running = False
        self._step_interval = self.config.tick_interval_ms / 1000.0

        # --- Monitoring counters ---
        self.tick_count: int = 0
        self.started_at: float = 0.0
        self.last_tick_duration_ms: float = 0.0
        self.avg_tick_duration_ms: float = 0.0
        self._tick_duration_sum: float = 0.0

        for seed in self.config.snakes:
            self.add_snake(seed)

    # -- State access ----------------------------------------------------

    @property
    def snakes(self) -> list[Snake]:
        return self.board.snakes

    @property
    def apples(self) -> list:
        return self.board.apples

    @property
    def events(self) -> EventBus:
        return self._events

    @property
    def gtx(self) -> GameContext:
        return GameContext(
            board=self.board,
            costs=self.config.costs,
            frame_stamp=self.frame_stamp,
            space_filling_depth=self.config.space_filling_depth,
        )

    def get_snake(self, sid: int) -> Snake | None:
        for snake in self.board.snakes:
            if snake.sid == sid:
                return snake
        return None

    # -- Snake management ------------------------------------------------

    def add_snake(self, seed: Seed) -> Snake | None:
        """Put a snake on the board, or skip it if its cells are unavailable."""
        cells = seed.starting_cells(self.board)
        if cells is None:
            log.warning("Seed at %r (dir=%s, length=%d) does not fit on the board - skipped",
                        seed.pos, seed.dir.name, seed.length)
            return None
        occupied = self.board.occupied_cells()
        conflicts = [cell for cell in cells if cell in occupied]
        if conflicts:
            log.warning("Seed at %r conflicts with occupied cells %s - skipped", seed.pos, conflicts)
            return None

        snake = Snake.from_seed(self._next_sid, seed, cells)
        self._next_sid += 1
        self.board.snakes.append(snake)
        log.info("Snake %d spawned at %r facing %s (type=%s, length=%d)",
                 snake.sid, snake.head, snake.dir.name, snake.snake_type.value, len(snake))
        return snake

    def steer(self, sid: int, direction: Dir) -> bool:
        """Queue a direction for a directly driven snake."""
        snake = self.get_snake(sid)
        if snake is None or not isinstance(snake.controller, Direct):
            return False
        snake.controller.queue_dir(direction)
        return True

    # -- Tick ------------------------------------------------------------

    def advance_tick(self) -> list[TickEvent]:
        """Run one simulation step and return the events it produced."""
        events: list[TickEvent] = []
        board = self.board
        living = [s for s in board.snakes if s.is_alive]

        # 1. Decide, all against the same pre-tick state
        gtx = self.gtx
        apples = tuple(board.apples)
        decisions: dict[int, Dir | None] = {}
        for snake in living:
            if snake.controller is None:
                continue
            others = [o for o in living if o is not snake]
            decisions[snake.sid] = snake.controller.next_dir(snake, others, apples, gtx)
        for snake in living:
            direction = decisions.get(snake.sid)
            if direction is not None:
                snake.steer(direction)

        # 2. Next head cells
        next_heads: dict[int, HexPoint] = {}
        for snake in living:
            moved = board.step(snake.head, snake.dir)
            if moved is None:
                snake.die("wall")
                continue
            next_heads[snake.sid] = moved[0]

        # 3. Collisions, judged against pre-tick bodies and all new heads
        pre_tick = {s.sid: set(s.body.cells) for s in living}
        head_counts = Counter(next_heads.values())
        deaths: list[tuple[Snake, str]] = []
        for snake in living:
            head = next_heads.get(snake.sid)
            if head is None:
                continue
            if head in board.obstacles:
                deaths.append((snake, "obstacle"))
            elif head_counts[head] > 1:
                deaths.append((snake, "head-on"))
            elif snake.body.collides_with_self(head):
                deaths.append((snake, "self"))
            elif any(head in pre_tick[o.sid] for o in living if o is not snake):
                deaths.append((snake, "snake"))
        for snake, reason in deaths:
            snake.die(reason)

        # 4. Move, eat, grow
        spawn_seeds: list[Seed] = []
        for snake in living:
            if not snake.is_alive:
                continue
            head = next_heads[snake.sid]
            snake.body.advance(head)
            apple = board.apple_at(head)
            if apple is not None:
                board.apples.remove(apple)
                events.append(AppleEaten(sid=snake.sid, pos=head, kind=apple.kind))
                apple_type = apple.apple_type
                if isinstance(apple_type, Food):
                    snake.body.grow(apple_type.amount)
                elif isinstance(apple_type, SpawnSnake):
                    spawn_seeds.append(apple_type.seed)
                elif isinstance(apple_type, SpawnRain):
                    self.spawn_policy.request_rain(apple_type.amount)
            if snake.tick_life():
                snake.die("expired")

        # 5. Apples
        result = self.spawn_policy.replenish(board, self.rng)
        if result.rain_bursts:
            events.append(RainStarted(apples=sum(1 for a in result.placed if a.from_rain)))

        # 6. Remove the dead, place new snakes
        for snake in [s for s in board.snakes if not s.is_alive]:
            board.snakes.remove(snake)
            events.append(SnakeDied(sid=snake.sid, reason=snake.death_reason or "unknown",
                                    length=len(snake.body)))
        for seed in spawn_seeds:
            spawned = self.add_snake(seed)
            if spawned is not None:
                events.append(SnakeSpawned(sid=spawned.sid, pos=spawned.head, length=len(spawned)))

        self.frame_stamp += 1
        self._events.emit_all(events)
        return events

    # -- Presentation ----------------------------------------------------

    def snapshot(self) -> WorldSnapshot:
        """Read-only copy of the world for rendering."""
        return WorldSnapshot(
            frame_stamp=self.frame_stamp,
            board_width=self.board.width,
            board_height=self.board.height,
            wraparound=self.board.wraparound,
            snakes=[_snake_view(s) for s in self.board.snakes],
            apples=[
                AppleView(
                    pos=_cell(a.pos),
                    kind=a.kind,
                    food=a.apple_type.amount if isinstance(a.apple_type, Food) else 0,
                )
                for a in self.board.apples
            ],
        )

    # -- Real-time loop --------------------------------------------------

    async def run(self, max_ticks: int | None = None) -> None:
        """Advance the game every ``tick_interval_ms`` until stop() is called."""
        self._running = True
        self.started_at = time.monotonic()
        log.info("Game loop started (%dx%d board, %d snakes, tick=%.0fms)",
                 self.board.width, self.board.height, len(self.board.snakes),
                 self.config.tick_interval_ms)
        while self._running:
            t0 = time.monotonic()
            self.advance_tick()
            elapsed_ms = (time.monotonic() - t0) * 1000

            self.tick_count += 1
            self.last_tick_duration_ms = elapsed_ms
            self._tick_duration_sum += elapsed_ms
            self.avg_tick_duration_ms = self._tick_duration_sum / self.tick_count

            if max_ticks is not None and self.tick_count >= max_ticks:
                break
            await asyncio.sleep(self._step_interval)
        self._running = False
        log.info("Game loop stopped after %d ticks (avg %.2fms/tick)",
                 self.tick_count, self.avg_tick_duration_ms)

    @property
    def uptime_seconds(self) -> float:
        """Seconds since the loop started."""
        if self.started_at == 0.0:
            return 0.0
        return time.monotonic() - self.started_at

    @property
    def is_running(self) -> bool:
        return self._running

    def stop(self) -> None:
        """Signal the game loop to stop."""
        self._running = False


def _cell(point: HexPoint) -> CellView:
    return CellView(h=point.h, v=point.v)


def _snake_view(snake: Snake) -> SnakeView:
    return SnakeView(
        sid=snake.sid,
        snake_type=snake.snake_type.value,
        dir=snake.dir.name,
        cells=[_cell(c) for c in snake.body.cells],
        growth_pending=snake.body.growth_pending,
        life=snake.life,
        planned_path=[_cell(c) for c in snake.last_path.cells] if snake.last_path else [],
    )
