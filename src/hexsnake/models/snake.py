"""Snake model - a body of hex cells moving one cell per tick.

The body is a deque ordered from head (index 0) to tail. Moving prepends
the new head and drops the tail, unless growth is pending, in which case
the tail stays and the snake gets one cell longer.

Collision rules between snakes are applied by the game loop; this module
only knows about a single snake.
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Iterable, Iterator

from hexsnake.models.hex import Dir, HexPoint

if TYPE_CHECKING:
    from hexsnake.engine.controllers import Controller, ControllerTemplate
    from hexsnake.engine.pathfinding import Path
    from hexsnake.models.board import Board

log = logging.getLogger(__name__)


class SnakeState(Enum):
    LIVING = "living"
    DEAD = "dead"


class SnakeType(Enum):
    PLAYER = "player"
    SIMULATED = "simulated"
    COMPETITOR = "competitor"
    KILLER = "killer"


@dataclass(frozen=True)
class Seed:
    """Everything needed to put a new snake on the board.

    Attributes:
        pos: Head cell.
        dir: Initial facing.
        length: Initial length; the body is laid out behind the head.
        snake_type: Kind of snake to create.
        controller: Controller template. None means externally driven.
        life: Ticks before the snake expires, None for unlimited.
    """

    pos: HexPoint
    dir: Dir
    length: int = 3
    snake_type: SnakeType = SnakeType.SIMULATED
    controller: ControllerTemplate | None = None
    life: int | None = None

    def __post_init__(self) -> None:
        if self.length < 1:
            raise ValueError(f"seed length must be at least 1, got {self.length}")

    def starting_cells(self, board: Board) -> list[HexPoint] | None:
        """Head-first cells of the new body, or None if they don't fit on the board."""
        if not board.in_bounds(self.pos):
            return None
        cells = [self.pos]
        behind = self.dir.opposite
        for _ in range(self.length - 1):
            moved = board.step(cells[-1], behind)
            if moved is None:
                return None
            cells.append(moved[0])
        if len(set(cells)) != len(cells):
            # body wrapped onto itself on a tiny board
            return None
        return cells


@dataclass
class Body:
    """Ordered cells (head first), facing and pending growth."""

    cells: deque[HexPoint]
    dir: Dir
    growth_pending: int = 0

    def __post_init__(self) -> None:
        if not isinstance(self.cells, deque):
            self.cells = deque(self.cells)
        if not self.cells:
            raise ValueError("a body needs at least one cell")
        if self.growth_pending < 0:
            raise ValueError("growth_pending must not be negative")

    @classmethod
    def from_cells(cls, cells: Iterable[HexPoint], direction: Dir, growth_pending: int = 0) -> Body:
        return cls(deque(cells), direction, growth_pending)

    def __len__(self) -> int:
        return len(self.cells)

    def __contains__(self, point: object) -> bool:
        return point in self.cells

    def __iter__(self) -> Iterator[HexPoint]:
        return iter(self.cells)

    @property
    def head(self) -> HexPoint:
        return self.cells[0]

    @property
    def tail(self) -> HexPoint:
        return self.cells[-1]

    @property
    def tail_vacates(self) -> bool:
        """Whether the tail cell is freed by the next move."""
        return self.growth_pending == 0

    def blocking_cells(self) -> set[HexPoint]:
        """Cells still covered by this body after its next move (old head included)."""
        blocking = set(self.cells)
        if self.tail_vacates:
            blocking.discard(self.tail)
        return blocking

    def collides_with_self(self, point: HexPoint) -> bool:
        if point == self.tail and self.tail_vacates:
            return False
        return point in self.cells

    def advance(self, new_head: HexPoint) -> None:
        """Prepend the new head; keep the tail only while growth is pending."""
        self.cells.appendleft(new_head)
        if self.growth_pending > 0:
            self.growth_pending -= 1
        else:
            self.cells.pop()

    def grow(self, amount: int) -> None:
        self.growth_pending += max(0, amount)

    def copy(self) -> Body:
        return Body(deque(self.cells), self.dir, self.growth_pending)


@dataclass(eq=False)
class Snake:
    """A snake on the board.

    Attributes:
        sid: Unique snake ID.
        body: Current body.
        snake_type: Kind of snake.
        controller: Decides the next direction; None when driven directly
            through ``steer``.
        state: Living or dead.
        death_reason: Why the snake died ("wall", "self", "snake",
            "head-on", "obstacle", "expired").
        life: Remaining ticks, None for unlimited.
        last_path: Most recent path planned by the controller.
    """

    sid: int
    body: Body
    snake_type: SnakeType = SnakeType.SIMULATED
    controller: Controller | None = None
    state: SnakeState = SnakeState.LIVING
    death_reason: str | None = None
    life: int | None = None
    last_path: Path | None = field(default=None, repr=False)

    @classmethod
    def from_seed(cls, sid: int, seed: Seed, cells: list[HexPoint]) -> Snake:
        controller = seed.controller.into_controller(seed.dir) if seed.controller else None
        return cls(
            sid=sid,
            body=Body.from_cells(cells, seed.dir),
            snake_type=seed.snake_type,
            controller=controller,
            life=seed.life,
        )

    # -- Derived properties ----------------------------------------------

    @property
    def head(self) -> HexPoint:
        return self.body.head

    @property
    def dir(self) -> Dir:
        return self.body.dir

    @property
    def is_alive(self) -> bool:
        return self.state is SnakeState.LIVING

    def __len__(self) -> int:
        return len(self.body)

    # -- Transitions -----------------------------------------------------

    def steer(self, new_dir: Dir) -> bool:
        """Change facing. Reversals are refused; returns whether the facing changed."""
        if new_dir == self.body.dir:
            return False
        if new_dir == self.body.dir.opposite:
            log.warning("Snake %d: refusing 180 degree turn %s -> %s",
                        self.sid, self.body.dir.name, new_dir.name)
            return False
        self.body.dir = new_dir
        return True

    def tick_life(self) -> bool:
        """Count down remaining life; returns True when the snake just expired."""
        if self.life is None:
            return False
        self.life = max(0, self.life - 1)
        return self.life == 0

    def die(self, reason: str) -> None:
        if self.state is SnakeState.DEAD:
            return
        self.state = SnakeState.DEAD
        self.death_reason = reason
        log.info("Snake %d died (%s) at %r, length %d", self.sid, reason, self.head, len(self.body))
