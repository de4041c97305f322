"""Snake controllers - decide which way a snake goes next.

Seeds carry immutable *templates*; each new snake gets its own controller
built from the template, since controllers may keep state between ticks.

- Autopilot: asks a pathfinder for a route to the apples
- Programmed: replays a fixed cycle of turns and waits
- Direct: driven from outside (keyboard, tests) via ``queue_dir``
- Killer: heads for the cell in front of the nearest player snake
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional, Protocol, Sequence, Union

from hexsnake.engine.knowledge import Knowledge
from hexsnake.engine.pathfinding import PathFinder, blocked_cells, get_path, legal_moves
from hexsnake.models.hex import Dir, HexPoint
from hexsnake.models.snake import SnakeType

if TYPE_CHECKING:
    from hexsnake.engine.pathfinding import GameContext
    from hexsnake.models.apple import Apple
    from hexsnake.models.snake import Snake

log = logging.getLogger(__name__)


class Controller(Protocol):
    def next_dir(
        self,
        snake: Snake,
        other_snakes: Sequence[Snake],
        apples: Sequence[Apple],
        gtx: GameContext,
    ) -> Optional[Dir]:
        """New facing for the coming tick, or None to keep going straight."""
        ...


# -- Autopilot -----------------------------------------------------------

class Autopilot:
    """Steers along the path its pathfinder returns, recomputed every tick."""

    def __init__(self, pathfinder: PathFinder) -> None:
        self.pathfinder = pathfinder

    def next_dir(
        self,
        snake: Snake,
        other_snakes: Sequence[Snake],
        apples: Sequence[Apple],
        gtx: GameContext,
    ) -> Optional[Dir]:
        knowledge = Knowledge.build(snake, other_snakes, gtx.board, gtx.costs.interception_cost)
        targets = [apple.pos for apple in apples]
        path = get_path(self.pathfinder, targets, snake.body, knowledge, other_snakes, gtx)
        snake.last_path = path
        if path is None:
            log.debug("Snake %d: no path, keeping %s", snake.sid, snake.dir.name)
            return None
        return gtx.board.dir_between(snake.head, path.first)


# -- Programmed ----------------------------------------------------------

@dataclass(frozen=True)
class Turn:
    dir: Dir


@dataclass(frozen=True)
class Wait:
    ticks: int


Move = Union[Turn, Wait]


class Programmed:
    """Cycles through a move list; ``Wait(n)`` goes straight for n ticks."""

    def __init__(self, moves: Sequence[Move], start_dir: Dir) -> None:
        self.moves = list(moves)
        self.dir = start_dir
        self.next_move_idx = 0
        self.wait = 0

    def next_dir(
        self,
        snake: Snake,
        other_snakes: Sequence[Snake],
        apples: Sequence[Apple],
        gtx: GameContext,
    ) -> Optional[Dir]:
        if self.wait > 0:
            self.wait -= 1
            return self.dir

        move = self.moves[self.next_move_idx]
        self.next_move_idx = (self.next_move_idx + 1) % len(self.moves)
        if isinstance(move, Turn):
            if move.dir == snake.dir.opposite:
                log.debug("Snake %d: programmed reversal to %s skipped", snake.sid, move.dir.name)
                self.dir = snake.dir
            else:
                self.dir = move.dir
        else:
            self.wait = move.ticks - 1
        return self.dir


def hexagon_pattern(start_dir: Dir, side_len: int) -> tuple[Move, ...]:
    """Moves tracing a hexagon, turning left at every corner."""
    moves: list[Move] = []
    for direction in Dir.iter_from(start_dir):
        moves.append(Turn(direction))
        if side_len > 0:
            moves.append(Wait(side_len))
    return tuple(moves)


# -- Direct --------------------------------------------------------------

class Direct:
    """Externally driven; the last queued direction is used on the next tick."""

    def __init__(self) -> None:
        self.pending: Optional[Dir] = None

    def queue_dir(self, direction: Dir) -> None:
        self.pending = direction

    def next_dir(
        self,
        snake: Snake,
        other_snakes: Sequence[Snake],
        apples: Sequence[Apple],
        gtx: GameContext,
    ) -> Optional[Dir]:
        direction, self.pending = self.pending, None
        return direction


# -- Killer --------------------------------------------------------------

class Killer:
    """Hunts the nearest player snake by aiming one cell ahead of its head.

    Each tick the move that lands closest to the target wins, the gentler
    turn breaking ties. A move whose landing cell is taken by any snake
    body or obstacle is never chosen. With no player on the board the
    killer keeps going as straight as it can.
    """

    def next_dir(
        self,
        snake: Snake,
        other_snakes: Sequence[Snake],
        apples: Sequence[Apple],
        gtx: GameContext,
    ) -> Optional[Dir]:
        board = gtx.board
        players = [
            s for s in other_snakes
            if s is not snake and s.is_alive and s.snake_type is SnakeType.PLAYER
        ]
        target = None
        if players:
            prey = min(players, key=lambda s: (board.distance(snake.head, s.head), s.sid))
            ahead = board.step(prey.head, prey.dir)
            target = ahead[0] if ahead is not None else prey.head

        moves = legal_moves(snake.head, snake.dir, blocked_cells(snake.body, other_snakes, board), gtx)
        if not moves:
            log.debug("Snake %d: killer boxed in", snake.sid)
            return None

        def rank(move: tuple[Dir, HexPoint, bool]) -> tuple[int, float, int]:
            direction, nxt, _ = move
            closeness = board.distance(nxt, target) if target is not None else 0
            return closeness, gtx.costs.turn_cost(snake.dir, direction), direction.value

        return min(moves, key=rank)[0]


# -- Templates -----------------------------------------------------------

@dataclass(frozen=True)
class AutopilotTemplate:
    pathfinder: PathFinder

    def into_controller(self, start_dir: Dir) -> Controller:
        return Autopilot(self.pathfinder)


@dataclass(frozen=True)
class ProgrammedTemplate:
    moves: tuple[Move, ...]

    def into_controller(self, start_dir: Dir) -> Controller:
        return Programmed(self.moves, start_dir)


@dataclass(frozen=True)
class DirectTemplate:
    def into_controller(self, start_dir: Dir) -> Controller:
        return Direct()


@dataclass(frozen=True)
class KillerTemplate:
    def into_controller(self, start_dir: Dir) -> Controller:
        return Killer()


ControllerTemplate = Union[AutopilotTemplate, ProgrammedTemplate, DirectTemplate, KillerTemplate]
