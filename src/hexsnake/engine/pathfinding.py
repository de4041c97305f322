"""Hex pathfinding for autonomous snakes.

Strategies share one call signature::

    get_path(targets, body, knowledge, other_snakes, gtx) -> Path | None

and are plain frozen dataclasses, so they can be nested and compared:

- ShortestWeighted: A* to the cheapest target, with turn and teleport costs
- SpaceFilling: greedy moves that keep as much free space reachable as possible
- Fallback: try a primary strategy, use the backup only if it finds nothing

``None`` means "no path"; it is an ordinary answer, not an error.
"""

from __future__ import annotations

import heapq
import itertools
import logging
import math
from collections import deque
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Optional, Protocol, Sequence

from hexsnake.models.hex import Dir, HexPoint, TurnKind
from hexsnake.util import constants
from hexsnake.util.hex_math import turn_type

if TYPE_CHECKING:
    from hexsnake.engine.knowledge import Knowledge
    from hexsnake.models.board import Board
    from hexsnake.models.snake import Body, Snake

log = logging.getLogger(__name__)

# Costs are compared with a small tolerance so that equal-cost paths built
# from different float sums still tie.
_EPS = 1e-9


@dataclass(frozen=True)
class PathCosts:
    """Edge cost weights used by the search strategies."""

    step_cost: float = constants.STEP_COST
    smooth_turn_cost: float = constants.SMOOTH_TURN_COST
    sharp_turn_cost: float = constants.SHARP_TURN_COST
    teleport_cost: float = constants.TELEPORT_COST
    interception_cost: float = constants.INTERCEPTION_COST

    def __post_init__(self) -> None:
        for name in ("step_cost", "smooth_turn_cost", "sharp_turn_cost",
                     "teleport_cost", "interception_cost"):
            value = getattr(self, name)
            if math.isnan(value) or value < 0:
                raise ValueError(f"{name} must be a non-negative number, got {value!r}")

    def turn_cost(self, prev_dir: Dir, next_dir: Dir) -> float:
        kind = turn_type(prev_dir, next_dir).kind
        if kind is TurnKind.SMOOTH:
            return self.smooth_turn_cost
        if kind is TurnKind.SHARP:
            return self.sharp_turn_cost
        return 0.0

    def edge_cost(self, prev_dir: Dir, next_dir: Dir, teleported: bool) -> float:
        cost = self.step_cost + self.turn_cost(prev_dir, next_dir)
        if teleported:
            cost += self.teleport_cost
        return cost


@dataclass(frozen=True)
class Path:
    """Cells from the head (exclusive) to the target (inclusive), plus total cost."""

    cells: tuple[HexPoint, ...]
    cost: float

    def __len__(self) -> int:
        return len(self.cells)

    @property
    def first(self) -> HexPoint:
        return self.cells[0]

    @property
    def target(self) -> HexPoint:
        return self.cells[-1]


@dataclass(frozen=True)
class GameContext:
    """Read-only view of the game handed to pathfinders."""

    board: Board
    costs: PathCosts = field(default_factory=PathCosts)
    frame_stamp: int = 0
    space_filling_depth: int = constants.SPACE_FILLING_DEPTH

    @property
    def teleport_allowed(self) -> bool:
        return self.board.wraparound and not math.isinf(self.costs.teleport_cost)


class PathFinder(Protocol):
    def get_path(
        self,
        targets: Sequence[HexPoint],
        body: Body,
        knowledge: Optional[Knowledge],
        other_snakes: Sequence[Snake],
        gtx: GameContext,
    ) -> Optional[Path]: ...


# -- Helpers -------------------------------------------------------------

def blocked_cells(body: Body, other_snakes: Sequence[Snake], board: Board) -> set[HexPoint]:
    """Cells the next move may not enter.

    The planner's own tail is free when it vacates this tick; every other
    snake cell and every obstacle is blocked.
    """
    blocked = body.blocking_cells() | board.obstacles
    for snake in other_snakes:
        if snake.body is body or not snake.is_alive:
            continue
        blocked.update(snake.body.cells)
    return blocked


def legal_moves(
    cell: HexPoint,
    facing: Dir,
    blocked: set[HexPoint],
    gtx: GameContext,
) -> list[tuple[Dir, HexPoint, bool]]:
    """All ``(dir, next_cell, teleported)`` moves that are not reversals or blocked."""
    moves = []
    reverse = facing.opposite
    for direction in Dir:
        if direction == reverse:
            continue
        moved = gtx.board.step(cell, direction)
        if moved is None:
            continue
        nxt, teleported = moved
        if teleported and not gtx.teleport_allowed:
            continue
        if nxt in blocked:
            continue
        moves.append((direction, nxt, teleported))
    return moves


def reachable_space(start: HexPoint, blocked: set[HexPoint], gtx: GameContext) -> int:
    """Number of free cells reachable from ``start`` (not counting ``start``)."""
    board = gtx.board
    seen = {start}
    queue: deque[HexPoint] = deque([start])
    while queue:
        cell = queue.popleft()
        for direction in Dir:
            moved = board.step(cell, direction)
            if moved is None:
                continue
            nxt, teleported = moved
            if teleported and not gtx.teleport_allowed:
                continue
            if nxt in seen or nxt in blocked:
                continue
            seen.add(nxt)
            queue.append(nxt)
    return len(seen) - 1


# -- Strategies ----------------------------------------------------------

@dataclass(frozen=True)
class ShortestWeighted:
    """A* search over (cell, facing, steps) states.

    Facing is part of the state because the turn penalty of the next edge
    depends on it. The step count is part of it because the knowledge
    penalty depends on when a cell is entered; it is capped at the
    knowledge horizon, after which every penalty is zero and arrivals at
    different times are interchangeable. Edge cost = step cost + turn
    penalty + teleport cost (when the edge wraps) + knowledge penalty for
    the cell entered.
    """

    def get_path(
        self,
        targets: Sequence[HexPoint],
        body: Body,
        knowledge: Optional[Knowledge],
        other_snakes: Sequence[Snake],
        gtx: GameContext,
    ) -> Optional[Path]:
        board = gtx.board
        costs = gtx.costs
        blocked = blocked_cells(body, other_snakes, board)

        # first occurrence wins so duplicates keep their lowest index
        goals: dict[HexPoint, int] = {}
        for index, target in enumerate(targets):
            if target not in blocked and board.in_bounds(target):
                goals.setdefault(target, index)
        if not goals:
            return None

        def heuristic(cell: HexPoint) -> float:
            return costs.step_cost * min(board.distance(cell, goal) for goal in goals)

        horizon = knowledge.horizon() if knowledge is not None else 0

        State = tuple[HexPoint, Dir, int]
        start: State = (body.head, body.dir, 0)
        g_score: dict[State, float] = {start: 0.0}
        parent: dict[State, Optional[State]] = {start: None}
        tie = itertools.count()
        heap = [(heuristic(body.head), 0.0, next(tie), start)]
        best: Optional[tuple[float, int, State]] = None
        penalties: dict[tuple[HexPoint, int], float] = {}

        while heap:
            f, g, _, state = heapq.heappop(heap)
            if g > g_score[state] + _EPS:
                continue  # stale entry
            if best is not None and f > best[0] + _EPS:
                break
            cell, facing, n_steps = state
            if cell in goals:
                index = goals[cell]
                if best is None or g < best[0] - _EPS or (abs(g - best[0]) <= _EPS and index < best[1]):
                    best = (g, index, state)
                continue

            # every penalty is zero from the horizon on, so capped counts are exact keys
            capped = min(n_steps + 1, horizon)
            for direction, nxt, teleported in legal_moves(cell, facing, blocked, gtx):
                cost = g + costs.edge_cost(facing, direction, teleported)
                if knowledge is not None:
                    key = (nxt, capped)
                    if key not in penalties:
                        penalties[key] = knowledge.penalty(nxt, n_steps + 1)
                    cost += penalties[key]
                nstate = (nxt, direction, capped)
                if cost < g_score.get(nstate, math.inf) - _EPS:
                    g_score[nstate] = cost
                    parent[nstate] = state
                    heapq.heappush(heap, (cost + heuristic(nxt), cost, next(tie), nstate))

        if best is None:
            return None

        cells: list[HexPoint] = []
        node: Optional[State] = best[2]
        while node is not None and node != start:
            cells.append(node[0])
            node = parent[node]
        cells.reverse()
        return Path(tuple(cells), best[0])


@dataclass(frozen=True)
class SpaceFilling:
    """Greedy exploration that keeps the snake out of dead ends.

    Every step picks the legal move that leaves the most free cells
    reachable from the new head. Ties go to the lower knowledge penalty,
    then the closer target, then the gentler turn, then ``Dir`` order.
    Stops after ``depth`` steps or on reaching a target.

    Attributes:
        depth: Lookahead in steps; None uses ``gtx.space_filling_depth``.
    """

    depth: Optional[int] = None

    def get_path(
        self,
        targets: Sequence[HexPoint],
        body: Body,
        knowledge: Optional[Knowledge],
        other_snakes: Sequence[Snake],
        gtx: GameContext,
    ) -> Optional[Path]:
        depth = self.depth if self.depth is not None else gtx.space_filling_depth
        others = blocked_cells(body, other_snakes, gtx.board) - body.blocking_cells()
        target_set = set(targets)
        sim = body.copy()
        cells: list[HexPoint] = []
        total = 0.0

        for n_steps in range(1, max(1, depth) + 1):
            choice = self._best_move(sim, others, knowledge, targets, gtx, n_steps)
            if choice is None:
                break
            direction, nxt, cost = choice
            cells.append(nxt)
            total += cost
            sim.dir = direction
            sim.advance(nxt)
            if nxt in target_set:
                break

        if not cells:
            return None
        return Path(tuple(cells), total)

    @staticmethod
    def _best_move(
        sim: Body,
        others: set[HexPoint],
        knowledge: Optional[Knowledge],
        targets: Sequence[HexPoint],
        gtx: GameContext,
        n_steps: int,
    ) -> Optional[tuple[Dir, HexPoint, float]]:
        costs = gtx.costs
        best_key = None
        best = None
        for direction, nxt, teleported in legal_moves(sim.head, sim.dir, sim.blocking_cells() | others, gtx):
            after = sim.copy()
            after.dir = direction
            after.advance(nxt)
            space = reachable_space(nxt, set(after.cells) | others, gtx)
            penalty = knowledge.penalty(nxt, n_steps) if knowledge is not None else 0.0
            nearest = min((gtx.board.distance(nxt, t) for t in targets), default=0)
            turn = costs.turn_cost(sim.dir, direction)
            key = (-space, penalty, nearest, turn, direction.value)
            if best_key is None or key < best_key:
                best_key = key
                best = (direction, nxt, costs.edge_cost(sim.dir, direction, teleported) + penalty)
        return best


@dataclass(frozen=True)
class Fallback:
    """Ask ``primary`` first; ask ``backup`` with the same inputs only if it found nothing."""

    primary: PathFinder
    backup: PathFinder

    def get_path(
        self,
        targets: Sequence[HexPoint],
        body: Body,
        knowledge: Optional[Knowledge],
        other_snakes: Sequence[Snake],
        gtx: GameContext,
    ) -> Optional[Path]:
        path = self.primary.get_path(targets, body, knowledge, other_snakes, gtx)
        if path is not None:
            return path
        log.debug("Primary %s found no path, trying %s",
                  type(self.primary).__name__, type(self.backup).__name__)
        return self.backup.get_path(targets, body, knowledge, other_snakes, gtx)


def get_path(
    pathfinder: PathFinder,
    targets: Sequence[HexPoint],
    body: Body,
    knowledge: Optional[Knowledge],
    other_snakes: Sequence[Snake],
    gtx: GameContext,
) -> Optional[Path]:
    """Run a strategy against the current (read-only) game state."""
    return pathfinder.get_path(targets, body, knowledge, other_snakes, gtx)


_NAMES = {
    "shortest_weighted": ShortestWeighted,
    "a_star": ShortestWeighted,
    "space_filling": SpaceFilling,
}


def pathfinder_from_config(raw: Any) -> PathFinder:
    """Build a strategy from its config representation.

    Accepted forms::

        shortest_weighted
        space_filling
        {space_filling: {depth: 5}}
        {fallback: [shortest_weighted, space_filling]}
    """
    if isinstance(raw, str):
        try:
            return _NAMES[raw.strip().lower()]()
        except KeyError:
            raise ValueError(f"unknown pathfinder {raw!r}") from None
    if isinstance(raw, dict) and len(raw) == 1:
        (name, arg), = raw.items()
        name = str(name).lower()
        if name == "fallback":
            primary, backup = arg
            return Fallback(pathfinder_from_config(primary), pathfinder_from_config(backup))
        if name == "space_filling":
            return SpaceFilling(depth=int(arg["depth"]) if arg and "depth" in arg else None)
        if name in _NAMES:
            return _NAMES[name]()
    raise ValueError(f"unknown pathfinder config {raw!r}")
