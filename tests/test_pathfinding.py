"""Tests for the pathfinding strategies."""

import math
import random

import pytest

from hexsnake.engine.knowledge import Knowledge, SnakeForecast
from hexsnake.engine.pathfinding import (
    Fallback,
    GameContext,
    Path,
    PathCosts,
    ShortestWeighted,
    SpaceFilling,
    blocked_cells,
    get_path,
    legal_moves,
    pathfinder_from_config,
    reachable_space,
)
from hexsnake.models.board import Board
from hexsnake.models.hex import Dir, HexPoint
from hexsnake.models.snake import Body, Seed, Snake

NO_TELEPORT = PathCosts(step_cost=1.0, smooth_turn_cost=0.5, sharp_turn_cost=1.5,
                        teleport_cost=math.inf, interception_cost=0.0)


def _make_body(cells, direction=Dir.E, growth=0):
    return Body.from_cells([HexPoint(*c) for c in cells], direction, growth)


def _make_gtx(width=7, height=7, wraparound=False, obstacles=(), costs=NO_TELEPORT):
    board = Board(width, height, wraparound=wraparound, obstacles={HexPoint(*c) for c in obstacles})
    return GameContext(board=board, costs=costs)


def _path_cost(path, body, gtx, knowledge=None):
    """Recompute a path's cost edge by edge."""
    cell, facing, total = body.head, body.dir, 0.0
    for n_steps, nxt in enumerate(path.cells, start=1):
        direction = gtx.board.dir_between(cell, nxt)
        assert direction is not None, f"{cell!r} -> {nxt!r} is not a step"
        teleported = gtx.board.step(cell, direction)[1]
        total += gtx.costs.edge_cost(facing, direction, teleported)
        if knowledge is not None:
            total += knowledge.penalty(nxt, n_steps)
        cell, facing = nxt, direction
    return total


def _brute_force_cost(targets, body, gtx, max_steps, knowledge=None):
    """Cheapest cost over every walk of at most ``max_steps`` steps.

    Walks are relaxed one step at a time, so every partial walk carries its
    exact step count into the knowledge penalty.
    """
    blocked = blocked_cells(body, [], gtx.board)
    goals = set(targets) - blocked
    best = math.inf
    layer = {(body.head, body.dir): 0.0}
    for depth in range(1, max_steps + 1):
        next_layer = {}
        for (cell, facing), cost in layer.items():
            for direction, nxt, teleported in legal_moves(cell, facing, blocked, gtx):
                total = cost + gtx.costs.edge_cost(facing, direction, teleported)
                if knowledge is not None:
                    total += knowledge.penalty(nxt, depth)
                if nxt in goals:
                    best = min(best, total)
                elif total < next_layer.get((nxt, direction), math.inf):
                    next_layer[(nxt, direction)] = total
        layer = next_layer
    return best


def _random_scene(seed, n_obstacles=3, n_targets=2):
    """A length-3 body, obstacles and targets scattered over a 5x5 board."""
    rng = random.Random(seed)
    board = Board(5, 5)
    while True:
        snake_seed = Seed(HexPoint(rng.randrange(5), rng.randrange(5)), rng.choice(list(Dir)), length=3)
        cells = snake_seed.starting_cells(board)
        if cells is not None:
            break
    body = Body.from_cells(cells, snake_seed.dir)
    free = [c for c in board.cells() if c not in cells]
    rng.shuffle(free)
    obstacles = free[:n_obstacles]
    targets = free[n_obstacles:n_obstacles + n_targets]
    rest = free[n_obstacles + n_targets:]
    return rng, body, obstacles, targets, rest


class _StubFinder:
    """Returns a fixed result and records every call."""

    def __init__(self, result):
        self.result = result
        self.calls = []

    def get_path(self, *args):
        self.calls.append(args)
        return self.result


class TestPathCosts:
    def test_negative_cost_rejected(self):
        with pytest.raises(ValueError):
            PathCosts(step_cost=-1.0)

    def test_nan_rejected(self):
        with pytest.raises(ValueError):
            PathCosts(sharp_turn_cost=math.nan)

    def test_infinite_teleport_allowed(self):
        assert math.isinf(PathCosts(teleport_cost=math.inf).teleport_cost)

    def test_edge_cost(self):
        costs = PathCosts(step_cost=1.0, smooth_turn_cost=0.5, sharp_turn_cost=1.5, teleport_cost=10.0)
        assert costs.edge_cost(Dir.E, Dir.E, False) == 1.0
        assert costs.edge_cost(Dir.E, Dir.SE, False) == 1.5
        assert costs.edge_cost(Dir.E, Dir.NW, True) == 12.5


class TestHelpers:
    def test_blocked_cells_frees_vacating_tail(self):
        body = _make_body([(2, 3), (1, 3), (0, 3)])
        other = Snake(sid=2, body=_make_body([(5, 5), (6, 5)]))
        board = Board(7, 7, obstacles={HexPoint(0, 0)})
        blocked = blocked_cells(body, [other], board)
        assert blocked == {HexPoint(2, 3), HexPoint(1, 3), HexPoint(5, 5), HexPoint(6, 5), HexPoint(0, 0)}

    def test_legal_moves_exclude_reversal(self):
        gtx = _make_gtx()
        moves = legal_moves(HexPoint(3, 3), Dir.E, set(), gtx)
        assert Dir.W not in [d for d, _, _ in moves]
        assert len(moves) == 5

    def test_legal_moves_no_teleport_when_cost_infinite(self):
        gtx = _make_gtx(wraparound=True)
        moves = legal_moves(HexPoint(6, 3), Dir.E, set(), gtx)
        assert all(not teleported for _, _, teleported in moves)

    def test_reachable_space(self):
        gtx = _make_gtx(3, 3)
        assert reachable_space(HexPoint(0, 0), set(), gtx) == 8
        assert reachable_space(HexPoint(0, 0), {HexPoint(1, 0), HexPoint(0, 1)}, gtx) == 0


class TestShortestWeighted:
    def test_straight_line_scenario(self):
        gtx = _make_gtx()
        body = _make_body([(2, 3), (1, 3), (0, 3)])
        path = ShortestWeighted().get_path([HexPoint(5, 3)], body, None, [], gtx)
        assert path.cells == (HexPoint(3, 3), HexPoint(4, 3), HexPoint(5, 3))
        assert path.cost == pytest.approx(3.0)

    def test_enclosed_target(self):
        target = HexPoint(5, 3)
        gtx = _make_gtx(obstacles=[(n.h, n.v) for n in target.neighbors()])
        body = _make_body([(2, 3), (1, 3), (0, 3)])
        assert ShortestWeighted().get_path([target], body, None, [], gtx) is None

    def test_no_targets(self):
        assert ShortestWeighted().get_path([], _make_body([(2, 3)]), None, [], _make_gtx()) is None

    def test_target_under_other_snake_ignored(self):
        gtx = _make_gtx()
        other = Snake(sid=2, body=_make_body([(5, 3), (6, 3)], Dir.W))
        body = _make_body([(2, 3), (1, 3)])
        assert ShortestWeighted().get_path([HexPoint(5, 3)], body, None, [other], gtx) is None

    def test_avoids_other_snake(self):
        gtx = _make_gtx()
        other = Snake(sid=2, body=_make_body([(4, 3), (4, 4)], Dir.NW))
        body = _make_body([(2, 3), (1, 3), (0, 3)])
        path = ShortestWeighted().get_path([HexPoint(5, 3)], body, None, [other], gtx)
        assert HexPoint(4, 3) not in path.cells
        assert path.cost > 3.0

    def test_reversal_not_taken(self):
        gtx = _make_gtx()
        body = _make_body([(3, 3)])
        path = ShortestWeighted().get_path([HexPoint(2, 3)], body, None, [], gtx)
        assert len(path) == 2
        assert path.cost == pytest.approx(5.0)

    def test_tie_goes_to_lowest_target_index(self):
        gtx = _make_gtx()
        body = _make_body([(3, 3)])
        a, b = HexPoint(3, 4), HexPoint(4, 2)
        assert ShortestWeighted().get_path([a, b], body, None, [], gtx).target == a
        assert ShortestWeighted().get_path([b, a], body, None, [], gtx).target == b

    def test_teleport_when_cheap(self):
        costs = PathCosts(step_cost=1.0, smooth_turn_cost=0.5, sharp_turn_cost=1.5, teleport_cost=0.0)
        gtx = _make_gtx(wraparound=True, costs=costs)
        body = _make_body([(6, 3), (5, 3)])
        path = ShortestWeighted().get_path([HexPoint(0, 3)], body, None, [], gtx)
        assert path.cells == (HexPoint(0, 3),)
        assert path.cost == pytest.approx(1.0)

    def test_infinite_teleport_cost_forbids_wrapping(self):
        gtx = _make_gtx(wraparound=True)
        body = _make_body([(6, 3), (5, 3)])
        path = ShortestWeighted().get_path([HexPoint(0, 3)], body, None, [], gtx)
        assert path is not None
        assert len(path) > 1
        assert math.isfinite(path.cost)

    def test_knowledge_penalty_is_added(self):
        gtx = _make_gtx()
        body = _make_body([(2, 3), (1, 3), (0, 3)])
        knowledge = Knowledge(
            board=gtx.board,
            forecasts=(SnakeForecast(sid=9, head=HexPoint(5, 0), length=5, growth_pending=0),),
            interception_cost=2.0,
        )
        path = ShortestWeighted().get_path([HexPoint(5, 3)], body, knowledge, [], gtx)
        assert path.cells == (HexPoint(3, 3), HexPoint(4, 3), HexPoint(5, 3))
        assert path.cost == pytest.approx(5.0)

    def test_idempotent(self):
        gtx = _make_gtx(obstacles=[(4, 2), (4, 3)])
        body = _make_body([(2, 3), (1, 3), (0, 3)])
        before = list(body)
        finder = ShortestWeighted()
        first = finder.get_path([HexPoint(6, 3), HexPoint(1, 0)], body, None, [], gtx)
        second = finder.get_path([HexPoint(6, 3), HexPoint(1, 0)], body, None, [], gtx)
        assert first == second
        assert list(body) == before

    @pytest.mark.parametrize("seed", range(8))
    def test_optimal_against_brute_force(self, seed):
        _, body, obstacles, targets, _ = _random_scene(seed)
        gtx = _make_gtx(5, 5, obstacles=[(o.h, o.v) for o in obstacles])

        path = ShortestWeighted().get_path(targets, body, None, [], gtx)
        brute = _brute_force_cost(targets, body, gtx, max_steps=8)
        if path is None:
            assert math.isinf(brute)
            return
        assert path.cost == pytest.approx(_path_cost(path, body, gtx))
        assert path.cost <= brute + 1e-9
        if len(path) <= 8:
            assert path.cost == pytest.approx(brute)

    @pytest.mark.parametrize("seed", range(60))
    def test_optimal_with_knowledge_against_brute_force(self, seed):
        rng, body, obstacles, targets, rest = _random_scene(seed)
        gtx = _make_gtx(5, 5, obstacles=[(o.h, o.v) for o in obstacles])
        knowledge = Knowledge(
            board=gtx.board,
            forecasts=tuple(
                SnakeForecast(sid=sid, head=head, length=rng.randint(1, 4), growth_pending=rng.randint(0, 2))
                for sid, head in enumerate(rest[:2], start=10)
            ),
            interception_cost=6.0,
        )

        path = ShortestWeighted().get_path(targets, body, knowledge, [], gtx)
        brute = _brute_force_cost(targets, body, gtx, max_steps=30, knowledge=knowledge)
        if path is None:
            assert math.isinf(brute)
            return
        assert path.cost == pytest.approx(_path_cost(path, body, gtx, knowledge))
        assert path.cost <= brute + 1e-9
        if len(path) <= 30:
            assert path.cost == pytest.approx(brute)


class TestSpaceFilling:
    POCKET = [(5, 3), (5, 2), (4, 2), (4, 4), (3, 4)]

    def test_avoids_dead_end(self):
        gtx = _make_gtx(obstacles=self.POCKET)
        body = _make_body([(3, 3), (2, 3), (1, 3)])
        assert ShortestWeighted().get_path([HexPoint(4, 3)], body, None, [], gtx).first == HexPoint(4, 3)
        path = SpaceFilling().get_path([HexPoint(4, 3)], body, None, [], gtx)
        assert path.first != HexPoint(4, 3)

    def test_walks_depth_steps_without_targets(self):
        gtx = _make_gtx()
        body = _make_body([(2, 3), (1, 3), (0, 3)])
        path = SpaceFilling(depth=3).get_path([], body, None, [], gtx)
        assert len(path) == 3
        assert path.cost == pytest.approx(_path_cost(path, body, gtx))

    def test_stops_at_target(self):
        gtx = _make_gtx()
        body = _make_body([(2, 3), (1, 3), (0, 3)])
        path = SpaceFilling(depth=6).get_path([HexPoint(3, 3)], body, None, [], gtx)
        assert path.cells == (HexPoint(3, 3),)

    def test_boxed_in_returns_none(self):
        head = HexPoint(3, 3)
        walls = [(n.h, n.v) for n in head.neighbors() if n != HexPoint(2, 3)]
        gtx = _make_gtx(obstacles=walls)
        body = _make_body([(3, 3), (2, 3), (1, 3)])
        assert SpaceFilling().get_path([], body, None, [], gtx) is None

    def test_uses_context_depth(self):
        gtx = GameContext(board=Board(9, 9), costs=NO_TELEPORT, space_filling_depth=2)
        body = _make_body([(4, 4), (3, 4)])
        assert len(SpaceFilling().get_path([], body, None, [], gtx)) == 2


class TestFallback:
    def test_backup_not_called_when_primary_succeeds(self):
        primary = _StubFinder(Path((HexPoint(1, 0),), 1.0))
        backup = _StubFinder(None)
        result = Fallback(primary, backup).get_path([], _make_body([(0, 0)]), None, [], _make_gtx())
        assert result == primary.result
        assert len(primary.calls) == 1
        assert backup.calls == []

    def test_backup_gets_identical_inputs(self):
        primary = _StubFinder(None)
        backup = _StubFinder(Path((HexPoint(1, 0),), 2.0))
        body = _make_body([(0, 0)])
        gtx = _make_gtx()
        result = get_path(Fallback(primary, backup), [HexPoint(3, 3)], body, None, [], gtx)
        assert result == backup.result
        assert len(primary.calls) == 1
        assert len(backup.calls) == 1
        assert primary.calls[0] == backup.calls[0]

    def test_both_fail(self):
        result = Fallback(_StubFinder(None), _StubFinder(None)).get_path(
            [], _make_body([(0, 0)]), None, [], _make_gtx())
        assert result is None


class TestPathfinderFromConfig:
    def test_names(self):
        assert pathfinder_from_config("shortest_weighted") == ShortestWeighted()
        assert pathfinder_from_config("A_STAR") == ShortestWeighted()
        assert pathfinder_from_config("space_filling") == SpaceFilling()

    def test_space_filling_depth(self):
        assert pathfinder_from_config({"space_filling": {"depth": 4}}) == SpaceFilling(depth=4)

    def test_nested_fallback(self):
        pf = pathfinder_from_config({"fallback": ["shortest_weighted", {"space_filling": {"depth": 3}}]})
        assert pf == Fallback(ShortestWeighted(), SpaceFilling(depth=3))

    def test_unknown(self):
        with pytest.raises(ValueError):
            pathfinder_from_config("dijkstra")
        with pytest.raises(ValueError):
            pathfinder_from_config({"bogus": 1})
