"""Knowledge - what a planning snake believes about its competitors.

Built fresh for every path query from the other living snakes. It never
forbids a cell; it only makes cells that a competitor could plausibly be
holding on arrival more expensive, so the planner prefers routes nobody
else is racing for.

Forecast model: a competitor whose head is ``d`` steps from a cell can be
there after ``d`` ticks, and if it goes there its body keeps the cell
covered for as many ticks as it is long. Its length after ``t`` ticks is
its current length plus whatever pending growth it can realise in ``t``
ticks.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Iterable

from hexsnake.models.hex import HexPoint

if TYPE_CHECKING:
    from hexsnake.models.board import Board
    from hexsnake.models.snake import Snake


@dataclass(frozen=True)
class SnakeForecast:
    """Snapshot of one competitor taken when the knowledge is built."""

    sid: int
    head: HexPoint
    length: int
    growth_pending: int

    def forecast_length(self, steps: int) -> int:
        """Believed body length after ``steps`` ticks."""
        return self.length + min(self.growth_pending, max(0, steps))


@dataclass(frozen=True)
class Knowledge:
    board: Board
    forecasts: tuple[SnakeForecast, ...]
    interception_cost: float

    @classmethod
    def build(
        cls,
        planner: Snake,
        others: Iterable[Snake],
        board: Board,
        interception_cost: float,
    ) -> Knowledge:
        forecasts = tuple(
            SnakeForecast(
                sid=s.sid,
                head=s.head,
                length=len(s.body),
                growth_pending=s.body.growth_pending,
            )
            for s in others
            if s is not planner and s.is_alive
        )
        return cls(board=board, forecasts=forecasts, interception_cost=interception_cost)

    @classmethod
    def empty(cls, board: Board) -> Knowledge:
        return cls(board=board, forecasts=(), interception_cost=0.0)

    def reachable_by(self, cell: HexPoint, steps: int) -> list[SnakeForecast]:
        """Competitors whose head can reach ``cell`` within ``steps`` ticks."""
        return [f for f in self.forecasts if self.board.distance(f.head, cell) <= steps]

    def horizon(self) -> int:
        """First step count from which ``penalty`` is zero for every cell.

        A competitor covers a cell until ``arrival + forecast_length(steps)``,
        where the arrival is at most the distance to the farthest cell and the
        forecast length at most the current length plus all pending growth.
        """
        if self.interception_cost <= 0 or not self.forecasts:
            return 0
        cells = list(self.board.cells())
        return max(
            max(self.board.distance(f.head, cell) for cell in cells) + f.length + f.growth_pending
            for f in self.forecasts
        )

    def penalty(self, cell: HexPoint, steps: int) -> float:
        """Extra cost for entering ``cell`` as the ``steps``-th move of a path."""
        if self.interception_cost <= 0:
            return 0.0
        total = 0.0
        for forecast in self.forecasts:
            arrival = self.board.distance(forecast.head, cell)
            if arrival <= steps < arrival + forecast.forecast_length(steps):
                total += self.interception_cost
        return total
