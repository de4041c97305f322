"""Hexagonal board model.

A rectangle in axial space: ``0 <= h < width`` and ``0 <= v < height``.
With wraparound enabled, stepping off one edge re-enters on the opposite
edge (coordinates are taken modulo the board dimensions).

The board indexes the live snakes and apples owned by the game loop; it
never mutates them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Iterator

from hexsnake.models.hex import Dir, HexPoint
from hexsnake.util.hex_math import hex_distance, wrapped_distance

if TYPE_CHECKING:
    from hexsnake.models.apple import Apple
    from hexsnake.models.snake import Snake


@dataclass
class Board:
    """The playing field.

    Attributes:
        width: Number of columns (h axis).
        height: Number of rows (v axis).
        wraparound: Whether snakes teleport across the board edges.
        obstacles: Static impassable cells.
        snakes: Live snakes, owned by the game loop.
        apples: Live apples in insertion order, owned by the game loop.
    """

    width: int
    height: int
    wraparound: bool = False
    obstacles: set[HexPoint] = field(default_factory=set)
    snakes: list[Snake] = field(default_factory=list)
    apples: list[Apple] = field(default_factory=list)

    def __post_init__(self) -> None:
        if self.width <= 0 or self.height <= 0:
            raise ValueError(f"board dimensions must be positive, got {self.width}x{self.height}")

    # -- Geometry --------------------------------------------------------

    @property
    def cell_count(self) -> int:
        return self.width * self.height

    def in_bounds(self, point: HexPoint) -> bool:
        return 0 <= point.h < self.width and 0 <= point.v < self.height

    def wrap(self, point: HexPoint) -> HexPoint:
        """Normalize a coordinate onto the board when wraparound is enabled."""
        if not self.wraparound:
            return point
        return HexPoint(point.h % self.width, point.v % self.height)

    def step(self, point: HexPoint, direction: Dir) -> tuple[HexPoint, bool] | None:
        """Move one cell in ``direction``.

        Returns:
            ``(new_point, teleported)``, or None when the move leaves a
            board without wraparound.
        """
        target = point.neighbor(direction)
        if self.in_bounds(target):
            return target, False
        if self.wraparound:
            return self.wrap(target), True
        return None

    def dir_between(self, a: HexPoint, b: HexPoint) -> Dir | None:
        """Direction leading from ``a`` to the adjacent cell ``b`` (wrap-aware)."""
        for direction in Dir:
            moved = self.step(a, direction)
            if moved is not None and moved[0] == b:
                return direction
        return None

    def distance(self, a: HexPoint, b: HexPoint) -> int:
        if self.wraparound:
            return wrapped_distance(a, b, self.width, self.height)
        return hex_distance(a, b)

    def cells(self) -> Iterator[HexPoint]:
        """All board cells, row by row."""
        for v in range(self.height):
            for h in range(self.width):
                yield HexPoint(h, v)

    # -- Occupancy -------------------------------------------------------

    def snake_cells(self) -> set[HexPoint]:
        return {cell for snake in self.snakes for cell in snake.body.cells}

    def apple_cells(self) -> set[HexPoint]:
        return {apple.pos for apple in self.apples}

    def occupied_cells(self) -> set[HexPoint]:
        """Union of snake cells, apple cells and obstacles."""
        return self.snake_cells() | self.apple_cells() | self.obstacles

    def is_occupied(self, point: HexPoint) -> bool:
        if point in self.obstacles:
            return True
        if any(apple.pos == point for apple in self.apples):
            return True
        return any(point in snake.body for snake in self.snakes)

    def apple_at(self, point: HexPoint) -> Apple | None:
        for apple in self.apples:
            if apple.pos == point:
                return apple
        return None

    def free_cell_count(self) -> int:
        return self.cell_count - len(self.occupied_cells())
