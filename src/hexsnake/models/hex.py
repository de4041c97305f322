"""Hexagonal coordinate system using axial coordinates (h, v).

Axial coordinates define position on a hex grid where:
- h axis runs east
- v axis runs south-east
- s = -h - v is the implicit third cube coordinate

Reference: https://www.redblobgames.com/grids/hexagons/
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterator


class Dir(Enum):
    """The six hex directions, in counter-clockwise order starting east."""

    E = 0
    NE = 1
    NW = 2
    W = 3
    SW = 4
    SE = 5

    @classmethod
    def iter_from(cls, start: Dir) -> Iterator[Dir]:
        """All six directions counter-clockwise, beginning at ``start``."""
        for i in range(6):
            yield start.rotated(i)

    @classmethod
    def parse(cls, name: str) -> Dir:
        """Look up a direction by (case-insensitive) name, e.g. ``"ne"``."""
        try:
            return cls[name.strip().upper()]
        except KeyError:
            raise ValueError(f"unknown direction {name!r}") from None

    @property
    def vector(self) -> HexPoint:
        dh, dv = _DIRECTIONS[self.value]
        return HexPoint(dh, dv)

    @property
    def opposite(self) -> Dir:
        return self.rotated(3)

    def rotated(self, steps: int) -> Dir:
        """Rotate counter-clockwise by ``steps`` * 60 degrees (negative = clockwise)."""
        return Dir((self.value + steps) % 6)

    def ccw_steps_to(self, other: Dir) -> int:
        """Counter-clockwise angle from self to other in units of 60 degrees."""
        return (other.value - self.value) % 6


class TurnKind(Enum):
    STRAIGHT = "straight"
    SMOOTH = "smooth"  # 60 degrees
    SHARP = "sharp"  # 120 degrees or more


class Side(Enum):
    LEFT = "left"
    RIGHT = "right"


@dataclass(frozen=True)
class TurnType:
    """Classification of the turn between two consecutive directions.

    Attributes:
        kind: Straight, smooth or sharp.
        side: Handedness of the turn. None when going straight or reversing.
    """

    kind: TurnKind
    side: Side | None = None


@dataclass(frozen=True, order=True)
class HexPoint:
    """Immutable axial hex coordinate.

    Attributes:
        h: Column coordinate (east axis).
        v: Row coordinate (south-east axis).
    """

    h: int
    v: int

    # -- Cube coordinate -------------------------------------------------

    @property
    def s(self) -> int:
        """Implicit cube coordinate: s = -h - v."""
        return -self.h - self.v

    # -- Arithmetic ------------------------------------------------------

    def __add__(self, other: HexPoint) -> HexPoint:
        return HexPoint(self.h + other.h, self.v + other.v)

    def __sub__(self, other: HexPoint) -> HexPoint:
        return HexPoint(self.h - other.h, self.v - other.v)

    # -- Geometry --------------------------------------------------------

    def distance_to(self, other: HexPoint) -> int:
        """Hex grid distance (number of steps along hex edges)."""
        dh = abs(self.h - other.h)
        dv = abs(self.v - other.v)
        ds = abs(self.s - other.s)
        return max(dh, dv, ds)

    def neighbor(self, direction: Dir) -> HexPoint:
        return self + direction.vector

    def translate(self, direction: Dir, dist: int) -> HexPoint:
        dh, dv = _DIRECTIONS[direction.value]
        return HexPoint(self.h + dh * dist, self.v + dv * dist)

    def neighbors(self) -> list[HexPoint]:
        """Return the 6 adjacent hex coordinates, in ``Dir`` order."""
        return [HexPoint(self.h + dh, self.v + dv) for dh, dv in _DIRECTIONS]

    def dir_to(self, other: HexPoint) -> Dir | None:
        """Direction of an adjacent cell, or None if ``other`` is not a neighbor.

        Oblivious to wraparound, see ``Board.dir_between`` for that.
        """
        delta = (other.h - self.h, other.v - self.v)
        try:
            return Dir(_DIRECTIONS.index(delta))
        except ValueError:
            return None

    def __repr__(self) -> str:
        return f"Hex({self.h},{self.v})"


# The 6 axial direction vectors, indexed by Dir.value
_DIRECTIONS: list[tuple[int, int]] = [
    (1, 0),   # E
    (1, -1),  # NE
    (0, -1),  # NW
    (-1, 0),  # W
    (-1, 1),  # SW
    (0, 1),   # SE
]
