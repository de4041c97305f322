"""Hex math utilities - geometry functions for hexagonal grids.

All functions operate on HexPoint (axial coordinates) and Dir.
Reference: https://www.redblobgames.com/grids/hexagons/
"""

from __future__ import annotations

from hexsnake.models.hex import Dir, HexPoint, Side, TurnKind, TurnType

STRAIGHT = TurnType(TurnKind.STRAIGHT)

# Indexed by the counter-clockwise step count between two directions
_TURNS: list[TurnType] = [
    STRAIGHT,
    TurnType(TurnKind.SMOOTH, Side.LEFT),
    TurnType(TurnKind.SHARP, Side.LEFT),
    TurnType(TurnKind.SHARP),  # reversal
    TurnType(TurnKind.SHARP, Side.RIGHT),
    TurnType(TurnKind.SMOOTH, Side.RIGHT),
]


def hex_neighbor(point: HexPoint, direction: Dir) -> HexPoint:
    """Return the adjacent cell in the given direction."""
    return point.neighbor(direction)


def hex_distance(a: HexPoint, b: HexPoint) -> int:
    """Compute the hex grid distance between two coordinates."""
    return a.distance_to(b)


def wrapped_distance(a: HexPoint, b: HexPoint, width: int, height: int) -> int:
    """Hex distance on a board whose edges wrap around (a torus).

    The shortest route may cross either edge, so the minimum is taken over
    the neighbouring images of ``b``.
    """
    best = a.distance_to(b)
    for dh in (-width, 0, width):
        for dv in (-height, 0, height):
            if dh == 0 and dv == 0:
                continue
            best = min(best, a.distance_to(HexPoint(b.h + dh, b.v + dv)))
    return best


def turn_type(prev_dir: Dir, next_dir: Dir) -> TurnType:
    """Classify the turn taken when going ``prev_dir`` then ``next_dir``.

    Counter-clockwise turns are left turns. A full reversal is sharp and
    has no handedness.
    """
    return _TURNS[prev_dir.ccw_steps_to(next_dir)]
