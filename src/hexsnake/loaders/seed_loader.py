"""Seed loader - parses initial snake definitions into Seed models.

Format (one entry per snake under the ``snakes`` key)::

    - pos: [2, 3]            # or "2,3"
      dir: E                 # E, NE, NW, W, SW, SE
      length: 3
      type: simulated        # player | simulated | competitor | killer
      controller: autopilot  # autopilot | programmed | direct | killer
      pathfinder: {fallback: [shortest_weighted, space_filling]}
      moves: [turn NE, wait 2, turn NW]   # programmed only
      life: 200              # optional
"""

from __future__ import annotations

from typing import Any

from hexsnake.engine.controllers import (
    AutopilotTemplate,
    ControllerTemplate,
    DirectTemplate,
    KillerTemplate,
    ProgrammedTemplate,
    Turn,
    Wait,
)
from hexsnake.engine.pathfinding import Fallback, ShortestWeighted, SpaceFilling, pathfinder_from_config
from hexsnake.models.hex import Dir, HexPoint
from hexsnake.models.snake import Seed, SnakeType


def parse_point(raw: Any) -> HexPoint:
    """Parse ``[h, v]``, ``{"h": h, "v": v}`` or ``"h,v"`` into a HexPoint."""
    if isinstance(raw, str):
        h, v = raw.split(",")
        return HexPoint(int(h), int(v))
    if isinstance(raw, dict):
        return HexPoint(int(raw["h"]), int(raw["v"]))
    h, v = raw
    return HexPoint(int(h), int(v))


def parse_move(raw: str) -> Turn | Wait:
    """Parse a programmed move such as ``"turn NE"`` or ``"wait 3"``."""
    action, _, arg = raw.strip().partition(" ")
    action = action.lower()
    if action == "turn":
        return Turn(Dir.parse(arg))
    if action == "wait":
        ticks = int(arg)
        if ticks < 1:
            raise ValueError(f"wait must last at least one tick, got {raw!r}")
        return Wait(ticks)
    raise ValueError(f"unknown programmed move {raw!r}")


def parse_controller(raw: dict[str, Any]) -> ControllerTemplate:
    kind = str(raw.get("controller", "autopilot")).lower()
    if kind == "autopilot":
        pf_raw = raw.get("pathfinder")
        pathfinder = (
            pathfinder_from_config(pf_raw)
            if pf_raw is not None
            else Fallback(primary=ShortestWeighted(), backup=SpaceFilling())
        )
        return AutopilotTemplate(pathfinder)
    if kind == "programmed":
        moves = tuple(parse_move(m) for m in raw.get("moves", []))
        if not moves:
            raise ValueError("programmed controller needs at least one move")
        return ProgrammedTemplate(moves)
    if kind == "direct":
        return DirectTemplate()
    if kind == "killer":
        return KillerTemplate()
    raise ValueError(f"unknown controller {kind!r}")


def parse_seed(raw: dict[str, Any]) -> Seed:
    try:
        snake_type = SnakeType(str(raw.get("type", "simulated")).lower())
    except ValueError:
        raise ValueError(f"unknown snake type {raw.get('type')!r}") from None
    life = raw.get("life")
    return Seed(
        pos=parse_point(raw["pos"]),
        dir=Dir.parse(str(raw.get("dir", "E"))),
        length=int(raw.get("length", 3)),
        snake_type=snake_type,
        controller=parse_controller(raw),
        life=int(life) if life is not None else None,
    )


def parse_seeds(raw: list[dict[str, Any]]) -> list[Seed]:
    return [parse_seed(entry) for entry in raw]
