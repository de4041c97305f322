"""Schedule loader - parses the ``schedule`` list for the scheduled spawn policy.

Format (entries run in order and the list repeats)::

    schedule:
      - spawn: {pos: [3, 3]}                           # one plain food apple
      - spawn: {pos: [4, 3], type: food, amount: 2}
      - wait: 5                                        # hold for 5 ticks
      - spawn: {pos: [8, 2], type: spawn_rain, amount: 6}
      - spawn:
          pos: [6, 6]
          type: spawn_snake
          seed: {pos: [1, 1], dir: E, type: killer, controller: killer}
"""

from __future__ import annotations

from typing import Any

from hexsnake.engine.spawn_policy import ScheduledSpawn, ScheduledWait, SpawnEvent
from hexsnake.loaders.seed_loader import parse_point, parse_seed
from hexsnake.models.apple import AppleType, Food, SpawnRain, SpawnSnake


def parse_apple_type(raw: dict[str, Any]) -> AppleType:
    kind = str(raw.get("type", "food")).lower()
    if kind == "food":
        return Food(int(raw.get("amount", 1)))
    if kind == "spawn_rain":
        amount = raw.get("amount")
        return SpawnRain(int(amount) if amount is not None else None)
    if kind == "spawn_snake":
        if "seed" not in raw:
            raise ValueError("spawn_snake apple needs a seed")
        return SpawnSnake(parse_seed(raw["seed"]))
    raise ValueError(f"unknown apple type {kind!r}")


def parse_schedule_entry(raw: dict[str, Any]) -> SpawnEvent:
    if not isinstance(raw, dict) or len(raw) != 1:
        raise ValueError(f"schedule entry must be a single spawn or wait, got {raw!r}")
    (key, arg), = raw.items()
    key = str(key).lower()
    if key == "wait":
        ticks = int(arg)
        if ticks < 1:
            raise ValueError(f"wait must last at least one tick, got {ticks}")
        return ScheduledWait(ticks)
    if key == "spawn":
        return ScheduledSpawn(parse_point(arg["pos"]), parse_apple_type(arg))
    raise ValueError(f"unknown schedule entry {key!r}")


def parse_schedule(raw: list[dict[str, Any]]) -> list[SpawnEvent]:
    return [parse_schedule_entry(entry) for entry in raw]
