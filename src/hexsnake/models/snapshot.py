"""Snapshot models - read-only view of the world for presentation.

Typed Pydantic models handed to the rendering / UI shell after each tick.
They are copies: mutating a snapshot never touches the simulation.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict


class CellView(BaseModel):
    model_config = ConfigDict(frozen=True)

    h: int
    v: int


class SnakeView(BaseModel):
    model_config = ConfigDict(frozen=True)

    sid: int
    snake_type: str
    dir: str
    cells: list[CellView]
    growth_pending: int = 0
    life: Optional[int] = None
    planned_path: list[CellView] = []


class AppleView(BaseModel):
    model_config = ConfigDict(frozen=True)

    pos: CellView
    kind: str
    food: int = 0


class WorldSnapshot(BaseModel):
    model_config = ConfigDict(frozen=True)

    frame_stamp: int
    board_width: int
    board_height: int
    wraparound: bool
    snakes: list[SnakeView] = []
    apples: list[AppleView] = []
