"""Apple model - something on the board a snake can eat.

Apple types:
- Food: grows the eater by ``amount`` cells
- SpawnSnake: puts a new snake on the board from the carried seed
- SpawnRain: triggers a burst of food apples
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from hexsnake.models.hex import HexPoint
from hexsnake.models.snake import Seed


@dataclass(frozen=True)
class Food:
    amount: int = 1


@dataclass(frozen=True)
class SpawnSnake:
    seed: Seed


@dataclass(frozen=True)
class SpawnRain:
    """Marker; ``amount`` overrides the configured burst size when set."""

    amount: int | None = None


AppleType = Union[Food, SpawnSnake, SpawnRain]


@dataclass
class Apple:
    """An apple on the board.

    Attributes:
        pos: Cell the apple occupies.
        apple_type: What eating it does.
        from_rain: Placed by a rain burst; removed when the next burst lands.
    """

    pos: HexPoint
    apple_type: AppleType
    from_rain: bool = False

    @property
    def kind(self) -> str:
        if isinstance(self.apple_type, Food):
            return "food"
        if isinstance(self.apple_type, SpawnSnake):
            return "spawn_snake"
        return "spawn_rain"
