"""Simulation constants - default tunables.

Every value here can be overridden through ``config/game.yaml``.
"""

# -- Board ---------------------------------------------------------------

BOARD_WIDTH: int = 30
BOARD_HEIGHT: int = 20

TICK_INTERVAL_MS: float = 100.0
"""Interval between ticks when the loop runs in real time."""

# -- Path costs ----------------------------------------------------------

STEP_COST: float = 1.0
SMOOTH_TURN_COST: float = 0.5
SHARP_TURN_COST: float = 1.5
TELEPORT_COST: float = 15.0
INTERCEPTION_COST: float = 4.0
"""Added for cells a competitor is believed to hold on arrival."""

SPACE_FILLING_DEPTH: int = 8

# -- Apples --------------------------------------------------------------

APPLE_COUNT: int = 5
APPLE_FOOD: int = 1

FOOD_WEIGHT: float = 0.96
SPAWN_SNAKE_WEIGHT: float = 0.025
SPAWN_KILLER_WEIGHT: float = 0.015
SPAWN_RAIN_WEIGHT: float = 0.015

RAIN_BURST_SIZE: int = 12
MAX_PLACEMENT_ATTEMPTS: int = 64
SPECIAL_APPLE_COOLDOWN: int = 50
"""Ticks after a special apple during which only food is drawn."""

# -- Spawned snakes ------------------------------------------------------

SPAWN_SNAKE_LENGTH: int = 3
COMPETITOR_LIFE: int = 200
KILLER_LIFE: int = 200
