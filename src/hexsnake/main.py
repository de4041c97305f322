"""Headless simulation entry point.

Loads the configuration, places the initial snakes and runs the game loop
in real time, logging deaths, spawns and rain bursts as they happen.

Usage:
    python -m hexsnake.main
    # or via entry point:
    hexsnake --config config/game.yaml --ticks 500 --seed 7
"""

from __future__ import annotations

import asyncio
import logging
import sys
from collections import Counter
from typing import Optional

from hexsnake.engine.game_loop import GameLoop
from hexsnake.loaders.game_config_loader import DEFAULT_GAME_CONFIG_PATH, load_game_config
from hexsnake.util.events import AppleEaten, EventBus, RainStarted, SnakeDied, SnakeSpawned

log = logging.getLogger(__name__)


def wire_events(bus: EventBus) -> None:
    """Log the simulation events worth a line in the console."""
    bus.on(SnakeDied, lambda e: log.info("[event] snake %d died (%s, length %d)", e.sid, e.reason, e.length))
    bus.on(SnakeSpawned, lambda e: log.info("[event] snake %d spawned at %r", e.sid, e.pos))
    bus.on(RainStarted, lambda e: log.info("[event] rain: %d apples", e.apples))
    bus.on(AppleEaten, lambda e: log.debug("[event] snake %d ate %s at %r", e.sid, e.kind, e.pos))


async def _start(config_path: str, max_ticks: Optional[int], seed: Optional[int]) -> None:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )
    log.info("=== hexsnake starting ===")

    config = load_game_config(config_path)
    if seed is not None:
        config.rng_seed = seed

    bus = EventBus()
    wire_events(bus)
    tally: Counter[str] = Counter()
    bus.on_any(lambda e: tally.update([type(e).__name__]))
    game = GameLoop(config, event_bus=bus)
    try:
        await game.run(max_ticks=max_ticks)
    finally:
        snap = game.snapshot()
        log.info("Final state: frame %d, %d snakes, %d apples",
                 snap.frame_stamp, len(snap.snakes), len(snap.apples))
        log.info("Events: %s", ", ".join(f"{name}={n}" for name, n in sorted(tally.items())) or "none")
        bus.clear()


def _arg_value(flag: str) -> Optional[str]:
    if flag not in sys.argv:
        return None
    idx = sys.argv.index(flag)
    if idx + 1 >= len(sys.argv):
        print(f"Error: {flag} requires an argument", file=sys.stderr)
        sys.exit(1)
    return sys.argv[idx + 1]


def main() -> None:
    """Entry point for the headless runner.

    Supports command-line arguments:
        --config <path>  Game config file (default: config/game.yaml)
        --ticks <n>      Stop after n ticks (default: run until interrupted)
        --seed <n>       Override the RNG seed
    """
    config_path = _arg_value("--config") or DEFAULT_GAME_CONFIG_PATH
    try:
        ticks = _arg_value("--ticks")
        seed = _arg_value("--seed")
        max_ticks = int(ticks) if ticks is not None else None
        rng_seed = int(seed) if seed is not None else None
    except ValueError:
        print("Error: --ticks and --seed take integers", file=sys.stderr)
        sys.exit(1)

    try:
        asyncio.run(_start(config_path, max_ticks, rng_seed))
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    main()
