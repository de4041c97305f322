"""Typed event bus - decoupled notification of simulation events.

``GameLoop.advance_tick`` returns the events of a tick and also emits them
here, so sound, UI or statistics hooks can subscribe without the core
knowing about them.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Optional, Type, TypeVar, Union

from hexsnake.models.hex import HexPoint

T = TypeVar("T")


# -- Snake events --------------------------------------------------------

@dataclass(frozen=True)
class SnakeDied:
    """A snake was removed from the board."""
    sid: int
    reason: str
    length: int


@dataclass(frozen=True)
class SnakeSpawned:
    """A snake was put on the board from a seed."""
    sid: int
    pos: HexPoint
    length: int


# -- Apple events --------------------------------------------------------

@dataclass(frozen=True)
class AppleEaten:
    """A snake ate an apple."""
    sid: int
    pos: HexPoint
    kind: str  # "food", "spawn_snake" or "spawn_rain"


@dataclass(frozen=True)
class RainStarted:
    """A rain burst landed on the board."""
    apples: int


TickEvent = Union[SnakeDied, SnakeSpawned, AppleEaten, RainStarted]


# -- Event Bus -----------------------------------------------------------

class EventBus:
    """Synchronous bus for the events of a tick.

    Handlers subscribe to one event class with ``on``, or to every event
    with ``on_any``. Typed handlers run before catch-all handlers, each
    group in subscription order.

    Usage:
        bus = EventBus()
        bus.on(SnakeDied, lambda e: print(e.sid))
        bus.emit_all(loop.advance_tick())
    """

    def __init__(self) -> None:
        self._handlers: dict[type, list[Callable[[Any], None]]] = defaultdict(list)
        self._any: list[Callable[[TickEvent], None]] = []

    def on(self, event_type: Type[T], handler: Callable[[T], None]) -> None:
        self._handlers[event_type].append(handler)

    def on_any(self, handler: Callable[[TickEvent], None]) -> None:
        self._any.append(handler)

    def off(self, event_type: Optional[Type[T]], handler: Callable[[T], None]) -> bool:
        """Unsubscribe; ``event_type`` None targets a catch-all handler.

        Returns whether the handler was subscribed.
        """
        handlers = self._any if event_type is None else self._handlers.get(event_type, [])
        if handler in handlers:
            handlers.remove(handler)
            return True
        return False

    def emit(self, event: TickEvent) -> None:
        # copies, so a handler may unsubscribe while being called
        for handler in list(self._handlers.get(type(event), ())):
            handler(event)
        for handler in list(self._any):
            handler(event)

    def emit_all(self, events: Iterable[TickEvent]) -> int:
        """Emit events in order; returns how many were emitted."""
        count = 0
        for event in events:
            self.emit(event)
            count += 1
        return count

    def clear(self) -> None:
        self._handlers.clear()
        self._any.clear()
