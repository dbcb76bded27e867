"""
Event channel between the engine and whatever renders it.

The engine never prints; it emits ``GameEvent`` objects to subscribed
listeners in the order things happen. Listeners are called synchronously and
their return values are ignored.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List


class EventKind(Enum):
    ROUND_STARTED = "round_started"
    OFFER_DEALT = "offer_dealt"
    CARD_PICKED = "card_picked"
    ROUND_ENDED = "round_ended"
    TROPHY_AWARDED = "trophy_awarded"
    GAME_ENDED = "game_ended"


@dataclass(frozen=True)
class GameEvent:
    kind: EventKind
    round_number: int
    payload: Dict[str, Any] = field(default_factory=dict)


EventListener = Callable[[GameEvent], None]


class EventBus:
    """Ordered list of listeners."""

    def __init__(self) -> None:
        self._listeners: List[EventListener] = []

    def subscribe(self, listener: EventListener) -> None:
        self._listeners.append(listener)

    def unsubscribe(self, listener: EventListener) -> None:
        self._listeners.remove(listener)

    def emit(self, event: GameEvent) -> None:
        for listener in list(self._listeners):
            listener(event)


__all__ = ["EventKind", "GameEvent", "EventListener", "EventBus"]
