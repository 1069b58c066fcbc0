"""Typed, immutable fight events and the channel that delivers them.

Observers (renderers, loggers, the text front end) subscribe to an
``EventChannel``.  Every payload is deep-frozen on construction, so a
handler can never reach back into live engine state.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any


class EventType(str, Enum):
    FIGHT_START = "FIGHT_START"
    ROUND_START = "ROUND_START"
    ROUND_END = "ROUND_END"
    TICK = "TICK"
    PUNCH_LANDED = "PUNCH_LANDED"
    KNOCKDOWN = "KNOCKDOWN"
    FLASH_KNOCKDOWN = "FLASH_KNOCKDOWN"
    COUNT = "COUNT"
    RECOVERY = "RECOVERY"
    HURT = "HURT"
    BUZZED = "BUZZED"
    CUT = "CUT"
    FOUL = "FOUL"
    POINT_DEDUCTION = "POINT_DEDUCTION"
    REFEREE_COMMAND = "REFEREE_COMMAND"
    EFFECT_APPLIED = "EFFECT_APPLIED"
    FIGHT_ENDING = "FIGHT_ENDING"
    FIGHT_END = "FIGHT_END"


def freeze(value: Any) -> Any:
    """Recursively convert mappings and sequences into read-only equivalents."""
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, Mapping):
        return MappingProxyType({str(key): freeze(item) for key, item in value.items()})
    if isinstance(value, (list, tuple, set, frozenset)):
        return tuple(freeze(item) for item in value)
    return value


def thaw(value: Any) -> Any:
    """Plain ``dict``/``list`` copy of a frozen payload (for JSON output)."""
    if isinstance(value, Mapping):
        return {key: thaw(item) for key, item in value.items()}
    if isinstance(value, tuple):
        return [thaw(item) for item in value]
    return value


@dataclass(frozen=True)
class FightEvent:
    type: EventType
    round: int
    time: float
    data: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "data", freeze(self.data))

    def __getitem__(self, key: str) -> Any:
        return self.data[key]

    def get(self, key: str, default: Any = None) -> Any:
        return self.data.get(key, default)

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type.value, "round": self.round, "time": self.time, **thaw(self.data)}


EventHandler = Callable[[FightEvent], None]


class EventChannel:
    """One-way fan-out of engine events to subscribed observers."""

    def __init__(self) -> None:
        self._subscribers: list[tuple[EventHandler, frozenset[EventType] | None]] = []

    def subscribe(
        self,
        handler: EventHandler,
        types: Iterable[EventType] | None = None,
    ) -> Callable[[], None]:
        """Register *handler*; returns a callable that unsubscribes it."""
        entry = (handler, frozenset(types) if types is not None else None)
        self._subscribers.append(entry)

        def _unsubscribe() -> None:
            if entry in self._subscribers:
                self._subscribers.remove(entry)

        return _unsubscribe

    def publish(self, event: FightEvent) -> None:
        for handler, types in list(self._subscribers):
            if types is None or event.type in types:
                handler(event)


class EventRecorder:
    """Subscriber that keeps every event it sees, in order."""

    def __init__(self, channel: EventChannel | None = None, types: Iterable[EventType] | None = None) -> None:
        self.events: list[FightEvent] = []
        if channel is not None:
            channel.subscribe(self, types)

    def __call__(self, event: FightEvent) -> None:
        self.events.append(event)

    def of_type(self, *types: EventType) -> list[FightEvent]:
        return [event for event in self.events if event.type in types]

    def types(self) -> list[EventType]:
        return [event.type for event in self.events]
