"""Typed publish/subscribe for cache and refresh notifications."""
from collections.abc import Callable
from dataclasses import dataclass
import logging
from typing import Any, TypeVar

_LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class DataUpdated:
    """Cached data for an identity was written or cleared."""

    identity: str


@dataclass(frozen=True)
class RefreshStarted:
    """A silent refresh was requested; carries the timestamp of what is cached."""

    identity: str
    cached_timestamp: int | None


@dataclass(frozen=True)
class RefreshEnded:
    """A background refresh finished, one way or another."""

    identity: str
    updated: bool
    duration_ms: int
    aborted: bool = False
    error: bool = False


Event = DataUpdated | RefreshStarted | RefreshEnded
E = TypeVar("E", DataUpdated, RefreshStarted, RefreshEnded)


class EventBus:
    """Dispatches events to the listeners subscribed to their type."""

    def __init__(self) -> None:
        self._listeners: dict[type, list[Callable[[Any], None]]] = {}

    def subscribe(self, event_type: type[E], listener: Callable[[E], None]) -> Callable[[], None]:
        """Register a listener and return a callable that removes it."""
        listeners = self._listeners.setdefault(event_type, [])
        listeners.append(listener)

        def unsubscribe() -> None:
            if listener in listeners:
                listeners.remove(listener)

        return unsubscribe

    def publish(self, event: Event) -> None:
        """Call every listener of the event's type, in subscription order."""
        for listener in list(self._listeners.get(type(event), [])):
            try:
                listener(event)
            except Exception:
                _LOGGER.exception("Error in listener for %s", type(event).__name__)

    def listener_count(self, event_type: type) -> int:
        """Return how many listeners are subscribed to event_type."""
        return len(self._listeners.get(event_type, []))
