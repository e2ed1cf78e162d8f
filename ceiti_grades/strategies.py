"""Ordered, named extraction strategies.

Each field the parser extracts has a tuple of strategies tried in order. A
strategy is a callable returning a (possibly empty) result; the next one runs
only when the previous one came back empty.
"""
from collections.abc import Callable, Sequence
from dataclasses import dataclass
import logging
from typing import Any, Generic, TypeVar

_LOGGER = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class Strategy(Generic[T]):
    """A named way of extracting one field."""

    name: str
    func: Callable[..., T]

    def __call__(self, *args: Any) -> T:
        return self.func(*args)


@dataclass(frozen=True)
class StrategyResult(Generic[T]):
    """The value found and the strategy that found it (None if all were empty)."""

    value: T | None
    strategy: str | None


def first_match(strategies: Sequence[Strategy[T]], *args: Any) -> StrategyResult[T]:
    """Run strategies in order and return the first non-empty result."""
    for strategy in strategies:
        value = strategy(*args)
        if value:
            _LOGGER.debug("Strategy %s matched", strategy.name)
            return StrategyResult(value, strategy.name)
        _LOGGER.debug("Strategy %s found nothing", strategy.name)
    return StrategyResult(None, None)
