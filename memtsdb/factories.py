"""
Factory functions used to build query parameters.

Aggregate factories return zero-argument constructors, so each bin of
each query gets fresh state. None of these functions have side effects.
"""

import builtins
from typing import Any, Callable, Optional, Union

from .aggregates import Average, Counter, Derivative, Mapper, Reducer
from .config import get_config
from .groupers import IntervalGrouper
from .interfaces import AggregateFactory
from .point import Point, now_ms


def map(mapper: Union[str, Callable[[Point], Any]]) -> AggregateFactory:
    """
    Creates an analysis which runs a mapping function on points, returning
    the mapping results. If ``mapper`` is a string, the named field is
    extracted from each point instead.
    """
    if callable(mapper):
        fn = mapper
    elif isinstance(mapper, str):
        def fn(pt: Point) -> Any:
            return pt.get(mapper)
    else:
        raise TypeError(f"map() takes a field name or a callable, got {mapper!r}")

    return lambda: Mapper(fn)


def reduce(fn: Callable[[Any, Point], Any], initial: Any) -> AggregateFactory:
    """Creates an analysis folding points into one value, starting at ``initial``."""
    if not callable(fn):
        raise TypeError(f"reduce() takes a callable, got {fn!r}")
    return lambda: Reducer(fn, initial)


def mean(column: str) -> AggregateFactory:
    """Arithmetic mean of ``column``, 0 when no point has it."""
    return lambda: Average(column)


def max(column: str) -> AggregateFactory:
    """
    Largest value of ``column``. The accumulator starts at 0, so a column
    holding only negative values reports 0.
    """
    def combine(current, pt: Point):
        if not pt.has(column):
            return current
        return builtins.max(pt.get(column), current)

    return reduce(combine, 0)


def min(column: str) -> AggregateFactory:
    """
    Smallest value of ``column``. The accumulator starts at 0, so a column
    holding only positive values reports 0.
    """
    def combine(current, pt: Point):
        if not pt.has(column):
            return current
        return builtins.min(pt.get(column), current)

    return reduce(combine, 0)


def sum(column: str) -> AggregateFactory:
    """Sum of ``column`` over the points that have it."""
    def combine(current, pt: Point):
        if not pt.has(column):
            return current
        return current + pt.get(column)

    return reduce(combine, 0)


def last(column: str) -> AggregateFactory:
    """Value of ``column`` on the most recently pushed point."""
    return reduce(lambda _, pt: pt.get(column), None)


def count() -> AggregateFactory:
    """Number of points in each bin."""
    return Counter


def derivative(column: str, interval: int) -> AggregateFactory:
    """
    Creates an analysis which returns points plotting the change in
    ``column`` within each ``interval`` milliseconds.
    """
    if interval <= 0:
        raise ValueError(f"interval must be a positive number of milliseconds, got {interval}")
    return lambda: Derivative(column, interval)


def interval(interval: int, fill: Optional[bool] = None, now: Optional[int] = None) -> IntervalGrouper:
    """
    Creates a grouper bucketing points into ``interval`` millisecond windows
    counting back from ``now``, which defaults to the moment the query is
    built. ``fill`` defaults to the configured ``query.default_fill``.
    """
    if fill is None:
        fill = get_config().query.default_fill
    if now is None:
        now = now_ms()
    return IntervalGrouper(interval, fill, now)
