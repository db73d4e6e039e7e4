"""
Aggregates analyze the points routed into a bin.

Each one is fed points in routing order through ``push`` and produces its
result through ``serialize``. Instances are never shared between bins or
queries.
"""

from typing import Any, Callable, List, Optional

from .interfaces import Aggregate
from .point import Point


class Mapper(Aggregate):
    """Returns the results of a mapping function on the points, in push order."""

    def __init__(self, fn: Callable[[Point], Any]):
        self.fn = fn
        self.data: List[Any] = []

    def push(self, point: Point) -> None:
        self.data.append(self.fn(point))

    def serialize(self) -> List[Any]:
        return self.data


class Reducer(Aggregate):
    """Folds the points into a single accumulator."""

    def __init__(self, fn: Callable[[Any, Point], Any], initial: Any):
        self.fn = fn
        self.result = initial

    def push(self, point: Point) -> None:
        self.result = self.fn(self.result, point)

    def serialize(self) -> Any:
        return self.result


class Average(Aggregate):
    """Arithmetic mean of a column over the points that have it."""

    def __init__(self, column: str):
        self.column = column
        self.sum = 0
        self.count = 0

    def push(self, point: Point) -> None:
        if point.has(self.column):
            self.sum += point.get(self.column)
            self.count += 1

    def serialize(self):
        # No qualifying points is a valid, empty result
        return 0 if self.count == 0 else self.sum / self.count


class Counter(Aggregate):
    """Number of points pushed."""

    def __init__(self):
        self.count = 0

    def push(self, point: Point) -> None:
        self.count += 1

    def serialize(self) -> int:
        return self.count


class Derivative(Aggregate):
    """
    Plots changes in a column's value over fixed-width sub-intervals.

    Sub-intervals are anchored at the first pushed point's time. Each
    emitted point carries the net change accumulated over its interval and
    is stamped with the interval's closing time; the trailing (possibly
    partial) interval closes at the last pushed point's time. Gaps spanning
    several intervals emit zero-change points so the time axis stays
    contiguous. Points without the column are ignored.
    """

    def __init__(self, column: str, interval: int):
        self.column = column
        self.interval = interval
        self.points: List[Point] = []
        self._last_change = 0
        self._last_value = None
        self._last_time: Optional[int] = None
        self._leading_time: Optional[int] = None
        self._finalized = False

    def push(self, point: Point) -> None:
        if self._finalized or not point.has(self.column):
            return

        value = point.get(self.column)
        time = point.time
        if self._last_time is None:
            self._last_time = time
            self._last_value = value

        while self._last_time + self.interval < time:
            self._emit(self._last_time + self.interval)

        self._last_change += value - self._last_value
        self._last_value = value
        self._leading_time = time

    def _emit(self, time: int):
        self.points.append(Point({self.column: self._last_change}, time))
        self._last_change = 0
        self._last_time = time

    def serialize(self) -> List[Point]:
        if not self._finalized:
            if self._leading_time is not None:
                self._emit(self._leading_time)
            self._finalized = True
        return self.points
