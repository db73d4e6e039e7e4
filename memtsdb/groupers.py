"""
Groupers split the filtered points of a query into bins.
"""

import math
from numbers import Real
from typing import List, Optional

from .bins import Bin
from .interfaces import Grouper, Metrics
from .logger import get_logger
from .point import Point, TIME_FIELD, now_ms


class AnyGrouper(Grouper):
    """The "base" grouper: puts all the data into a single bin."""

    def binify(self, data: List[Point], metrics: Metrics) -> List[Bin]:
        single = Bin(metrics)
        for point in data:
            single.push(point)
        return [single]


class IntervalGrouper(Grouper):
    """
    Groups data into fixed-width time windows counting back from ``now``.

    Window ``i`` (0 being the most recent) covers
    ``(now - (i + 1) * interval, now - i * interval]`` and is described by
    ``{"start": now - (i + 1) * interval, "width": interval}``. Bins are
    returned most recent first.
    """

    def __init__(self, interval: int, fill: bool = True, now: Optional[int] = None):
        """
        Args:
            interval: the size, in milliseconds, of each group bin
            fill: whether to keep bins that received no data
            now: reference instant, defaults to the time the query runs
        """
        super().__init__()
        if interval <= 0:
            raise ValueError(f"interval must be a positive number of milliseconds, got {interval}")
        self.interval = interval
        self.fill = fill
        self.now = now
        self.logger = get_logger("IntervalGrouper")

    def _time_bound(self) -> Optional[int]:
        # The tightest `time > X` clause is the effective oldest boundary
        bounds = [
            c["than"] for c in self.get_where(TIME_FIELD)
            if c.get("is") == ">" and isinstance(c.get("than"), Real) and not isinstance(c.get("than"), bool)
        ]
        return max(bounds) if bounds else None

    def _bin_count(self, data: List[Point], now: int) -> int:
        interval = self.interval
        bound = self._time_bound()
        if bound is not None:
            # Points strictly after the bound never need an extra window
            return max(0, int(math.ceil((now - bound) / interval)))
        if not data:
            return 0
        earliest = min(point.time for point in data)
        if earliest > now:
            return 0
        return int((now - earliest) // interval) + 1

    def binify(self, data: List[Point], metrics: Metrics) -> List[Bin]:
        now = self.now if self.now is not None else now_ms()
        interval = self.interval
        count = self._bin_count(data, now)

        bins = [
            Bin(metrics, {"start": now - (i + 1) * interval, "width": interval})
            for i in range(count)
        ]

        dropped = 0
        for point in data:
            time = point.time
            if time > now:
                dropped += 1
                continue
            index = int((now - time) // interval)
            if index < count:
                bins[index].push(point)
            else:
                dropped += 1

        if dropped:
            self.logger.debug(f"Dropped {dropped} points outside the {count} windows ending at {now}")

        if not self.fill:
            bins = [b for b in bins if b.size() > 0]

        return bins
