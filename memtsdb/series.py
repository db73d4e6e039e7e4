"""
A Series is an ordered, in-memory sequence of points for one logical
stream. It owns retention eviction and is the entry point for queries.
"""

import threading
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Union

import pyarrow as pa

from .exceptions import QueryError, SeriesDestroyedError
from .groupers import AnyGrouper
from .interfaces import Grouper, Metrics
from .logger import get_logger
from .point import Point, TIME_FIELD, now_ms
from .predicates import build_predicate


def _to_millis(value: Any) -> int:
    """Converts an Arrow time cell (datetime or number) to milliseconds."""
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return int(value.timestamp() * 1000)
    return int(value)


class Series:
    """
    Points are kept in insertion order, which is usually but not
    necessarily chronological: callers may insert with an explicit past
    timestamp.
    """

    def __init__(self, name: str = "", retention_ms: int = 0,
                 clock: Callable[[], int] = now_ms, time_column: str = TIME_FIELD):
        """
        Args:
            name: series name, used for logging and stats
            retention_ms: how long points are kept; 0 keeps everything
            clock: source of the current instant in milliseconds
            time_column: column holding the timestamp in ingested Arrow data
        """
        self.name = name
        self.retention_ms = retention_ms
        self.time_column = time_column
        self._clock = clock
        self._points: Optional[List[Point]] = []
        self._lock = threading.RLock()
        self._destroyed = False
        self.logger = get_logger("Series")

    def _check_alive(self):
        if self._destroyed:
            raise SeriesDestroyedError(f"Series '{self.name}' has been destroyed")

    @property
    def destroyed(self) -> bool:
        return self._destroyed

    def set_retention(self, ttl: int):
        """
        Sets how long data will be kept in this series.

        Args:
            ttl: duration in milliseconds, 0 keeps all data
        """
        if ttl < 0:
            raise ValueError(f"retention must be >= 0 milliseconds, got {ttl}")
        with self._lock:
            self._check_alive()
            self.retention_ms = ttl
        self.logger.info(f"Series '{self.name}' retention set to {ttl}ms")

    def insert(self, data: Union[Dict[str, Any], Point], time: Optional[int] = None) -> "Series":
        """
        Inserts new data into the series at the given time, defaulting to
        the current time. A Point already carries its time, so passing one
        together with ``time`` raises ValueError.
        """
        if isinstance(data, Point):
            if time is not None:
                raise ValueError("a Point carries its own time, do not pass time with it")
            point = data
        else:
            point = Point(data, self._clock() if time is None else time)

        with self._lock:
            self._check_alive()
            self._points.append(point)
        return self

    def ingest(self, batch: Union[pa.RecordBatch, pa.Table]) -> int:
        """
        Inserts every row of an Arrow batch or table. Each row's time comes
        from the configured time column; rows without one use the current
        time. Returns the number of rows inserted.
        """
        self._check_alive()
        rows = batch.to_pylist()
        points = []
        for row in rows:
            stamp = row.pop(self.time_column, None)
            time = self._clock() if stamp is None else _to_millis(stamp)
            # Null cells mean the field is absent from that row
            fields = {k: v for k, v in row.items() if v is not None}
            points.append(Point(fields, time))

        with self._lock:
            self._check_alive()
            self._points.extend(points)

        self.logger.debug(f"Ingested {len(points):,} rows into series '{self.name}'")
        return len(points)

    def points(self) -> List[Point]:
        """Snapshot of the retained points in insertion order."""
        with self._lock:
            self._check_alive()
            return list(self._points)

    def __len__(self) -> int:
        with self._lock:
            self._check_alive()
            return len(self._points)

    def evict(self, now: Optional[int] = None) -> int:
        """
        Drops the run of points at the head of the series that are older than
        the retention window. Returns the number of points dropped.

        Only a contiguous prefix is removed: a point inserted out of order
        with an old timestamp stays until every point before it has expired.
        """
        with self._lock:
            self._check_alive()
            if self.retention_ms == 0:
                return 0

            if now is None:
                now = self._clock()
            threshold = now - self.retention_ms

            i = 0
            points = self._points
            while i < len(points) and points[i].time < threshold:
                i += 1

            if i > 0:
                self._points = points[i:]

        if i > 0:
            self.logger.debug(f"Evicted {i:,} points older than {threshold} from series '{self.name}'")
        return i

    def remove(self, where: Optional[Dict[str, Any]] = None) -> int:
        """
        Drops all data, or only the points matching ``where``. Returns the
        number of points removed.
        """
        with self._lock:
            self._check_alive()
            before = len(self._points)
            if where is None:
                self._points = []
            else:
                matches = build_predicate(where)
                self._points = [pt for pt in self._points if not matches(pt)]
            removed = before - len(self._points)

        self.logger.info(f"Removed {removed:,} points from series '{self.name}'")
        return removed

    def query(self, options: Optional[Dict[str, Any]] = None, *,
              metrics: Optional[Metrics] = None,
              where: Optional[Dict[str, Any]] = None,
              group: Optional[Grouper] = None) -> List[Dict[str, Any]]:
        """
        Runs a query against the series.

        Example::

            db.series('bandwidth').query(
                metrics={'mean': mean('bits')},
                where={'time': {'is': '>', 'than': now_ms() - 5 * 60 * 1000}},
                group=interval(30 * 1000, True),
            )

            # returns
            [{'group': {'start': 1459513952592, 'width': 30000},
              'results': {'mean': 3511}},
             ...]

        The parameters may also be passed as a single mapping with
        ``metrics``, ``where`` and ``group`` keys.
        """
        if options is not None:
            metrics = options.get("metrics", metrics)
            where = options.get("where", where)
            group = options.get("group", group)

        if metrics is None:
            raise QueryError("query() requires metrics, a mapping of column to aggregate factory")

        where = where or {}
        group = group or AnyGrouper()

        # Compile before touching data so a bad spec fails with no partial work
        matches = build_predicate(where)
        data = [pt for pt in self.points() if matches(pt)]

        bins = group.where(where).binify(data, metrics)
        self.logger.debug(
            f"Query on series '{self.name}': {len(data):,} points matched, {len(bins)} bins"
        )
        return [b.serialize() for b in bins]

    def to_arrow(self) -> pa.Table:
        """
        Exports the retained points as an Arrow table. Columns are the union
        of every point's fields in first-seen order; missing fields are null.
        """
        points = self.points()
        columns = {}
        for pt in points:
            for key in pt.fields():
                columns.setdefault(key, None)
        return pa.table({key: [pt.get(key) for pt in points] for key in columns})

    def get_stats(self) -> dict:
        """Get series statistics."""
        points = self.points()
        times = [pt.time for pt in points]
        return {
            "name": self.name,
            "total_records": len(points),
            "retention_ms": self.retention_ms,
            "oldest_time": min(times) if times else None,
            "newest_time": max(times) if times else None,
        }

    def destroy(self):
        """
        Frees the points held by the series. Subsequent use of the series
        raises SeriesDestroyedError.
        """
        with self._lock:
            if self._destroyed:
                return
            self._points = None
            self.retention_ms = 0
            self._destroyed = True
        self.logger.info(f"Series '{self.name}' destroyed")

    def __repr__(self) -> str:
        state = "destroyed" if self._destroyed else f"{len(self._points)} points"
        return f"Series(name={self.name!r}, {state}, retention_ms={self.retention_ms})"
