"""
The Store coordinates the named series of an in-memory time series
database.

- The store has many Series, identified by name.
- You insert points into each Series.
- Later you query a Series. Data always goes through a grouper (even if it
  puts every point into one bin) and through the aggregates attached to
  the query:
    - the grouper creates "bins" and pushes each matching point into one,
    - each bin holds fresh aggregates, like "mean", analyzing its points,
    - at the end the bins are serialized and returned to the caller.
"""

import asyncio
import threading
from typing import Callable, Dict, List, Optional

from . import factories
from .config import get_config, MemTSDBConfig
from .exceptions import StoreDestroyedError
from .logger import get_logger
from .point import now_ms
from .retention import RetentionManager
from .series import Series


class Store:
    """In-memory store mapping series names to Series."""

    def __init__(self, config: MemTSDBConfig = None, config_path: str = None,
                 default_retention: Optional[int] = None, clock: Callable[[], int] = now_ms):
        """
        Initialize the store with configuration support.

        Args:
            config: Pre-loaded config object (takes precedence over config_path)
            config_path: Path to custom config file
            default_retention: Override default retention in ms (uses config if None)
            clock: source of the current instant in milliseconds
        """
        if config is not None:
            self.config = config
        else:
            self.config = get_config(config_path)

        self._series: Dict[str, Series] = {}
        self._lock = threading.Lock()
        self._default_retention = (
            default_retention if default_retention is not None
            else self.config.retention.default_retention_ms
        )
        self._clock = clock
        self._destroyed = False
        self.logger = get_logger("Store")
        self.retention = RetentionManager(lambda: self._series, self.config.retention.eviction_interval_s)

        self.logger.info(f"Store initialized, default retention {self._default_retention}ms")

    def _check_alive(self):
        if self._destroyed:
            raise StoreDestroyedError("Store has been destroyed")

    def default_retention(self, ttl: int):
        """
        Sets the retention, in milliseconds, of series created from now on.
        Existing series keep their retention.
        """
        self._check_alive()
        if ttl < 0:
            raise ValueError(f"retention must be >= 0 milliseconds, got {ttl}")
        self._default_retention = ttl
        self.logger.info(f"Default retention set to {ttl}ms")

    def get_default_retention(self) -> int:
        return self._default_retention

    def series(self, name: str) -> Series:
        """Returns the named Series, creating it if it did not exist."""
        with self._lock:
            self._check_alive()
            existing = self._series.get(name)
            if existing is not None:
                return existing

            created = Series(
                name,
                retention_ms=self._default_retention,
                clock=self._clock,
                time_column=self.config.schema.time_column,
            )
            self._series[name] = created
        self.logger.info(f"Created series '{name}' with retention {self._default_retention}ms")
        return created

    def names(self) -> List[str]:
        self._check_alive()
        return list(self._series)

    def __contains__(self, name: str) -> bool:
        return not self._destroyed and name in self._series

    def drop(self, name: str) -> bool:
        """Destroys and forgets one series. Returns False if it did not exist."""
        with self._lock:
            self._check_alive()
            series = self._series.pop(name, None)
        if series is None:
            return False
        series.destroy()
        return True

    def evict(self, now: Optional[int] = None) -> Dict[str, int]:
        """Runs one retention pass over every series."""
        self._check_alive()
        return self.retention.evict_all(now)

    async def retention_loop(self, interval_s: Optional[float] = None):
        """
        Evicts expired points from every series on a fixed cadence until the
        store is destroyed or the task is cancelled::

            task = asyncio.create_task(db.retention_loop())
        """
        self._check_alive()
        await self.retention.run(interval_s)

    def start_retention(self, interval_s: Optional[float] = None) -> asyncio.Task:
        """Schedules ``retention_loop`` on the running event loop."""
        self._check_alive()
        return asyncio.get_running_loop().create_task(self.retention_loop(interval_s))

    def get_stats(self) -> dict:
        """Get statistics across all series."""
        with self._lock:
            self._check_alive()
            current = dict(self._series)
        series_stats = {name: s.get_stats() for name, s in current.items()}
        return {
            "series_count": len(series_stats),
            "total_records": sum(s["total_records"] for s in series_stats.values()),
            "default_retention_ms": self._default_retention,
            "retention_passes": self.retention.passes,
            "series": series_stats,
        }

    def destroy(self):
        """Tears down the store and every series in it."""
        with self._lock:
            if self._destroyed:
                return
            released = self._series
            self._series = {}
            self._destroyed = True
        for series in released.values():
            series.destroy()
        count = len(released)
        self.retention.stop()
        self.logger.info(f"Store destroyed, {count} series released")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.destroy()

    # Query parameter factories, also available from memtsdb.factories
    map = staticmethod(factories.map)
    reduce = staticmethod(factories.reduce)
    mean = staticmethod(factories.mean)
    max = staticmethod(factories.max)
    min = staticmethod(factories.min)
    sum = staticmethod(factories.sum)
    last = staticmethod(factories.last)
    count = staticmethod(factories.count)
    derivative = staticmethod(factories.derivative)
    interval = staticmethod(factories.interval)
