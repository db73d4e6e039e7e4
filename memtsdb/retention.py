"""
Manages retention eviction across the series of a store.
"""
import asyncio
from typing import Callable, Dict, Optional

from .logger import get_logger
from .series import Series


class RetentionManager:
    """
    Runs retention eviction over every series on demand, or on a fixed
    cadence as a cooperative asyncio task. Eviction is idempotent, so a
    skipped or repeated pass loses nothing.
    """

    def __init__(self, series_source: Callable[[], Dict[str, Series]], interval_s: float = 1.0):
        """
        Args:
            series_source: returns the live name -> Series mapping to evict from
            interval_s: seconds between passes of the background loop
        """
        if interval_s <= 0:
            raise ValueError(f"eviction interval must be positive, got {interval_s}")
        self.series_source = series_source
        self.interval_s = interval_s
        self.passes = 0
        self._stopped = False
        self.logger = get_logger("RetentionManager")

    def evict_all(self, now: Optional[int] = None) -> Dict[str, int]:
        """Runs one eviction pass. Returns series name -> points dropped."""
        evicted = {}
        for name, series in list(self.series_source().items()):
            if series.destroyed:
                continue
            evicted[name] = series.evict(now)

        self.passes += 1
        total = sum(evicted.values())
        if total:
            self.logger.info(f"Retention pass evicted {total:,} points across {len(evicted)} series")
        return evicted

    def stop(self):
        """Asks a running loop to exit after its current sleep."""
        self._stopped = True

    @property
    def stopped(self) -> bool:
        return self._stopped

    async def run(self, interval_s: Optional[float] = None):
        """
        Evicts on a fixed cadence until stopped or cancelled.
        """
        interval = interval_s or self.interval_s
        self.logger.info(f"Retention loop started, interval {interval}s")
        try:
            while not self._stopped:
                self.evict_all()
                await asyncio.sleep(interval)
        finally:
            self.logger.info(f"Retention loop finished after {self.passes} passes")
