"""
The Bin is used internally by the query system and holds the analysis
for one group of points.
"""

from typing import Any, Dict, Optional

from .interfaces import Aggregate, Metrics
from .point import Point


class Bin:
    """Holds one fresh aggregate per output column for a group of points."""

    def __init__(self, metrics: Metrics, group: Optional[Any] = None):
        """
        Args:
            metrics: output column -> aggregate factory
            group: arbitrary descriptor of why this bin exists, e.g. a time window
        """
        self.group = group
        self.columns = list(metrics.keys())
        self.metrics: Dict[str, Aggregate] = {col: metrics[col]() for col in self.columns}
        self._size = 0

    def size(self) -> int:
        """Number of points pushed into this bin."""
        return self._size

    def __len__(self) -> int:
        return self._size

    def push(self, point: Point) -> "Bin":
        self._size += 1
        for col in self.columns:
            self.metrics[col].push(point)
        return self

    def serialize(self) -> Dict[str, Any]:
        """Serializes the bin to a ``{"group"?, "results"}`` record."""
        out: Dict[str, Any] = {"results": {}}
        if self.group is not None:
            out["group"] = self.group
        for col in self.columns:
            out["results"][col] = self.metrics[col].serialize()
        return out

    def __repr__(self) -> str:
        return f"Bin(group={self.group!r}, size={self._size}, columns={self.columns!r})"
