"""
Query-time interfaces: aggregates consume points, groupers split points
into bins.
"""

from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, List, Optional, TYPE_CHECKING

from .point import Point
from .predicates import clauses_for

if TYPE_CHECKING:
    from .bins import Bin


class Aggregate(ABC):
    """Stateful accumulator fed one point at a time."""

    @abstractmethod
    def push(self, point: Point) -> None:
        """Adds a new point to the aggregate."""
        pass

    @abstractmethod
    def serialize(self) -> Any:
        """Returns the aggregate's result for the query results."""
        pass


# Queries take recipes, not instances: every bin needs its own fresh state.
AggregateFactory = Callable[[], Aggregate]
Metrics = Dict[str, AggregateFactory]


class Grouper(ABC):
    """Base interface for strategies that partition points into bins."""

    def __init__(self):
        self._where: Dict[str, Any] = {}

    def where(self, where: Optional[Dict[str, Any]]) -> "Grouper":
        """Sets the `where` spec the query is being run with."""
        self._where = where or {}
        return self

    def get_where(self, column: str) -> List[Dict[str, Any]]:
        """Clauses of the active `where` spec on ``column``."""
        return clauses_for(self._where, column)

    @abstractmethod
    def binify(self, data: List[Point], metrics: Metrics) -> List["Bin"]:
        """Returns a list of bins with points added to them."""
        pass
