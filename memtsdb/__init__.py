"""
memtsdb: an embeddable in-memory time series store.

Callers append timestamped points to named series, then query them:
points are filtered by `where` clauses, split into bins by a grouper and
summarized by per-bin aggregates. Series drop expired points through a
retention policy. Nothing is persisted.
"""

from .store import Store
from .series import Series
from .point import Point, now_ms
from .bins import Bin
from .interfaces import Aggregate, Grouper
from .aggregates import Mapper, Reducer, Average, Counter, Derivative
from .groupers import AnyGrouper, IntervalGrouper
from .retention import RetentionManager
from .predicates import build_predicate
from .factories import map, reduce, mean, max, min, sum, last, count, derivative, interval
from .exceptions import (
    MemTSDBError,
    QueryError,
    UnknownComparatorError,
    MalformedPredicateError,
    DestroyedError,
    SeriesDestroyedError,
    StoreDestroyedError,
)

__all__ = [
    'Store',
    'Series',
    'Point',
    'now_ms',
    'Bin',
    'Aggregate',
    'Grouper',
    'Mapper',
    'Reducer',
    'Average',
    'Counter',
    'Derivative',
    'AnyGrouper',
    'IntervalGrouper',
    'RetentionManager',
    'build_predicate',
    'map',
    'reduce',
    'mean',
    'max',
    'min',
    'sum',
    'last',
    'count',
    'derivative',
    'interval',
    'MemTSDBError',
    'QueryError',
    'UnknownComparatorError',
    'MalformedPredicateError',
    'DestroyedError',
    'SeriesDestroyedError',
    'StoreDestroyedError',
]
