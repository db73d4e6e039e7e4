"""
Exception hierarchy for memtsdb.

Configuration errors (bad `where` specs) and use-after-teardown errors
fail fast. Degenerate data (empty series, nothing matched) is never an
error and has no exception here.
"""


class MemTSDBError(Exception):
    """Base error for all memtsdb exceptions."""


# ---- Query configuration errors (also behave like ValueError) ----
class QueryError(MemTSDBError, ValueError):
    """Raised when a query is built with invalid parameters."""


class UnknownComparatorError(QueryError):
    """Raised when a where clause uses an operator other than >, < or =."""

    def __init__(self, operator):
        self.operator = operator
        super().__init__(f"Unknown comparator '{operator}'")


class MalformedPredicateError(QueryError):
    """Raised when a where spec or one of its clauses has the wrong shape."""


# ---- Teardown errors (also behave like RuntimeError) ----
class DestroyedError(MemTSDBError, RuntimeError):
    """Raised when an operation targets a destroyed object."""


class SeriesDestroyedError(DestroyedError):
    """Raised when a destroyed Series is used."""


class StoreDestroyedError(DestroyedError):
    """Raised when a destroyed Store is used."""
