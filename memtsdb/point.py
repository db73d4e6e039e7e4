"""
Points are the minimal unit of data stored in a Series.
"""

import time as _time
from typing import Any, Dict, Optional


TIME_FIELD = "time"


def now_ms() -> int:
    """Current wall-clock instant in integer milliseconds."""
    return int(_time.time() * 1000)


class Point:
    """
    A Point stores one or more fields that can be analyzed, as well as the
    time it was inserted at. The time is also readable as the ``time``
    field so predicates and projections can address it like any column.
    """

    __slots__ = ("_data",)

    def __init__(self, data: Optional[Dict[str, Any]] = None, time: Optional[int] = None):
        """
        Args:
            data: field-value mapping; copied, the caller's dict is not kept
            time: insertion time in milliseconds, defaults to now
        """
        fields = dict(data) if data else {}
        if time is None:
            time = now_ms()
        fields[TIME_FIELD] = time
        self._data = fields

    def get(self, prop: str, default: Any = None) -> Any:
        """Gets a field from the point, returning ``default`` if it doesn't exist."""
        return self._data.get(prop, default)

    def has(self, prop: str) -> bool:
        return prop in self._data

    @property
    def time(self) -> int:
        """Time this point was inserted at, in milliseconds."""
        return self._data[TIME_FIELD]

    def fields(self):
        """Names of the fields on this point, ``time`` included."""
        return self._data.keys()

    def to_dict(self) -> Dict[str, Any]:
        """Copy of the point as a plain dict, ``time`` included."""
        return dict(self._data)

    def __eq__(self, other):
        if not isinstance(other, Point):
            return NotImplemented
        return self._data == other._data

    def __hash__(self):
        return hash((self.time, tuple(sorted(self._data))))

    def __repr__(self) -> str:
        return f"Point({self._data!r})"
