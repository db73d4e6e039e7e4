"""Shared fixtures for memtsdb tests."""

import pytest

from memtsdb import Store
from memtsdb.config import reset_config
from memtsdb.logger import MemTSDBLogger


NOW = 1000


@pytest.fixture(autouse=True)
def clean_globals(monkeypatch):
    """Each test starts from the bundled config and fresh logging."""
    for var in ("MEMTSDB_DEFAULT_RETENTION_MS", "MEMTSDB_EVICTION_INTERVAL_S", "MEMTSDB_TIME_COLUMN",
                "MEMTSDB_DEFAULT_FILL", "MEMTSDB_LOG_LEVEL", "MEMTSDB_LOG_DIR", "MEMTSDB_LOG_CONSOLE"):
        monkeypatch.delenv(var, raising=False)
    reset_config()
    MemTSDBLogger.reset()
    yield
    reset_config()
    MemTSDBLogger.reset()


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def clock():
    """Settable clock: call it for the current time, assign ``.now`` to move it."""
    class FakeClock:
        def __init__(self):
            self.now = NOW

        def __call__(self):
            return self.now

    return FakeClock()


@pytest.fixture
def store(clock, now):
    """
    Series ``a`` holds my_col1 = 0..4 and my_col2 = 2 * my_col1, series ``b``
    holds my_col1 = i ** 2, both at now - 400 .. now every 100ms.
    """
    db = Store(clock=clock)
    for i in range(5):
        db.series('a').insert({'my_col1': i, 'my_col2': i * 2}, now - (4 - i) * 100)
    for i in range(5):
        db.series('b').insert({'my_col1': i ** 2}, now - (4 - i) * 100)
    yield db
    db.destroy()
