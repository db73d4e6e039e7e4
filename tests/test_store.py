"""Unit tests for the Store."""

import pytest

from memtsdb import Store, factories
from memtsdb.config import MemTSDBConfig
from memtsdb.exceptions import SeriesDestroyedError, StoreDestroyedError


class TestStore:

    def setup_method(self):
        self.db = Store(clock=lambda: 1000)

    def teardown_method(self):
        self.db.destroy()

    def test_series_is_created_lazily_once(self):
        first = self.db.series('cpu')
        assert self.db.series('cpu') is first
        assert self.db.names() == ['cpu']
        assert 'cpu' in self.db
        assert 'mem' not in self.db

    def test_default_retention_from_config(self):
        assert self.db.get_default_retention() == 0
        assert self.db.series('cpu').retention_ms == 0

    def test_default_retention_rejects_negative(self):
        with pytest.raises(ValueError):
            self.db.default_retention(-5)

    def test_drop(self):
        series = self.db.series('cpu')
        assert self.db.drop('cpu') is True
        assert self.db.drop('cpu') is False
        assert series.destroyed
        assert self.db.series('cpu') is not series

    def test_evict_all(self):
        self.db.default_retention(100)
        for t in (800, 950, 1000):
            self.db.series('a').insert({'v': t}, t)
            self.db.series('b').insert({'v': t}, t)
        self.db.series('c').set_retention(0)
        self.db.series('c').insert({'v': 1}, 1)
        assert self.db.evict() == {'a': 1, 'b': 1, 'c': 0}
        assert self.db.evict(2000) == {'a': 2, 'b': 2, 'c': 0}

    def test_stats(self):
        self.db.series('a').insert({'v': 1}, 1).insert({'v': 2}, 2)
        self.db.series('b').insert({'v': 1}, 1)
        stats = self.db.get_stats()
        assert stats['series_count'] == 2
        assert stats['total_records'] == 3
        assert stats['series']['a']['newest_time'] == 2

    def test_factories_exposed_as_static_methods(self):
        assert Store.interval is factories.interval
        assert self.db.mean is factories.mean
        for name in ('map', 'reduce', 'mean', 'max', 'min', 'sum', 'last', 'count', 'derivative'):
            assert callable(getattr(Store, name))


class TestDestroy:

    def test_destroy_tears_down_every_series(self):
        db = Store()
        a = db.series('a').insert({'v': 1}, 1)
        db.destroy()
        with pytest.raises(SeriesDestroyedError):
            a.query(metrics={'n': Store.count()})
        with pytest.raises(StoreDestroyedError):
            db.series('a')
        with pytest.raises(StoreDestroyedError):
            db.evict()
        with pytest.raises(StoreDestroyedError):
            db.default_retention(5)
        assert 'a' not in db

    def test_context_manager(self):
        with Store() as db:
            series = db.series('a')
        assert series.destroyed
        with pytest.raises(StoreDestroyedError):
            db.get_stats()

    def test_destroy_twice(self):
        db = Store()
        db.destroy()
        db.destroy()


def test_config_retention_applies(tmp_path):
    custom = tmp_path / "custom.json"
    custom.write_text('{"retention": {"default_retention_ms": 5000}}')
    db = Store(config=MemTSDBConfig(str(custom)))
    assert db.series('a').retention_ms == 5000
    db.destroy()


def test_explicit_retention_beats_config(monkeypatch):
    monkeypatch.setenv("MEMTSDB_DEFAULT_RETENTION_MS", "7000")
    db = Store(default_retention=10)
    assert db.series('a').retention_ms == 10
    db.destroy()


def test_concurrent_lookups_share_one_series():
    import threading

    db = Store(clock=lambda: 1000)
    start = threading.Barrier(8)
    seen = []

    def worker(offset):
        start.wait()
        series = db.series('shared')
        seen.append(series)
        for i in range(100):
            series.insert({'v': offset + i}, offset + i)

    threads = [threading.Thread(target=worker, args=(k * 1000,)) for k in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert all(s is seen[0] for s in seen)
    assert len(db.series('shared')) == 800
    db.destroy()
