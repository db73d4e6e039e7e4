"""Unit tests for Series: insertion, retention, Arrow interop and teardown."""

from datetime import datetime, timezone

import pyarrow as pa
import pytest

from memtsdb import Series, Store
from memtsdb.exceptions import DestroyedError, SeriesDestroyedError
from memtsdb.point import Point


@pytest.fixture
def series(clock):
    return Series('cpu', retention_ms=0, clock=clock)


class TestInsert:

    def test_default_time_comes_from_clock(self, series, clock):
        clock.now = 5000
        series.insert({'v': 1})
        assert series.points()[0].time == 5000

    def test_explicit_time(self, series):
        series.insert({'v': 1}, 10).insert({'v': 2}, 5)
        assert [pt.time for pt in series.points()] == [10, 5]

    def test_accepts_point(self, series):
        pt = Point({'v': 3}, 77)
        series.insert(pt)
        assert series.points() == [pt]

    def test_point_with_explicit_time_rejected(self, series):
        with pytest.raises(ValueError):
            series.insert(Point({'v': 3}, 77), 99)
        assert len(series) == 0

    def test_schemaless(self, series):
        series.insert({'a': 1}, 1).insert({'b': 'x', 'c': {'nested': True}}, 2)
        assert len(series) == 2
        assert series.points()[1].get('c') == {'nested': True}

    def test_points_is_a_snapshot(self, series):
        series.insert({'v': 1}, 1)
        snapshot = series.points()
        series.insert({'v': 2}, 2)
        assert len(snapshot) == 1


class TestRetention:

    def _fill(self, series, times):
        for t in times:
            series.insert({'t': t}, t)

    def test_evicts_expired_prefix(self, series):
        series.set_retention(250)
        self._fill(series, [600, 700, 800, 900, 1000])
        assert series.evict(1000) == 2
        assert [pt.time for pt in series.points()] == [800, 900, 1000]

    def test_boundary_point_is_kept(self, series):
        series.set_retention(200)
        self._fill(series, [700, 800, 900])
        series.evict(1000)
        assert [pt.time for pt in series.points()] == [800, 900]

    def test_property_for_monotonic_data(self, series):
        retention, now = 1000, 10_000
        series.set_retention(retention)
        times = list(range(0, now + 1, 37))
        self._fill(series, times)
        series.evict(now)
        kept = [pt.time for pt in series.points()]
        assert all(t >= now - retention for t in kept)
        assert kept == [t for t in times if t >= now - retention]

    def test_zero_retention_disables_eviction(self, series):
        self._fill(series, [1, 2, 3])
        assert series.evict(10 ** 12) == 0
        assert len(series) == 3

    def test_uses_clock_when_now_omitted(self, series, clock):
        series.set_retention(100)
        self._fill(series, [100, 950])
        clock.now = 1000
        assert series.evict() == 1

    def test_idempotent(self, series):
        series.set_retention(100)
        self._fill(series, [100, 950])
        assert series.evict(1000) == 1
        assert series.evict(1000) == 0

    def test_out_of_order_old_point_waits_for_prefix(self, series):
        # Only a contiguous prefix is evicted
        series.set_retention(100)
        self._fill(series, [950, 10, 990])
        assert series.evict(1000) == 0
        assert [pt.time for pt in series.points()] == [950, 10, 990]

    def test_negative_retention_rejected(self, series):
        with pytest.raises(ValueError):
            series.set_retention(-1)

    def test_inherits_store_default(self, clock):
        db = Store(clock=clock, default_retention=300)
        assert db.series('x').retention_ms == 300
        db.default_retention(50)
        assert db.series('x').retention_ms == 300
        assert db.series('y').retention_ms == 50


class TestArrow:

    def test_ingest_record_batch(self, series):
        batch = pa.RecordBatch.from_pydict({'time': [1, 2, 3], 'v': [10, 20, 30]})
        assert series.ingest(batch) == 3
        assert [pt.to_dict() for pt in series.points()] == [
            {'v': 10, 'time': 1}, {'v': 20, 'time': 2}, {'v': 30, 'time': 3},
        ]

    def test_ingest_table_with_timestamps(self, clock):
        series = Series('ts', clock=clock, time_column='timestamp')
        stamp = datetime(2024, 1, 1)
        table = pa.table({
            'timestamp': pa.array([stamp, None], type=pa.timestamp('ms')),
            'v': [1, 2],
        })
        series.ingest(table)
        first, second = series.points()
        assert first.time == int(stamp.replace(tzinfo=timezone.utc).timestamp() * 1000)
        assert not first.has('timestamp')
        assert second.time == clock()

    def test_to_arrow(self, series):
        series.insert({'v': 1}, 10).insert({'v': 2, 'host': 'a'}, 20)
        table = series.to_arrow()
        assert table.num_rows == 2
        assert table.column_names == ['v', 'time', 'host']
        assert table.column('time').to_pylist() == [10, 20]
        assert table.column('host').to_pylist() == [None, 'a']

    def test_to_arrow_keeps_fields_first_seen_late(self, series):
        series.insert({'v': 1}, 10).insert({'host': 'a'}, 20).insert({'v': 3, 'dc': 'eu'}, 30)
        table = series.to_arrow()
        assert table.column_names == ['v', 'time', 'host', 'dc']
        assert table.column('v').to_pylist() == [1, None, 3]
        assert table.column('dc').to_pylist() == [None, None, 'eu']

    def test_to_arrow_empty_series(self, series):
        assert series.to_arrow().num_rows == 0

    def test_null_cells_become_absent_fields(self, series):
        series.ingest(pa.table({'time': [1, 2], 'v': [5, None]}))
        first, second = series.points()
        assert first.get('v') == 5
        assert not second.has('v')
        assert series.query(metrics={'sum': Store.sum('v'), 'mean': Store.mean('v')}) == [
            {'results': {'sum': 5, 'mean': 5}}
        ]

    def test_export_then_ingest_preserves_query_results(self, series, clock):
        series.insert({'v': 1}, 10).insert({'host': 'a'}, 20).insert({'v': 3}, 30)
        metrics = {
            'mean': Store.mean('v'), 'sum': Store.sum('v'),
            'max': Store.max('v'), 'der': Store.derivative('v', 10),
        }
        before = series.query(metrics=metrics)
        assert before[0]['results']['mean'] == 2

        copy = Series('copy', clock=clock)
        assert copy.ingest(series.to_arrow()) == 3
        assert copy.points() == series.points()
        assert copy.query(metrics=metrics) == before

    def test_query_after_ingest(self, series):
        series.ingest(pa.RecordBatch.from_pydict({'time': [100, 200], 'v': [4, 8]}))
        assert series.query(metrics={'mean': Store.mean('v')}) == [{'results': {'mean': 6}}]


class TestDestroy:

    def test_every_operation_fails_after_destroy(self, series):
        series.insert({'v': 1}, 1)
        series.destroy()
        assert series.destroyed
        operations = [
            lambda: series.insert({'v': 2}, 2),
            lambda: series.query(metrics={'n': Store.count()}),
            lambda: series.evict(10),
            lambda: series.remove(),
            lambda: series.points(),
            lambda: len(series),
            lambda: series.set_retention(5),
            lambda: series.to_arrow(),
            lambda: series.get_stats(),
            lambda: series.ingest(pa.RecordBatch.from_pydict({'v': [1]})),
        ]
        for op in operations:
            with pytest.raises(SeriesDestroyedError):
                op()

    def test_destroy_is_idempotent(self, series):
        series.destroy()
        series.destroy()
        with pytest.raises(DestroyedError):
            series.points()


def test_stats(series):
    series.insert({'v': 1}, 30).insert({'v': 2}, 10)
    assert series.get_stats() == {
        'name': 'cpu',
        'total_records': 2,
        'retention_ms': 0,
        'oldest_time': 10,
        'newest_time': 30,
    }


def test_concurrent_writers_and_readers(clock):
    import threading

    series = Series('busy', retention_ms=0, clock=clock)
    errors = []

    def writer(offset):
        for i in range(500):
            series.insert({'v': offset + i}, offset + i)

    def reader():
        try:
            for _ in range(50):
                result = series.query(metrics={'n': Store.count(), 'ids': Store.map('v')})
                assert result[0]['results']['n'] == len(result[0]['results']['ids'])
        except AssertionError as exc:
            errors.append(exc)

    threads = [threading.Thread(target=writer, args=(k * 1000,)) for k in range(4)]
    threads += [threading.Thread(target=reader) for _ in range(2)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert errors == []
    assert len(series) == 2000
