#!/usr/bin/env python3
"""
memtsdb Demo
Inserts synthetic points into a few series, runs representative queries
and a retention pass, and reports timing and memory.

Usage:
    python memtsdb_demo.py 1000                    # 1K points (quick test)
    python memtsdb_demo.py 1000000                 # 1M points
    python memtsdb_demo.py 10000 --arrow           # Ingest through Arrow batches
    python memtsdb_demo.py 100000 --retention 60000
"""

import argparse
import random
import time

import psutil
import pyarrow as pa

from memtsdb import Store, now_ms
from memtsdb.logger import MemTSDBLogger, get_logger


HOSTS = ["web-1", "web-2", "db-1"]


def get_memory_usage():
    """Get current process memory usage."""
    process = psutil.Process()
    memory_info = process.memory_info()
    return {
        'rss_mb': memory_info.rss / (1024 * 1024),
        'vms_mb': memory_info.vms / (1024 * 1024),
        'system_available_mb': psutil.virtual_memory().available / (1024 * 1024)
    }


def generate_batch(batch_size: int, start_ms: int, step_ms: int) -> pa.RecordBatch:
    """Generate a batch of bandwidth samples, one every ``step_ms``."""
    times = [start_ms + i * step_ms for i in range(batch_size)]
    hosts = [HOSTS[i % len(HOSTS)] for i in range(batch_size)]
    bits = [random.randint(1_000, 100_000) for _ in range(batch_size)]
    return pa.RecordBatch.from_pydict({'time': times, 'host': hosts, 'bits': bits})


def run_queries(db: Store, start_ms: int, end_ms: int):
    """Run the query suite against the bandwidth series."""
    print("\nQUERY PERFORMANCE TESTS")
    print("-" * 40)

    series = db.series('bandwidth')
    span = end_ms - start_ms
    recent = {'time': {'is': '>', 'than': end_ms - span // 4}}

    test_queries = [
        ({'mean': Store.mean('bits'), 'max': Store.max('bits')}, None, None, "Mean/max over everything"),
        ({'total': Store.count()}, {'host': {'is': '=', 'than': 'web-1'}}, None, "Count for one host"),
        ({'mean': Store.mean('bits')}, recent, Store.interval(max(1, span // 40), False, end_ms), "Recent quarter, 10 windows"),
        ({'der': Store.derivative('bits', max(1, span // 10))}, None, None, "Derivative, 10 intervals"),
    ]

    for metrics, where, group, description in test_queries:
        print(f"\n  Testing: {description}")
        query_start = time.time()
        results = series.query(metrics=metrics, where=where, group=group)
        query_time = (time.time() - query_start) * 1000
        print(f"    Bins: {len(results):,} in {query_time:.1f}ms")
        if results and len(results) <= 3:
            print(f"    First: {results[0]['results']}")


def demo_memtsdb(total_records: int, batch_size: int, use_arrow: bool, retention_ms: int, queries: bool):
    """Fill a store, query it and evict old data."""
    MemTSDBLogger.setup(log_level="INFO", console_output=True)
    logger = get_logger("Demo")

    step_ms = 10
    start_ms = now_ms() - total_records * step_ms

    print(f"memtsdb demo: {total_records:,} points, batch size {batch_size:,}")
    before = get_memory_usage()

    with Store(default_retention=retention_ms) as db:
        series = db.series('bandwidth')
        ingest_start = time.time()

        inserted = 0
        while inserted < total_records:
            size = min(batch_size, total_records - inserted)
            batch_start = start_ms + inserted * step_ms
            if use_arrow:
                series.ingest(generate_batch(size, batch_start, step_ms))
            else:
                for i in range(size):
                    series.insert({
                        'host': HOSTS[(inserted + i) % len(HOSTS)],
                        'bits': random.randint(1_000, 100_000),
                    }, batch_start + i * step_ms)
            inserted += size

        ingest_time = time.time() - ingest_start
        throughput = inserted / ingest_time if ingest_time > 0 else 0
        logger.info(f"Inserted {inserted:,} points in {ingest_time:.2f}s")
        print(f"\nINGESTION: {inserted:,} points in {ingest_time:.2f}s ({throughput:,.0f} points/sec)")

        if queries:
            run_queries(db, start_ms, start_ms + total_records * step_ms)

        if retention_ms:
            evicted = db.evict()
            print(f"\nRETENTION: evicted {evicted.get('bandwidth', 0):,} points older than {retention_ms}ms")

        stats = db.get_stats()
        print(f"\nSTORE: {stats['series_count']} series, {stats['total_records']:,} points retained")

    after = get_memory_usage()
    print("\nMEMORY USAGE")
    print("-" * 20)
    print(f"  Process RAM: {after['rss_mb']:.1f}MB (started at {before['rss_mb']:.1f}MB)")
    print(f"  System available: {after['system_available_mb']:.1f}MB")


def main():
    """Parse arguments and run the demo."""
    parser = argparse.ArgumentParser(
        description="memtsdb Demo - in-memory insert, query and retention",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python memtsdb_demo.py 1000                      # Quick 1K test
  python memtsdb_demo.py 1000000 --arrow           # 1M points through Arrow
  python memtsdb_demo.py 50000 --retention 60000   # Keep the last minute only
        """
    )

    parser.add_argument("records", type=int, help="Total number of points to generate")
    parser.add_argument("--batch-size", type=int, default=10_000, help="Points per batch")
    parser.add_argument("--arrow", action="store_true", help="Ingest through pyarrow RecordBatches")
    parser.add_argument("--retention", type=int, default=0, help="Default retention in milliseconds")
    parser.add_argument("--no-queries", action="store_true", help="Skip query tests")

    args = parser.parse_args()

    if args.records <= 0:
        print("Error: Number of records must be positive")
        return

    if args.batch_size <= 0:
        print("Error: Batch size must be positive")
        return

    try:
        demo_memtsdb(
            total_records=args.records,
            batch_size=args.batch_size,
            use_arrow=args.arrow,
            retention_ms=args.retention,
            queries=not args.no_queries,
        )
    except KeyboardInterrupt:
        print("\nDemo interrupted by user")


if __name__ == "__main__":
    main()
