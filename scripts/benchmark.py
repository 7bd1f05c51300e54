#!/usr/bin/env python3
"""
datacache performance benchmarking script.

Measures throughput and resident memory for the main cache workloads:
plain puts and gets, puts at capacity (eviction scans), overwrite churn on
the expiration heap, pattern invalidation and JSON payloads.

Usage:
    python scripts/benchmark.py [--verbose] [--max-size 1000] [--output results.json]
"""

import argparse
import json
import sys
import time
from dataclasses import dataclass, asdict, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

import psutil

from datacache.utils.cache import CacheStore, CacheKeys


def get_rss_mb() -> float:
    """Resident set size of this process in megabytes."""
    return psutil.Process().memory_info().rss / (1024 * 1024)


@dataclass
class BenchmarkResult:
    """Result of a benchmark test."""
    name: str
    operations: int
    duration_ms: float
    ops_per_second: float
    memory_delta_mb: float
    success: bool
    error_message: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)


@dataclass
class BenchmarkSuite:
    """Complete benchmark suite results."""
    timestamp: str
    total_duration_ms: float
    tests_run: int
    tests_failed: int
    results: List[BenchmarkResult]
    system_info: Dict[str, Any]


class CacheBenchmarker:
    """
    Runs each workload against a fresh store with the expiration worker on.
    """

    def __init__(self, max_size: int = 1000, verbose: bool = False):
        self.max_size = max_size
        self.verbose = verbose
        self.results: List[BenchmarkResult] = []

    def log(self, message: str):
        """Log message if verbose mode is enabled."""
        if self.verbose:
            print(f"[{datetime.now().strftime('%H:%M:%S')}] {message}")

    def run_all_benchmarks(self) -> BenchmarkSuite:
        start_time = time.perf_counter()
        self.log("Starting cache benchmark suite...")

        self._run_benchmark("put_get", self._put_get, operations=self.max_size * 10)
        self._run_benchmark("put_at_capacity", self._put_at_capacity, operations=self.max_size * 2)
        self._run_benchmark("overwrite_churn", self._overwrite_churn, operations=self.max_size * 20)
        self._run_benchmark("remove_by_pattern", self._remove_by_pattern, operations=self.max_size)
        self._run_benchmark("json_payloads", self._json_payloads, operations=self.max_size * 5)

        total_duration = (time.perf_counter() - start_time) * 1000
        tests_failed = sum(1 for r in self.results if not r.success)

        return BenchmarkSuite(
            timestamp=datetime.now(timezone.utc).isoformat(),
            total_duration_ms=total_duration,
            tests_run=len(self.results),
            tests_failed=tests_failed,
            results=self.results,
            system_info={
                "python_version": sys.version,
                "platform": sys.platform,
                "memory_usage_mb": get_rss_mb(),
                "cpu_count": psutil.cpu_count()
            }
        )

    def _run_benchmark(self, name: str, workload: Callable[[CacheStore, int], Dict[str, Any]], operations: int):
        self.log(f"  Running {name}...")

        cache = CacheStore(default_ttl=300, max_size=self.max_size)
        initial_memory = get_rss_mb()
        start_time = time.perf_counter()

        try:
            metadata = workload(cache, operations)
            success, error_message = True, None
        except Exception as e:
            metadata, success, error_message = {}, False, str(e)
        finally:
            duration = time.perf_counter() - start_time
            memory_delta = get_rss_mb() - initial_memory
            cache.close()

        result = BenchmarkResult(
            name=name,
            operations=operations,
            duration_ms=duration * 1000,
            ops_per_second=operations / duration if duration > 0 else 0.0,
            memory_delta_mb=memory_delta,
            success=success,
            error_message=error_message,
            metadata=metadata
        )
        self.results.append(result)

        if success:
            self.log(f"    {name}: {result.duration_ms:.2f}ms, {result.ops_per_second:,.0f} ops/s, {memory_delta:+.2f}MB")
        else:
            self.log(f"    {name}: FAILED - {error_message}")

    def _put_get(self, cache: CacheStore, operations: int) -> Dict[str, Any]:
        for i in range(operations // 2):
            cache.put(CacheKeys.post(str(i % self.max_size)), {"id": i})
        for i in range(operations // 2):
            cache.get(CacheKeys.post(str(i % self.max_size)))
        return cache.stats().to_dict()

    def _put_at_capacity(self, cache: CacheStore, operations: int) -> Dict[str, Any]:
        for i in range(operations):
            cache.put(f"distinct_{i}", i, ttl=60 + (i % 240))
        return {"size": cache.size(), "evictions": cache.stats().evictions}

    def _overwrite_churn(self, cache: CacheStore, operations: int) -> Dict[str, Any]:
        for i in range(operations):
            cache.put(CacheKeys.user_profile(str(i % 10)), i)
        return {"size": cache.size(), "pending_expirations": len(cache._scheduler)}

    def _remove_by_pattern(self, cache: CacheStore, operations: int) -> Dict[str, Any]:
        removed = 0
        for i in range(operations):
            cache.put(CacheKeys.user_posts(str(i)), [])
            if i % 100 == 99:
                removed += cache.remove_by_pattern(r"^user_posts_")
        return {"removed": removed}

    def _json_payloads(self, cache: CacheStore, operations: int) -> Dict[str, Any]:
        payload = {"title": "post", "tags": ["a", "b"], "likes": 10, "author": {"id": "u1"}}
        for i in range(operations):
            key = CacheKeys.post(str(i % 100))
            cache.put_json(key, payload)
            cache.get_json(key)
        return {"size": cache.size()}


def main() -> int:
    """Main benchmarking script."""
    parser = argparse.ArgumentParser(description="datacache performance benchmarker")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable verbose output")
    parser.add_argument("--max-size", type=int, default=1000, help="Cache capacity to benchmark with")
    parser.add_argument("--output", "-o", help="Output file for results (JSON)")

    args = parser.parse_args()

    suite = CacheBenchmarker(max_size=args.max_size, verbose=args.verbose).run_all_benchmarks()

    if args.output:
        output_path = Path(args.output)
        output_path.parent.mkdir(parents=True, exist_ok=True)

        with open(output_path, 'w') as f:
            json.dump(asdict(suite), f, indent=2, default=str)

        print(f"Results saved to {output_path}")

    print("\n" + "=" * 60)
    print("BENCHMARK SUMMARY")
    print("=" * 60)
    for result in suite.results:
        status = f"{result.ops_per_second:>12,.0f} ops/s" if result.success else f"FAILED: {result.error_message}"
        print(f"{result.name:<20} {status}")
    print(f"\nTotal Duration: {suite.total_duration_ms:.2f}ms")
    print(f"System: {suite.system_info['memory_usage_mb']:.1f}MB used")
    print("=" * 60)

    return 0 if suite.tests_failed == 0 else 1


if __name__ == "__main__":
    sys.exit(main())
