from __future__ import annotations

import time
from dataclasses import asdict, dataclass
from typing import Any, Dict

import numpy as np
from numpy.random import default_rng

from rangetree import RangeQueryTree


@dataclass(frozen=True)
class BenchmarkResult:
    size: int
    queries: int
    updates: int
    operation: str
    engine: str
    build_seconds: float
    query_seconds: float
    update_seconds: float

    @property
    def query_latency_us(self) -> float:
        return 1e6 * self.query_seconds / self.queries if self.queries else 0.0

    @property
    def update_latency_us(self) -> float:
        return 1e6 * self.update_seconds / self.updates if self.updates else 0.0

    def to_dict(self) -> Dict[str, Any]:
        payload = asdict(self)
        payload["query_latency_us"] = self.query_latency_us
        payload["update_latency_us"] = self.update_latency_us
        return payload


def run_benchmark(
    *,
    size: int,
    queries: int,
    updates: int,
    seed: int,
    operation: str = "sum",
    engine: str | None = None,
) -> BenchmarkResult:
    """Time build, query and update on uniformly random integer data."""

    rng = default_rng(seed)
    values = rng.integers(-1_000, 1_000, size=size, dtype=np.int64)
    bounds = np.sort(rng.integers(0, size, size=(queries, 2)), axis=1)
    positions = rng.integers(0, size, size=updates)
    new_values = rng.integers(-1_000, 1_000, size=updates, dtype=np.int64)

    start = time.perf_counter()
    tree = RangeQueryTree(values, operation, engine=engine)
    build_seconds = time.perf_counter() - start

    start = time.perf_counter()
    for left, right in bounds:
        tree.query(int(left), int(right))
    query_seconds = time.perf_counter() - start

    start = time.perf_counter()
    for pos, value in zip(positions, new_values):
        tree.update(int(pos), int(value))
    update_seconds = time.perf_counter() - start

    return BenchmarkResult(
        size=size,
        queries=queries,
        updates=updates,
        operation=tree.operation.name,
        engine=tree.engine,
        build_seconds=build_seconds,
        query_seconds=query_seconds,
        update_seconds=update_seconds,
    )
