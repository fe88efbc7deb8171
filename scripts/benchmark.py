"""Micro-benchmarks for line binding."""

from __future__ import annotations

import time
from dataclasses import dataclass

from recap import record, u32


@record(r"(?P<host>\S+) (?P<status>\d{3}) (?P<bytes>\d+) (?P<path>\S+)")
@dataclass
class AccessLine:
    host: str
    status: u32
    bytes: int
    path: str


def _lines(count: int) -> list[str]:
    return [f"10.0.0.{i % 255} {200 + i % 3} {i * 17} /item/{i}" for i in range(count)]


def benchmark_bind(records: int = 10_000, runs: int = 3) -> dict[str, float]:
    lines = _lines(records)
    total_bytes = sum(len(line) for line in lines)
    best = None
    for _ in range(runs):
        start = time.perf_counter()
        for line in lines:
            AccessLine.parse(line)
        elapsed = time.perf_counter() - start
        best = elapsed if best is None or elapsed < best else best
    per_second = records / best if best else 0.0
    mbps = (total_bytes / 1_000_000) / best if best else 0.0
    return {
        "records": records,
        "bytes": total_bytes,
        "best_seconds": best or 0.0,
        "records_per_second": per_second,
        "mbps": mbps,
    }


if __name__ == "__main__":
    result = benchmark_bind()
    print(result)
