#!/usr/bin/env python3
"""Cache stampede benchmark against a running Redis.

Starts many concurrent readers on a cold key and reports how many of them
reached the database, plus read latency percentiles.

Usage:
    python benchmarks/stampede.py                          # 200 readers, 5 rounds
    python benchmarks/stampede.py --readers 1000           # Heavier burst
    python benchmarks/stampede.py --redis-url redis://host:6379/1
"""

from __future__ import annotations

import argparse
import asyncio
import statistics
import sys
import time
from dataclasses import dataclass, field

import redis.asyncio as redis
from redis.exceptions import RedisError

from storefront.cache.coordinator import CacheCoordinator


@dataclass
class RoundResult:
    """Results from one burst of cold readers."""

    readers: int
    fetches: int = 0
    latencies_ms: list[float] = field(default_factory=list)

    def percentile(self, fraction: float) -> float:
        if not self.latencies_ms:
            return 0.0
        ordered = sorted(self.latencies_ms)
        return ordered[min(int(len(ordered) * fraction), len(ordered) - 1)]

    @property
    def mean_ms(self) -> float:
        return statistics.mean(self.latencies_ms) if self.latencies_ms else 0.0


async def run_round(
    coordinator: CacheCoordinator, key: str, readers: int, fetch_delay: float
) -> RoundResult:
    result = RoundResult(readers=readers)

    async def fetch() -> dict[str, int]:
        result.fetches += 1
        await asyncio.sleep(fetch_delay)
        return {"products": readers}

    async def reader() -> None:
        start = time.perf_counter()
        await coordinator.get_cached_data(key, 60, fetch, 10)
        result.latencies_ms.append((time.perf_counter() - start) * 1000)

    await coordinator.invalidate_cache(key)
    await asyncio.gather(*(reader() for _ in range(readers)))
    return result


async def run(args: argparse.Namespace) -> int:
    client = redis.from_url(args.redis_url)
    try:
        await client.ping()
    except (RedisError, OSError) as e:
        print(f"Redis unreachable at {args.redis_url}: {e}")
        return 1

    coordinator = CacheCoordinator(client)
    key = "storefront:bench:stampede"
    print(f"\n{args.readers} readers x {args.rounds} rounds, fetch delay {args.fetch_delay}s\n")
    print(f"{'Round':<8}{'Fetches':>10}{'p50 ms':>10}{'p95 ms':>10}{'p99 ms':>10}{'mean ms':>10}")

    try:
        for n in range(1, args.rounds + 1):
            result = await run_round(coordinator, key, args.readers, args.fetch_delay)
            print(
                f"{n:<8}{result.fetches:>10}{result.percentile(0.5):>10.2f}"
                f"{result.percentile(0.95):>10.2f}{result.percentile(0.99):>10.2f}"
                f"{result.mean_ms:>10.2f}"
            )
        await coordinator.invalidate_cache(key)
    finally:
        await coordinator.drain()
        await client.aclose()
    return 0


def main() -> int:
    parser = argparse.ArgumentParser(description="Cold-key stampede benchmark")
    parser.add_argument(
        "--redis-url",
        default="redis://localhost:6379/0",
        help="Redis connection URL",
    )
    parser.add_argument(
        "--readers",
        type=int,
        default=200,
        help="Concurrent readers per round",
    )
    parser.add_argument(
        "--rounds",
        type=int,
        default=5,
        help="Number of cold bursts",
    )
    parser.add_argument(
        "--fetch-delay",
        type=float,
        default=0.05,
        help="Simulated database latency in seconds",
    )
    args = parser.parse_args()
    return asyncio.run(run(args))


if __name__ == "__main__":
    sys.exit(main())
