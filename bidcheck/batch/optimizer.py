"""Batch deduplication and bounded-concurrency chunked processing."""

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable, Hashable, Sequence
from dataclasses import dataclass, field
from typing import Generic, TypeVar

from bidcheck.cache.keys import request_dedup_key
from bidcheck.models.batch import OptimizationStats, PerformanceMetrics

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")
K = TypeVar("K", bound=Hashable)

ProgressCallback = Callable[[int, int, PerformanceMetrics], None]


@dataclass
class DedupedBatch(Generic[T, K]):
    """First occurrence of each key, plus the later duplicates grouped by key."""

    deduped_items: list[T]
    duplicate_groups: dict[K, list[T]] = field(default_factory=dict)
    stats: OptimizationStats = field(default_factory=OptimizationStats)


@dataclass
class OptimizationResult(Generic[R]):
    results: list[R]
    metrics: PerformanceMetrics
    stats: OptimizationStats


def _metrics(
    processed: int, elapsed_seconds: float, cache_hits: int | None = None
) -> PerformanceMetrics:
    elapsed_ms = elapsed_seconds * 1000
    return PerformanceMetrics(
        items_processed=processed,
        total_time_ms=round(elapsed_ms, 3),
        average_time_ms=round(elapsed_ms / processed, 3) if processed else 0.0,
        throughput_per_second=round(processed / elapsed_seconds, 2) if elapsed_seconds > 0 else 0.0,
        cache_hit_rate=round(cache_hits / processed * 100, 2) if processed and cache_hits else 0.0,
    )


class PerformanceOptimizer:
    """Stateless helpers; one instance can serve any number of batches."""

    def optimize_batch(
        self, items: Sequence[T], key_extractor: Callable[[T], K] = request_dedup_key
    ) -> DedupedBatch[T, K]:
        """Keep the first item per key and group the later duplicates.

        The default key collapses bid requests that differ only in fields
        irrelevant to validation and bidding (ids, user data, page URLs).
        """
        seen: set[K] = set()
        deduped: list[T] = []
        groups: dict[K, list[T]] = {}
        for item in items:
            key = key_extractor(item)
            if key in seen:
                groups.setdefault(key, []).append(item)
            else:
                seen.add(key)
                deduped.append(item)

        duplicates = len(items) - len(deduped)
        if duplicates:
            logger.debug("Collapsed %d duplicate items out of %d", duplicates, len(items))
        return DedupedBatch(
            deduped_items=deduped,
            duplicate_groups=groups,
            stats=OptimizationStats(
                total_items=len(items),
                unique_items=len(deduped),
                duplicates_removed=duplicates,
            ),
        )

    async def process_batch_optimized(
        self,
        items: Sequence[T],
        work_fn: Callable[[T], Awaitable[R]],
        *,
        max_batch_size: int = 50,
        max_concurrency: int = 10,
        on_progress: ProgressCallback | None = None,
        is_cache_hit: Callable[[R], bool] | None = None,
    ) -> OptimizationResult[R]:
        """Run *work_fn* over *items* in chunks, at most *max_concurrency* at a time.

        Results come back in input order regardless of completion order.
        *on_progress* receives ``(processed, total, metrics)`` after each
        chunk. An exception raised by *work_fn* propagates; callers that
        need per-item isolation catch inside *work_fn*.

        Raises:
            ValueError: If *max_batch_size* or *max_concurrency* is not positive.
        """
        if max_batch_size <= 0:
            raise ValueError(f"max_batch_size must be positive, got {max_batch_size}")
        if max_concurrency <= 0:
            raise ValueError(f"max_concurrency must be positive, got {max_concurrency}")

        semaphore = asyncio.Semaphore(max_concurrency)
        total = len(items)
        results: list[R] = []
        started = time.perf_counter()
        chunks = 0

        async def run(item: T) -> R:
            async with semaphore:
                return await work_fn(item)

        for offset in range(0, total, max_batch_size):
            chunk = items[offset : offset + max_batch_size]
            results.extend(await asyncio.gather(*(run(item) for item in chunk)))
            chunks += 1
            if on_progress is not None:
                on_progress(len(results), total, self._snapshot(results, started, is_cache_hit))
            logger.debug("Processed %d/%d items", len(results), total)

        return OptimizationResult(
            results=results,
            metrics=self._snapshot(results, started, is_cache_hit),
            stats=OptimizationStats(
                total_items=total,
                unique_items=total,
                chunks=chunks,
                max_concurrency=max_concurrency,
            ),
        )

    @staticmethod
    def _snapshot(
        results: list[R], started: float, is_cache_hit: Callable[[R], bool] | None
    ) -> PerformanceMetrics:
        hits = sum(1 for r in results if is_cache_hit(r)) if is_cache_hit else None
        return _metrics(len(results), time.perf_counter() - started, hits)
