"""In-memory TTL cache with LRU/FIFO eviction, metrics and periodic sweep."""

import asyncio
import json
import logging
import math
import time
from collections import OrderedDict
from collections.abc import Callable
from dataclasses import dataclass
from itertools import islice
from typing import Generic, TypeVar

from pydantic import BaseModel

from bidcheck.errors import CacheConfigError
from bidcheck.models.cache import CacheConfig, CacheStats
from bidcheck.models.enums import EvictionPolicy

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Share of capacity dropped when a full cache receives a new key.
EVICTION_RATIO = 0.1

# Size reported for values that cannot be serialized.
UNSERIALIZABLE_SIZE_ESTIMATE = 1000


@dataclass
class CacheEntry(Generic[T]):
    """A stored value and its lifecycle bookkeeping."""

    value: T
    created_at: float
    ttl: float
    access_count: int = 0
    last_accessed_at: float = 0.0

    def is_expired(self, now: float) -> bool:
        return now - self.created_at > self.ttl

    def touch(self, now: float) -> None:
        self.access_count += 1
        self.last_accessed_at = max(now, self.created_at)


def estimate_size(value: object) -> int:
    """Approximate serialized size in bytes (two bytes per character)."""
    try:
        if isinstance(value, BaseModel):
            text = value.model_dump_json()
        else:
            text = json.dumps(value)
    except (TypeError, ValueError):
        return UNSERIALIZABLE_SIZE_ESTIMATE
    return len(text) * 2


class CacheEngine(Generic[T]):
    """Keyed store of time-boxed entries.

    Entries live in an ``OrderedDict`` whose order is the eviction order:
    under LRU a read moves the key to the end, under FIFO only writes do.
    Evicting therefore pops from the front without sorting.

    All operations are synchronous, so callers sharing one event loop can
    never observe a half-applied mutation.

    Args:
        config: Capacity, TTL and eviction settings.
        name: Label used in log messages and the sweep task name.
        clock: Time source in seconds. Injected by tests.
    """

    def __init__(
        self,
        config: CacheConfig | None = None,
        *,
        name: str = "cache",
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.config = config or CacheConfig()
        self.name = name
        self._clock = clock
        self._entries: OrderedDict[str, CacheEntry[T]] = OrderedDict()
        self._hits = 0
        self._misses = 0
        self._evictions = 0
        self._sweep_task: asyncio.Task[None] | None = None
        self._destroyed = False
        self.start_sweeper()

    # ── Reads ───────────────────────────────────────────────────────────

    def get(self, key: str, default: T | None = None) -> T | None:
        """Return the live value for *key*, or *default* on a miss.

        Expired entries are purged and counted as misses.
        """
        entry = self._entries.get(key)
        if entry is None:
            self._misses += 1
            return default

        now = self._clock()
        if entry.is_expired(now):
            del self._entries[key]
            self._misses += 1
            return default

        entry.touch(now)
        if self.config.eviction_policy == EvictionPolicy.LRU:
            self._entries.move_to_end(key)
        self._hits += 1
        return entry.value

    def has(self, key: str) -> bool:
        """Existence check that respects expiry but leaves statistics alone."""
        entry = self._entries.get(key)
        return entry is not None and not entry.is_expired(self._clock())

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and self.has(key)

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def size(self) -> int:
        """Current number of stored entries, including expired ones not yet purged."""
        return len(self._entries)

    def keys(self) -> list[str]:
        """Keys of live entries; expired ones awaiting a sweep are left out."""
        return [key for key, _ in self._live_entries()]

    def entries(self) -> list[tuple[str, CacheEntry[T]]]:
        """Snapshot of raw entries, for debugging."""
        return list(self._entries.items())

    # ── Writes ──────────────────────────────────────────────────────────

    def set(self, key: str, value: T, ttl: float | None = None) -> None:
        """Insert or replace *key*.

        A new key arriving at a full cache first evicts
        ``max(1, floor(max_entries * 0.1))`` entries.

        Raises:
            CacheConfigError: If *ttl* is given and not positive.
        """
        if ttl is not None and ttl <= 0:
            raise CacheConfigError(f"ttl must be positive, got {ttl}")

        if key in self._entries:
            del self._entries[key]
        elif len(self._entries) >= self.config.max_entries:
            self._evict()

        now = self._clock()
        self._entries[key] = CacheEntry(
            value=value,
            created_at=now,
            ttl=self.config.default_ttl if ttl is None else ttl,
            last_accessed_at=now,
        )
        self.start_sweeper()

    def delete(self, key: str) -> bool:
        """Remove *key*. Returns True if it was stored."""
        return self._entries.pop(key, None) is not None

    def clear(self) -> None:
        """Drop every entry and reset hit/miss/eviction counters."""
        self._entries.clear()
        self._hits = 0
        self._misses = 0
        self._evictions = 0

    def cleanup(self) -> int:
        """Purge every expired entry now. Returns the number removed."""
        now = self._clock()
        expired = [key for key, entry in self._entries.items() if entry.is_expired(now)]
        for key in expired:
            del self._entries[key]
        if expired:
            logger.debug("Cache '%s' purged %d expired entries", self.name, len(expired))
        return len(expired)

    def _evict(self) -> None:
        count = max(1, math.floor(self.config.max_entries * EVICTION_RATIO))
        victims = list(islice(self._entries, count))
        for key in victims:
            del self._entries[key]
        self._evictions += len(victims)
        logger.debug(
            "Cache '%s' evicted %d entries (%s)",
            self.name,
            len(victims),
            self.config.eviction_policy.value,
        )

    # ── Statistics ──────────────────────────────────────────────────────

    def get_stats(self) -> CacheStats:
        total = self._hits + self._misses
        hit_rate = round(self._hits / total * 100, 2) if total else 0.0

        live = [entry for _, entry in self._live_entries()]
        memory = 0
        if self.config.track_memory:
            memory = sum(estimate_size(entry.value) for entry in live)

        created = [entry.created_at for entry in live]
        return CacheStats(
            total_entries=len(live),
            hit_count=self._hits,
            miss_count=self._misses,
            hit_rate=hit_rate,
            eviction_count=self._evictions,
            estimated_memory_bytes=memory,
            oldest_entry_timestamp=min(created) if created else None,
            newest_entry_timestamp=max(created) if created else None,
        )

    def _live_entries(self) -> list[tuple[str, CacheEntry[T]]]:
        now = self._clock()
        return [(key, entry) for key, entry in self._entries.items() if not entry.is_expired(now)]

    # ── Lifecycle ───────────────────────────────────────────────────────

    @property
    def sweeping(self) -> bool:
        return self._sweep_task is not None and not self._sweep_task.done()

    def start_sweeper(self) -> asyncio.Task[None] | None:
        """Start the periodic sweep if configured and an event loop is running.

        Safe to call repeatedly; returns the running task, or None when no
        sweep applies (interval 0, destroyed cache, or no running loop).
        """
        if self._destroyed or self.config.sweep_interval <= 0:
            return None
        if self.sweeping:
            return self._sweep_task
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return None
        self._sweep_task = loop.create_task(self._sweep_loop(), name=f"{self.name}-sweep")
        return self._sweep_task

    def stop_sweeper(self) -> None:
        if self._sweep_task is not None:
            self._sweep_task.cancel()
            self._sweep_task = None

    def destroy(self) -> None:
        """Stop the sweep task and clear the cache. The sweep never restarts."""
        self._destroyed = True
        self.stop_sweeper()
        self.clear()

    async def _sweep_loop(self) -> None:
        while True:
            await asyncio.sleep(self.config.sweep_interval)
            try:
                self.cleanup()
            except Exception:  # noqa: BLE001
                logger.exception("Cache '%s' sweep failed", self.name)
