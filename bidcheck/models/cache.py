from pydantic import BaseModel, ConfigDict, Field

from bidcheck.models.enums import EvictionPolicy


class CacheConfig(BaseModel):
    """Immutable configuration for a ``CacheEngine``.

    Durations are in seconds. ``sweep_interval`` of 0 disables the
    periodic background sweep; TTL is still enforced on every read.
    """

    model_config = ConfigDict(frozen=True)

    max_entries: int = Field(default=1000, gt=0)
    default_ttl: float = Field(default=3600.0, gt=0)
    eviction_policy: EvictionPolicy = EvictionPolicy.LRU
    track_memory: bool = True
    sweep_interval: float = Field(default=300.0, ge=0)


class CacheStats(BaseModel):
    total_entries: int
    hit_count: int
    miss_count: int
    hit_rate: float
    eviction_count: int = 0
    estimated_memory_bytes: int = 0
    oldest_entry_timestamp: float | None = None
    newest_entry_timestamp: float | None = None
