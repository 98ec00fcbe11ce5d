from pydantic import BaseModel


class PerformanceMetrics(BaseModel):
    """Timing snapshot for one optimized batch run. Times are milliseconds."""

    items_processed: int = 0
    total_time_ms: float = 0.0
    average_time_ms: float = 0.0
    throughput_per_second: float = 0.0
    cache_hit_rate: float = 0.0


class OptimizationStats(BaseModel):
    total_items: int = 0
    unique_items: int = 0
    duplicates_removed: int = 0
    chunks: int = 0
    max_concurrency: int = 0
