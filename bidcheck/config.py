from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime configuration loaded from environment variables and .env file.

    Cache fields follow the ``<namespace>_cache_*`` naming that
    ``NamespacedCache.from_settings`` relies on. Durations are seconds.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Validation-result cache: high volume, LRU
    validation_cache_max_entries: int = 5000
    validation_cache_ttl_seconds: float = 1800
    validation_cache_sweep_seconds: float = 300

    # Schema cache: few entries, long-lived, FIFO
    schema_cache_max_entries: int = 100
    schema_cache_ttl_seconds: float = 7200
    schema_cache_sweep_seconds: float = 600

    # Generated-template cache
    template_cache_max_entries: int = 500
    template_cache_ttl_seconds: float = 3600
    template_cache_sweep_seconds: float = 300

    cache_track_memory: bool = True

    # Batch processing
    batch_chunk_size: int = Field(default=50, gt=0)
    batch_max_concurrency: int = Field(default=10, gt=0)

    # Validation
    validation_timeout_seconds: float = Field(default=5.0, gt=0)
    schema_version: str = "2.6"
    schema_dir: Path | None = None
    error_penalty: int = Field(default=25, ge=0)
    warning_penalty: int = Field(default=5, ge=0)

    # MCP transport
    mcp_transport: Literal["stdio", "streamable-http"] = "stdio"
    mcp_host: str = "127.0.0.1"
    mcp_port: int = 8000

    # Paths & logging
    data_dir: Path = Path(__file__).resolve().parent.parent / "data"
    log_level: str = "INFO"


_settings: Settings | None = None


def get_settings() -> Settings:
    """Return the cached Settings singleton. Created on first call."""
    global _settings  # noqa: PLW0603
    if _settings is None:
        _settings = Settings()
    return _settings


def reset_settings() -> None:
    """Clear the cached settings. Used in tests."""
    global _settings  # noqa: PLW0603
    _settings = None
