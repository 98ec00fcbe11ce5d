"""Preconfigured caches for validation results, schemas and generated templates.

Each cache owns a key namespace so that keys built for one purpose can
never collide with another cache's keys.
"""

from typing import Any, ClassVar, TypeVar

from bidcheck.cache.engine import CacheEngine
from bidcheck.cache.keys import hash_structure
from bidcheck.config import Settings
from bidcheck.models.cache import CacheConfig
from bidcheck.models.enums import EvictionPolicy
from bidcheck.models.schema import OrtbSchema
from bidcheck.models.template import GeneratedRequest
from bidcheck.models.validation import ValidationOptions, ValidationResult

T = TypeVar("T")
C = TypeVar("C", bound="NamespacedCache[Any]")


class NamespacedCache(CacheEngine[T]):
    """A ``CacheEngine`` with a fixed key prefix and purpose-specific defaults."""

    namespace: ClassVar[str]
    default_config: ClassVar[CacheConfig]

    def __init__(self, config: CacheConfig | None = None, **kwargs: Any) -> None:
        super().__init__(config or self.default_config, name=self.namespace, **kwargs)

    def namespaced(self, *parts: str) -> str:
        return ":".join((self.namespace, *parts))

    @classmethod
    def from_settings(cls: type[C], settings: Settings, **kwargs: Any) -> C:
        """Build the cache from ``<namespace>_cache_*`` settings fields."""
        config = cls.default_config.model_copy(
            update={
                "max_entries": getattr(settings, f"{cls.namespace}_cache_max_entries"),
                "default_ttl": getattr(settings, f"{cls.namespace}_cache_ttl_seconds"),
                "sweep_interval": getattr(settings, f"{cls.namespace}_cache_sweep_seconds"),
                "track_memory": settings.cache_track_memory,
            }
        )
        # model_copy skips validation; round-trip so bad settings fail here
        return cls(CacheConfig.model_validate(config.model_dump()), **kwargs)


class ValidationResultCache(NamespacedCache[ValidationResult]):
    """High-volume, LRU cache of validation results."""

    namespace = "validation"
    default_config = CacheConfig(
        max_entries=5000,
        default_ttl=1800,
        eviction_policy=EvictionPolicy.LRU,
        sweep_interval=300,
    )

    def make_key(self, request: Any, options: ValidationOptions | None = None) -> str:
        options_hash = hash_structure(options) if options is not None else ""
        return self.namespaced(hash_structure(request), options_hash)


class SchemaCache(NamespacedCache[OrtbSchema]):
    """Small, long-lived FIFO cache; schemas rarely change."""

    namespace = "schema"
    default_config = CacheConfig(
        max_entries=100,
        default_ttl=7200,
        eviction_policy=EvictionPolicy.FIFO,
        sweep_interval=600,
    )

    def make_key(self, version: str) -> str:
        return self.namespaced(version)


class TemplateCache(NamespacedCache[GeneratedRequest]):
    """Generated requests keyed by ``(template id, overrides hash)``."""

    namespace = "template"
    default_config = CacheConfig(
        max_entries=500,
        default_ttl=3600,
        eviction_policy=EvictionPolicy.LRU,
        sweep_interval=300,
    )

    def make_key(self, template_id: str, overrides: dict[str, Any] | None = None) -> str:
        return self.namespaced(template_id, hash_structure(overrides or {}))
