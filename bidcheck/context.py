"""Explicitly owned runtime: caches plus the services that use them."""

import logging
from typing import Any

from bidcheck.batch.optimizer import PerformanceOptimizer
from bidcheck.cache.specialized import SchemaCache, TemplateCache, ValidationResultCache
from bidcheck.config import Settings
from bidcheck.models.cache import CacheStats
from bidcheck.templates.manager import TemplateManager
from bidcheck.validation.engine import ScoringPolicy, ValidationEngine
from bidcheck.validation.schema import EmbeddedSchemaSource, JsonFileSchemaSource, SchemaManager, SchemaSource
from bidcheck.validation.service import ValidationService

logger = logging.getLogger(__name__)


class ValidatorContext:
    """Owns the three caches and the services built on them.

    Whoever constructs a context must call ``destroy()`` when done; it
    stops every cache sweep task.
    """

    def __init__(
        self,
        *,
        validation_cache: ValidationResultCache,
        schema_cache: SchemaCache,
        template_cache: TemplateCache,
        schema_manager: SchemaManager,
        validator: ValidationService,
        templates: TemplateManager,
    ) -> None:
        self.validation_cache = validation_cache
        self.schema_cache = schema_cache
        self.template_cache = template_cache
        self.schema_manager = schema_manager
        self.validator = validator
        self.templates = templates

    @classmethod
    def from_settings(cls, settings: Settings, **cache_kwargs: Any) -> "ValidatorContext":
        """Wire caches and services from *settings*.

        *cache_kwargs* go to every cache constructor (e.g. ``clock=`` in tests).
        """
        validation_cache = ValidationResultCache.from_settings(settings, **cache_kwargs)
        schema_cache = SchemaCache.from_settings(settings, **cache_kwargs)
        template_cache = TemplateCache.from_settings(settings, **cache_kwargs)

        sources: list[SchemaSource] = []
        if settings.schema_dir is not None:
            sources.append(JsonFileSchemaSource(settings.schema_dir))
        sources.append(EmbeddedSchemaSource())
        schema_manager = SchemaManager(schema_cache, sources)

        validator = ValidationService(
            schema_manager,
            validation_cache,
            engine=ValidationEngine(),
            optimizer=PerformanceOptimizer(),
            scoring=ScoringPolicy(
                error_penalty=settings.error_penalty,
                warning_penalty=settings.warning_penalty,
            ),
            default_timeout=settings.validation_timeout_seconds,
            default_spec_version=settings.schema_version,
            batch_chunk_size=settings.batch_chunk_size,
            batch_max_concurrency=settings.batch_max_concurrency,
        )
        return cls(
            validation_cache=validation_cache,
            schema_cache=schema_cache,
            template_cache=template_cache,
            schema_manager=schema_manager,
            validator=validator,
            templates=TemplateManager(template_cache),
        )

    @property
    def caches(self) -> dict[str, ValidationResultCache | SchemaCache | TemplateCache]:
        return {
            "validation": self.validation_cache,
            "schema": self.schema_cache,
            "template": self.template_cache,
        }

    def get_cache_stats(self) -> dict[str, CacheStats]:
        return {name: cache.get_stats() for name, cache in self.caches.items()}

    def clear_cache(self) -> None:
        for cache in self.caches.values():
            cache.clear()
        logger.info("All caches cleared")

    def destroy(self) -> None:
        for cache in self.caches.values():
            cache.destroy()
