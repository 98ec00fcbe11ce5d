"""Validation orchestrator: caching, timing, failure isolation and batch summaries."""

import asyncio
import logging
import math
import time
from collections import Counter
from collections.abc import Callable, Sequence
from datetime import datetime, timezone
from typing import Any
from uuid import uuid4

from bidcheck.batch.optimizer import PerformanceOptimizer, ProgressCallback
from bidcheck.cache.keys import hash_structure, request_dedup_key
from bidcheck.cache.specialized import ValidationResultCache
from bidcheck.models.cache import CacheStats
from bidcheck.models.enums import ComplianceLevel, ErrorType
from bidcheck.models.validation import (
    BatchProcessingStats,
    BatchValidationResult,
    BatchValidationSummary,
    IssueFrequency,
    ProcessingError,
    ValidationError,
    ValidationOptions,
    ValidationResult,
)
from bidcheck.validation.engine import ScoringPolicy, ValidationEngine
from bidcheck.validation.schema import ROOT_PATH, SchemaManager

logger = logging.getLogger(__name__)

TOP_ISSUES_LIMIT = 10


def _new_id(prefix: str) -> str:
    return f"{prefix}_{int(time.time() * 1000)}_{uuid4().hex[:9]}"


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def _elapsed_ms(started: float) -> float:
    return round((time.perf_counter() - started) * 1000, 3)


class ValidationService:
    """Validates bid requests against a loaded schema, with result caching.

    ``validate_single`` and ``validate_batch`` never raise: an engine
    failure becomes a result carrying a single ``VALIDATION_ENGINE_ERROR``.
    Such results are returned but never cached.

    Args:
        schema_manager: Supplies the schema for each ``spec_version``.
        cache: Owned by the caller, who also destroys it.
        engine: Structural and rule-based validation.
        optimizer: Chunked, bounded-concurrency batch runner.
        scoring: Error and warning penalties.
        default_timeout: Seconds allowed per request when options give none.
        default_spec_version: Used when the caller passes no options.
        batch_chunk_size: Default chunk size for ``validate_batch``.
        batch_max_concurrency: Default in-flight limit for ``validate_batch``.
    """

    def __init__(
        self,
        schema_manager: SchemaManager,
        cache: ValidationResultCache,
        *,
        engine: ValidationEngine | None = None,
        optimizer: PerformanceOptimizer | None = None,
        scoring: ScoringPolicy | None = None,
        default_timeout: float | None = None,
        default_spec_version: str = "2.6",
        batch_chunk_size: int = 50,
        batch_max_concurrency: int = 10,
    ) -> None:
        self.schema_manager = schema_manager
        self.cache = cache
        self.engine = engine or ValidationEngine()
        self.optimizer = optimizer or PerformanceOptimizer()
        self.scoring = scoring or ScoringPolicy()
        self.default_timeout = default_timeout
        self.default_spec_version = default_spec_version
        self.batch_chunk_size = batch_chunk_size
        self.batch_max_concurrency = batch_max_concurrency

    # ── Single ──────────────────────────────────────────────────────────

    async def validate_single(
        self, request: Any, options: ValidationOptions | None = None
    ) -> ValidationResult:
        options = options or ValidationOptions(spec_version=self.default_spec_version)
        started = time.perf_counter()
        try:
            key = self.cache.make_key(request, options)
            cached = self.cache.get(key)
            if cached is not None:
                return cached.model_copy(deep=True, update={"from_cache": True})

            result = await self._run_engine(request, options, started)
            self.cache.set(key, result.model_copy(deep=True))
            return result
        except TimeoutError:
            logger.warning("Validation timed out after %ss", options.timeout or self.default_timeout)
            return self._failure_result(
                "VALIDATION_ENGINE_ERROR",
                "Validation timed out",
                options,
                started,
            )
        except Exception as exc:  # noqa: BLE001
            logger.exception("Validation engine failed")
            return self._failure_result(
                "VALIDATION_ENGINE_ERROR",
                f"Validation engine error: {exc}",
                options,
                started,
            )

    async def _run_engine(
        self, request: Any, options: ValidationOptions, started: float
    ) -> ValidationResult:
        async with asyncio.timeout(options.timeout or self.default_timeout):
            schema = await self.schema_manager.load_schema(options.spec_version)
            output = self.engine.validate(request, schema)

        error_count, warning_count = len(output.errors), len(output.warnings)
        return ValidationResult(
            is_valid=output.is_valid,
            errors=output.errors,
            warnings=output.warnings,
            compliance_level=self.scoring.compute_compliance_level(error_count, warning_count),
            compliance_score=self.scoring.compute_compliance_score(
                error_count, warning_count, len(output.validated_fields)
            ),
            validated_fields=output.validated_fields,
            timestamp=datetime.now(timezone.utc),
            validation_id=_new_id("val"),
            spec_version=options.spec_version,
            processing_time_ms=_elapsed_ms(started),
        )

    def _failure_result(
        self, code: str, message: str, options: ValidationOptions, started: float
    ) -> ValidationResult:
        return ValidationResult(
            is_valid=False,
            errors=[
                ValidationError(
                    field=ROOT_PATH,
                    message=message,
                    code=code,
                    type=ErrorType.SCHEMA,
                    suggestion="Check that the request is a JSON object with the OpenRTB structure",
                )
            ],
            compliance_level=ComplianceLevel.NON_COMPLIANT,
            compliance_score=0,
            timestamp=datetime.now(timezone.utc),
            validation_id=_new_id("val"),
            spec_version=options.spec_version,
            processing_time_ms=_elapsed_ms(started),
        )

    # ── Batch ───────────────────────────────────────────────────────────

    async def validate_batch(
        self,
        requests: Sequence[Any],
        options: ValidationOptions | None = None,
        *,
        chunk_size: int | None = None,
        max_concurrency: int | None = None,
        on_progress: ProgressCallback | None = None,
        operational_dedup: bool = False,
    ) -> BatchValidationResult:
        """Validate every request, isolating failures per item.

        Structurally identical requests are validated once; later copies
        receive the first result marked ``from_cache``. With
        *operational_dedup*, requests that differ only in ids, user data or
        page URLs also count as copies (see ``request_dedup_key``). The
        returned ``results`` align with *requests* index for index.
        """
        key_fn = request_dedup_key if operational_dedup else hash_structure
        options = options or ValidationOptions(spec_version=self.default_spec_version)
        started = time.perf_counter()
        keys = [_batch_key(index, request, key_fn) for index, request in enumerate(requests)]
        deduped = self.optimizer.optimize_batch(range(len(requests)), keys.__getitem__)
        processing_errors: list[ProcessingError] = []

        async def work(index: int) -> ValidationResult:
            try:
                return await self.validate_single(requests[index], options)
            except Exception as exc:  # noqa: BLE001
                logger.exception("Batch item %d failed", index)
                processing_errors.append(
                    ProcessingError(
                        request_index=index,
                        error=str(exc),
                        timestamp=datetime.now(timezone.utc),
                    )
                )
                return self._failure_result(
                    "BATCH_PROCESSING_ERROR",
                    f"Batch processing error: {exc}",
                    options,
                    time.perf_counter(),
                )

        run = await self.optimizer.process_batch_optimized(
            deduped.deduped_items,
            work,
            max_batch_size=chunk_size or self.batch_chunk_size,
            max_concurrency=max_concurrency or self.batch_max_concurrency,
            on_progress=on_progress,
            is_cache_hit=lambda result: result.from_cache,
        )

        by_key = {keys[index]: result for index, result in zip(deduped.deduped_items, run.results)}
        first_indices = set(deduped.deduped_items)
        results = [
            by_key[keys[index]]
            if index in first_indices
            else by_key[keys[index]].model_copy(deep=True, update={"from_cache": True})
            for index in range(len(requests))
        ]

        summary = self.summarize(results)
        total_ms = _elapsed_ms(started)
        logger.info(
            "Validated batch of %d requests (%d unique) in %.1f ms",
            len(requests),
            len(deduped.deduped_items),
            total_ms,
        )
        return BatchValidationResult(
            results=results,
            summary=summary,
            overall_compliance_score=summary.average_compliance_score,
            timestamp=datetime.now(timezone.utc),
            batch_id=_new_id("batch"),
            processing_stats=BatchProcessingStats(
                total_processing_time_ms=total_ms,
                average_processing_time_ms=round(total_ms / len(requests), 3) if requests else 0.0,
                unique_requests=len(deduped.deduped_items),
                duplicates_collapsed=deduped.stats.duplicates_removed,
                cache_hits=sum(1 for r in run.results if r.from_cache),
                failed_processing=len(processing_errors),
                processing_errors=processing_errors,
            ),
        )

    @staticmethod
    def summarize(results: Sequence[ValidationResult]) -> BatchValidationSummary:
        total = len(results)
        if total == 0:
            return BatchValidationSummary()

        valid = sum(1 for r in results if r.is_valid)
        return BatchValidationSummary(
            total_requests=total,
            valid_requests=valid,
            invalid_requests=total - valid,
            warning_requests=sum(1 for r in results if r.is_valid and r.warnings),
            common_errors=_top_issues([e for r in results for e in r.errors], total),
            common_warnings=_top_issues([w for r in results for w in r.warnings], total),
            average_compliance_score=_round_half_up(
                sum(r.compliance_score for r in results) / total
            ),
        )

    # ── Cache ───────────────────────────────────────────────────────────

    def get_cache_stats(self) -> CacheStats:
        return self.cache.get_stats()

    def clear_cache(self) -> None:
        self.cache.clear()

    def cleanup_cache(self) -> int:
        return self.cache.cleanup()


def _batch_key(index: int, request: Any, key_fn: Callable[[Any], str]) -> str:
    """Dedup key for a batch item; a request that cannot be hashed stays unique."""
    try:
        return key_fn(request)
    except Exception:  # noqa: BLE001
        logger.warning("Batch item %d could not be hashed; validating it on its own", index)
        return f"unhashable:{index}"


def _top_issues(issues: Sequence[Any], total_requests: int) -> list[IssueFrequency]:
    counts: Counter[str] = Counter(issue.code for issue in issues)
    messages: dict[str, str] = {}
    for issue in issues:
        messages.setdefault(issue.code, issue.message)
    return [
        IssueFrequency(
            code=code,
            message=messages[code],
            count=count,
            percentage=_round_half_up(count / total_requests * 100),
        )
        for code, count in counts.most_common(TOP_ISSUES_LIMIT)
    ]
