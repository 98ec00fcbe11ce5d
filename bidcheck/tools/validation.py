"""MCP tools for validating single bid requests and batches."""

import json
import logging

from fastmcp import FastMCP

from bidcheck.models.validation import BatchValidationResult, ValidationOptions, ValidationResult
from bidcheck.server import get_context
from bidcheck.tools.error_messages import safe_tool_wrapper

logger = logging.getLogger(__name__)

MAX_BATCH_LINES = 50


def format_result(result: ValidationResult) -> str:
    status = "VALID" if result.is_valid else "INVALID"
    header = f"{status}: {result.compliance_level.value} (score {result.compliance_score}/100)"
    if result.from_cache:
        header += " [cached]"
    lines = [header]

    if result.errors:
        lines.append(f"\nErrors ({len(result.errors)}):")
        for error in result.errors:
            lines.append(f"  - [{error.code}] {error.field}: {error.message}")
            if error.suggestion:
                lines.append(f"    Suggestion: {error.suggestion}")

    if result.warnings:
        lines.append(f"\nWarnings ({len(result.warnings)}):")
        for warning in result.warnings:
            lines.append(f"  - [{warning.code}] {warning.field}: {warning.message}")
            if warning.suggestion:
                lines.append(f"    Suggestion: {warning.suggestion}")

    lines.append(
        f"\nValidated {len(result.validated_fields)} fields against OpenRTB "
        f"{result.spec_version} (id {result.validation_id})"
    )
    return "\n".join(lines)


def format_batch(batch: BatchValidationResult) -> str:
    summary = batch.summary
    lines = [
        f"Batch {batch.batch_id}: {summary.total_requests} requests",
        f"  Valid: {summary.valid_requests}, invalid: {summary.invalid_requests}, "
        f"valid with warnings: {summary.warning_requests}",
        f"  Average compliance score: {batch.overall_compliance_score}/100",
    ]
    stats = batch.processing_stats
    if stats.duplicates_collapsed:
        lines.append(f"  Duplicates collapsed: {stats.duplicates_collapsed}")

    if summary.common_errors:
        lines.append("\nMost common errors:")
        for issue in summary.common_errors:
            lines.append(f"  - {issue.code}: {issue.count}x ({issue.percentage}% of requests)")
    if summary.common_warnings:
        lines.append("\nMost common warnings:")
        for issue in summary.common_warnings:
            lines.append(f"  - {issue.code}: {issue.count}x ({issue.percentage}% of requests)")

    lines.append("\nResults:")
    for index, result in enumerate(batch.results[:MAX_BATCH_LINES], start=1):
        status = "VALID" if result.is_valid else "INVALID"
        lines.append(
            f"  #{index} {status} {result.compliance_level.value} "
            f"({result.compliance_score}/100, {len(result.errors)} errors, "
            f"{len(result.warnings)} warnings)"
        )
    if len(batch.results) > MAX_BATCH_LINES:
        lines.append(f"  ... {len(batch.results) - MAX_BATCH_LINES} more")
    return "\n".join(lines)


async def _validate_request(request_json: str, spec_version: str) -> str:
    request = json.loads(request_json)
    result = await get_context().validator.validate_single(
        request, ValidationOptions(spec_version=spec_version)
    )
    return format_result(result)


async def _validate_batch(requests_json: str, spec_version: str) -> str:
    requests = json.loads(requests_json)
    if not isinstance(requests, list):
        return "Expected a JSON array of bid requests."
    if not requests:
        return "The batch is empty; nothing to validate."
    batch = await get_context().validator.validate_batch(
        requests, ValidationOptions(spec_version=spec_version)
    )
    return format_batch(batch)


def register_validation_tools(mcp: FastMCP) -> None:
    """Register validation tools on the MCP server."""

    @mcp.tool
    async def validate_request(request_json: str, spec_version: str = "2.6") -> str:
        """Validate one OpenRTB bid request and report errors, warnings and
        a 0-100 compliance score.

        Args:
            request_json: The bid request as a JSON object string.
            spec_version: OpenRTB version to validate against (default "2.6").

        Returns:
            Validity, compliance level, and each finding with a suggestion.
        """
        return await safe_tool_wrapper(_validate_request, request_json, spec_version)

    @mcp.tool
    async def validate_batch(requests_json: str, spec_version: str = "2.6") -> str:
        """Validate many OpenRTB bid requests at once. A malformed entry
        only fails itself, never the whole batch.

        Args:
            requests_json: A JSON array of bid request objects.
            spec_version: OpenRTB version to validate against (default "2.6").

        Returns:
            Batch summary, most common issues, and a line per request.
        """
        return await safe_tool_wrapper(_validate_batch, requests_json, spec_version)
