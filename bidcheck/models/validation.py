from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from bidcheck.models.enums import ComplianceLevel, ErrorType


class ValidationError(BaseModel):
    """A finding that makes a bid request invalid."""

    model_config = ConfigDict(frozen=True)

    field: str
    message: str
    code: str
    type: ErrorType
    severity: Literal["error"] = "error"
    actual_value: Any = None
    expected_value: Any = None
    suggestion: str | None = None


class ValidationWarning(BaseModel):
    """An advisory finding; never affects ``is_valid``."""

    model_config = ConfigDict(frozen=True)

    field: str
    message: str
    code: str
    actual_value: Any = None
    recommended_value: Any = None
    suggestion: str | None = None


class ValidationOptions(BaseModel):
    """Caller options that take part in the validation cache key."""

    model_config = ConfigDict(frozen=True)

    spec_version: str = "2.6"
    timeout: float | None = Field(default=None, gt=0)


class ValidationResult(BaseModel):
    is_valid: bool
    errors: list[ValidationError] = []
    warnings: list[ValidationWarning] = []
    compliance_level: ComplianceLevel
    compliance_score: int = Field(ge=0, le=100)
    validated_fields: list[str] = []
    timestamp: datetime
    validation_id: str
    spec_version: str = "2.6"
    from_cache: bool = False
    processing_time_ms: float = 0.0


class IssueFrequency(BaseModel):
    code: str
    message: str
    count: int
    percentage: int


class BatchValidationSummary(BaseModel):
    total_requests: int = 0
    valid_requests: int = 0
    invalid_requests: int = 0
    warning_requests: int = 0
    common_errors: list[IssueFrequency] = []
    common_warnings: list[IssueFrequency] = []
    average_compliance_score: int = 0


class ProcessingError(BaseModel):
    request_index: int
    error: str
    timestamp: datetime


class BatchProcessingStats(BaseModel):
    total_processing_time_ms: float = 0.0
    average_processing_time_ms: float = 0.0
    unique_requests: int = 0
    duplicates_collapsed: int = 0
    cache_hits: int = 0
    failed_processing: int = 0
    processing_errors: list[ProcessingError] = []


class BatchValidationResult(BaseModel):
    results: list[ValidationResult]
    summary: BatchValidationSummary
    overall_compliance_score: int
    timestamp: datetime
    batch_id: str
    processing_stats: BatchProcessingStats = Field(default_factory=BatchProcessingStats)
