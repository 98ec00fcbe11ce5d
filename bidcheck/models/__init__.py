from bidcheck.models.batch import OptimizationStats, PerformanceMetrics
from bidcheck.models.cache import CacheConfig, CacheStats
from bidcheck.models.enums import (
    AdType,
    AuctionType,
    BannerPosition,
    ComplianceLevel,
    ConnectionType,
    DeviceType,
    ErrorType,
    EvictionPolicy,
    FieldRequirement,
)
from bidcheck.models.schema import (
    FieldDefinition,
    OrtbSchema,
    SchemaCheckResult,
    SchemaViolation,
)
from bidcheck.models.template import GeneratedRequest, SampleTemplate
from bidcheck.models.validation import (
    BatchProcessingStats,
    BatchValidationResult,
    BatchValidationSummary,
    IssueFrequency,
    ProcessingError,
    ValidationError,
    ValidationOptions,
    ValidationResult,
    ValidationWarning,
)

__all__ = [
    "AdType",
    "AuctionType",
    "BannerPosition",
    "BatchProcessingStats",
    "BatchValidationResult",
    "BatchValidationSummary",
    "CacheConfig",
    "CacheStats",
    "ComplianceLevel",
    "ConnectionType",
    "DeviceType",
    "ErrorType",
    "EvictionPolicy",
    "FieldDefinition",
    "FieldRequirement",
    "GeneratedRequest",
    "IssueFrequency",
    "OptimizationStats",
    "OrtbSchema",
    "PerformanceMetrics",
    "ProcessingError",
    "SampleTemplate",
    "SchemaCheckResult",
    "SchemaViolation",
    "ValidationError",
    "ValidationOptions",
    "ValidationResult",
    "ValidationWarning",
]
