"""Pure validation: structural check, rule sets and compliance scoring.

Nothing here touches a cache or the clock; ``ValidationService`` wraps
the engine with caching, timing and failure handling.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from bidcheck.models.enums import ComplianceLevel, ErrorType
from bidcheck.models.schema import OrtbSchema, SchemaViolation
from bidcheck.models.validation import ValidationError, ValidationWarning
from bidcheck.validation.rules import DEFAULT_RULES, Rule, apply_rules
from bidcheck.validation.schema import validate_against_schema

# rule -> (error type, code, suggestion); rules absent here become warnings
_ERROR_RULES: dict[str, tuple[ErrorType, str, str]] = {
    "required-field": (
        ErrorType.REQUIRED_FIELD,
        "ORTB_REQUIRED_FIELD_MISSING",
        "Add the required field to the bid request",
    ),
    "type-validation": (
        ErrorType.SCHEMA,
        "ORTB_INVALID_TYPE",
        "Change the field value to the type required by the OpenRTB specification",
    ),
    "ortb-required-id": (
        ErrorType.LOGICAL,
        "ORTB_INVALID_REQUEST_ID",
        "Provide a unique, non-empty bid request ID",
    ),
    "ortb-required-impressions": (
        ErrorType.LOGICAL,
        "ORTB_MISSING_IMPRESSIONS",
        "Add at least one impression object to the imp array",
    ),
    "ortb-required-impression-id": (
        ErrorType.LOGICAL,
        "ORTB_MISSING_IMPRESSION_ID",
        "Give every impression a non-empty ID",
    ),
}

_WARNING_RULES: dict[str, tuple[str, str]] = {
    "minimum": ("ORTB_VALUE_BELOW_MINIMUM", "Increase the value to meet the minimum"),
    "maximum": ("ORTB_VALUE_ABOVE_MAXIMUM", "Decrease the value to stay within the maximum"),
    "minItems": ("ORTB_TOO_FEW_ITEMS", "Add more items to the array"),
}


@dataclass(frozen=True)
class ScoringPolicy:
    """Penalties subtracted from a perfect score of 100."""

    error_penalty: int = 25
    warning_penalty: int = 5

    def compute_compliance_score(
        self, error_count: int, warning_count: int, validated_field_count: int
    ) -> int:
        if validated_field_count == 0:
            return 0
        score = 100 - error_count * self.error_penalty - warning_count * self.warning_penalty
        return max(0, min(100, score))

    @staticmethod
    def compute_compliance_level(error_count: int, warning_count: int) -> ComplianceLevel:
        if error_count > 0:
            return ComplianceLevel.NON_COMPLIANT
        if warning_count > 0:
            return ComplianceLevel.PARTIAL
        return ComplianceLevel.COMPLIANT


@dataclass
class EngineOutput:
    errors: list[ValidationError] = field(default_factory=list)
    warnings: list[ValidationWarning] = field(default_factory=list)
    validated_fields: list[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors


def classify_violation(violation: SchemaViolation) -> ValidationError | ValidationWarning:
    """Turn a structural finding into an error or a warning.

    Missing required fields, type mismatches and the OpenRTB id rules are
    errors; every other rule is advisory.
    """
    if violation.rule in _ERROR_RULES:
        error_type, code, suggestion = _ERROR_RULES[violation.rule]
        return ValidationError(
            field=violation.path,
            message=violation.message,
            code=code,
            type=error_type,
            actual_value=violation.actual,
            expected_value=violation.expected,
            suggestion=suggestion,
        )
    code, suggestion = _WARNING_RULES.get(
        violation.rule, ("ORTB_SCHEMA_WARNING", "Review the field against the OpenRTB specification")
    )
    return ValidationWarning(
        field=violation.path,
        message=violation.message,
        code=code,
        actual_value=violation.actual,
        recommended_value=violation.expected,
        suggestion=suggestion,
    )


class ValidationEngine:
    """Runs the structural check and, for object requests, every rule set."""

    def __init__(self, rules: tuple[Rule, ...] = DEFAULT_RULES) -> None:
        self.rules = rules

    def validate(self, request: Any, schema: OrtbSchema) -> EngineOutput:
        check = validate_against_schema(request, schema)
        output = EngineOutput(validated_fields=list(check.validated_paths))

        for violation in check.violations:
            finding = classify_violation(violation)
            if isinstance(finding, ValidationError):
                output.errors.append(finding)
            else:
                output.warnings.append(finding)

        if isinstance(request, Mapping):
            outcome = apply_rules(request, self.rules)
            output.errors.extend(outcome.errors)
            output.warnings.extend(outcome.warnings)
        return output
