from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict

from bidcheck.models.enums import FieldRequirement


class FieldDefinition(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    path: str
    description: str
    type: str
    requirement: FieldRequirement = FieldRequirement.OPTIONAL
    enum_values: list[Any] | None = None
    minimum: float | None = None
    maximum: float | None = None
    min_items: int | None = None
    default: Any = None
    parent_path: str = ""

    @property
    def required(self) -> bool:
        return self.requirement == FieldRequirement.REQUIRED


class OrtbSchema(BaseModel):
    """A loaded schema: raw JSON-schema-like definition plus its field catalog."""

    version: str
    definition: dict[str, Any]
    field_definitions: dict[str, FieldDefinition] = {}
    source: str
    checksum: str
    loaded_at: datetime


class SchemaViolation(BaseModel):
    """Raw structural finding before it is classified as error or warning."""

    path: str
    message: str
    rule: str
    expected: Any = None
    actual: Any = None


class SchemaCheckResult(BaseModel):
    violations: list[SchemaViolation] = []
    validated_paths: list[str] = []

    @property
    def is_valid(self) -> bool:
        return not self.violations
