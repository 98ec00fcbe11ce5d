"""Schema loading, field catalog and structural validation.

A schema is a JSON-schema subset (``type``, ``required``, ``properties``,
``items``, ``minItems``, ``minimum``, ``maximum``, ``enum``). Schemas come
from an ordered list of sources and are cached per version.
"""

import asyncio
import json
import logging
import math
import re
from collections.abc import Callable, Mapping, Sequence
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Protocol

from bidcheck.cache.keys import hash_structure
from bidcheck.cache.specialized import SchemaCache
from bidcheck.errors import SchemaLoadError, UnsupportedSchemaVersionError
from bidcheck.models.enums import FieldRequirement
from bidcheck.models.schema import (
    FieldDefinition,
    OrtbSchema,
    SchemaCheckResult,
    SchemaViolation,
)
from bidcheck.validation.openrtb import RECOMMENDED_FIELDS, openrtb_26_schema

logger = logging.getLogger(__name__)

ROOT_PATH = "root"

_INDEX_SEGMENT = re.compile(r"\.\d+(?=\.|$)|\[\d*\]")


# ── Sources ─────────────────────────────────────────────────────────────────


class SchemaSource(Protocol):
    name: str

    async def fetch(self, version: str) -> dict[str, Any]:
        """Return the raw definition for *version*.

        Raises:
            UnsupportedSchemaVersionError: The source does not know *version*.
            SchemaLoadError: The source knows *version* but cannot read it.
        """
        ...


class EmbeddedSchemaSource:
    """Schemas compiled into the package."""

    name = "embedded"

    def __init__(self) -> None:
        self._builders: dict[str, Callable[[], dict[str, Any]]] = {"2.6": openrtb_26_schema}

    @property
    def versions(self) -> list[str]:
        return sorted(self._builders)

    async def fetch(self, version: str) -> dict[str, Any]:
        builder = self._builders.get(version)
        if builder is None:
            raise UnsupportedSchemaVersionError(f"No embedded schema for OpenRTB {version}")
        return builder()


class JsonFileSchemaSource:
    """Reads ``openrtb-<version>.json`` files from a directory."""

    name = "file"

    def __init__(self, directory: Path) -> None:
        self.directory = directory

    def path_for(self, version: str) -> Path:
        return self.directory / f"openrtb-{version}.json"

    async def fetch(self, version: str) -> dict[str, Any]:
        path = self.path_for(version)
        if not path.is_file():
            raise UnsupportedSchemaVersionError(f"Schema file not found: {path}")
        try:
            text = await asyncio.to_thread(path.read_text, encoding="utf-8")
            definition = json.loads(text)
        except (OSError, json.JSONDecodeError) as exc:
            raise SchemaLoadError(f"Could not read schema file {path}: {exc}") from exc
        if not isinstance(definition, dict):
            raise SchemaLoadError(f"Schema file {path} does not contain a JSON object")
        return definition


# ── Field catalog ───────────────────────────────────────────────────────────


def normalize_field_path(path: str) -> str:
    """Map ``imp.0.banner.w`` and ``imp[0].banner.w`` to ``imp[].banner.w``."""
    return _INDEX_SEGMENT.sub("[]", path)


def is_recommended_field(path: str) -> bool:
    return any(path == field or path.endswith(f".{field}") for field in RECOMMENDED_FIELDS)


def extract_field_definitions(definition: Mapping[str, Any]) -> dict[str, FieldDefinition]:
    """Flatten the schema into a catalog keyed by ``imp[].banner.w`` style paths."""
    fields: dict[str, FieldDefinition] = {}

    def walk(node: Mapping[str, Any], parent: str) -> None:
        required = set(node.get("required") or ())
        for name, prop in (node.get("properties") or {}).items():
            if not isinstance(prop, Mapping):
                continue
            path = f"{parent}.{name}" if parent else name
            if name in required:
                requirement = FieldRequirement.REQUIRED
            elif is_recommended_field(path):
                requirement = FieldRequirement.RECOMMENDED
            else:
                requirement = FieldRequirement.OPTIONAL
            fields[path] = FieldDefinition(
                name=name,
                path=path,
                description=prop.get("description", ""),
                type=prop.get("type", "any"),
                requirement=requirement,
                enum_values=prop.get("enum"),
                minimum=prop.get("minimum"),
                maximum=prop.get("maximum"),
                min_items=prop.get("minItems"),
                default=prop.get("default"),
                parent_path=parent,
            )
            if prop.get("type") == "object":
                walk(prop, path)
            elif prop.get("type") == "array" and isinstance(prop.get("items"), Mapping):
                walk(prop["items"], f"{path}[]")

    walk(definition, "")
    return fields


# ── Structural validation ───────────────────────────────────────────────────


def _join(parent: str, child: str | int) -> str:
    return str(child) if parent == ROOT_PATH else f"{parent}.{child}"


def _matches_type(value: Any, expected: str) -> bool:
    if expected == "object":
        return isinstance(value, Mapping)
    if expected == "array":
        return isinstance(value, list)
    if expected == "string":
        return isinstance(value, str)
    if expected == "boolean":
        return isinstance(value, bool)
    if expected == "integer":
        if isinstance(value, bool):
            return False
        return isinstance(value, int) or (isinstance(value, float) and value.is_integer())
    if expected == "number":
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return False
        return not math.isnan(value)
    return True


def _type_name(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, Mapping):
        return "object"
    if isinstance(value, list):
        return "array"
    if isinstance(value, str):
        return "string"
    if isinstance(value, int):
        return "integer"
    if isinstance(value, float):
        return "number"
    return type(value).__name__


class _StructureChecker:
    def __init__(self) -> None:
        self.violations: list[SchemaViolation] = []
        self.validated: list[str] = []

    def check(self, value: Any, node: Mapping[str, Any], path: str) -> None:
        expected = node.get("type")
        if expected and not _matches_type(value, expected):
            self.violations.append(
                SchemaViolation(
                    path=path,
                    message=f"Expected {expected}, got {_type_name(value)}",
                    rule="type-validation",
                    expected=expected,
                    actual=_type_name(value),
                )
            )
            return
        self.validated.append(path)

        if isinstance(value, list):
            self._check_array(value, node, path)
        elif isinstance(value, Mapping):
            self._check_object(value, node, path)
        elif _matches_type(value, "number"):
            self._check_bounds(value, node, path)

    def _check_array(self, value: list[Any], node: Mapping[str, Any], path: str) -> None:
        min_items = node.get("minItems")
        if min_items is not None and len(value) < min_items:
            self.violations.append(
                SchemaViolation(
                    path=path,
                    message=f"Array must contain at least {min_items} items",
                    rule="minItems",
                    expected=min_items,
                    actual=len(value),
                )
            )
        items = node.get("items")
        if isinstance(items, Mapping):
            for index, item in enumerate(value):
                self.check(item, items, _join(path, index))

    def _check_object(self, value: Mapping[str, Any], node: Mapping[str, Any], path: str) -> None:
        for name in node.get("required") or ():
            if name not in value or value[name] is None:
                self.violations.append(
                    SchemaViolation(
                        path=_join(path, name),
                        message=f"Required field '{name}' is missing",
                        rule="required-field",
                        expected="present",
                        actual=None,
                    )
                )
        for name, prop in (node.get("properties") or {}).items():
            if name in value and value[name] is not None and isinstance(prop, Mapping):
                self.check(value[name], prop, _join(path, name))

    def _check_bounds(self, value: float, node: Mapping[str, Any], path: str) -> None:
        minimum = node.get("minimum")
        maximum = node.get("maximum")
        if minimum is not None and value < minimum:
            self.violations.append(
                SchemaViolation(
                    path=path,
                    message=f"Value must be at least {minimum}",
                    rule="minimum",
                    expected=minimum,
                    actual=value,
                )
            )
        if maximum is not None and value > maximum:
            self.violations.append(
                SchemaViolation(
                    path=path,
                    message=f"Value must be at most {maximum}",
                    rule="maximum",
                    expected=maximum,
                    actual=value,
                )
            )


def _ortb_violations(request: Mapping[str, Any]) -> list[SchemaViolation]:
    """OpenRTB rules a plain JSON schema cannot express (empty-string ids)."""
    found: list[SchemaViolation] = []
    if request.get("id") == "":
        found.append(
            SchemaViolation(
                path="id",
                message="Bid request ID must be a non-empty string",
                rule="ortb-required-id",
                expected="non-empty string",
                actual="",
            )
        )
    imps = request.get("imp")
    if isinstance(imps, list):
        if not imps:
            found.append(
                SchemaViolation(
                    path="imp",
                    message="Bid request must contain at least one impression",
                    rule="ortb-required-impressions",
                    expected="non-empty array",
                    actual=[],
                )
            )
        for index, imp in enumerate(imps):
            if isinstance(imp, Mapping) and imp.get("id") == "":
                found.append(
                    SchemaViolation(
                        path=f"imp.{index}.id",
                        message="Impression ID must be a non-empty string",
                        rule="ortb-required-impression-id",
                        expected="non-empty string",
                        actual="",
                    )
                )
    return found


def validate_against_schema(request: Any, schema: OrtbSchema) -> SchemaCheckResult:
    """Check *request* against the shape described by *schema*.

    Non-object input yields a single ``type-validation`` violation at
    ``root`` and no validated paths.
    """
    checker = _StructureChecker()
    checker.check(request, schema.definition, ROOT_PATH)
    if isinstance(request, Mapping):
        checker.violations.extend(_ortb_violations(request))
    validated = [p for p in dict.fromkeys(checker.validated) if p != ROOT_PATH]
    return SchemaCheckResult(violations=checker.violations, validated_paths=validated)


# ── Manager ─────────────────────────────────────────────────────────────────


class SchemaManager:
    """Loads schemas from the first source that knows the version and caches them.

    Args:
        cache: Owned by the caller; the manager never destroys it.
        sources: Tried in order. Defaults to the embedded schemas only.
    """

    def __init__(self, cache: SchemaCache, sources: Sequence[SchemaSource] | None = None) -> None:
        self.cache = cache
        self.sources: list[SchemaSource] = list(sources or [EmbeddedSchemaSource()])

    async def load_schema(self, version: str = "2.6") -> OrtbSchema:
        key = self.cache.make_key(version)
        cached = self.cache.get(key)
        if cached is not None:
            return cached

        for source in self.sources:
            try:
                definition = await source.fetch(version)
            except UnsupportedSchemaVersionError:
                continue
            schema = OrtbSchema(
                version=version,
                definition=definition,
                field_definitions=extract_field_definitions(definition),
                source=source.name,
                checksum=hash_structure(definition),
                loaded_at=datetime.now(timezone.utc),
            )
            self.cache.set(key, schema)
            logger.info(
                "Loaded OpenRTB %s schema from %s source (%d fields)",
                version,
                source.name,
                len(schema.field_definitions),
            )
            return schema

        raise UnsupportedSchemaVersionError(f"Unsupported OpenRTB version: {version}")

    async def get_field_definition(self, path: str, version: str = "2.6") -> FieldDefinition | None:
        schema = await self.load_schema(version)
        return schema.field_definitions.get(normalize_field_path(path))

    async def fields_by_requirement(
        self, requirement: FieldRequirement, version: str = "2.6"
    ) -> list[FieldDefinition]:
        schema = await self.load_schema(version)
        return [f for f in schema.field_definitions.values() if f.requirement == requirement]

    @staticmethod
    def validate_against_schema(request: Any, schema: OrtbSchema) -> SchemaCheckResult:
        return validate_against_schema(request, schema)
