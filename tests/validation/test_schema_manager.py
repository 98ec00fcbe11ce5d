import json

import pytest

from bidcheck.errors import SchemaLoadError, UnsupportedSchemaVersionError
from bidcheck.models.enums import FieldRequirement
from bidcheck.validation.schema import (
    EmbeddedSchemaSource,
    JsonFileSchemaSource,
    SchemaManager,
    extract_field_definitions,
    normalize_field_path,
    validate_against_schema,
)
from tests.factories import make_bid_request, make_impression

_MINI_SCHEMA = {
    "type": "object",
    "required": ["id"],
    "properties": {"id": {"type": "string", "description": "Request id"}},
}


class TestSchemaSources:
    async def test_embedded_knows_26(self):
        definition = await EmbeddedSchemaSource().fetch("2.6")
        assert definition["required"] == ["id", "imp", "at"]

    async def test_embedded_returns_fresh_copy(self):
        source = EmbeddedSchemaSource()
        first = await source.fetch("2.6")
        first["required"].append("extra")
        second = await source.fetch("2.6")
        assert "extra" not in second["required"]

    async def test_embedded_unknown_version(self):
        with pytest.raises(UnsupportedSchemaVersionError):
            await EmbeddedSchemaSource().fetch("1.0")

    async def test_file_source_reads_json(self, tmp_path):
        (tmp_path / "openrtb-3.0.json").write_text(json.dumps(_MINI_SCHEMA))
        definition = await JsonFileSchemaSource(tmp_path).fetch("3.0")
        assert definition == _MINI_SCHEMA

    async def test_file_source_missing_file(self, tmp_path):
        with pytest.raises(UnsupportedSchemaVersionError):
            await JsonFileSchemaSource(tmp_path).fetch("3.0")

    async def test_file_source_bad_json(self, tmp_path):
        (tmp_path / "openrtb-3.0.json").write_text("{not json")
        with pytest.raises(SchemaLoadError):
            await JsonFileSchemaSource(tmp_path).fetch("3.0")

    async def test_file_source_non_object(self, tmp_path):
        (tmp_path / "openrtb-3.0.json").write_text("[1, 2]")
        with pytest.raises(SchemaLoadError):
            await JsonFileSchemaSource(tmp_path).fetch("3.0")


class TestSchemaManager:
    async def test_load_schema_builds_metadata(self, schema_manager):
        schema = await schema_manager.load_schema("2.6")
        assert schema.version == "2.6"
        assert schema.source == "embedded"
        assert schema.checksum
        assert "imp[].banner.w" in schema.field_definitions

    async def test_load_schema_is_cached(self, schema_manager, schema_cache):
        first = await schema_manager.load_schema("2.6")
        second = await schema_manager.load_schema("2.6")
        assert first is second
        assert schema_cache.has("schema:2.6")
        assert schema_cache.get_stats().hit_count == 1

    async def test_unsupported_version(self, schema_manager):
        with pytest.raises(UnsupportedSchemaVersionError):
            await schema_manager.load_schema("9.9")

    async def test_sources_tried_in_order(self, schema_cache, tmp_path):
        (tmp_path / "openrtb-2.6.json").write_text(json.dumps(_MINI_SCHEMA))
        manager = SchemaManager(schema_cache, [JsonFileSchemaSource(tmp_path), EmbeddedSchemaSource()])
        schema = await manager.load_schema("2.6")
        assert schema.source == "file"
        assert schema.definition == _MINI_SCHEMA

    async def test_falls_through_to_next_source(self, schema_cache, tmp_path):
        manager = SchemaManager(schema_cache, [JsonFileSchemaSource(tmp_path), EmbeddedSchemaSource()])
        schema = await manager.load_schema("2.6")
        assert schema.source == "embedded"

    async def test_load_error_propagates(self, schema_cache, tmp_path):
        (tmp_path / "openrtb-2.6.json").write_text("{broken")
        manager = SchemaManager(schema_cache, [JsonFileSchemaSource(tmp_path), EmbeddedSchemaSource()])
        with pytest.raises(SchemaLoadError):
            await manager.load_schema("2.6")

    async def test_get_field_definition_with_index(self, schema_manager):
        field = await schema_manager.get_field_definition("imp.0.banner.w")
        assert field is not None
        assert field.type == "integer"
        assert field.minimum == 1
        assert field.requirement == FieldRequirement.RECOMMENDED

    async def test_get_field_definition_bracket_notation(self, schema_manager):
        field = await schema_manager.get_field_definition("imp[2].id")
        assert field is not None
        assert field.required is True

    async def test_get_field_definition_unknown(self, schema_manager):
        assert await schema_manager.get_field_definition("nope.nothing") is None

    async def test_fields_by_requirement(self, schema_manager):
        required = await schema_manager.fields_by_requirement(FieldRequirement.REQUIRED)
        paths = {f.path for f in required}
        assert {"id", "imp", "at", "imp[].id"} == paths


class TestFieldCatalog:
    def test_normalize_field_path(self):
        assert normalize_field_path("imp.0.banner.w") == "imp[].banner.w"
        assert normalize_field_path("imp[3].video.mimes") == "imp[].video.mimes"
        assert normalize_field_path("imp.12") == "imp[]"
        assert normalize_field_path("device.ua") == "device.ua"

    def test_parent_paths(self):
        fields = extract_field_definitions(
            {"type": "object", "properties": {"site": {"type": "object", "properties": {"domain": {"type": "string"}}}}}
        )
        assert fields["site.domain"].parent_path == "site"
        assert fields["site.domain"].requirement == FieldRequirement.RECOMMENDED
        assert fields["site"].requirement == FieldRequirement.OPTIONAL


class TestValidateAgainstSchema:
    async def _schema(self, schema_manager):
        return await schema_manager.load_schema("2.6")

    async def test_valid_request_has_no_violations(self, schema_manager):
        result = validate_against_schema(make_bid_request(), await self._schema(schema_manager))
        assert result.is_valid
        assert "imp.0.banner.w" in result.validated_paths
        assert "root" not in result.validated_paths

    async def test_missing_required_fields(self, schema_manager):
        result = validate_against_schema({"imp": [make_impression()]}, await self._schema(schema_manager))
        missing = {(v.path, v.rule) for v in result.violations}
        assert ("id", "required-field") in missing
        assert ("at", "required-field") in missing

    async def test_null_counts_as_missing(self, schema_manager):
        result = validate_against_schema(make_bid_request(at=None), await self._schema(schema_manager))
        assert [v.path for v in result.violations if v.rule == "required-field"] == ["at"]

    async def test_type_mismatch(self, schema_manager):
        result = validate_against_schema(make_bid_request(tmax="fast"), await self._schema(schema_manager))
        violation = next(v for v in result.violations if v.path == "tmax")
        assert violation.rule == "type-validation"
        assert violation.expected == "integer"
        assert violation.actual == "string"
        assert "tmax" not in result.validated_paths

    async def test_bool_is_not_integer(self, schema_manager):
        result = validate_against_schema(make_bid_request(at=True), await self._schema(schema_manager))
        assert any(v.path == "at" and v.rule == "type-validation" for v in result.violations)

    async def test_integral_float_is_integer(self, schema_manager):
        result = validate_against_schema(make_bid_request(tmax=120.0), await self._schema(schema_manager))
        assert result.is_valid

    async def test_nested_array_paths(self, schema_manager):
        request = make_bid_request(imp=[make_impression(), make_impression(id="2", banner={"w": "wide"})])
        result = validate_against_schema(request, await self._schema(schema_manager))
        assert [v.path for v in result.violations] == ["imp.1.banner.w"]

    async def test_minimum_and_maximum(self, schema_manager):
        request = make_bid_request(user={"yob": 1800}, imp=[make_impression(bidfloor=-1)])
        result = validate_against_schema(request, await self._schema(schema_manager))
        rules = {(v.path, v.rule) for v in result.violations}
        assert ("user.yob", "minimum") in rules
        assert ("imp.0.bidfloor", "minimum") in rules

    async def test_empty_impressions(self, schema_manager):
        result = validate_against_schema(make_bid_request(imp=[]), await self._schema(schema_manager))
        rules = {v.rule for v in result.violations}
        assert {"minItems", "ortb-required-impressions"} <= rules

    async def test_empty_ids(self, schema_manager):
        request = make_bid_request(id="", imp=[make_impression(id="")])
        result = validate_against_schema(request, await self._schema(schema_manager))
        rules = {(v.path, v.rule) for v in result.violations}
        assert ("id", "ortb-required-id") in rules
        assert ("imp.0.id", "ortb-required-impression-id") in rules

    async def test_non_object_request(self, schema_manager):
        result = validate_against_schema(None, await self._schema(schema_manager))
        assert len(result.violations) == 1
        assert result.violations[0].path == "root"
        assert result.violations[0].actual == "null"
        assert result.validated_paths == []

    async def test_validated_paths_unique(self, schema_manager):
        result = validate_against_schema(make_bid_request(), await self._schema(schema_manager))
        assert len(result.validated_paths) == len(set(result.validated_paths))
