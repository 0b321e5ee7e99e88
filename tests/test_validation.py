"""Tests for input schema compilation and argument normalization."""

import pytest

from gong_mcp.catalog import OPERATIONS
from gong_mcp.errors import InputValidationError
from gong_mcp.validation import (
    PermissiveValidator,
    StrictValidator,
    compile_validator,
    paginate_requested,
)


VALID_ARGUMENTS = {
    "getv2callsbyid": {"id": "7782342274025937895", "paginate": False},
    "postv2callsextensive": {
        "requestBody": {
            "filter": {"fromDateTime": "2025-04-01T00:00:00Z", "toDateTime": "2025-04-30T23:59:59Z"},
            "contentSelector": {"context": "Extended", "contextTiming": ["Now"]},
        },
        "paginate": True,
    },
    "postv2callstranscript": {
        "requestBody": {"filter": {"callIds": ["1", "2"]}, "cursor": "abc"},
        "paginate": "true",
    },
    "getv2users": {"paginate": True},
    "getv2dataprivacydataforemailaddress": {"emailAddress": "jane@example.com", "paginate": False},
    "getv2askanythinggeneratebrief": {
        "workspace-id": "123",
        "brief-name": "Churn risk signals",
        "entity-type": "Deal",
        "crm-entity-id": "006Pc0000093OGjIAA",
        "period-type": "LAST_90DAYS",
        "paginate": False,
    },
}


def _validator(name):
    descriptor = next(op for op in OPERATIONS if op.name == name)
    return compile_validator(descriptor.input_schema, descriptor.name)


class TestCatalogSchemas:
    @pytest.mark.parametrize("descriptor", OPERATIONS, ids=lambda op: op.name)
    def test_catalog_schemas_compile_strictly(self, descriptor):
        validator = compile_validator(descriptor.input_schema, descriptor.name)
        assert isinstance(validator, StrictValidator)

    @pytest.mark.parametrize("name", sorted(VALID_ARGUMENTS))
    def test_valid_arguments_drop_paginate(self, name):
        raw = VALID_ARGUMENTS[name]
        normalized = _validator(name).validate(raw)

        assert "paginate" not in normalized
        expected = {key: value for key, value in raw.items() if key != "paginate"}
        assert normalized == expected

    def test_raw_arguments_are_not_mutated(self):
        raw = dict(VALID_ARGUMENTS["getv2users"])
        _validator("getv2users").validate(raw)
        assert raw == {"paginate": True}


class TestStrictValidation:
    def test_missing_required_field(self):
        with pytest.raises(InputValidationError) as exc_info:
            _validator("postv2callsextensive").validate({"paginate": True})
        assert "requestBody" in str(exc_info.value)

    def test_missing_nested_required_field(self):
        with pytest.raises(InputValidationError) as exc_info:
            _validator("postv2callstranscript").validate({"requestBody": {"cursor": "x"}})
        assert "requestBody.filter" in str(exc_info.value)

    def test_enum_membership(self):
        args = dict(VALID_ARGUMENTS["getv2askanythinggeneratebrief"], **{"entity-type": "Lead"})
        with pytest.raises(InputValidationError) as exc_info:
            _validator("getv2askanythinggeneratebrief").validate(args)
        assert "entity-type" in str(exc_info.value)

    def test_nested_array_item_type(self):
        args = {"requestBody": {"filter": {"callIds": "not-a-list"}}}
        with pytest.raises(InputValidationError):
            _validator("postv2callsextensive").validate(args)

    def test_primitive_type(self):
        with pytest.raises(InputValidationError):
            _validator("getv2callsbyid").validate({"id": {"nested": True}})

    def test_non_object_arguments(self):
        with pytest.raises(InputValidationError):
            _validator("getv2users").validate(["cursor"])

    def test_none_arguments_treated_as_empty(self):
        assert _validator("getv2users").validate(None) == {}

    def test_undeclared_fields_pass_through(self):
        args = {
            "requestBody": {
                "filter": {"fromDateTime": "2025-04-01T00:00:00Z", "workspaceId": "42"},
                "futureOption": {"enabled": True},
            },
            "traceId": "abc-123",
        }
        normalized = _validator("postv2callsextensive").validate(args)
        assert normalized == args

    def test_unset_optional_fields_are_not_injected(self):
        args = {k: v for k, v in VALID_ARGUMENTS["getv2askanythinggeneratebrief"].items()}
        normalized = _validator("getv2askanythinggeneratebrief").validate(args)
        assert "from-date-time" not in normalized
        assert "to-date-time" not in normalized

    def test_invalid_paginate_value_is_rejected(self):
        with pytest.raises(InputValidationError):
            _validator("getv2users").validate({"paginate": {"all": True}})

    @pytest.mark.parametrize("value", ["yes", 1, "on", "TRUE"])
    def test_paginate_accepts_only_bool_or_true_false_strings(self, value):
        with pytest.raises(InputValidationError) as exc_info:
            _validator("getv2users").validate({"paginate": value})
        assert "paginate" in str(exc_info.value)

    @pytest.mark.parametrize(
        "type_name, value",
        [
            ("integer", "5"),
            ("integer", 5.0),
            ("integer", True),
            ("boolean", "yes"),
            ("boolean", 1),
            ("string", 12),
            ("number", "1.5"),
        ],
    )
    def test_primitives_are_not_coerced(self, type_name, value):
        schema = {"type": "object", "properties": {"limit": {"type": type_name}}}
        with pytest.raises(InputValidationError) as exc_info:
            compile_validator(schema, "coercion").validate({"limit": value})
        assert "limit" in str(exc_info.value)

    def test_number_accepts_int_and_float(self):
        schema = {"type": "object", "properties": {"ratio": {"type": "number"}}}
        validator = compile_validator(schema, "numbers")
        assert validator.validate({"ratio": 2}) == {"ratio": 2}
        assert validator.validate({"ratio": 0.5}) == {"ratio": 0.5}

    def test_names_colliding_with_model_attributes(self):
        schema = {
            "type": "object",
            "properties": {
                "json": {"type": "string"},
                "schema": {"type": "integer"},
                "_private": {"type": "boolean"},
                "2fa": {"type": "string"},
            },
            "required": ["json"],
        }
        validator = compile_validator(schema, "collisions")
        assert isinstance(validator, StrictValidator)
        args = {"json": "x", "schema": 3, "_private": True, "2fa": "y"}
        assert validator.validate(args) == args

    def test_nullable_type_list(self):
        schema = {
            "type": "object",
            "properties": {"note": {"type": ["string", "null"]}},
        }
        validator = compile_validator(schema, "nullable")
        assert validator.validate({"note": None}) == {"note": None}
        with pytest.raises(InputValidationError):
            validator.validate({"note": 12})


class TestPermissiveFallback:
    @pytest.mark.parametrize(
        "schema",
        [
            "not a schema",
            None,
            {"type": "object", "properties": ["id"]},
            {"type": "object", "required": "id", "properties": {"id": {"type": "string"}}},
            {"type": "object", "properties": {"id": {"type": "strnig"}}},
            {"type": "object", "properties": {"id": {"$ref": "#/components/schemas/Id"}}},
            {"type": "array", "items": {"type": "string"}},
        ],
    )
    def test_malformed_schema_accepts_any_object(self, schema):
        validator = compile_validator(schema, "broken")
        assert isinstance(validator, PermissiveValidator)

        args = {"id": 42, "anything": ["goes"], "paginate": "true"}
        assert validator.validate(args) == {"id": 42, "anything": ["goes"]}


class TestPaginateFlag:
    @pytest.mark.parametrize(
        "args, expected",
        [
            ({"paginate": True}, True),
            ({"paginate": "true"}, True),
            ({"paginate": False}, False),
            ({"paginate": "false"}, False),
            ({"paginate": "yes"}, False),
            ({}, False),
            (None, False),
        ],
    )
    def test_paginate_requested(self, args, expected):
        assert paginate_requested(args) is expected
