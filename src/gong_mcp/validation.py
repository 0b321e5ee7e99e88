"""Input validation compiled from operation input schemas.

Each operation gets exactly one validator, chosen when the registry loads:

* ``StrictValidator`` wraps a pydantic model built from the JSON schema. It
  checks required fields, primitive types (no coercion), enums and nested
  object/array shapes. Undeclared properties are kept (``extra="allow"``).
* ``PermissiveValidator`` is used when the schema cannot be compiled. It
  accepts any object so the operation stays callable.

Both strip the ``paginate`` flag from the normalized arguments.
"""

from __future__ import annotations

import keyword
import logging
import re
from typing import Any, Dict, List, Literal, Optional, Tuple, Type, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    StrictBool,
    StrictFloat,
    StrictInt,
    StrictStr,
    ValidationError,
    create_model,
)

from .errors import InputValidationError
from .models import PAGINATE_PARAM


logger = logging.getLogger(__name__)

_PRIMITIVES: Dict[str, Any] = {
    "string": StrictStr,
    "integer": StrictInt,
    "number": Union[StrictInt, StrictFloat],
    "boolean": StrictBool,
    "null": type(None),
}

_MODEL_CONFIG = ConfigDict(extra="allow", protected_namespaces=())

# the flag is also accepted in its string forms
_PAGINATE_ANNOTATION = Union[StrictBool, Literal["true", "false"]]


class SchemaCompileError(ValueError):
    pass


def paginate_requested(raw_args: Any) -> bool:
    if not isinstance(raw_args, dict):
        return False
    value = raw_args.get(PAGINATE_PARAM)
    return value is True or value == "true"


class StrictValidator:
    def __init__(self, model: Type[BaseModel]) -> None:
        self.model = model

    def validate(self, raw_args: Any) -> Dict[str, Any]:
        args = _ensure_object(raw_args)
        try:
            instance = self.model.model_validate(args)
        except ValidationError as exc:
            raise InputValidationError(_describe(exc)) from exc
        normalized = _prune(instance.model_dump(by_alias=True), args)
        normalized.pop(PAGINATE_PARAM, None)
        return normalized


class PermissiveValidator:
    def validate(self, raw_args: Any) -> Dict[str, Any]:
        normalized = dict(_ensure_object(raw_args))
        normalized.pop(PAGINATE_PARAM, None)
        return normalized


Validator = Union[StrictValidator, PermissiveValidator]


def compile_validator(schema: Any, operation_name: str) -> Validator:
    try:
        model = _SchemaCompiler(operation_name).compile(schema)
    except Exception as exc:
        logger.warning(
            "Input schema for %s could not be compiled (%s); validation disabled",
            operation_name,
            exc,
        )
        return PermissiveValidator()
    return StrictValidator(model)


class _SchemaCompiler:
    def __init__(self, operation_name: str) -> None:
        self.root_name = _sanitize(operation_name) or "Operation"

    def compile(self, schema: Any) -> Type[BaseModel]:
        if not isinstance(schema, dict):
            raise SchemaCompileError("input schema must be an object")
        declared = schema.get("type", "object")
        if declared != "object":
            raise SchemaCompileError(f"input schema type must be 'object', got {declared!r}")
        return self._object_model(schema, f"{self.root_name}Input", root=True)

    def _object_model(
        self, schema: Dict[str, Any], model_name: str, root: bool = False
    ) -> Type[BaseModel]:
        properties = schema.get("properties") or {}
        required = schema.get("required") or []
        if not isinstance(properties, dict):
            raise SchemaCompileError(f"{model_name}: 'properties' must be an object")
        if not isinstance(required, list):
            raise SchemaCompileError(f"{model_name}: 'required' must be a list")

        fields: Dict[str, Tuple[Any, Any]] = {}
        taken: set[str] = set()
        for name, property_schema in properties.items():
            field_name = _field_name(name, taken)
            taken.add(field_name)
            if root and name == PAGINATE_PARAM:
                annotation = _PAGINATE_ANNOTATION
            else:
                annotation = self._annotation(property_schema, f"{model_name}_{field_name}")
            description = (
                property_schema.get("description") if isinstance(property_schema, dict) else None
            )
            if name in required:
                fields[field_name] = (annotation, Field(..., alias=name, description=description))
            else:
                fields[field_name] = (
                    Optional[annotation],
                    Field(None, alias=name, description=description),
                )

        for name in required:
            if name not in properties:
                field_name = _field_name(name, taken)
                taken.add(field_name)
                fields[field_name] = (Any, Field(..., alias=name))

        return create_model(model_name, __config__=_MODEL_CONFIG, **fields)

    def _annotation(self, schema: Any, model_name: str) -> Any:
        if schema is True or schema == {}:
            return Any
        if not isinstance(schema, dict):
            raise SchemaCompileError(f"{model_name}: schema must be an object")
        if "$ref" in schema:
            raise SchemaCompileError(f"{model_name}: unresolved $ref {schema['$ref']!r}")

        if "enum" in schema:
            values = schema["enum"]
            if not isinstance(values, list) or not values:
                raise SchemaCompileError(f"{model_name}: 'enum' must be a non-empty list")
            return Literal[tuple(values)]

        for combinator in ("anyOf", "oneOf"):
            if combinator in schema:
                options = schema[combinator]
                if not isinstance(options, list) or not options:
                    raise SchemaCompileError(f"{model_name}: '{combinator}' must be a list")
                members = [
                    self._annotation(option, f"{model_name}_{index}")
                    for index, option in enumerate(options)
                ]
                return Union[tuple(members)]

        declared = schema.get("type")
        if isinstance(declared, list):
            if not declared:
                raise SchemaCompileError(f"{model_name}: empty type list")
            members = [self._annotation({**schema, "type": item}, model_name) for item in declared]
            return Union[tuple(members)]
        if declared is None:
            if "properties" in schema:
                declared = "object"
            elif "items" in schema:
                declared = "array"
            else:
                return Any

        if declared in _PRIMITIVES:
            return _PRIMITIVES[declared]
        if declared == "array":
            items = schema.get("items")
            if items is None or isinstance(items, list):
                return List[Any]
            return List[self._annotation(items, f"{model_name}Item")]
        if declared == "object":
            if schema.get("properties"):
                return self._object_model(schema, model_name)
            additional = schema.get("additionalProperties")
            if isinstance(additional, dict):
                return Dict[str, self._annotation(additional, f"{model_name}Value")]
            return Dict[str, Any]
        raise SchemaCompileError(f"{model_name}: unsupported type {declared!r}")


def _ensure_object(raw_args: Any) -> Dict[str, Any]:
    if raw_args is None:
        return {}
    if not isinstance(raw_args, dict):
        raise InputValidationError("arguments must be a JSON object")
    return raw_args


def _prune(value: Any, raw: Any) -> Any:
    """Drop keys the caller did not send (unset optional fields dump as None)."""
    if isinstance(value, dict) and isinstance(raw, dict):
        return {key: _prune(item, raw[key]) for key, item in value.items() if key in raw}
    if isinstance(value, list) and isinstance(raw, list) and len(value) == len(raw):
        return [_prune(item, raw_item) for item, raw_item in zip(value, raw)]
    return value


def _describe(exc: ValidationError) -> str:
    parts = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ())) or "arguments"
        parts.append(f"{location}: {error.get('msg')}")
    return "; ".join(parts)


def _sanitize(name: str) -> str:
    return re.sub(r"[^a-zA-Z0-9_]", "_", name)


def _field_name(name: str, taken: set[str]) -> str:
    candidate = _sanitize(str(name))
    if not candidate or candidate[0].isdigit() or candidate.startswith("_"):
        candidate = f"f_{candidate.lstrip('_')}"
    if keyword.iskeyword(candidate) or hasattr(BaseModel, candidate):
        candidate = f"{candidate}_"
    unique = candidate
    index = 1
    while unique in taken:
        unique = f"{candidate}_{index}"
        index += 1
    return unique
