"""OpenAPI document loader and operation parser."""

from __future__ import annotations

import copy
import json
import logging
import re
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import yaml

from .catalog import PAGINATE_PROPERTY
from .models import (
    BODY_PARAM,
    PATH,
    QUERY,
    OperationDescriptor,
    ParameterBinding,
    SecurityScheme,
)


logger = logging.getLogger(__name__)

BUNDLED_SPEC = Path(__file__).resolve().parent / "specs" / "gong.yaml"

_METHODS = ("get", "post", "put", "patch", "delete")
_MAX_REF_DEPTH = 32


class OpenAPILoader:
    def load_file(self, path: str | Path) -> Dict[str, Any]:
        spec_path = Path(path).expanduser()
        text = spec_path.read_text(encoding="utf-8")
        if spec_path.suffix.lower() == ".json":
            return json.loads(text)
        return yaml.safe_load(text)

    def extract_operations(self, spec: Dict[str, Any]) -> List[OperationDescriptor]:
        operations: List[OperationDescriptor] = []
        paths = spec.get("paths") or {}
        default_security = spec.get("security")

        for path, methods in paths.items():
            shared_parameters = (methods or {}).get("parameters") or []
            for method, operation in (methods or {}).items():
                if method.lower() not in _METHODS:
                    continue
                name = operation.get("operationId") or self._fallback_operation_id(method, path)
                bindings, properties, required = self._parameters(
                    spec, [*shared_parameters, *(operation.get("parameters") or [])], name
                )
                content_type, body_schema, body_required = self._request_body(
                    spec, operation.get("requestBody") or {}
                )
                if body_schema is not None:
                    properties[BODY_PARAM] = body_schema
                    if body_required:
                        required.append(BODY_PARAM)

                input_schema: Dict[str, Any] = {
                    "type": "object",
                    "properties": {**properties, "paginate": dict(PAGINATE_PROPERTY)},
                }
                if required:
                    input_schema["required"] = required

                operations.append(
                    OperationDescriptor(
                        name=name,
                        description=operation.get("summary") or operation.get("description") or "",
                        http_method=method.upper(),
                        path_template=path,
                        parameter_bindings=tuple(bindings),
                        input_schema=input_schema,
                        body_content_type=content_type,
                        security_requirement=self._security_requirement(
                            operation.get("security", default_security)
                        ),
                    )
                )

        return operations

    def extract_security_schemes(self, spec: Dict[str, Any]) -> Dict[str, SecurityScheme]:
        schemes: Dict[str, SecurityScheme] = {}
        declared = (spec.get("components") or {}).get("securitySchemes") or {}
        for name, raw in declared.items():
            raw = self._resolve(spec, raw)
            flows = raw.get("flows") or {}
            token_url = (flows.get("clientCredentials") or {}).get("tokenUrl") or (
                flows.get("password") or {}
            ).get("tokenUrl")
            schemes[name] = SecurityScheme(
                name=name,
                type=raw.get("type", ""),
                scheme=raw.get("scheme"),
                token_url=token_url,
            )
        return schemes

    def _parameters(
        self, spec: Dict[str, Any], parameters: List[Dict[str, Any]], operation_name: str
    ) -> Tuple[List[ParameterBinding], Dict[str, Any], List[str]]:
        bindings: List[ParameterBinding] = []
        properties: Dict[str, Any] = {}
        required: List[str] = []

        for parameter in parameters:
            parameter = self._resolve(spec, parameter)
            name = parameter.get("name")
            location = parameter.get("in")
            if not name:
                continue
            if location not in (PATH, QUERY):
                logger.debug("Skipping %s parameter %s of %s", location, name, operation_name)
                continue
            schema = self._resolve(spec, parameter.get("schema") or {"type": "string"})
            if parameter.get("description"):
                schema = {**schema, "description": parameter["description"]}
            bindings.append(ParameterBinding(name, location))
            properties[name] = schema
            if parameter.get("required", location == PATH):
                required.append(name)

        return bindings, properties, required

    def _request_body(
        self, spec: Dict[str, Any], request_body: Dict[str, Any]
    ) -> Tuple[Optional[str], Optional[Dict[str, Any]], bool]:
        request_body = self._resolve(spec, request_body)
        content = request_body.get("content") or {}
        if not content:
            return None, None, False
        content_type = "application/json" if "application/json" in content else next(iter(content))
        schema = self._resolve(spec, (content.get(content_type) or {}).get("schema") or {})
        body_schema = {
            **schema,
            "description": request_body.get("description") or "The JSON request body.",
        }
        return content_type, body_schema, bool(request_body.get("required", False))

    def _security_requirement(self, requirements: Any) -> Optional[str]:
        if not requirements:
            return None
        first = requirements[0]
        if isinstance(first, dict) and first:
            return next(iter(first))
        return None

    def _resolve(self, spec: Dict[str, Any], node: Any, depth: int = 0) -> Any:
        """Inline local ``$ref`` pointers, recursively."""
        if depth > _MAX_REF_DEPTH:
            raise ValueError("OpenAPI $ref nesting too deep (cyclic schema?)")
        if isinstance(node, list):
            return [self._resolve(spec, item, depth) for item in node]
        if not isinstance(node, dict):
            return node
        ref = node.get("$ref")
        if isinstance(ref, str):
            return self._resolve(spec, self._lookup(spec, ref), depth + 1)
        return {key: self._resolve(spec, value, depth) for key, value in node.items()}

    def _lookup(self, spec: Dict[str, Any], ref: str) -> Any:
        if not ref.startswith("#/"):
            raise ValueError(f"Only local $ref pointers are supported: {ref}")
        target: Any = spec
        for part in ref[2:].split("/"):
            part = part.replace("~1", "/").replace("~0", "~")
            if not isinstance(target, dict) or part not in target:
                raise ValueError(f"Unresolvable $ref: {ref}")
            target = target[part]
        return copy.deepcopy(target)

    def _fallback_operation_id(self, method: str, path: str) -> str:
        segments = []
        for segment in path.strip("/").split("/"):
            if segment.startswith("{") and segment.endswith("}"):
                segment = f"by{segment[1:-1]}"
            segments.append(segment)
        return re.sub(r"[^a-z0-9]", "", f"{method}{''.join(segments)}".lower())
