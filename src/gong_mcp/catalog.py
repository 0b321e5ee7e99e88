"""Static operation catalog for the Gong API subset (v1.2.0).

Mirrors ``specs/gong.yaml``; ``openapi.OpenAPILoader`` derives the same table
from that document.
"""

from __future__ import annotations

from typing import Any, Dict, List

from .models import (
    PATH,
    QUERY,
    OperationDescriptor,
    ParameterBinding,
    SecurityScheme,
)


PAGINATE_PROPERTY: Dict[str, Any] = {
    "type": "boolean",
    "description": "Whether to automatically fetch all pages",
}


_CALLS_FILTER: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "fromDateTime": {"type": "string", "format": "date-time"},
        "toDateTime": {"type": "string", "format": "date-time"},
        "callIds": {"type": "array", "items": {"type": "string"}},
        "primaryUserIds": {"type": "array", "items": {"type": "string"}},
        "participantsEmails": {
            "type": "array",
            "items": {"type": "string", "format": "email"},
        },
    },
}

_CONTENT_SELECTOR: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "context": {"type": "string", "enum": ["None", "Extended"]},
        "contextTiming": {
            "type": "array",
            "items": {"type": "string", "enum": ["Now", "TimeOfCall"]},
        },
        "exposedFields": {"type": "object", "additionalProperties": {"type": "object"}},
    },
}


def _schema(properties: Dict[str, Any], required: List[str] | None = None) -> Dict[str, Any]:
    schema: Dict[str, Any] = {
        "type": "object",
        "properties": {**properties, "paginate": dict(PAGINATE_PROPERTY)},
    }
    if required:
        schema["required"] = list(required)
    return schema


def _body(properties: Dict[str, Any], required: List[str]) -> Dict[str, Any]:
    return {
        "type": "object",
        "required": list(required),
        "properties": properties,
        "description": "The JSON request body.",
    }


SECURITY_SCHEMES: Dict[str, SecurityScheme] = {
    "basicAuth": SecurityScheme(name="basicAuth", type="http", scheme="basic"),
}


OPERATIONS: List[OperationDescriptor] = [
    OperationDescriptor(
        name="getv2callsbyid",
        description="Retrieve a single call",
        http_method="GET",
        path_template="/v2/calls/{id}",
        parameter_bindings=(ParameterBinding("id", PATH),),
        input_schema=_schema({"id": {"type": "string"}}, ["id"]),
        security_requirement="basicAuth",
    ),
    OperationDescriptor(
        name="postv2callsextensive",
        description="Filtered call list with rich payload",
        http_method="POST",
        path_template="/v2/calls/extensive",
        parameter_bindings=(),
        input_schema=_schema(
            {
                "requestBody": _body(
                    {
                        "filter": _CALLS_FILTER,
                        "contentSelector": _CONTENT_SELECTOR,
                        "cursor": {"type": "string"},
                    },
                    ["filter"],
                )
            },
            ["requestBody"],
        ),
        body_content_type="application/json",
        security_requirement="basicAuth",
    ),
    OperationDescriptor(
        name="postv2callstranscript",
        description="Download transcripts",
        http_method="POST",
        path_template="/v2/calls/transcript",
        parameter_bindings=(),
        input_schema=_schema(
            {
                "requestBody": _body(
                    {"filter": _CALLS_FILTER, "cursor": {"type": "string"}},
                    ["filter"],
                )
            },
            ["requestBody"],
        ),
        body_content_type="application/json",
        security_requirement="basicAuth",
    ),
    OperationDescriptor(
        name="getv2users",
        description="List Gong users (100-row pages)",
        http_method="GET",
        path_template="/v2/users",
        parameter_bindings=(ParameterBinding("cursor", QUERY),),
        input_schema=_schema({"cursor": {"type": "string"}}),
        security_requirement="basicAuth",
    ),
    OperationDescriptor(
        name="getv2dataprivacydataforemailaddress",
        description="Activities for an email address (GDPR helper)",
        http_method="GET",
        path_template="/v2/data-privacy/data-for-email-address",
        parameter_bindings=(
            ParameterBinding("emailAddress", QUERY),
            ParameterBinding("cursor", QUERY),
        ),
        input_schema=_schema(
            {
                "emailAddress": {"type": "string", "format": "email"},
                "cursor": {"type": "string"},
            },
            ["emailAddress"],
        ),
        security_requirement="basicAuth",
    ),
    OperationDescriptor(
        name="getv2askanythinggeneratebrief",
        description="Generate account/deal brief",
        http_method="GET",
        path_template="/v2/askanything/generate-brief",
        parameter_bindings=tuple(
            ParameterBinding(name, QUERY)
            for name in (
                "workspace-id",
                "brief-name",
                "entity-type",
                "crm-entity-id",
                "period-type",
                "from-date-time",
                "to-date-time",
            )
        ),
        input_schema=_schema(
            {
                "workspace-id": {"type": "string"},
                "brief-name": {"type": "string"},
                "entity-type": {"type": "string", "enum": ["Deal", "Account"]},
                "crm-entity-id": {"type": "string"},
                "period-type": {"type": "string"},
                "from-date-time": {"type": "string", "format": "date-time"},
                "to-date-time": {"type": "string", "format": "date-time"},
            },
            ["workspace-id", "brief-name", "entity-type", "crm-entity-id", "period-type"],
        ),
        security_requirement="basicAuth",
    ),
]
