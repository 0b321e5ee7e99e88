"""Internal models for operation descriptors and credentials."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple


PATH = "path"
QUERY = "query"

PAGINATE_PARAM = "paginate"
BODY_PARAM = "requestBody"
CURSOR_PARAM = "cursor"


@dataclass(frozen=True)
class ParameterBinding:
    name: str
    location: str


@dataclass(frozen=True)
class SecurityScheme:
    name: str
    type: str
    scheme: Optional[str] = None
    token_url: Optional[str] = None

    @property
    def is_basic(self) -> bool:
        return self.type == "http" and (self.scheme or "").lower() == "basic"

    @property
    def is_oauth2(self) -> bool:
        return self.type == "oauth2"


@dataclass(frozen=True)
class OperationDescriptor:
    name: str
    description: str
    http_method: str
    path_template: str
    parameter_bindings: Tuple[ParameterBinding, ...]
    input_schema: Dict[str, Any]
    body_content_type: Optional[str] = None
    security_requirement: Optional[str] = None

    def bindings(self, location: str) -> List[ParameterBinding]:
        return [b for b in self.parameter_bindings if b.location == location]

    @property
    def cursor_location(self) -> Optional[str]:
        """Where the continuation cursor travels: ``query``, ``body`` or nowhere."""
        if any(b.name == CURSOR_PARAM for b in self.bindings(QUERY)):
            return QUERY
        if self.body_content_type:
            properties = self.input_schema.get("properties")
            body_schema = properties.get(BODY_PARAM) if isinstance(properties, dict) else None
            body_properties = (
                body_schema.get("properties") if isinstance(body_schema, dict) else None
            )
            if isinstance(body_properties, dict) and CURSOR_PARAM in body_properties:
                return "body"
        return None


@dataclass(frozen=True)
class AuthMaterial:
    scheme: str
    authorization: str


@dataclass
class CachedToken:
    token: str
    expires_at: int  # epoch milliseconds


@dataclass
class PageAccumulator:
    merged: Any = None
    cursor: Optional[str] = None
    page_count: int = 0
    merge_field: Optional[str] = None
    additional_pages: List[Any] = field(default_factory=list)
