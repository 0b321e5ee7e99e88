"""Request construction and single-request execution for catalog operations."""

from __future__ import annotations

import copy
import logging
from typing import Any, Dict, Optional
from urllib.parse import quote

import httpx

from .models import (
    BODY_PARAM,
    CURSOR_PARAM,
    PATH,
    QUERY,
    AuthMaterial,
    OperationDescriptor,
)

logger = logging.getLogger(__name__)


class RequestBuilder:
    def __init__(self, base_url: str, timeout_seconds: float = 30) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = httpx.Timeout(timeout_seconds)

    def build(
        self,
        descriptor: OperationDescriptor,
        args: Dict[str, Any],
        auth: Optional[AuthMaterial],
        cursor: Optional[str] = None,
    ) -> httpx.Request:
        url = self.base_url + self._build_path(descriptor, args)
        query = self._build_query(descriptor, args)
        cursor_location = descriptor.cursor_location

        if cursor and cursor_location == QUERY:
            query[CURSOR_PARAM] = cursor

        headers: Dict[str, str] = {"Accept": "application/json"}
        if auth is not None:
            headers["Authorization"] = auth.authorization

        body: Any = None
        if descriptor.body_content_type:
            headers["Content-Type"] = descriptor.body_content_type
            if args.get(BODY_PARAM) is not None:
                body = copy.deepcopy(args[BODY_PARAM])
                if cursor and cursor_location == "body" and isinstance(body, dict):
                    body[CURSOR_PARAM] = cursor

        return httpx.Request(
            descriptor.http_method,
            url,
            params=query or None,
            headers=headers,
            json=body,
            extensions={"timeout": self.timeout.as_dict()},
        )

    def _build_path(self, descriptor: OperationDescriptor, args: Dict[str, Any]) -> str:
        path = descriptor.path_template
        for binding in descriptor.bindings(PATH):
            value = args.get(binding.name)
            if value is not None:
                path = path.replace(f"{{{binding.name}}}", quote(_stringify(value), safe=""))
        return path

    def _build_query(self, descriptor: OperationDescriptor, args: Dict[str, Any]) -> Dict[str, Any]:
        query: Dict[str, Any] = {}
        for binding in descriptor.bindings(QUERY):
            value = args.get(binding.name)
            if value is None:
                continue
            if isinstance(value, (list, tuple)):
                query[binding.name] = [_stringify(item) for item in value]
            else:
                query[binding.name] = _stringify(value)
        return query


class RestExecutor:
    """Sends one built request and decodes the response body."""

    async def execute(self, client: httpx.AsyncClient, request: httpx.Request) -> Any:
        logger.debug("Sending %s %s", request.method, request.url)
        response = await client.send(request)
        response.raise_for_status()
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError:
            logger.warning(
                "Non-JSON response from %s %s; returning raw text", request.method, request.url
            )
            return response.text


def _stringify(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)
