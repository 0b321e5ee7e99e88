"""Shared fixtures: settings with test credentials and a recording mock Gong API."""

import json
from typing import Any, Dict, List, Optional, Tuple

import httpx
import pytest

from gong_mcp.config import Settings
from gong_mcp.service import ToolService
from gong_mcp.tool_registry import ToolRegistry


BASE_URL = "https://api.gong.io"


def make_settings(**overrides: Any) -> Settings:
    values: Dict[str, Any] = {
        "gong_api_base_url": BASE_URL,
        "gong_access_key": "test-key",
        "gong_secret": "test-secret",
        "gong_openapi_path": None,
        "gong_max_pages": 0,
        "adapter_tool_allowlist": None,
        "adapter_transport": "stdio",
    }
    values.update(overrides)
    return Settings(**values)


class MockGongApi:
    """Queue of canned responses per (method, path); records every request."""

    def __init__(self) -> None:
        self.requests: List[httpx.Request] = []
        self._routes: Dict[Tuple[str, str], List[Dict[str, Any]]] = {}
        self.transport = httpx.MockTransport(self._handle)

    def add(
        self,
        method: str,
        path: str,
        json: Any = None,
        status_code: int = 200,
        text: Optional[str] = None,
    ) -> None:
        self._routes.setdefault((method, path), []).append(
            {"json": json, "status_code": status_code, "text": text}
        )

    def calls(self, method: str, path: str) -> List[httpx.Request]:
        return [r for r in self.requests if r.method == method and r.url.path == path]

    def _handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        queue = self._routes.get((request.method, request.url.path))
        if not queue:
            raise AssertionError(f"No mock configured for {request.method} {request.url}")
        config = queue.pop(0) if len(queue) > 1 else queue[0]
        if config["text"] is not None:
            return httpx.Response(config["status_code"], text=config["text"])
        if config["json"] is None:
            return httpx.Response(config["status_code"])
        return httpx.Response(config["status_code"], json=config["json"])


def request_json(request: httpx.Request) -> Any:
    return json.loads(request.content)


def payload_text(payload: Dict[str, Any]) -> str:
    assert len(payload["content"]) == 1
    assert payload["content"][0]["type"] == "text"
    return payload["content"][0]["text"]


@pytest.fixture
def settings() -> Settings:
    return make_settings()


@pytest.fixture
def gong_api() -> MockGongApi:
    return MockGongApi()


@pytest.fixture
def service(settings: Settings, gong_api: MockGongApi) -> ToolService:
    return ToolService(settings, ToolRegistry(settings), transport=gong_api.transport)
