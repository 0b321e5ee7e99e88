"""MCP server setup for the Gong adapter."""

import logging
from typing import Any, Dict, Optional

import httpx
from fastmcp import FastMCP
from fastmcp.tools import Tool
from fastmcp.tools.tool import ToolResult
from mcp.types import TextContent
from pydantic import PrivateAttr
from starlette.middleware import Middleware
from starlette.middleware.cors import CORSMiddleware
from starlette.responses import JSONResponse

from .config import Settings
from .service import ToolService
from .tool_registry import ToolRegistry

logger = logging.getLogger(__name__)

# transport name -> FastMCP.http_app options
HTTP_TRANSPORTS: Dict[str, Dict[str, Any]] = {
    "http": {"transport": "http", "stateless_http": True, "json_response": True},
    "streamable-http": {
        "transport": "streamable-http",
        "stateless_http": True,
        "json_response": True,
    },
    "streamablehttp": {
        "transport": "streamable-http",
        "stateless_http": True,
        "json_response": True,
    },
    "sse": {"transport": "sse"},
}


class CatalogTool(Tool):
    """A catalog operation exposed as an MCP tool with its declared input schema."""

    _service: ToolService = PrivateAttr()

    async def run(self, arguments: Dict[str, Any]) -> ToolResult:
        payload = await self._service.invoke(self.name, arguments)
        return ToolResult(
            content=[TextContent(type="text", text=item["text"]) for item in payload["content"]]
        )


def build_server(
    settings: Settings, transport: Optional[httpx.AsyncBaseTransport] = None
) -> tuple[FastMCP, object | None]:
    registry = ToolRegistry(settings)
    service = ToolService(settings, registry, transport=transport)

    mcp = FastMCP(settings.service_name, instructions=_instructions(settings))
    app = _get_http_app(mcp, settings)
    _attach_healthcheck(app, settings)

    for spec in service.list_tools():
        tool = CatalogTool(
            name=spec["name"],
            description=spec["description"],
            parameters=spec["inputSchema"],
        )
        tool._service = service
        mcp.add_tool(tool)
        logger.info("Registered tool: %s", spec["name"])

    return mcp, app


def _attach_healthcheck(app, settings: Settings) -> None:  # type: ignore[no-untyped-def]
    if not app:
        return

    async def healthcheck(_request):  # type: ignore[no-untyped-def]
        return JSONResponse(
            {
                "status": "ok",
                "service": settings.service_name,
                "version": settings.service_version,
                "credentials": {"basicAuth": settings.has_basic_credentials()},
            }
        )

    app.add_route("/health", healthcheck, methods=["GET"])


def _instructions(settings: Settings) -> str:
    return (
        f"Gong API tools ({settings.service_name} v{settings.service_version}). "
        "List operations accept paginate=true to fetch and merge every page."
    )


def _get_http_app(mcp: FastMCP, settings: Settings):  # type: ignore[no-untyped-def]
    options = HTTP_TRANSPORTS.get(settings.adapter_transport.lower())
    if options is None:
        return None
    return mcp.http_app(middleware=[_cors_middleware(settings)], **options)


def _cors_middleware(settings: Settings) -> Middleware:
    origins = settings.cors_origins()
    return Middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials="*" not in origins,
        allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
        allow_headers=["*"],
        expose_headers=["mcp-session-id"],
    )
