"""Core tool execution service."""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, List, Mapping, Optional

import httpx

from .auth import CredentialProvider, TokenCache
from .config import Settings
from .errors import AdapterError, ConfigurationError, UnknownToolError, format_error
from .executors import RequestBuilder
from .logging import redact_payload
from .pagination import PaginationEngine
from .tool_registry import ToolRegistry
from .validation import paginate_requested

logger = logging.getLogger(__name__)


class ToolService:
    """
    Executes catalog operations on behalf of the MCP layer.

    ``invoke`` never raises: validation, credential, upstream HTTP and
    unexpected failures all come back as a text payload.
    """

    def __init__(
        self,
        settings: Settings,
        tool_registry: ToolRegistry,
        token_cache: Optional[TokenCache] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        environ: Optional[Mapping[str, str]] = None,
    ) -> None:
        self.settings = settings
        self.tool_registry = tool_registry
        self.transport = transport
        self.tool_registry.load_tools()
        self.credentials = CredentialProvider(
            settings,
            tool_registry.security_schemes,
            token_cache=token_cache,
            transport=transport,
            environ=environ,
        )
        self.engine = PaginationEngine(
            RequestBuilder(settings.gong_api_base_url, settings.gong_api_timeout_seconds),
            max_pages=settings.gong_max_pages,
        )

    def list_tools(self) -> List[Dict[str, Any]]:
        return [
            {
                "name": tool.descriptor.name,
                "description": tool.descriptor.description,
                "inputSchema": tool.descriptor.input_schema,
            }
            for tool in self.tool_registry.load_tools()
        ]

    async def invoke(self, name: str, arguments: Optional[Dict[str, Any]]) -> Dict[str, Any]:
        try:
            result = await self.execute(name, arguments or {})
        except (AdapterError, httpx.HTTPError) as exc:
            logger.warning("Tool %s failed: %s", name, exc)
            return self._format_text(format_error(exc))
        except Exception as exc:
            logger.exception("Unexpected failure in tool %s", name)
            return self._format_text(format_error(exc))
        return self._format_text(json.dumps(result, indent=2, ensure_ascii=False))

    async def execute(self, name: str, arguments: Dict[str, Any]) -> Any:
        tool = self.tool_registry.get(name)
        if tool is None:
            raise UnknownToolError(name)

        descriptor = tool.descriptor
        paginate = paginate_requested(arguments)
        args = tool.validator.validate(arguments)
        logger.info(
            "Executing tool=%s paginate=%s args=%s", name, paginate, redact_payload(args)
        )

        auth = await self.credentials.resolve(descriptor)
        if auth is None and descriptor.security_requirement:
            raise ConfigurationError(
                f"Missing credentials for security scheme '{descriptor.security_requirement}'"
            )

        async with httpx.AsyncClient(
            timeout=self.settings.gong_api_timeout_seconds, transport=self.transport
        ) as client:
            return await self.engine.run(client, descriptor, args, auth, paginate=paginate)

    def _format_text(self, text: str) -> Dict[str, Any]:
        return {"content": [{"type": "text", "text": text}]}
