"""Tool registry: catalog descriptors paired with their compiled validators."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from .catalog import OPERATIONS, SECURITY_SCHEMES
from .config import Settings
from .models import OperationDescriptor, SecurityScheme
from .openapi import OpenAPILoader
from .validation import Validator, compile_validator


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AdapterTool:
    descriptor: OperationDescriptor
    validator: Validator


class ToolRegistry:
    def __init__(
        self,
        settings: Settings,
        openapi_loader: Optional[OpenAPILoader] = None,
    ) -> None:
        self.settings = settings
        self.openapi_loader = openapi_loader or OpenAPILoader()
        self.security_schemes: Dict[str, SecurityScheme] = {}
        self._tools: Dict[str, AdapterTool] = {}
        self._loaded = False

    def load_tools(self) -> List[AdapterTool]:
        if self._loaded:
            return list(self._tools.values())

        descriptors, schemes = self._load_catalog()
        allowlist = self.settings.tool_allowlist()

        tools: Dict[str, AdapterTool] = {}
        for descriptor in descriptors:
            if allowlist and descriptor.name not in allowlist:
                continue
            if descriptor.name in tools:
                logger.warning("Duplicate operation name %s; keeping the first", descriptor.name)
                continue
            tools[descriptor.name] = AdapterTool(
                descriptor=descriptor,
                validator=compile_validator(descriptor.input_schema, descriptor.name),
            )

        self.security_schemes = schemes
        self._tools = tools
        self._loaded = True
        logger.info("Loaded %s tools: %s", len(tools), sorted(tools))
        return list(tools.values())

    def get(self, name: str) -> Optional[AdapterTool]:
        if not self._loaded:
            self.load_tools()
        return self._tools.get(name)

    def _load_catalog(self) -> Tuple[List[OperationDescriptor], Dict[str, SecurityScheme]]:
        spec_path = self.settings.gong_openapi_path
        if not spec_path:
            return list(OPERATIONS), dict(SECURITY_SCHEMES)

        logger.info("Deriving operation catalog from %s", spec_path)
        spec = self.openapi_loader.load_file(spec_path)
        return (
            self.openapi_loader.extract_operations(spec),
            self.openapi_loader.extract_security_schemes(spec),
        )
