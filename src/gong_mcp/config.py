"""Configuration for the Gong MCP adapter."""

from __future__ import annotations

import os
import re
from dataclasses import dataclass
from functools import lru_cache
from typing import List, Mapping, Optional, Set

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


_NON_ALNUM = re.compile(r"[^A-Za-z0-9]")


@dataclass(frozen=True)
class OAuthClientConfig:
    client_id: Optional[str]
    client_secret: Optional[str]
    scopes: Optional[str]

    @property
    def complete(self) -> bool:
        return bool(self.client_id and self.client_secret)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="", case_sensitive=False)

    service_name: str = Field(default="gong-mcp")
    service_version: str = Field(default="1.2.0")

    gong_api_base_url: str = Field(default="https://api.gong.io")
    gong_access_key: Optional[str] = Field(default=None)
    gong_secret: Optional[str] = Field(default=None)
    gong_api_timeout_seconds: float = Field(default=30)
    gong_max_pages: int = Field(default=0)
    gong_openapi_path: Optional[str] = Field(default=None)

    adapter_transport: str = Field(default="stdio")
    adapter_host: str = Field(default="0.0.0.0")
    adapter_port: int = Field(default=8000)
    adapter_tool_allowlist: Optional[str] = Field(default=None)
    adapter_cors_origins: str = Field(default="*")
    adapter_log_level: str = Field(default="INFO")

    def tool_allowlist(self) -> Set[str]:
        if not self.adapter_tool_allowlist:
            return set()
        return {item.strip() for item in self.adapter_tool_allowlist.split(",") if item.strip()}

    def cors_origins(self) -> List[str]:
        origins = [item.strip() for item in self.adapter_cors_origins.split(",") if item.strip()]
        return origins or ["*"]

    def has_basic_credentials(self) -> bool:
        return bool(self.gong_access_key and self.gong_secret)

    def oauth_client_config(
        self, scheme_name: str, environ: Optional[Mapping[str, str]] = None
    ) -> OAuthClientConfig:
        """Read the client credentials of an OAuth2 scheme.

        Variable names are derived from the scheme name, e.g. scheme
        ``gongOAuth`` reads ``OAUTH_CLIENT_ID_GONGOAUTH``,
        ``OAUTH_CLIENT_SECRET_GONGOAUTH`` and ``OAUTH_SCOPES_GONGOAUTH``.
        """
        env = os.environ if environ is None else environ
        suffix = oauth_env_suffix(scheme_name)
        return OAuthClientConfig(
            client_id=env.get(f"OAUTH_CLIENT_ID_{suffix}") or None,
            client_secret=env.get(f"OAUTH_CLIENT_SECRET_{suffix}") or None,
            scopes=env.get(f"OAUTH_SCOPES_{suffix}") or None,
        )


def oauth_env_suffix(scheme_name: str) -> str:
    return _NON_ALNUM.sub("_", scheme_name).upper()


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
