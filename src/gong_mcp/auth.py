"""Credential resolution: static basic auth and OAuth2 client credentials."""

from __future__ import annotations

import base64
import logging
import time
from typing import Callable, Dict, Mapping, Optional

import httpx

from .config import Settings
from .errors import ConfigurationError
from .models import AuthMaterial, CachedToken, OperationDescriptor, SecurityScheme


logger = logging.getLogger(__name__)

EXPIRY_MARGIN_MS = 60_000
DEFAULT_EXPIRES_IN = 3600


def basic_authorization(username: str, password: str) -> str:
    encoded = base64.b64encode(f"{username}:{password}".encode()).decode()
    return f"Basic {encoded}"


class TokenCache:
    """In-memory OAuth2 tokens keyed by ``scheme:client_id``."""

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        self._clock = clock
        self._tokens: Dict[str, CachedToken] = {}

    def now_ms(self) -> int:
        return int(self._clock() * 1000)

    def get(self, key: str) -> Optional[CachedToken]:
        cached = self._tokens.get(key)
        if cached and cached.expires_at > self.now_ms():
            return cached
        return None

    def store(self, key: str, token: str, expires_in: float) -> CachedToken:
        cached = CachedToken(
            token=token,
            expires_at=self.now_ms() + int(expires_in * 1000) - EXPIRY_MARGIN_MS,
        )
        self._tokens[key] = cached
        return cached


class CredentialProvider:
    def __init__(
        self,
        settings: Settings,
        security_schemes: Mapping[str, SecurityScheme],
        token_cache: Optional[TokenCache] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        environ: Optional[Mapping[str, str]] = None,
    ) -> None:
        self.settings = settings
        self.security_schemes = security_schemes
        self.token_cache = token_cache or TokenCache()
        self.transport = transport
        self.environ = environ

    async def resolve(self, descriptor: OperationDescriptor) -> Optional[AuthMaterial]:
        scheme_name = descriptor.security_requirement
        if not scheme_name:
            return None

        scheme = self.security_schemes.get(scheme_name)
        if scheme is None:
            raise ConfigurationError(f"Unknown security scheme '{scheme_name}'")

        if scheme.is_basic:
            return self._basic(scheme)
        if scheme.is_oauth2:
            token = await self.acquire_oauth2_token(scheme)
            if not token:
                return None
            return AuthMaterial(scheme=scheme.name, authorization=f"Bearer {token}")

        raise ConfigurationError(
            f"Unsupported security scheme '{scheme_name}' (type={scheme.type})"
        )

    def _basic(self, scheme: SecurityScheme) -> AuthMaterial:
        access_key = self.settings.gong_access_key
        secret = self.settings.gong_secret
        if not access_key or not secret:
            raise ConfigurationError(
                "Missing Gong credentials: GONG_ACCESS_KEY and GONG_SECRET must be set"
            )
        return AuthMaterial(scheme=scheme.name, authorization=basic_authorization(access_key, secret))

    async def acquire_oauth2_token(self, scheme: SecurityScheme) -> Optional[str]:
        client = self.settings.oauth_client_config(scheme.name, self.environ)
        if not client.complete:
            logger.error("Missing client credentials for OAuth2 scheme '%s'", scheme.name)
            return None

        cache_key = f"{scheme.name}:{client.client_id}"
        cached = self.token_cache.get(cache_key)
        if cached:
            logger.debug(
                "Using cached OAuth2 token for '%s' (expires in %ss)",
                scheme.name,
                (cached.expires_at - self.token_cache.now_ms()) // 1000,
            )
            return cached.token

        if not scheme.token_url:
            logger.error("No supported OAuth2 flow found for '%s'", scheme.name)
            return None

        form = {"grant_type": "client_credentials"}
        if client.scopes:
            form["scope"] = client.scopes

        logger.info("Requesting OAuth2 token for '%s' from %s", scheme.name, scheme.token_url)
        try:
            async with httpx.AsyncClient(
                timeout=self.settings.gong_api_timeout_seconds, transport=self.transport
            ) as http:
                response = await http.post(
                    scheme.token_url,
                    data=form,
                    auth=(client.client_id, client.client_secret),
                    headers={"Accept": "application/json"},
                )
            response.raise_for_status()
            payload = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            logger.error("Error acquiring OAuth2 token for '%s': %s", scheme.name, exc)
            return None

        token = payload.get("access_token") if isinstance(payload, dict) else None
        if not token:
            logger.error(
                "Failed to acquire OAuth2 token for '%s': no access_token in response",
                scheme.name,
            )
            return None

        expires_in = payload.get("expires_in") or DEFAULT_EXPIRES_IN
        self.token_cache.store(cache_key, token, float(expires_in))
        logger.info("Acquired OAuth2 token for '%s' (expires in %ss)", scheme.name, expires_in)
        return token
