"""Error taxonomy and text rendering for tool call failures."""

from __future__ import annotations

import json
from typing import Any

import httpx


MAX_BODY_PREVIEW = 200


class AdapterError(Exception):
    pass


class ConfigurationError(AdapterError):
    """Credentials or settings needed for the call are missing."""


class InputValidationError(AdapterError):
    """Caller arguments do not match the operation's input schema."""


class UnknownToolError(AdapterError):
    def __init__(self, name: str) -> None:
        super().__init__(name)
        self.name = name


def format_error(exc: BaseException) -> str:
    if isinstance(exc, InputValidationError):
        return f"Validation error: {exc}"
    if isinstance(exc, UnknownToolError):
        return f"Error: Unknown tool requested: {exc.name}"
    if isinstance(exc, ConfigurationError):
        return f"Configuration error: {exc}"
    if isinstance(exc, httpx.HTTPStatusError):
        return _format_status_error(exc.response)
    if isinstance(exc, httpx.RequestError):
        return (
            "API Network Error: No response received from server. "
            f"(Code: {type(exc).__name__})"
        )
    return f"Unexpected error: {exc}"


def _format_status_error(response: httpx.Response) -> str:
    status_text = response.reason_phrase or "Status text not available"
    message = f"API Error: Status {response.status_code} ({status_text}). "
    body = _body_text(response)
    if not body:
        return message + "No response body received."
    return message + f"Response: {_truncate(body)}"


def _body_text(response: httpx.Response) -> str:
    if not response.content:
        return ""
    try:
        data: Any = response.json()
    except ValueError:
        return response.text
    if isinstance(data, str):
        return data
    return json.dumps(data, separators=(",", ":"))


def _truncate(text: str, max_len: int = MAX_BODY_PREVIEW) -> str:
    if len(text) <= max_len:
        return text
    return text[:max_len] + "..."
