"""Logging setup and argument redaction for tool calls."""

from __future__ import annotations

import logging
import re
import sys
from typing import Any


_SENSITIVE_KEYS = re.compile(r"(token|secret|api[_-]?key|password|authorization)", re.IGNORECASE)
_EMAIL_KEYS = re.compile(r"(email)", re.IGNORECASE)
REDACTED = "***REDACTED***"

# httpx logs every request line at INFO, query strings included
_CHATTY_LOGGERS = ("httpx", "httpcore")


def configure_logging(level: str) -> None:
    # stdout carries the MCP stdio protocol
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
        stream=sys.stderr,
    )
    for name in _CHATTY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def redact_payload(payload: Any) -> Any:
    """Copy of tool arguments safe to log: credentials and email addresses masked."""
    if isinstance(payload, dict):
        redacted = {}
        for key, value in payload.items():
            if _SENSITIVE_KEYS.search(str(key)):
                redacted[key] = REDACTED
            elif _EMAIL_KEYS.search(str(key)) and value is not None:
                redacted[key] = _mask_emails(value)
            else:
                redacted[key] = redact_payload(value)
        return redacted
    if isinstance(payload, list):
        return [redact_payload(item) for item in payload]
    return payload


def _mask_emails(value: Any) -> Any:
    if isinstance(value, str):
        local, _, domain = value.partition("@")
        return f"{local[:1]}***@{domain}" if domain else REDACTED
    if isinstance(value, list):
        return [_mask_emails(item) for item in value]
    return REDACTED
