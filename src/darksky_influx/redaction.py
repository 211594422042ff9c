"""Helpers for redacting sensitive values from logs."""

from __future__ import annotations

import re
from collections.abc import Iterable
from typing import Any

REDACTED = "[REDACTED]"

_SENSITIVE_KEY_RE = re.compile(
    r"(authorization|token|secret|password|api[_-]?key|^key$)",
    re.IGNORECASE,
)
# DarkSky puts the API key in the URL path: /forecast/<key>/<lat>,<lon>
_FORECAST_PATH_KEY_RE = re.compile(r"(/forecast/)([^/\s'\"]+)(/)")
_AUTH_TOKEN_INLINE_RE = re.compile(
    r"(?i)\b(token)\s+[A-Za-z0-9\-._~+/:]+=*",
)
_KEY_VALUE_SECRET_RE = re.compile(
    r"""(?ix)
    \b
    (
      authorization|
      token|
      secret|
      password|
      api[_-]?key
    )
    \s*[:=]\s*
    ([^\s,;]+)
    """
)


def sanitize_text(text: str, secrets: Iterable[str | None] = ()) -> str:
    """Redact sensitive content embedded in plain text.

    `secrets` are literal values replaced wherever they occur, so a key is
    hidden even when the endpoint does not put it after `/forecast/`.
    """
    sanitized = text
    for secret in secrets:
        if secret:
            sanitized = sanitized.replace(secret, REDACTED)
    sanitized = _FORECAST_PATH_KEY_RE.sub(r"\1" + REDACTED + r"\3", sanitized)
    sanitized = _AUTH_TOKEN_INLINE_RE.sub(r"\1 " + REDACTED, sanitized)
    sanitized = _KEY_VALUE_SECRET_RE.sub(lambda m: f"{m.group(1)}={REDACTED}", sanitized)
    return sanitized


def sanitize_for_logging(value: Any) -> Any:
    """Recursively redact sensitive values in nested structures."""
    if isinstance(value, dict):
        sanitized: dict[Any, Any] = {}
        for key, child in value.items():
            if _SENSITIVE_KEY_RE.search(str(key)):
                sanitized[key] = REDACTED
            else:
                sanitized[key] = sanitize_for_logging(child)
        return sanitized
    if isinstance(value, list):
        return [sanitize_for_logging(item) for item in value]
    if isinstance(value, tuple):
        return tuple(sanitize_for_logging(item) for item in value)
    if isinstance(value, str):
        return sanitize_text(value)
    return value
