"""Redaction for PostgREST request and response logging.

Every request carries the backend API key in its headers, and rows may
hold PIN or password columns. Headers, JSON bodies and error text pass
through :func:`redact_for_log` before they reach a DEBUG log or trace
callback.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

_SENSITIVE_KEYS: frozenset[str] = frozenset(
    {
        "apikey",
        "authorization",
        "admin_password",
        "field_pin",
        "password",
        "pin",
        "supabase_key",
    }
)


def redact_for_log(value: Any, *, max_string: int = 512) -> Any:
    """Copy of a header dict, JSON body or text with secrets masked.

    Long strings are cut to *max_string* characters.
    """
    if isinstance(value, str):
        return value if len(value) <= max_string else f"{value[:max_string]}...<truncated>"
    if isinstance(value, Mapping):
        return {
            str(key): "<redacted>" if str(key).lower() in _SENSITIVE_KEYS else redact_for_log(item, max_string=max_string)
            for key, item in value.items()
        }
    if isinstance(value, list):
        return [redact_for_log(item, max_string=max_string) for item in value]
    return value
