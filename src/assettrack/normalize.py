"""Normalization helpers.

Centralizes parsing of loosely typed form and backend values.
"""

from __future__ import annotations

import math
from typing import Any


def safe_float(value: Any) -> float | None:
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        return None
    try:
        result = float(str(value).strip()) if isinstance(value, str) else float(value)
    except (TypeError, ValueError, OverflowError):
        return None
    if math.isnan(result) or math.isinf(result):
        return None
    return result


def safe_str(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text if text else None


def names_match(left: str | None, right: str | None) -> bool:
    """Exact, case-sensitive comparison after trimming surrounding whitespace.

    Two ``None``/blank names never match.
    """
    a = safe_str(left)
    b = safe_str(right)
    if a is None or b is None:
        return False
    return a == b


def format_measurement(value: float | None) -> str:
    """Render an odometer reading without a trailing ``.0``."""
    if value is None:
        return "N/A"
    if float(value).is_integer():
        return f"{int(value):,}"
    return f"{value:,.1f}"
