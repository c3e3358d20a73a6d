"""Normalization helpers.

Centralizes lenient parsing of loosely-typed stored values.
"""

from __future__ import annotations

import math
from typing import Any


def safe_float(value: Any) -> float | None:
    if value is None or value == "" or value == "--" or isinstance(value, bool):
        return None
    try:
        result = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(result) or math.isinf(result):
        return None
    return result


def safe_int(value: Any) -> int | None:
    parsed = safe_float(value)
    if parsed is None:
        return None
    return int(parsed)


def clamp_percent(value: Any) -> int | None:
    """Coerce *value* into an integer percentage within ``[0, 100]``.

    Unparsable values become ``None``.
    """
    parsed = safe_int(value)
    if parsed is None:
        return None
    return max(0, min(100, parsed))


def same_id(left: Any, right: Any) -> bool:
    """Compare two entity ids as strings; ``None`` never matches."""
    if left is None or right is None:
        return False
    return str(left) == str(right)
