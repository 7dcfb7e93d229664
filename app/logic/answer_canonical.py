"""Canonicalization helpers for answer values.

Provides the shared notions of an *unanswered* value, the stable string form
used by equality conditions, and numeric coercion used by ordering
conditions and scoring.
"""

from __future__ import annotations

import math
from typing import Any, Optional

# Separator used when a multiple-choice selection is compared as a string
MULTI_SEPARATOR = ","

_COLLECTIONS = (list, tuple, set, frozenset)


def is_unanswered(value: Any) -> bool:
    """Return True for None, the empty string and empty selections."""
    if value is None:
        return True
    if isinstance(value, str):
        return value == ""
    if isinstance(value, _COLLECTIONS):
        return len(value) == 0
    return False


def is_blank(value: Any) -> bool:
    """Like `is_unanswered` but also treats whitespace-only text as missing."""
    if isinstance(value, str):
        return value.strip() == ""
    return is_unanswered(value)


def canonicalize_answer_value(value: Any) -> Optional[str]:
    """Return a stable string representation for an answer value.

    - Booleans    -> "true" / "false"
    - Numbers     -> integer form when integral, else decimal string
    - Selections  -> members joined with MULTI_SEPARATOR in selection order
    - Text        -> as-is string
    - None        -> None
    """
    if value is None:
        return None
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (set, frozenset)):
        return MULTI_SEPARATOR.join(sorted(canonicalize_answer_value(v) or "" for v in value))
    if isinstance(value, (list, tuple)):
        return MULTI_SEPARATOR.join(canonicalize_answer_value(v) or "" for v in value)
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        if math.isfinite(value) and float(int(value)) == value:
            return str(int(value))
        return str(value)
    return str(value)


def coerce_number(value: Any) -> Optional[float]:
    """Coerce a scalar answer or literal to a finite float.

    Returns None when the value is not a valid number (NaN, infinities, blank
    strings and digit-grouping underscores such as "1_000"); selections never
    coerce.
    """
    if value is None or isinstance(value, _COLLECTIONS):
        return None
    if isinstance(value, bool):
        return 1.0 if value else 0.0
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        text = value.strip()
        if not text or "_" in text:
            return None
        try:
            number = float(text)
        except ValueError:
            return None
    else:
        return None
    if not math.isfinite(number):
        return None
    return number


__all__ = [
    "MULTI_SEPARATOR",
    "is_unanswered",
    "is_blank",
    "canonicalize_answer_value",
    "coerce_number",
]
