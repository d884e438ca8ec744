"""Coercion of loosely-typed source values into product field types.

All type coercion for ingestion lives here so the normalizers stay plain
field mappings.
"""

import math
import re
from datetime import datetime, timezone
from typing import Any, List, Optional

__all__ = [
    "is_missing",
    "to_number_or_none",
    "to_boolean",
    "to_string_list",
    "to_text",
    "now_iso",
]

# Leading float after non-numeric characters are stripped ("3.50.1" -> 3.50)
_NUMBER_PREFIX = re.compile(r"\d+(?:\.\d*)?|\.\d+")
_NON_NUMERIC = re.compile(r"[^0-9.]")

_TRUE_STRINGS = {"true", "1"}


def is_missing(value: Any) -> bool:
    """True for None and for NaN cells left behind by pandas."""
    if value is None:
        return True
    return isinstance(value, float) and math.isnan(value)


def to_number_or_none(raw: Any) -> Optional[float]:
    """Parse a price-like value.

    Numbers pass through. Strings are stripped of everything except digits
    and dots, then the leading float is parsed ("$1,299.00" -> 1299.0).
    Anything unparseable, including integers too large for a float, returns
    None.
    """
    if is_missing(raw) or isinstance(raw, bool):
        return None
    if isinstance(raw, (int, float)):
        try:
            return float(raw)
        except OverflowError:
            return None
    if not isinstance(raw, str):
        return None

    cleaned = _NON_NUMERIC.sub("", raw)
    match = _NUMBER_PREFIX.match(cleaned)
    if not match:
        return None
    return float(match.group())


def to_boolean(raw: Any, default: bool = True) -> bool:
    """Coerce an availability flag.

    Booleans pass through, "true" and "1" are True, any other present
    value is False. Missing values yield ``default``.
    """
    if is_missing(raw):
        return default
    if isinstance(raw, bool):
        return raw
    if isinstance(raw, str):
        return raw.strip().lower() in _TRUE_STRINGS
    return False


def to_string_list(raw: Any) -> List[Any]:
    """Wrap a scalar into a list; lists pass through as a copy."""
    if isinstance(raw, (list, tuple)):
        return list(raw)
    if is_missing(raw) or raw == "":
        return []
    return [raw if isinstance(raw, str) else str(raw)]


def to_text(raw: Any, default: Optional[str] = "") -> Optional[str]:
    """Render a present scalar as a string, else return ``default``."""
    if is_missing(raw) or raw == "":
        return default
    if isinstance(raw, bool):
        return "true" if raw else "false"
    if isinstance(raw, float) and raw.is_integer():
        return str(int(raw))
    return str(raw)


def now_iso() -> str:
    """Current UTC time as ISO-8601 with milliseconds, e.g. 2024-05-01T12:00:00.000Z."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")
