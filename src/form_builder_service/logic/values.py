from __future__ import annotations

import math
from typing import Any, Optional


def is_empty(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return value == ""
    if isinstance(value, (list, tuple, set, dict)):
        return len(value) == 0
    return False


def as_text(value: Any) -> str:
    """Stringify an answer the way browsers submitted it (booleans lower-case, lists comma-joined)."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (list, tuple)):
        return ",".join(as_text(v) for v in value)
    return str(value)


def as_number(value: Any) -> Optional[float]:
    """Numeric coercion; `None` means "not a number". Blank strings count as 0."""
    if value is None:
        return None
    if isinstance(value, bool):
        return 1.0 if value else 0.0
    if isinstance(value, (int, float)):
        f = float(value)
        return None if math.isnan(f) else f
    raw = str(value).strip()
    if raw == "":
        return 0.0
    try:
        f = float(raw)
    except ValueError:
        return None
    return None if math.isnan(f) else f
