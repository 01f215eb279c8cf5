"""Relative time formatting for log and measurement timestamps."""

from __future__ import annotations

from datetime import datetime, timezone
import math
from typing import Any

from .models import parse_timestamp

# Unit lengths in seconds, largest first
_UNITS = (
    ("y", 365 * 24 * 60 * 60),
    ("mo", 365 * 24 * 60 * 60 / 12),
    ("d", 24 * 60 * 60),
    ("h", 60 * 60),
    ("m", 60),
    ("s", 1),
)


def relative_time(timestamp: Any, now: Any = None) -> str:
    """Format ``timestamp`` relative to ``now``, e.g. "5m ago" or "in 2h".

    Accepts datetimes, ISO-8601 strings and epoch seconds. Returns "N/A"
    for values that cannot be parsed.
    """
    try:
        then = parse_timestamp(timestamp)
        current = (
            datetime.now(timezone.utc) if now is None else parse_timestamp(now)
        )
    except (TypeError, ValueError, OverflowError, OSError):
        return "N/A"

    elapsed = (then - current).total_seconds()
    for unit, length in _UNITS:
        if abs(elapsed) > length or unit == "s":
            # Halves round up, so -2.5 becomes -2
            amount = math.floor(elapsed / length + 0.5)
            break

    if amount == 0:
        return "now"
    if amount < 0:
        return f"{-amount}{unit} ago"
    return f"in {amount}{unit}"
