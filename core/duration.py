"""Duration parsing helpers for configuration values."""

from __future__ import annotations

import re
from datetime import timedelta

_DURATION_RE = re.compile(r"^\s*(\d+(?:\.\d+)?)\s*(ms|s|m|h|d)?\s*$", re.IGNORECASE)
_UNITS = {
    "ms": timedelta(milliseconds=1),
    "s": timedelta(seconds=1),
    "m": timedelta(minutes=1),
    "h": timedelta(hours=1),
    "d": timedelta(days=1),
}


def parse_duration(value: str | int | float) -> timedelta:
    """Parse compact duration strings like '500ms', '10s', '4h', '7d'.

    A bare number is taken as seconds. The Upstash-style spacing '10 s'
    is accepted as well.
    """
    match = _DURATION_RE.match(str(value if value is not None else ""))
    if not match:
        raise ValueError(f"Invalid duration: {value!r}. Expected '<number>[ms|s|m|h|d]'.")

    amount = float(match.group(1))
    unit = (match.group(2) or "s").lower()
    return amount * _UNITS[unit]
