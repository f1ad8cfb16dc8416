# vehiclesim/util/timefmt.py
from __future__ import annotations

import datetime as _dt
from typing import Optional


def parse_time_utc(text: Optional[str]) -> Optional[_dt.datetime]:
    """
    Parse an ISO-8601 timestamp into a tz-aware UTC datetime.

    Expected examples:
      - "2024-07-20T10:00:05Z"
      - "2024-07-20T10:00:05.123Z"
      - "2024-07-20T10:00:05+05:30"

    Returns None for empty or unparseable text. Naive values are assumed UTC.
    """
    if not text:
        return None
    s = text.strip()
    if not s:
        return None

    if s.endswith("Z"):
        s = s[:-1] + "+00:00"

    try:
        dt = _dt.datetime.fromisoformat(s)
    except ValueError:
        return None

    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=_dt.timezone.utc)

    return dt.astimezone(_dt.timezone.utc)


def format_duration(seconds: float) -> str:
    """Format a duration as M:SS (whole seconds, truncated)."""
    total = max(0, int(seconds))
    minutes, rem = divmod(total, 60)
    return f"{minutes}:{rem:02d}"
