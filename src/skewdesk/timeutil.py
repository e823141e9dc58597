"""Epoch-millisecond helpers. All timestamps in the store are ms since epoch (UTC)."""

from __future__ import annotations

import time
from datetime import datetime, timezone
from typing import Any

MINUTE_MS = 60 * 1000
DAY_MS = 24 * 60 * MINUTE_MS


def now_ms() -> int:
    return int(time.time() * 1000)


def to_epoch_ms(value: Any) -> int | None:
    """Coerce int/float epoch (s or ms), datetime, or ISO-8601 string to ms epoch. None stays None."""
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        raise ValueError("boolean is not a timestamp")
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return int(value.timestamp() * 1000)
    if isinstance(value, (int, float)):
        # Values below 1e11 are seconds (1e11 ms is March 1973)
        return int(value * 1000) if abs(value) < 1e11 else int(value)
    if isinstance(value, str):
        s = value.strip()
        if s.lstrip("-").isdigit():
            return to_epoch_ms(int(s))
        if s.endswith("Z"):
            s = s[:-1] + "+00:00"
        return to_epoch_ms(datetime.fromisoformat(s))
    raise ValueError(f"unsupported timestamp: {value!r}")


def iso(ms: int | None) -> str | None:
    if ms is None:
        return None
    return datetime.fromtimestamp(ms / 1000, tz=timezone.utc).isoformat()
