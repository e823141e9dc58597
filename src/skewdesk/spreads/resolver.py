"""Latest-price resolver - newest quote per platform."""

from __future__ import annotations

from collections.abc import Iterable

from skewdesk.models import Price


def latest_by_platform(prices: Iterable[Price]) -> dict[str, Price]:
    """Most recent Price per platform by recorded_at. A later row only replaces on a strictly newer timestamp."""
    latest: dict[str, Price] = {}
    for price in prices:
        existing = latest.get(price.platform)
        if existing is None or price.recorded_at > existing.recorded_at:
            latest[price.platform] = price
    return latest
