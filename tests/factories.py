"""Builders for Market and Price rows used across tests."""

from skewdesk.models import Market, Price
from skewdesk.timeutil import DAY_MS

NOW = 1_730_000_000_000


def make_market(market_id, platform, title, category="politics", resolution_days=None, status="active"):
    return Market(
        market_id=market_id,
        platform=platform,
        slug=market_id,
        title=title,
        category=category,
        status=status,
        resolution_date=None if resolution_days is None else NOW + resolution_days * DAY_MS,
    )


def make_price(market_id, platform, yes, no, recorded_at=NOW, volume=1000.0):
    return Price(
        market_id=market_id,
        platform=platform,
        yes_price=yes,
        no_price=no,
        volume_24h=volume,
        total_volume=volume * 10,
        recorded_at=recorded_at,
    )
