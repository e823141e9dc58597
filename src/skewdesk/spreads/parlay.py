"""Parlay check: a combined "A AND B" market priced against its single legs.

The implied parlay price is the product of the legs' YES prices on the singles
platform. A gap between that and the quoted parlay price is reported as a
`parlay` side opportunity.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

import structlog

from skewdesk.models import Market, Price, SpreadOpportunity, SpreadSide

log = structlog.get_logger(__name__)

PARLAY_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"^parlay[:\s]+(.+)$", re.IGNORECASE),
    re.compile(r"^(.+?),\s*(.+?)\s+both\s+win", re.IGNORECASE),
    re.compile(r"^(.+?)\s+and\s+(.+)$", re.IGNORECASE),
    re.compile(r"^(.+?)\s+&\s+(.+)$", re.IGNORECASE),
)

TEAM_ALIASES: dict[str, tuple[str, ...]] = {
    "lakers": ("los angeles lakers", "la lakers"),
    "celtics": ("boston celtics",),
    "warriors": ("golden state warriors", "gs warriors", "gsw"),
    "bucks": ("milwaukee bucks",),
    "nuggets": ("denver nuggets",),
    "heat": ("miami heat",),
    "suns": ("phoenix suns",),
    "eagles": ("philadelphia eagles", "philly eagles"),
    "chiefs": ("kansas city chiefs", "kc chiefs"),
    "bills": ("buffalo bills",),
    "ravens": ("baltimore ravens",),
    "lions": ("detroit lions",),
    "cowboys": ("dallas cowboys",),
    "packers": ("green bay packers", "gb packers"),
}

_WIN_SUFFIX = re.compile(r"^(.+?)\s+win")
_LEG_SPLIT = re.compile(r"\s*(?:,|&|\band\b)\s*", re.IGNORECASE)


@dataclass(frozen=True)
class ParlayConfig:
    parlay_platform: str = "kalshi"
    singles_platform: str = "azuro"
    min_skew_percent: float = 2.0


def extract_parlay_legs(title: str) -> list[str] | None:
    """Leg descriptions of a parlay title, lower-cased, or None if it is not one."""
    for pattern in PARLAY_PATTERNS:
        m = pattern.match((title or "").strip().rstrip("?"))
        if not m:
            continue
        parts = m.groups()
        if len(parts) == 1:
            parts = tuple(_LEG_SPLIT.split(parts[0]))
        legs = [p.strip().lower() for p in parts if p and p.strip()]
        return legs if len(legs) >= 2 else None
    return None


def normalize_team(name: str) -> str:
    lower = name.lower().strip()
    for canonical, aliases in TEAM_ALIASES.items():
        if canonical in lower or any(a in lower for a in aliases):
            return canonical
    m = _WIN_SUFFIX.match(lower)
    if m:
        return m.group(1).strip()
    return lower


def find_single(leg: str, singles: list[tuple[Price, Market]]) -> tuple[Price, Market] | None:
    """First single market whose title refers to the same team/outcome as the leg."""
    wanted = normalize_team(leg)
    if len(wanted) < 3:
        return None
    for price, market in singles:
        title = market.title.lower()
        normalized = normalize_team(title)
        if wanted in normalized or normalized in wanted or wanted in title:
            return price, market
    return None


def parlay_opportunity(
    parlay_price: Price,
    parlay_market: Market,
    singles: list[tuple[Price, Market]],
    config: ParlayConfig,
) -> SpreadOpportunity | None:
    """Opportunity between a parlay quote and the product of its legs, or None."""
    legs = extract_parlay_legs(parlay_market.title)
    if not legs:
        return None
    matched = []
    for leg in legs:
        single = find_single(leg, singles)
        if single is None:
            log.debug("parlay_leg_unmatched", market_id=parlay_market.market_id, leg=leg)
            return None
        matched.append(single)

    implied = 1.0
    for price, _ in matched:
        implied *= price.yes_price
    quoted = parlay_price.yes_price
    if quoted <= 0 or implied <= 0 or quoted == implied:
        return None

    if implied > quoted:
        buy_platform, sell_platform = config.parlay_platform, config.singles_platform
        buy_price, sell_price = quoted, implied
    else:
        buy_platform, sell_platform = config.singles_platform, config.parlay_platform
        buy_price, sell_price = implied, quoted

    skew = round((sell_price - buy_price) / buy_price * 100, 2)
    if skew < config.min_skew_percent:
        return None
    log.info(
        "parlay_opportunity",
        market_id=parlay_market.market_id,
        legs=len(legs),
        quoted=quoted,
        implied=round(implied, 4),
        skew=skew,
    )
    return SpreadOpportunity(
        market_id=parlay_market.market_id,
        side=SpreadSide.PARLAY,
        buy_platform=buy_platform,
        sell_platform=sell_platform,
        buy_price=round(buy_price, 4),
        sell_price=round(sell_price, 4),
        skew_percentage=skew,
        potential_profit=round((sell_price - buy_price) * 100, 2),
        source="parlay",
    )
