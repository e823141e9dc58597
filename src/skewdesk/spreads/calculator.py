"""Spread calculator - cross-platform YES/NO skew from the latest quotes.

Prices are compared three ways: within an exact market id, across each mapping
the matcher stored (latest quote of one market against the other), and within a
normalised title key for markets without a mapping. Every comparison is checked
on the YES and NO sides. Near-duplicate findings (same buy/sell platforms, skew
within the tolerance) are dropped; the dedup is a linear scan over what has been
kept so far, which is fine for a few hundred opportunities per pass.
"""

from __future__ import annotations

from collections.abc import Iterable

import structlog

from skewdesk.matching.text import title_key
from skewdesk.models import Mapping, Market, Price, SpreadOpportunity, SpreadSide
from skewdesk.spreads.parlay import ParlayConfig, parlay_opportunity
from skewdesk.spreads.resolver import latest_by_platform

log = structlog.get_logger(__name__)

DEFAULT_MIN_SKEW_PERCENT = 1.0
DEFAULT_DEDUP_TOLERANCE = 0.1


def evaluate_pair(
    p1: Price, p2: Price, market_id: str, side: SpreadSide, source: str = "market_id"
) -> SpreadOpportunity | None:
    """Buy the side on the cheaper platform, sell it on the dearer one. None when skew <= 0."""
    attr = "yes_price" if side is SpreadSide.YES else "no_price"
    a, b = getattr(p1, attr), getattr(p2, attr)
    if a == b:
        return None
    buy, sell = (p1, p2) if a < b else (p2, p1)
    buy_price, sell_price = getattr(buy, attr), getattr(sell, attr)
    if buy_price <= 0:
        return None
    skew = round((sell_price - buy_price) / buy_price * 100, 2)
    if skew <= 0:
        return None
    return SpreadOpportunity(
        market_id=market_id,
        side=side,
        buy_platform=buy.platform,
        sell_platform=sell.platform,
        buy_price=buy_price,
        sell_price=sell_price,
        skew_percentage=skew,
        potential_profit=round((sell_price - buy_price) * 100, 2),
        source=source,
    )


def is_duplicate(
    kept: list[SpreadOpportunity], candidate: SpreadOpportunity, tolerance: float = DEFAULT_DEDUP_TOLERANCE
) -> bool:
    """True if kept already has the same buy/sell platforms with skew within tolerance."""
    for opp in kept:
        if (opp.side is SpreadSide.PARLAY) != (candidate.side is SpreadSide.PARLAY):
            continue
        if opp.buy_platform != candidate.buy_platform or opp.sell_platform != candidate.sell_platform:
            continue
        if round(abs(opp.skew_percentage - candidate.skew_percentage), 2) < tolerance:
            return True
    return False


def own_quote(group: list[Price], market: Market) -> Price | None:
    """Latest price of a market on its own listing platform."""
    return latest_by_platform(group).get(market.platform)


class SpreadCalculator:
    """Holds thresholds and the per-pass counters the spread pass reports."""

    def __init__(
        self,
        min_skew_percent: float = DEFAULT_MIN_SKEW_PERCENT,
        dedup_tolerance: float = DEFAULT_DEDUP_TOLERANCE,
        parlay: ParlayConfig | None = None,
    ) -> None:
        self.min_skew_percent = min_skew_percent
        self.dedup_tolerance = dedup_tolerance
        self.parlay = parlay
        self.groups: dict[str, int] = {}
        self.total_opportunities = 0
        self.skipped_prices = 0

    def _add(self, kept: list[SpreadOpportunity], opp: SpreadOpportunity | None) -> None:
        if opp is None:
            return
        if is_duplicate(kept, opp, self.dedup_tolerance):
            log.debug("spread_duplicate", market_id=opp.market_id, source=opp.source, skew=opp.skew_percentage)
            return
        kept.append(opp)

    def _scan_groups(
        self,
        kind: str,
        groups: dict[str, list[Price]],
        kept: list[SpreadOpportunity],
        representative: str | None = None,
    ) -> None:
        multi = 0
        for key, group in groups.items():
            latest = latest_by_platform(group)
            if len(latest) < 2:
                continue
            multi += 1
            platforms = sorted(latest)
            for i, pa in enumerate(platforms):
                for pb in platforms[i + 1:]:
                    p1, p2 = latest[pa], latest[pb]
                    market_id = key if representative == "key" else p1.market_id
                    self._add(kept, evaluate_pair(p1, p2, market_id, SpreadSide.YES, kind))
                    self._add(kept, evaluate_pair(p1, p2, market_id, SpreadSide.NO, kind))
        self.groups[kind] = multi

    def _scan_mappings(
        self,
        mappings: list[Mapping],
        by_market: dict[str, list[Price]],
        markets: dict[str, Market],
        kept: list[SpreadOpportunity],
    ) -> None:
        compared = 0
        for mapping in mappings:
            market_a, market_b = markets.get(mapping.market_id_a), markets.get(mapping.market_id_b)
            if market_a is None or market_b is None or market_a.platform == market_b.platform:
                continue
            price_a = own_quote(by_market.get(market_a.market_id, []), market_a)
            price_b = own_quote(by_market.get(market_b.market_id, []), market_b)
            if price_a is None or price_b is None:
                continue
            compared += 1
            self._add(kept, evaluate_pair(price_a, price_b, market_a.market_id, SpreadSide.YES, "mapping"))
            self._add(kept, evaluate_pair(price_a, price_b, market_a.market_id, SpreadSide.NO, "mapping"))
        self.groups["mapping"] = compared

    def _scan_parlays(
        self,
        cfg: ParlayConfig,
        by_market: dict[str, list[Price]],
        markets: dict[str, Market],
        kept: list[SpreadOpportunity],
    ) -> None:
        newest: dict[str, tuple[Price, Market]] = {}
        for market_id, group in by_market.items():
            market = markets[market_id]
            price = own_quote(group, market)
            if price is not None:
                newest[market_id] = (price, market)
        singles = [pm for pm in newest.values() if pm[1].platform == cfg.singles_platform]
        if not singles:
            self.groups["parlay"] = 0
            return
        checked = 0
        for price, market in newest.values():
            if market.platform != cfg.parlay_platform:
                continue
            checked += 1
            self._add(kept, parlay_opportunity(price, market, singles, cfg))
        self.groups["parlay"] = checked

    def compute(
        self,
        prices: Iterable[Price],
        markets: Iterable[Market],
        mappings: Iterable[Mapping] | None = None,
    ) -> list[SpreadOpportunity]:
        market_by_id = {m.market_id: m for m in markets}
        mapping_list = list(mappings or [])
        mapped = {m.market_id_a for m in mapping_list} | {m.market_id_b for m in mapping_list}

        by_market: dict[str, list[Price]] = {}
        by_title: dict[str, list[Price]] = {}
        self.skipped_prices = 0
        for price in prices:
            market = market_by_id.get(price.market_id)
            if market is None:
                self.skipped_prices += 1
                continue
            by_market.setdefault(price.market_id, []).append(price)
            if price.market_id in mapped:
                continue
            key = title_key(market.title)
            if key:
                by_title.setdefault(key, []).append(price)

        kept: list[SpreadOpportunity] = []
        self.groups = {}
        self._scan_groups("market_id", by_market, kept, representative="key")
        self._scan_mappings(mapping_list, by_market, market_by_id, kept)
        self._scan_groups("title", by_title, kept)
        if self.parlay is not None:
            self._scan_parlays(self.parlay, by_market, market_by_id, kept)

        self.total_opportunities = len(kept)
        significant = [o for o in kept if o.skew_percentage > self.min_skew_percent]
        significant.sort(key=lambda o: o.skew_percentage, reverse=True)
        log.info(
            "spreads_computed",
            groups=self.groups,
            total=self.total_opportunities,
            significant=len(significant),
            unknown_market_prices=self.skipped_prices,
        )
        return significant


def compute_spreads(
    prices: Iterable[Price],
    markets: Iterable[Market],
    min_skew_percent: float = DEFAULT_MIN_SKEW_PERCENT,
    mappings: Iterable[Mapping] | None = None,
    dedup_tolerance: float = DEFAULT_DEDUP_TOLERANCE,
    parlay: ParlayConfig | None = None,
) -> list[SpreadOpportunity]:
    """Significant opportunities (skew > min_skew_percent), highest skew first."""
    calc = SpreadCalculator(min_skew_percent=min_skew_percent, dedup_tolerance=dedup_tolerance, parlay=parlay)
    return calc.compute(prices, markets, mappings)
