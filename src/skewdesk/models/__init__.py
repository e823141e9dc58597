"""Canonical schema - Market, Price, Mapping, Spread and pass reports."""

from skewdesk.models.mapping import Mapping, pair_key
from skewdesk.models.market import Market, MarketCategory, MarketStatus, Price
from skewdesk.models.report import MatchReport, SpreadReport
from skewdesk.models.spread import Spread, SpreadOpportunity, SpreadSide

__all__ = [
    "Market",
    "MarketCategory",
    "MarketStatus",
    "Price",
    "Mapping",
    "pair_key",
    "SpreadOpportunity",
    "Spread",
    "SpreadSide",
    "MatchReport",
    "SpreadReport",
]
