"""Spread calculation: latest-price resolver, cross-platform skew, parlay check."""

from skewdesk.spreads.calculator import SpreadCalculator, compute_spreads
from skewdesk.spreads.resolver import latest_by_platform

__all__ = ["SpreadCalculator", "compute_spreads", "latest_by_platform"]
