"""SpreadOpportunity (computed) and Spread (persisted, with lifecycle)."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field


class SpreadSide(str, Enum):
    YES = "yes"
    NO = "no"
    PARLAY = "parlay"


class SpreadOpportunity(BaseModel):
    """One buy/sell discrepancy between two platforms. skew_percentage is always > 0."""

    market_id: str
    side: SpreadSide
    buy_platform: str
    sell_platform: str
    buy_price: float = Field(..., ge=0)
    sell_price: float = Field(..., ge=0)
    skew_percentage: float = Field(..., gt=0)
    potential_profit: float
    source: str = "market_id"  # market_id | mapping | title | parlay


class Spread(SpreadOpportunity):
    """Stored opportunity. expires_at is detected_at plus the configured expiry."""

    spread_id: int | None = None
    is_active: bool = True
    detected_at: int  # ms epoch
    expires_at: int  # ms epoch
