"""Mapping - two markets on different platforms believed to be the same event."""

from __future__ import annotations

from pydantic import BaseModel, Field, model_validator


def pair_key(market_id_a: str, market_id_b: str) -> tuple[str, str]:
    """Canonical key for an unordered pair of market ids."""
    return (market_id_a, market_id_b) if market_id_a <= market_id_b else (market_id_b, market_id_a)


class Mapping(BaseModel):
    """Cross-platform correspondence. Ids are stored in canonical (sorted) order."""

    market_id_a: str
    market_id_b: str
    platform_a: str | None = None
    platform_b: str | None = None
    similarity_score: float = Field(..., ge=0, le=1)
    manual_verified: bool = False
    updated_at: int | None = None  # ms epoch

    @model_validator(mode="after")
    def _canonical_order(self) -> Mapping:
        if self.market_id_a > self.market_id_b:
            self.market_id_a, self.market_id_b = self.market_id_b, self.market_id_a
            self.platform_a, self.platform_b = self.platform_b, self.platform_a
        return self

    @property
    def key(self) -> tuple[str, str]:
        return (self.market_id_a, self.market_id_b)
