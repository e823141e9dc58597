"""Market and Price - rows written by the ingestion adapters, read-only to the core."""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, field_validator

from skewdesk.timeutil import to_epoch_ms


class MarketCategory(str, Enum):
    CRYPTO = "crypto"
    POLITICS = "politics"
    SPORTS = "sports"
    ECONOMICS = "economics"
    ENTERTAINMENT = "entertainment"
    OTHER = "other"


class MarketStatus(str, Enum):
    ACTIVE = "active"
    RESOLVED = "resolved"
    SUSPENDED = "suspended"


class Market(BaseModel):
    """One platform-specific listing of an event."""

    market_id: str = Field(..., min_length=1)
    platform: str = Field(..., min_length=1)
    slug: str = ""
    title: str = ""
    category: MarketCategory = MarketCategory.OTHER
    status: MarketStatus = MarketStatus.ACTIVE
    resolution_date: int | None = None  # ms epoch
    updated_at: int | None = None  # ms epoch

    @field_validator("title", "slug", mode="before")
    @classmethod
    def _none_to_empty(cls, v: Any) -> Any:
        return "" if v is None else v

    @field_validator("platform", mode="before")
    @classmethod
    def _platform_tag(cls, v: Any) -> Any:
        return v.strip().lower() if isinstance(v, str) else v

    @field_validator("category", mode="before")
    @classmethod
    def _coerce_category(cls, v: Any) -> Any:
        if isinstance(v, MarketCategory):
            return v
        value = str(v or "").strip().lower()
        return value if value in MarketCategory._value2member_map_ else MarketCategory.OTHER

    @field_validator("status", mode="before")
    @classmethod
    def _coerce_status(cls, v: Any) -> Any:
        if v is None:
            return MarketStatus.ACTIVE
        return v.strip().lower() if isinstance(v, str) else v

    @field_validator("resolution_date", "updated_at", mode="before")
    @classmethod
    def _coerce_ts(cls, v: Any) -> int | None:
        return to_epoch_ms(v)

    @property
    def has_title(self) -> bool:
        return bool(self.title.strip())


class Price(BaseModel):
    """Quote snapshot for one market on one platform. Append-only."""

    market_id: str = Field(..., min_length=1)
    platform: str = Field(..., min_length=1)
    yes_price: float = Field(..., ge=0, le=1)
    no_price: float = Field(..., ge=0, le=1)
    volume_24h: float = Field(0.0, ge=0)
    total_volume: float = Field(0.0, ge=0)
    recorded_at: int  # ms epoch

    @field_validator("platform", mode="before")
    @classmethod
    def _platform_tag(cls, v: Any) -> Any:
        return v.strip().lower() if isinstance(v, str) else v

    @field_validator("volume_24h", "total_volume", mode="before")
    @classmethod
    def _volume_default(cls, v: Any) -> Any:
        return 0.0 if v is None else v

    @field_validator("recorded_at", mode="before")
    @classmethod
    def _coerce_ts(cls, v: Any) -> int | None:
        return to_epoch_ms(v)
