"""Pydantic schemas for API request/response consistency and OpenAPI docs."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


# --- Health ---
class HealthResponse(BaseModel):
    status: str = "ok"


# --- Error (consistent shape for 4xx/5xx) ---
class ErrorResponse(BaseModel):
    detail: str = Field(..., description="Human-readable message")
    code: str | None = Field(None, description="Machine-readable code, e.g. store_read_failed, pass_locked")


# --- Passes ---
class MatchPassResponse(BaseModel):
    run_id: str
    started_at: int
    finished_at: int | None = None
    markets_scanned: int
    markets_skipped: int
    markets_truncated: int
    platforms: dict[str, int]
    mappings_cleared: int
    mappings_found: int
    mappings_written: int
    skipped_verified: int
    threshold: float
    errors: list[str]
    top: list[dict[str, Any]]


class SpreadPassResponse(BaseModel):
    run_id: str
    started_at: int
    finished_at: int | None = None
    prices_scanned: int
    markets_scanned: int
    rows_skipped: int
    mappings_used: int
    groups: dict[str, int]
    total_opportunities: int
    significant_opportunities: int
    parlay_opportunities: int
    deactivated: int
    inserted: int
    write_aborted: bool
    errors: list[str]
    top: list[dict[str, Any]]


class PassRunResponse(BaseModel):
    run_id: str
    kind: str
    started_at: int
    finished_at: int | None = None
    error_count: int
    summary: dict[str, Any] = Field(default_factory=dict)


# --- Spreads ---
class SpreadItem(BaseModel):
    spread_id: int | None = None
    market_id: str
    side: str
    buy_platform: str
    sell_platform: str
    buy_price: float
    sell_price: float
    skew_percentage: float
    potential_profit: float
    source: str | None = None
    is_active: bool
    detected_at: int
    expires_at: int


class SpreadsListResponse(BaseModel):
    spreads: list[SpreadItem]
    total: int
    last_pass: PassRunResponse | None = Field(None, description="Most recent spread pass, for staleness/error display")


# --- Mappings ---
class MappingItem(BaseModel):
    market_id_a: str
    market_id_b: str
    platform_a: str | None = None
    platform_b: str | None = None
    similarity_score: float
    manual_verified: bool
    updated_at: int | None = None


class MappingsListResponse(BaseModel):
    mappings: list[MappingItem]
    total: int
