"""Pass summaries returned by the match and spread passes."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any


@dataclass
class MatchReport:
    """Result of a market matching pass."""

    run_id: str
    started_at: int
    finished_at: int | None = None
    markets_scanned: int = 0
    markets_skipped: int = 0
    markets_truncated: int = 0
    platforms: dict[str, int] = field(default_factory=dict)
    mappings_cleared: int = 0
    mappings_found: int = 0
    mappings_written: int = 0
    skipped_verified: int = 0
    threshold: float = 0.4
    errors: list[str] = field(default_factory=list)
    top: list[dict[str, Any]] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class SpreadReport:
    """Result of a spread calculation pass."""

    run_id: str
    started_at: int
    finished_at: int | None = None
    prices_scanned: int = 0
    markets_scanned: int = 0
    rows_skipped: int = 0
    mappings_used: int = 0
    groups: dict[str, int] = field(default_factory=dict)
    total_opportunities: int = 0
    significant_opportunities: int = 0
    parlay_opportunities: int = 0
    deactivated: int = 0
    inserted: int = 0
    write_aborted: bool = False
    errors: list[str] = field(default_factory=list)
    top: list[dict[str, Any]] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)
