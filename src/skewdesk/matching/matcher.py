"""Market matcher - best-scoring target per source market, above a threshold."""

from __future__ import annotations

from dataclasses import dataclass

import structlog

from skewdesk.matching.guards import incompatibility
from skewdesk.matching.scorer import score
from skewdesk.models import Mapping, Market

log = structlog.get_logger(__name__)

DEFAULT_THRESHOLD = 0.4


@dataclass
class Candidate:
    """Best target found for one source market."""

    source: Market
    target: Market
    score: float

    def to_mapping(self, updated_at: int | None = None) -> Mapping:
        return Mapping(
            market_id_a=self.source.market_id,
            market_id_b=self.target.market_id,
            platform_a=self.source.platform,
            platform_b=self.target.platform,
            similarity_score=round(self.score, 4),
            manual_verified=False,
            updated_at=updated_at,
        )


def _usable(markets: list[Market], role: str) -> list[Market]:
    usable = []
    for m in markets:
        if not m.has_title:
            log.warning("skip_market_missing_title", market_id=m.market_id, platform=m.platform, role=role)
            continue
        usable.append(m)
    return usable


def best_candidates(
    source_markets: list[Market],
    target_markets: list[Market],
    threshold: float = DEFAULT_THRESHOLD,
    compatibility_guards: bool = False,
) -> list[Candidate]:
    """For each source market, the highest-scoring target if it reaches threshold.

    Ties keep the first target seen. O(len(source) * len(target)).
    """
    targets = _usable(target_markets, "target")
    found: list[Candidate] = []
    for source in _usable(source_markets, "source"):
        best: Market | None = None
        best_score = -1.0
        for target in targets:
            if target.market_id == source.market_id:
                continue
            if compatibility_guards and incompatibility(source.title, target.title):
                continue
            s = score(source, target)
            if s > best_score:
                best, best_score = target, s
        if best is not None and best_score >= threshold:
            found.append(Candidate(source=source, target=best, score=best_score))
    return found


def match(
    source_markets: list[Market],
    target_markets: list[Market],
    threshold: float = DEFAULT_THRESHOLD,
    compatibility_guards: bool = False,
    updated_at: int | None = None,
) -> list[Mapping]:
    """Mappings from each source market to its best target at or above threshold."""
    candidates = best_candidates(source_markets, target_markets, threshold, compatibility_guards)
    return [c.to_mapping(updated_at) for c in candidates]
