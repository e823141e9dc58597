"""Title similarity scorer: confidence in [0, 1] that two markets are the same event.

Title text alone is noisy because platforms phrase one event differently, so the
score adds category and resolution date as independent corroboration, and a
per-term bonus for curated entities so short distinctive titles still match.
"""

from __future__ import annotations

from dataclasses import dataclass

from skewdesk.matching.text import keyword_set, salient_terms
from skewdesk.models import Market
from skewdesk.timeutil import DAY_MS

JACCARD_WEIGHT = 0.5
COVERAGE_WEIGHT = 0.3
SALIENT_BONUS = 0.15
CATEGORY_BONUS = 0.1
DATE_NEAR_BONUS = 0.1
DATE_FAR_BONUS = 0.05
DATE_NEAR_MS = 7 * DAY_MS
DATE_FAR_MS = 30 * DAY_MS


@dataclass(frozen=True)
class ScoreBreakdown:
    jaccard: float
    coverage: float
    salient: float
    category: float
    date: float
    shared_salient: tuple[str, ...] = ()

    @property
    def total(self) -> float:
        return min(self.jaccard + self.coverage + self.salient + self.category + self.date, 1.0)


def _date_bonus(a: int | None, b: int | None) -> float:
    if a is None or b is None:
        return 0.0
    delta = abs(a - b)
    if delta <= DATE_NEAR_MS:
        return DATE_NEAR_BONUS
    if delta <= DATE_FAR_MS:
        return DATE_FAR_BONUS
    return 0.0


def score_breakdown(market_a: Market, market_b: Market) -> ScoreBreakdown:
    """Per-term contributions for score(); useful when tuning thresholds."""
    words_a = keyword_set(market_a.title)
    words_b = keyword_set(market_b.title)
    common = words_a & words_b

    jaccard = 0.0
    if words_a and words_b:
        jaccard = len(common) / len(words_a | words_b)
    coverage = len(common) / max(len(words_a), len(words_b), 1)

    shared = tuple(sorted(salient_terms(market_a.title) & salient_terms(market_b.title)))

    return ScoreBreakdown(
        jaccard=JACCARD_WEIGHT * min(jaccard, 1.0),
        coverage=COVERAGE_WEIGHT * min(coverage, 1.0),
        salient=SALIENT_BONUS * len(shared),
        category=CATEGORY_BONUS if market_a.category == market_b.category else 0.0,
        date=_date_bonus(market_a.resolution_date, market_b.resolution_date),
        shared_salient=shared,
    )


def score(market_a: Market, market_b: Market) -> float:
    """Similarity of two markets. Symmetric, deterministic, never raises."""
    return score_breakdown(market_a, market_b).total
