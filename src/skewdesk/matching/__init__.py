"""Cross-platform market matching: title scorer, compatibility guards, matcher."""

from skewdesk.matching.matcher import DEFAULT_THRESHOLD, match
from skewdesk.matching.scorer import score, score_breakdown

__all__ = ["DEFAULT_THRESHOLD", "match", "score", "score_breakdown"]
