"""Title normalisation: tokens, keyword sets, salient terms and grouping keys.

The word lists are hand-curated and English-only. Titles in other languages or
about entities missing from SALIENT_TERMS still get keyword, category and date
scoring; they just never earn the salient bonus.
"""

from __future__ import annotations

import re

_NON_ALNUM = re.compile(r"[^a-z0-9\s]")
_WS = re.compile(r"\s+")

STOP_WORDS: frozenset[str] = frozenset(
    {
        "will", "the", "in", "on", "to", "a", "be", "at", "by", "for", "of",
        "is", "it", "an", "or", "as", "if", "no", "yes", "and", "with", "this",
        "that", "from", "has", "have", "not", "but", "are", "was", "were", "been",
        "before", "after", "during", "above", "below", "between", "under", "over",
        "win", "what", "who", "which", "when", "where", "how", "why",
        "market", "prediction", "bet", "odds", "price", "contract",
    }
)

# High-signal entities: people, assets, recurring events, teams.
SALIENT_TERMS: tuple[str, ...] = (
    # politics
    "trump", "biden", "harris", "desantis", "newsom", "vance", "obama",
    "putin", "zelensky", "netanyahu", "xi jinping", "musk",
    "electoral college", "popular vote", "senate", "supreme court",
    # economics
    "fed", "fomc", "inflation", "cpi", "recession", "gdp", "unemployment",
    # crypto
    "bitcoin", "ethereum", "solana", "dogecoin", "xrp",
    # events
    "super bowl", "world cup", "world series", "nba finals", "stanley cup",
    "olympics", "oscars", "grammys", "ukraine", "taiwan", "gaza",
    # teams
    "lakers", "celtics", "warriors", "bucks", "nuggets", "heat", "suns", "knicks",
    "eagles", "chiefs", "bills", "ravens", "lions", "cowboys", "packers", "49ers",
    "yankees", "dodgers",
)

# Alias phrase -> canonical salient term. Applied only for the salient check.
SALIENT_ALIASES: dict[str, str] = {
    "donald trump": "trump",
    "joe biden": "biden",
    "kamala harris": "harris",
    "kamala": "harris",
    "ron desantis": "desantis",
    "gavin newsom": "newsom",
    "jd vance": "vance",
    "elon musk": "musk",
    "elon": "musk",
    "zelenskyy": "zelensky",
    "zelenski": "zelensky",
    "federal reserve": "fed",
    "consumer price index": "cpi",
    "btc": "bitcoin",
    "eth": "ethereum",
    "sol": "solana",
    "doge": "dogecoin",
    "superbowl": "super bowl",
    "olympic": "olympics",
    "golden state": "warriors",
    "gsw": "warriors",
    "kansas city": "chiefs",
    "niners": "49ers",
}


def normalize_text(text: str | None) -> str:
    """Lower-case, strip non-alphanumerics, collapse whitespace."""
    lowered = (text or "").lower()
    return _WS.sub(" ", _NON_ALNUM.sub(" ", lowered)).strip()


def tokenize(text: str | None) -> list[str]:
    normalized = normalize_text(text)
    return normalized.split(" ") if normalized else []


def keyword_set(text: str | None) -> frozenset[str]:
    """Tokens minus stop words."""
    return frozenset(t for t in tokenize(text) if t not in STOP_WORDS)


def _canonical_phrase(text: str | None) -> str:
    padded = f" {normalize_text(text)} "
    # Longest aliases first so "donald trump" folds before "trump"
    for alias in sorted(SALIENT_ALIASES, key=len, reverse=True):
        padded = padded.replace(f" {alias} ", f" {SALIENT_ALIASES[alias]} ")
    return padded


def salient_terms(text: str | None) -> frozenset[str]:
    """Curated high-signal terms present in the title (after alias folding)."""
    padded = _canonical_phrase(text)
    return frozenset(term for term in SALIENT_TERMS if f" {term} " in padded)


def title_key(title: str | None, words: int = 5) -> str:
    """Grouping key for cross-platform spreads: first N words of the normalised title.

    Punctuation is removed rather than replaced, so "Trump's" keys as "trumps".
    """
    lowered = (title or "").lower()
    stripped = re.sub(r"[^a-z0-9\s]", "", lowered)
    return " ".join(_WS.sub(" ", stripped).strip().split(" ")[:words])
