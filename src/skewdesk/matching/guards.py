"""Hard compatibility filters applied before scoring a candidate pair.

Two titles can share most of their words and still be different contracts:
"Bitcoin above 100k" vs "Bitcoin below 100k", or the 2024 vs 2028 election.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

_YEAR = re.compile(r"\b(202[4-9]|203[0-9])\b")
_NUMBER = re.compile(r"\$?(\d{1,3}(?:,\d{3})+|\d+)(\s*k)?\b", re.IGNORECASE)

QUESTION_PATTERNS: dict[str, tuple[re.Pattern[str], ...]] = {
    "win": (re.compile(r"\bwin\b", re.I), re.compile(r"\bwinner\b", re.I), re.compile(r"\bwinning\b", re.I), re.compile(r"\belected\b", re.I)),
    "lose": (re.compile(r"\blose\b", re.I), re.compile(r"\bloser\b", re.I), re.compile(r"\blosing\b", re.I), re.compile(r"\bdefeat\b", re.I)),
    "above": (re.compile(r"\babove\b", re.I), re.compile(r"\bover\b", re.I), re.compile(r"\bexceed", re.I), re.compile(r"\b(more|greater)\s+than\b", re.I)),
    "below": (re.compile(r"\bbelow\b", re.I), re.compile(r"\bunder\b", re.I), re.compile(r"\bless\s+than\b", re.I)),
    "reach": (re.compile(r"\breach\b", re.I), re.compile(r"\bhit\b", re.I), re.compile(r"\btouch\b", re.I)),
    "before": (re.compile(r"\bbefore\b", re.I), re.compile(r"\bby\b", re.I), re.compile(r"\bprior\s+to\b", re.I)),
    "after": (re.compile(r"\bafter\b", re.I), re.compile(r"\bfollowing\b", re.I)),
}

OPPOSITE_QUESTIONS: frozenset[frozenset[str]] = frozenset(
    {frozenset({"win", "lose"}), frozenset({"above", "below"}), frozenset({"before", "after"})}
)

MIN_SIGNIFICANT_NUMBER = 50
NUMBER_TOLERANCE = 0.1


@dataclass(frozen=True)
class TitleFeatures:
    year: int | None
    question_type: str | None
    numbers: tuple[int, ...]


def extract_features(title: str) -> TitleFeatures:
    year_match = _YEAR.search(title or "")
    year = int(year_match.group(1)) if year_match else None

    question_type = None
    for qtype, patterns in QUESTION_PATTERNS.items():
        if any(p.search(title or "") for p in patterns):
            question_type = qtype
            break

    numbers: list[int] = []
    for m in _NUMBER.finditer(title or ""):
        value = int(m.group(1).replace(",", ""))
        if m.group(2):
            value *= 1000
        if value >= MIN_SIGNIFICANT_NUMBER and value != year:
            numbers.append(value)
    return TitleFeatures(year=year, question_type=question_type, numbers=tuple(numbers))


def _numbers_close(a: tuple[int, ...], b: tuple[int, ...]) -> bool:
    return any(abs(x - y) / max(x, y) < NUMBER_TOLERANCE for x in a for y in b)


# Question meaning: who or what a "will X ..." title is actually asking about.
_WINNER_ATTRIBUTE = re.compile(r"\b(winner|elected|next president)\b.*\bbe\s+\w+", re.I)
_ATTRIBUTE = re.compile(r"\bbe\s+(\w+)", re.I)
_CANDIDATE = re.compile(r"\bwill\s+([a-z]+(?:\s+[a-z]+)?)\s+(?:win|be\s+elected|become|get|receive)\b", re.I)
_WHO_WILL = re.compile(r"\bwho\s+will\s+(?:win|be)\b", re.I)
_PRICE_LEVEL = re.compile(r"\$?(\d+[,.]?\d*)\s*k?\b", re.I)
_PRICE_VERB = re.compile(r"\b(reach|hit|above|below|over|under)\b", re.I)
_DEADLINE = re.compile(
    r"\bbefore\b|\bby\s+(end\s+of|january|february|march|april|may|june|july|august|september"
    r"|october|november|december|\d{4})\b",
    re.I,
)

RELATED_NAMES: tuple[frozenset[str], ...] = (
    frozenset({"donald", "trump"}),
    frozenset({"joe", "biden"}),
    frozenset({"kamala", "harris"}),
    frozenset({"ron", "desantis"}),
    frozenset({"gavin", "newsom"}),
    frozenset({"jd", "vance"}),
)


@dataclass(frozen=True)
class QuestionMeaning:
    kind: str  # candidate_wins | winner_attribute | price_target | event_outcome | other
    subject: str | None = None
    attribute: str | None = None


def question_meaning(title: str) -> QuestionMeaning:
    title = title or ""
    if _WINNER_ATTRIBUTE.search(title):
        attr = _ATTRIBUTE.search(title)
        return QuestionMeaning("winner_attribute", attribute=attr.group(1).lower() if attr else None)
    candidate = _CANDIDATE.search(title)
    if candidate:
        return QuestionMeaning("candidate_wins", subject=candidate.group(1).lower())
    if _WHO_WILL.search(title):
        return QuestionMeaning("other")
    price = _PRICE_LEVEL.search(title)
    if price and _PRICE_VERB.search(title):
        return QuestionMeaning("price_target", subject=price.group(1))
    if _DEADLINE.search(title):
        return QuestionMeaning("event_outcome")
    return QuestionMeaning("other")


def _same_person(a: str, b: str) -> bool:
    if a in b or b in a:
        return True
    return any(a in names and b in names for names in RELATED_NAMES)


def _meaning_mismatch(ma: QuestionMeaning, mb: QuestionMeaning) -> str | None:
    # "other" titles have no recognisable question shape to compare
    if "other" in (ma.kind, mb.kind):
        return None
    if ma.kind != mb.kind:
        return f"question meaning mismatch: {ma.kind} vs {mb.kind}"
    if ma.kind == "candidate_wins" and ma.subject and mb.subject and not _same_person(ma.subject, mb.subject):
        return f"candidate mismatch: {ma.subject} vs {mb.subject}"
    if ma.kind == "winner_attribute" and ma.attribute and mb.attribute and ma.attribute != mb.attribute:
        return f"attribute mismatch: {ma.attribute} vs {mb.attribute}"
    return None


def incompatibility(title_a: str, title_b: str) -> str | None:
    """Reason the two titles cannot be the same contract, or None if compatible."""
    fa = extract_features(title_a)
    fb = extract_features(title_b)
    if fa.year and fb.year and fa.year != fb.year:
        return f"year mismatch: {fa.year} vs {fb.year}"
    if fa.question_type and fb.question_type:
        if frozenset({fa.question_type, fb.question_type}) in OPPOSITE_QUESTIONS:
            return f"question mismatch: {fa.question_type} vs {fb.question_type}"
    if fa.numbers and fb.numbers and not _numbers_close(fa.numbers, fb.numbers):
        return f"number mismatch: {list(fa.numbers)} vs {list(fb.numbers)}"
    return _meaning_mismatch(question_meaning(title_a), question_meaning(title_b))


def compatible(title_a: str, title_b: str) -> bool:
    return incompatibility(title_a, title_b) is None
