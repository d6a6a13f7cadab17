from __future__ import annotations

import re
from typing import Iterable, List, Optional

from county_qa.core.models import Metric, Region, Row
from county_qa.core.text import normalize, tokenize

# Domain words that count towards the clarity score
VOCAB = frozenset({
    "population", "pop", "people", "residents",
    "hispanic", "spanish",
    "projected", "proj",
    "total", "sum", "overall", "combined",
    "county",
    "region", "area", "east", "west", "central",
    "percent", "percentage", "ratio", "portion", "share",
})

PROJECTED_WORDS = frozenset({"projected", "proj"})
HISPANIC_WORDS = frozenset({"hispanic", "spanish"})
POPULATION_WORDS = frozenset({"population", "pop", "people", "residents"})

PERCENT_PHRASES = ("percent", "percentage", "ratio", "portion", "share")
REGION_QUESTION_PREFIX = "which region"
REGION_QUESTION_PHRASES = ("what region", "which area")

_TOTAL_RE = re.compile(r"\b(total|overall|combined|all counties|sum)\b")

# Checked in this order: "central" before "east"/"west"
_REGION_ORDER = (Region.CENTRAL, Region.EAST, Region.WEST)


def extract_county(question: str, rows: Iterable[Row]) -> Optional[str]:
    """
    Find the county a question is about.

    An exact token match is preferred; otherwise look for "<name> county" so
    multi-word names like "St Clair County" are still found. Returns the
    county's display name as it appears in the sheet.
    """
    cq = normalize(question)
    tokens = cq.split()

    display = {}
    for row in rows:
        key = normalize(row.county)
        if key and key not in display:
            display[key] = row.county

    for key, name in display.items():
        if key in tokens:
            return name

    for key, name in display.items():
        if f"{key} county" in cq:
            return name

    return None


def guess_metric(question: str) -> Metric:
    """
    Which figure the question is after.

    "projected hispanic" resolves to PROJECTED, not HISPANIC.
    """
    tokens = set(tokenize(question))
    projected = bool(tokens & PROJECTED_WORDS)
    hispanic = bool(tokens & HISPANIC_WORDS)

    if projected and hispanic:
        return Metric.PROJECTED
    if hispanic:
        return Metric.HISPANIC
    if projected:
        return Metric.PROJECTED
    if tokens & POPULATION_WORDS:
        return Metric.POPULATION
    return Metric.POPULATION


def extract_region(question: str) -> Optional[Region]:
    q = normalize(question)
    for region in _REGION_ORDER:
        if region.value in q:
            return region
    return None


def asks_for_region(question: str) -> bool:
    q = normalize(question)
    return q.startswith(REGION_QUESTION_PREFIX) or any(p in q for p in REGION_QUESTION_PHRASES)


def wants_percentage(question: str) -> bool:
    q = normalize(question)
    return any(p in q for p in PERCENT_PHRASES)


def wants_total(question: str, county_found: Optional[str]) -> bool:
    # A named county already pins the scope
    if county_found:
        return False
    return bool(_TOTAL_RE.search(normalize(question)))


def question_clarity_score(question: str) -> float:
    """Share of the question's tokens that are domain vocabulary (0.0 for an empty question)."""
    tokens: List[str] = tokenize(question)
    if not tokens:
        return 0.0
    matches = sum(1 for t in tokens if t in VOCAB)
    return matches / len(tokens)
