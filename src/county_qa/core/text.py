from __future__ import annotations

import math
import unicodedata
from typing import Any, List, Optional

import pandas as pd


def is_missing(value: Any) -> bool:
    if value is None:
        return True
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


def normalize(value: Any) -> str:
    """
    Canonical form used for every comparison between questions and sheet labels.

    Lowercase, NFKD-decompose, drop combining marks (so accents disappear),
    turn any remaining punctuation into spaces and collapse whitespace.
    """
    if is_missing(value):
        return ""

    decomposed = unicodedata.normalize("NFKD", str(value).lower())
    chars: List[str] = []
    for ch in decomposed:
        if unicodedata.combining(ch):
            continue
        chars.append(ch if ch.isalnum() or ch.isspace() else " ")
    return " ".join("".join(chars).split())


def tokenize(value: Any) -> List[str]:
    return normalize(value).split()


def parse_number(value: Any) -> float:
    """
    Parse a spreadsheet cell such as "54,000" or "1 234.5" into a float.

    Returns NaN (never raises) when nothing numeric is left.
    """
    if is_missing(value):
        return math.nan

    s = str(value).replace("\u00A0", " ")
    s = "".join(ch for ch in s if ch in "0123456789.-")
    if not s:
        return math.nan
    try:
        num = float(s)
    except ValueError:
        return math.nan
    return num if math.isfinite(num) else math.nan


def is_number(value: Optional[float]) -> bool:
    return value is not None and math.isfinite(value)


def format_number(metric: Any, value: Optional[float]) -> str:
    """
    Projected figures keep one decimal; every other count is rounded to an integer.
    """
    if not is_number(value):
        return "unknown"
    if str(getattr(metric, "value", metric)) == "projected":
        return f"{value:,.1f}"
    # Halves round up, not to even
    return f"{math.floor(value + 0.5):,d}"


def format_percent(value: Optional[float]) -> str:
    if not is_number(value):
        return "unknown"
    return f"{value:.1f}%"
