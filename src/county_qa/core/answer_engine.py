from __future__ import annotations

import json
import logging
import math
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, Optional, Tuple

from county_qa.config import CLARITY_THRESHOLD
from county_qa.core.intent import (
    asks_for_region,
    extract_county,
    extract_region,
    guess_metric,
    question_clarity_score,
    wants_percentage,
    wants_total,
)
from county_qa.core.models import Answer, Metric, Region, Row, Snapshot
from county_qa.core.text import format_number, format_percent, is_number, normalize

logger = logging.getLogger(__name__)

UNCLEAR_MESSAGE = (
    "I'm not fully sure what you mean. Try asking about population, "
    "Hispanic population, projected population, or regions."
)

# How each metric is named inside an answer sentence
METRIC_LABELS: Dict[Metric, str] = {
    Metric.POPULATION: "population",
    Metric.HISPANIC: "Hispanic population",
    Metric.PROJECTED: "projected Hispanic population",
}

PERCENT_SENTENCES: Dict[Metric, str] = {
    Metric.POPULATION: "{pct} of the total population lives in the {region} region.",
    Metric.HISPANIC: "{pct} of the Hispanic population lives in the {region} region.",
    Metric.PROJECTED: "{pct} of the projected Hispanic population is in the {region} region.",
}

COUNTY_SENTENCES: Dict[Metric, str] = {
    Metric.POPULATION: "{county} County has a population of {value}.",
    Metric.HISPANIC: "{county} County has a Hispanic population of {value}.",
    Metric.PROJECTED: "The projected Hispanic population of {county} County is {value}.",
}


@dataclass(frozen=True)
class QuestionContext:
    """Everything extracted from one question, plus the snapshot it is answered against."""
    question: str
    snapshot: Snapshot
    county: Optional[str]
    metric: Metric
    region: Optional[Region]
    percent: bool
    total: bool


def build_context(snapshot: Snapshot, question: str) -> QuestionContext:
    county = extract_county(question, snapshot.rows)
    percent = wants_percentage(question)
    return QuestionContext(
        question=question,
        snapshot=snapshot,
        county=county,
        metric=guess_metric(question),
        region=extract_region(question),
        percent=percent,
        total=not percent and wants_total(question, county),
    )


# ---------------------------------------------------------------------------
# Row lookups
# ---------------------------------------------------------------------------

def _county_rows(rows: Iterable[Row], county: str) -> Tuple[Row, ...]:
    key = normalize(county)
    return tuple(r for r in rows if normalize(r.county) == key)


def find_row(rows: Iterable[Row], county: str, metric: Metric) -> Optional[Row]:
    """
    First row of a county carrying the metric.

    PROJECTED falls back to the county's Hispanic row, which is where
    projected figures live.
    """
    matches = _county_rows(rows, county)
    for row in matches:
        if row.value_for(metric) is not None:
            return row
    if metric == Metric.PROJECTED:
        for row in matches:
            if row.hispanic_population is not None:
                return row
    return None


def find_region_row(rows: Iterable[Row], county: str) -> Optional[Row]:
    for row in _county_rows(rows, county):
        if row.region is not None:
            return row
    return None


# ---------------------------------------------------------------------------
# Rules, tried in order; the first to return an Answer wins
# ---------------------------------------------------------------------------

def _county_region_rule(ctx: QuestionContext) -> Optional[Answer]:
    # "Which region is Colbert County in?" beats any region words in the question
    if not (ctx.county and asks_for_region(ctx.question)):
        return None
    row = find_region_row(ctx.snapshot.rows, ctx.county)
    if row is None:
        return None
    return Answer(
        answer=f"{row.county} County is in the {row.region.value} region.",
        meta={"type": "county", "county": row.county, "metric": "region", "region": row.region.value},
    )


def region_percentage(snapshot: Snapshot, region: Region, metric: Metric) -> Optional[float]:
    """Region share of the grand total, in percent; None when the grand total is zero."""
    grand = snapshot.totals.get(metric)
    if not grand or not math.isfinite(grand):
        return None
    pct = snapshot.region_total(region, metric) / grand * 100
    return pct if math.isfinite(pct) else None


def _region_percent_rule(ctx: QuestionContext) -> Optional[Answer]:
    if not (ctx.percent and ctx.region):
        return None
    region, metric = ctx.region.value, ctx.metric.value
    sentence = PERCENT_SENTENCES.get(ctx.metric)
    # Only a metric with no percent phrasing lands here
    if sentence is None:
        return Answer(
            answer=f"I can identify the {region} region, but I can't calculate a percentage for {metric}.",
            meta={"type": "error", "scope": "region-percent", "region": region, "metric": metric},
        )

    pct = region_percentage(ctx.snapshot, ctx.region, ctx.metric)
    if pct is None:
        text = f"The share of the {METRIC_LABELS[ctx.metric]} in the {region} region is unknown."
    else:
        text = sentence.format(pct=format_percent(pct), region=region)
    return Answer(
        answer=text,
        meta={"type": "percent", "region": region, "metric": metric, "value": pct},
    )


def _region_total_rule(ctx: QuestionContext) -> Optional[Answer]:
    if not (ctx.total and ctx.region):
        return None
    region, metric = ctx.region.value, ctx.metric.value
    label = METRIC_LABELS.get(ctx.metric)
    # Only a metric with no label lands here
    if label is None:
        return Answer(
            answer=f"I found the {region} region, but I don't have {metric} totals for it.",
            meta={"type": "error", "scope": "region-total", "region": region, "metric": metric},
        )

    value = ctx.snapshot.region_total(ctx.region, ctx.metric)
    return Answer(
        answer=f"The total {label} of the {region} region is {format_number(ctx.metric, value)}.",
        meta={"type": "total", "scope": "region", "region": region, "metric": metric, "value": value},
    )


def _grand_total_rule(ctx: QuestionContext) -> Optional[Answer]:
    if not ctx.total or ctx.county:
        return None
    label = METRIC_LABELS.get(ctx.metric)
    if label is None:
        return None

    value = ctx.snapshot.totals.get(ctx.metric)
    return Answer(
        answer=f"The total {label} across all counties is {format_number(ctx.metric, value)}.",
        meta={"type": "total", "metric": ctx.metric.value, "value": value},
    )


def _no_county_rule(ctx: QuestionContext) -> Optional[Answer]:
    if ctx.county:
        return None
    return Answer(
        answer="I'm not sure which county you're asking about.",
        meta={"type": "error", "reason": "no_county"},
    )


def _county_value_rule(ctx: QuestionContext) -> Optional[Answer]:
    if not ctx.county:
        return None
    metric = ctx.metric.value
    row = find_row(ctx.snapshot.rows, ctx.county, ctx.metric)
    if row is None:
        return Answer(
            answer=f"I couldn't find {metric} data for {ctx.county} County.",
            meta={"type": "error", "reason": "no_row", "county": ctx.county, "metric": metric},
        )

    value = row.value_for(ctx.metric)
    sentence = COUNTY_SENTENCES.get(ctx.metric)
    if sentence is not None and is_number(value):
        return Answer(
            answer=sentence.format(county=row.county, value=format_number(ctx.metric, value)),
            meta={"type": "county", "county": row.county, "metric": metric, "value": value},
        )

    # Row found through a fallback but without this metric's figure
    return Answer(
        answer=f"Here is what I found for {row.county} County: {json.dumps(row.to_dict())}.",
        meta={"type": "county", "county": row.county, "metric": metric},
    )


Rule = Callable[[QuestionContext], Optional[Answer]]

RULES: Tuple[Tuple[str, Rule], ...] = (
    ("county_region", _county_region_rule),
    ("region_percent", _region_percent_rule),
    ("region_total", _region_total_rule),
    ("grand_total", _grand_total_rule),
    ("no_county", _no_county_rule),
    ("county_value", _county_value_rule),
)


def answer_question(
    snapshot: Snapshot,
    question: str,
    clarity_threshold: Optional[float] = None,
) -> Answer:
    """
    Answer a free-text question against one snapshot.

    Vague questions are turned away before any extraction; otherwise the
    first rule in RULES that applies produces the answer.
    """
    threshold = CLARITY_THRESHOLD if clarity_threshold is None else float(clarity_threshold)

    clarity = question_clarity_score(question)
    if clarity < threshold:
        return Answer(answer=UNCLEAR_MESSAGE, meta={"type": "unclear", "clarity": clarity})

    ctx = build_context(snapshot, question)
    for name, rule in RULES:
        result = rule(ctx)
        if result is not None:
            logger.debug("Question %r answered by rule %s", question, name)
            return result

    # Not reached: county_value answers whenever no_county does not
    return Answer(answer=UNCLEAR_MESSAGE, meta={"type": "unclear", "clarity": clarity})
