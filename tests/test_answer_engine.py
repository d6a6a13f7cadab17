"""
Unit tests for the answer rules and their priority order
"""
import json

import pytest

from county_qa.core import answer_engine
from county_qa.core.answer_engine import (
    RULES,
    answer_question,
    build_context,
    find_region_row,
    find_row,
    region_percentage,
)
from county_qa.core.models import Metric, Region, Snapshot
from county_qa.core.sheet_ingest import build_snapshot


@pytest.fixture
def percent_snapshot():
    rows = [
        ["County", "Population", "Region", "County", "Population - H", "Projected Population - H", "Region"],
        ["Alpha", "1000", "East", "Alpha", "500", "600", "East"],
        ["Beta", "3000", "West", "Beta", "1500", "1800", "West"],
    ]
    return build_snapshot(rows)


class TestClarityGate:
    @pytest.mark.parametrize("question", ["", "asdf qwerty", "tell me a joke about cats please ok", None])
    def test_unclear(self, snapshot, question):
        result = answer_question(snapshot, question)
        assert result.meta["type"] == "unclear"
        assert "not fully sure" in result.answer

    def test_gate_runs_before_county_lookup(self, snapshot):
        # A known county alone is not enough vocabulary
        result = answer_question(snapshot, "colbert alabama tennessee valley shoals history facts music today")
        assert result.meta["type"] == "unclear"

    def test_threshold_is_configurable(self, snapshot):
        result = answer_question(snapshot, "colbert county", clarity_threshold=0.9)
        assert result.meta["type"] == "unclear"


class TestCountyAnswers:
    def test_population(self, snapshot):
        result = answer_question(snapshot, "What is the population of Colbert County?")
        assert "54,000" in result.answer
        assert result.meta == {"type": "county", "county": "Colbert", "metric": "population", "value": 54000.0}

    def test_hispanic(self, snapshot):
        result = answer_question(snapshot, "hispanic population of Madison County")
        assert result.answer == "Madison County has a Hispanic population of 30,000."

    def test_projected(self, snapshot):
        result = answer_question(snapshot, "What is the projected Hispanic population of Madison County?")
        assert result.answer == "The projected Hispanic population of Madison County is 35,000.4."
        assert result.meta["metric"] == "projected"

    def test_total_word_ignored_once_county_found(self, snapshot):
        result = answer_question(snapshot, "total population of Colbert County")
        assert result.meta["type"] == "county"
        assert "54,000" in result.answer

    def test_no_row(self, snapshot):
        result = answer_question(snapshot, "hispanic population of Baldwin County")
        assert result.meta == {"type": "error", "reason": "no_row", "county": "Baldwin", "metric": "hispanic"}

    def test_projected_falls_back_to_hispanic_row(self, snapshot):
        result = answer_question(snapshot, "projected hispanic population of Mobile County")
        assert result.meta["type"] == "county"
        assert result.meta["county"] == "Mobile"
        assert "Mobile" in result.answer

    def test_no_county(self, snapshot):
        result = answer_question(snapshot, "What is the hispanic population?")
        assert result.meta == {"type": "error", "reason": "no_county"}


class TestRegionQuestions:
    def test_county_region(self, snapshot):
        result = answer_question(snapshot, "Which region is Colbert County in?")
        assert result.answer == "Colbert County is in the west region."
        assert result.meta["metric"] == "region"
        assert result.meta["type"] == "county"

    def test_county_region_beats_region_vocabulary(self, snapshot):
        result = answer_question(snapshot, "Which region is Colbert County in, east percent or central total?")
        assert result.meta["metric"] == "region"
        assert "west" in result.answer

    def test_county_without_region_falls_through(self):
        rows = [["County", "Population"], ["Nowhere", "10"]]
        result = answer_question(build_snapshot(rows), "Which region is Nowhere County in?")
        assert result.meta["type"] == "county"
        assert result.meta["metric"] == "population"

    def test_region_percent(self, percent_snapshot):
        result = answer_question(percent_snapshot, "What percent of the Hispanic population lives in the east region?")
        assert "25.0%" in result.answer
        assert result.meta == {"type": "percent", "region": "east", "metric": "hispanic", "value": 25.0}

    def test_region_percent_population_and_projected(self, percent_snapshot):
        pop = answer_question(percent_snapshot, "what share of the population is in the west region")
        assert pop.answer == "75.0% of the total population lives in the west region."
        proj = answer_question(percent_snapshot, "projected hispanic percentage east region")
        assert proj.answer == "25.0% of the projected Hispanic population is in the east region."

    def test_region_percent_zero_total(self):
        result = answer_question(Snapshot.empty(), "What percent of the population lives in the east region?")
        assert result.meta["type"] == "percent"
        assert result.meta["value"] is None
        assert "unknown" in result.answer

    def test_percent_suppresses_total(self, percent_snapshot):
        result = answer_question(percent_snapshot, "total percent of population in west region")
        assert result.meta["type"] == "percent"

    def test_region_total(self, snapshot):
        result = answer_question(snapshot, "total population of the east region")
        assert result.answer == "The total population of the east region is 640,000."
        assert result.meta["scope"] == "region"
        assert result.meta["value"] == 640000

    def test_region_total_projected(self, snapshot):
        result = answer_question(snapshot, "combined projected hispanic population in the east")
        assert result.answer == "The total projected Hispanic population of the east region is 9,000.0."


class TestUnsupportedMetric:
    def test_region_percent_without_sentence(self, monkeypatch, percent_snapshot):
        sentences = dict(answer_engine.PERCENT_SENTENCES)
        del sentences[Metric.HISPANIC]
        monkeypatch.setattr(answer_engine, "PERCENT_SENTENCES", sentences)

        result = answer_question(percent_snapshot, "What percent of the Hispanic population lives in the east region?")
        assert result.meta == {"type": "error", "scope": "region-percent", "region": "east", "metric": "hispanic"}
        assert "can't calculate a percentage for hispanic" in result.answer

    def test_region_total_without_label(self, monkeypatch, snapshot):
        labels = dict(answer_engine.METRIC_LABELS)
        del labels[Metric.PROJECTED]
        monkeypatch.setattr(answer_engine, "METRIC_LABELS", labels)

        result = answer_question(snapshot, "total projected hispanic population in the west region")
        assert result.meta == {"type": "error", "scope": "region-total", "region": "west", "metric": "projected"}
        assert "don't have projected totals" in result.answer


class TestGrandTotals:
    def test_total_population(self, snapshot):
        result = answer_question(snapshot, "total population")
        assert result.meta == {"type": "total", "metric": "population", "value": snapshot.totals.population}
        assert "1,094,000" in result.answer

    def test_total_projected(self, snapshot):
        result = answer_question(snapshot, "What is the total projected Hispanic population?")
        assert result.answer == "The total projected Hispanic population across all counties is 45,500.9."

    def test_empty_snapshot(self):
        result = answer_question(Snapshot.empty(), "overall hispanic population")
        assert result.answer == "The total Hispanic population across all counties is 0."


class TestHelpers:
    def test_rule_order(self):
        assert [name for name, _ in RULES] == [
            "county_region",
            "region_percent",
            "region_total",
            "grand_total",
            "no_county",
            "county_value",
        ]

    def test_each_rule_can_be_checked_alone(self, snapshot):
        ctx = build_context(snapshot, "total population of the east region")
        applies = [name for name, rule in RULES if rule(ctx) is not None]
        assert applies == ["region_total", "grand_total", "no_county"]

    def test_find_row(self, snapshot):
        assert find_row(snapshot.rows, "colbert", Metric.POPULATION).population == 54000
        assert find_row(snapshot.rows, "Baldwin", Metric.HISPANIC) is None
        assert find_row(snapshot.rows, "Baldwin", Metric.PROJECTED).projected_population == 9000
        assert find_row(snapshot.rows, "Nope", Metric.POPULATION) is None

    def test_find_region_row(self, snapshot):
        assert find_region_row(snapshot.rows, "Madison").region == Region.CENTRAL

    def test_region_percentage(self, percent_snapshot):
        assert region_percentage(percent_snapshot, Region.WEST, Metric.PROJECTED) == 75.0
        assert region_percentage(Snapshot.empty(), Region.WEST, Metric.PROJECTED) is None

    def test_answers_serialize(self, snapshot):
        for q in ("total population", "Which region is Colbert County in?", "asdf", "pop of Mobile County"):
            json.dumps(answer_question(snapshot, q).to_dict())
