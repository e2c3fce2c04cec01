"""Tests for folio_analytics.reports.renderer -- filters and the markdown report."""

import json
from dataclasses import replace
from datetime import datetime

import pytest

from folio_analytics.pipeline.engine import AnalyticsEngine
from folio_analytics.pipeline.snapshot import AnalyticsState
from folio_analytics.reports.renderer import ReportRenderer, fmt_num, fmt_pct, fmt_ratio

NOW = datetime(2024, 6, 15, 9, 30)


@pytest.fixture
def state(sample_source, sample_holdings, today):
    engine = AnalyticsEngine(sample_source, max_workers=4, poll_interval=0.02)
    return engine.run(sample_holdings, today=today)


class TestFilters:

    @pytest.mark.parametrize("val,expected", [
        (None, "N/A"), (float("nan"), "N/A"), (float("inf"), "N/A"), (float("-inf"), "N/A"),
        (12.5, "$12.50"), (999.994, "$999.99"), (8000.0, "$8.0K"), (3.0e12, "$3.0T"),
        (-2_500_000, "$-2.5M"), ("4.2e9", "$4.2B"), ("abc", "abc"),
    ])
    def test_fmt_num(self, val, expected):
        assert fmt_num(val) == expected

    def test_fmt_num_currency(self):
        assert fmt_num(1500, currency="€") == "€1.5K"

    def test_fmt_pct_takes_percent(self):
        assert fmt_pct(12.34) == "12.3%"
        assert fmt_pct(None) == "N/A"

    @pytest.mark.parametrize("val", [float("nan"), float("inf"), float("-inf")])
    def test_non_finite_is_not_available(self, val):
        assert fmt_pct(val) == "N/A"
        assert fmt_ratio(val) == "N/A"

    def test_fmt_ratio(self):
        assert fmt_ratio(1.23456) == "1.23"
        assert fmt_ratio(None) == "N/A"

    def test_nan_quote_change_renders_as_not_available(self, sample_source, sample_holdings, today):
        quotes = [replace(q, change_percent=float("nan")) if q.symbol == "JNJ" else q
                  for q in sample_source.quotes]
        sample_source.quotes = quotes
        state = AnalyticsEngine(sample_source, max_workers=4, poll_interval=0.02).run(
            sample_holdings, today=today)
        md = ReportRenderer().render(state, now=NOW)
        assert "| Top loser | JNJ (N/A) |" in md
        assert "nan%" not in md


class TestReportRenderer:

    def test_render_contains_sections(self, state):
        md = ReportRenderer().render(state, now=NOW)
        assert "# Portfolio Analytics" in md
        assert "*Generated: 2024-06-15 09:30*" in md
        assert "| Total value | $8.0K |" in md
        assert state.snapshot.rebalancing_suggestion in md
        assert "| JNJ |" in md
        assert "### Sector" in md
        assert "Payment: 2024-06-04 - JNJ ($1.24)" in md

    def test_render_empty_state(self):
        md = ReportRenderer().render(AnalyticsState(), now=NOW)
        assert "No holdings to analyze." in md

    def test_save_writes_file(self, state, tmp_path):
        path = ReportRenderer().save(state, tmp_path)
        assert path.parent == tmp_path
        assert path.name.startswith("portfolio_")
        assert path.read_text().startswith("# Portfolio Analytics")

    def test_state_to_dict_is_json(self, state):
        payload = json.loads(json.dumps(state.to_dict()))
        assert payload["snapshot"]["risk_level"] in {"LOW", "MEDIUM", "HIGH"}
        assert payload["exposure"]["sector"][0]["color"].startswith("#")
        assert payload["is_computing"] is False
