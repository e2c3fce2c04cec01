"""Tests for folio_analytics.analysis.alerts and .advisory."""

import pytest

from folio_analytics.analysis.advisory import (
    BALANCED_MESSAGE,
    CRYPTO_HEAVY_MESSAGE,
    HIGH_RISK_MESSAGE,
    LOW_SHARPE_MESSAGE,
    rebalancing_suggestion,
)
from folio_analytics.analysis.alerts import concentration_alerts, high_risk_assets
from folio_analytics.analysis.classifier import ResolvedClassification
from folio_analytics.analysis.exposure import ExposureBreakdown, to_buckets
from folio_analytics.analysis.risk import RiskLevel
from folio_analytics.analysis.valuation import HoldingValuation


def _valuation(symbol, pct):
    return HoldingValuation(symbol=symbol, name=symbol.title(), logo_url=None, quantity=1,
                            current_price=pct, current_value=pct, cost=pct, percentage=pct,
                            daily_change=0.0, daily_change_percent=0.0)


def _exposure(sectors, asset_classes=None):
    return ExposureBreakdown(
        sector=to_buckets(sectors, 100.0),
        country=(),
        asset_class=to_buckets(asset_classes or {}, 100.0),
    )


# ---------------------------------------------------------------------------
# Concentration alerts
# ---------------------------------------------------------------------------

class TestConcentrationAlerts:

    def test_strictly_above_threshold(self):
        vals = [_valuation("A", 10.0), _valuation("B", 10.01), _valuation("C", 45.0),
                _valuation("D", 34.99)]
        alerts = concentration_alerts(vals)
        assert [a.symbol for a in alerts] == ["C", "D", "B"]
        assert all(a.threshold == 10.0 for a in alerts)

    def test_none_when_diversified(self):
        vals = [_valuation(s, 10.0) for s in "ABCDEFGHIJ"]
        assert concentration_alerts(vals) == ()

    def test_to_dict(self):
        alert = concentration_alerts([_valuation("A", 100.0)])[0]
        assert alert.to_dict() == {"symbol": "A", "name": "A", "logo_url": None,
                                   "percentage": 100.0, "threshold": 10.0}


class TestHighRiskAssets:

    def test_uses_resolved_sector(self):
        vals = [_valuation("BTC-USD", 30.0), _valuation("JNJ", 50.0), _valuation("AAPL", 20.0)]
        classes = {
            "BTC-USD": ResolvedClassification("BTC-USD", "Cryptocurrency", "Global", "Crypto"),
            "JNJ": ResolvedClassification("JNJ", "Healthcare", "United States", "Stocks"),
            "AAPL": ResolvedClassification("AAPL", "Technology", "United States", "Stocks"),
        }
        flagged = high_risk_assets(vals, classes)
        assert [(a.symbol, a.sector) for a in flagged] == [
            ("BTC-USD", "Cryptocurrency"), ("AAPL", "Technology")]

    def test_unclassified_holding_is_not_flagged(self):
        assert high_risk_assets([_valuation("X", 100.0)], {}) == ()


# ---------------------------------------------------------------------------
# Advisory
# ---------------------------------------------------------------------------

class TestRebalancingSuggestion:

    def test_high_risk_wins_over_everything(self):
        exposure = _exposure({"Technology": 90.0}, {"Crypto": 50.0})
        assert rebalancing_suggestion(RiskLevel.HIGH, exposure, -1.0, -10.0) == HIGH_RISK_MESSAGE

    def test_top_sector_over_40(self):
        exposure = _exposure({"Technology": 62.7, "Healthcare": 37.3})
        msg = rebalancing_suggestion(RiskLevel.MEDIUM, exposure, -1.0, -10.0)
        assert msg == ("Your portfolio is heavily weighted towards Technology (62%). "
                       "Consider trimming this position to reduce sector-specific risk.")

    def test_top_sector_exactly_40_does_not_fire(self):
        exposure = _exposure({"Technology": 40.0, "Healthcare": 30.0, "Energy": 30.0})
        assert rebalancing_suggestion(RiskLevel.LOW, exposure, 1.0, 5.0) == BALANCED_MESSAGE

    def test_low_sharpe_needs_negative_return(self):
        exposure = _exposure({"Technology": 30.0, "Healthcare": 30.0, "Energy": 40.0})
        assert rebalancing_suggestion(RiskLevel.LOW, exposure, 0.2, -1.0) == LOW_SHARPE_MESSAGE
        assert rebalancing_suggestion(RiskLevel.LOW, exposure, 0.2, 0.0) == BALANCED_MESSAGE

    def test_crypto_over_20(self):
        exposure = _exposure({"Technology": 35.0, "Cryptocurrency": 25.0, "Energy": 40.0},
                             {"Stocks": 75.0, "Crypto": 25.0})
        assert rebalancing_suggestion(RiskLevel.MEDIUM, exposure, 1.0, 3.0) == CRYPTO_HEAVY_MESSAGE

    def test_balanced_default(self):
        assert rebalancing_suggestion(RiskLevel.LOW, _exposure({}), 0.0, 0.0) == BALANCED_MESSAGE

    @pytest.mark.parametrize("level", [RiskLevel.LOW, RiskLevel.MEDIUM])
    def test_sector_rule_before_sharpe_rule(self, level):
        exposure = _exposure({"Energy": 80.0}, {"Crypto": 50.0})
        assert "heavily weighted towards Energy (80%)" in rebalancing_suggestion(
            level, exposure, 0.0, -5.0)
