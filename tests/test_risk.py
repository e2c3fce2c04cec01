"""Tests for folio_analytics.analysis.risk -- returns, volatility, Sharpe, VaR, score, label."""

import numpy as np
import pytest

from folio_analytics.analysis.risk import (
    ANNUALIZATION_FACTOR,
    RiskLevel,
    annualized_volatility,
    compute_risk,
    daily_returns,
    diversification_factor,
    portfolio_volatility,
    risk_level,
    risk_score,
    sharpe_ratio,
    value_at_risk,
    weighted_beta,
)
from folio_analytics.data_sources.records import Profile, Quote

from conftest import make_chart


# ---------------------------------------------------------------------------
# Per-symbol
# ---------------------------------------------------------------------------

class TestDailyReturns:

    def test_newest_first_ordering(self):
        # oldest -> newest: 100, 110, 99
        returns = daily_returns(make_chart([100.0, 110.0, 99.0]))
        assert list(returns) == pytest.approx([99.0 / 110.0 - 1, 110.0 / 100.0 - 1])

    def test_single_point_has_no_returns(self):
        assert daily_returns(make_chart([100.0])).empty

    def test_zero_close_is_dropped(self):
        returns = daily_returns(make_chart([0.0, 10.0, 11.0]))
        assert len(returns) == 1
        assert returns.iloc[0] == pytest.approx(0.1)


class TestAnnualizedVolatility:

    def test_sample_std_times_factor(self):
        points = make_chart([100.0, 110.0, 99.0])
        expected = np.std([99.0 / 110.0 - 1, 0.1], ddof=1) * ANNUALIZATION_FACTOR
        assert annualized_volatility(points) == pytest.approx(expected)

    def test_two_points_is_zero(self):
        assert annualized_volatility(make_chart([100.0, 110.0])) == 0.0

    def test_flat_series_is_zero(self):
        assert annualized_volatility(make_chart([50.0] * 10)) == 0.0


# ---------------------------------------------------------------------------
# Portfolio
# ---------------------------------------------------------------------------

class TestPortfolioVolatility:

    def test_weighted_and_discounted(self):
        chart = make_chart([100.0, 110.0, 99.0, 104.0])
        weights = {"A": 0.5, "B": 0.5}
        vol, fallback = portfolio_volatility(weights, {"A": chart, "B": chart}, [])
        assert not fallback
        assert vol == pytest.approx(annualized_volatility(chart) * diversification_factor(2))

    def test_quote_fallback_when_no_charts(self):
        vol, fallback = portfolio_volatility(
            {"BTC-USD": 1.0}, {}, [Quote(symbol="BTC-USD", change_percent=8.0)])
        assert fallback
        assert vol == pytest.approx(0.08 * 15.87)

    def test_quote_fallback_uses_absolute_changes(self):
        quotes = [Quote(symbol="A", change_percent=-4.0), Quote(symbol="B", change_percent=2.0)]
        vol, _ = portfolio_volatility({"A": 0.5, "B": 0.5}, {}, quotes)
        assert vol == pytest.approx(0.03 * 15.87 * diversification_factor(2))

    def test_no_data_at_all_is_zero(self):
        vol, fallback = portfolio_volatility({"A": 1.0}, {}, [])
        assert fallback
        assert vol == 0.0


class TestDiversificationFactor:

    @pytest.mark.parametrize("n,expected", [(0, 1.0), (1, 1.0), (4, 0.75), (100, 0.55)])
    def test_values(self, n, expected):
        assert diversification_factor(n) == pytest.approx(expected)

    def test_monotonic_decreasing(self):
        factors = [diversification_factor(n) for n in range(1, 50)]
        assert factors == sorted(factors, reverse=True)
        assert all(f > 0.5 for f in factors)


class TestWeightedBeta:

    def test_missing_beta_defaults_to_one(self):
        profiles = {"A": Profile(symbol="A", beta=1.2), "B": Profile(symbol="B", beta=None)}
        assert weighted_beta({"A": 0.5, "B": 0.5}, profiles) == pytest.approx(1.1)

    def test_no_profiles(self):
        assert weighted_beta({"A": 0.25, "B": 0.75}, {}) == pytest.approx(1.0)


class TestSharpeAndVaR:

    def test_sharpe(self):
        assert sharpe_ratio(10.0, 0.5) == pytest.approx((0.10 - 0.045) / 0.5)

    @pytest.mark.parametrize("vol", [0.0, 0.001, -1.0])
    def test_sharpe_guard(self, vol):
        assert sharpe_ratio(10.0, vol) == 0.0

    def test_var(self):
        assert value_at_risk(10_000.0, 0.2) == pytest.approx(10_000.0 * 0.2 * 1.65 / 15.87)

    def test_var_zero_value(self):
        assert value_at_risk(0.0, 0.2) == 0.0


class TestRiskScore:

    def test_all_penalties(self):
        assert risk_score(high_risk_pct=100.0, alert_count=1, volatility=1.2696) == 25

    def test_volatility_penalty_capped(self):
        assert risk_score(0.0, 0, 5.0) == risk_score(0.0, 0, 0.4) == 60

    def test_clamped_high(self):
        assert risk_score(0.0, 0, 0.0) == 99

    def test_clamped_low(self):
        assert risk_score(100.0, 10, 1.0) == 1

    def test_truncates(self):
        # 100 - 0.3 * 33.0 = 90.1
        assert risk_score(33.0, 0, 0.0) == 90

    @pytest.mark.parametrize("score,level", [
        (99, RiskLevel.LOW), (70, RiskLevel.LOW), (69, RiskLevel.MEDIUM),
        (40, RiskLevel.MEDIUM), (39, RiskLevel.HIGH), (1, RiskLevel.HIGH),
    ])
    def test_labels(self, score, level):
        assert risk_level(score) == level


class TestComputeRisk:

    def test_single_crypto_holding(self):
        metrics = compute_risk(
            weights={"BTC-USD": 1.0},
            profiles={},
            charts={},
            quotes=[Quote(symbol="BTC-USD", change_percent=8.0)],
            total_value=3000.0,
            total_return_pct=50.0,
            high_risk_pct=100.0,
            alert_count=1,
        )
        assert metrics.used_quote_fallback
        assert metrics.volatility == pytest.approx(1.2696)
        assert metrics.beta == pytest.approx(1.0)
        assert metrics.score == 25
        assert metrics.level == RiskLevel.HIGH
        assert metrics.sharpe_ratio == pytest.approx((0.5 - 0.045) / 1.2696)
        assert metrics.to_dict()["level"] == "HIGH"
