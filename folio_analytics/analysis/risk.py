"""Portfolio risk metrics: beta, volatility, Sharpe, VaR and the composite score.

Volatility is a weighted average of per-symbol annualised volatility from
daily closes, discounted for the number of holdings. It is not a
covariance-based estimate.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum

import numpy as np
import pandas as pd

from folio_analytics.data_sources.records import PricePoint, Profile, Quote
from folio_analytics.utils.logger import setup_logger
from folio_analytics.utils.numbers import finite, safe_div, to_float

logger = setup_logger("risk")

# ------------------------------------------------------------------
# Constants
# ------------------------------------------------------------------
ANNUALIZATION_FACTOR = 15.87      # ~ sqrt(252) trading days
RISK_FREE_RATE = 0.045            # annual, decimal
VAR_Z_SCORE = 1.65                # one-tailed 95%
MIN_VOLATILITY = 0.001            # Sharpe is 0 at or below this

DEFAULT_BETA = 1.0
HIGH_RISK_SECTORS = frozenset({
    "Technology", "Cryptocurrency", "Consumer Cyclical", "Financial Services",
})
HIGH_RISK_WEIGHT = 0.3
ALERT_PENALTY = 5.0
VOLATILITY_PENALTY_CAP = 40.0
SCORE_MIN, SCORE_MAX = 1.0, 99.0
LOW_RISK_MIN_SCORE = 70
MEDIUM_RISK_MIN_SCORE = 40


class RiskLevel(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"


@dataclass(frozen=True)
class RiskMetrics:
    beta: float
    volatility: float           # annualised, decimal (0.25 == 25%)
    sharpe_ratio: float
    value_at_risk: float        # 1-day 95%, currency units
    score: int
    level: RiskLevel
    used_quote_fallback: bool = False

    def to_dict(self) -> dict:
        return {
            "beta": to_float(self.beta, 4),
            "volatility": to_float(self.volatility, 6),
            "sharpe_ratio": to_float(self.sharpe_ratio, 4),
            "value_at_risk": to_float(self.value_at_risk, 2),
            "score": self.score,
            "level": self.level.value,
        }


# ------------------------------------------------------------------
# Per-symbol
# ------------------------------------------------------------------

def daily_returns(points: list[PricePoint]) -> pd.Series:
    """Simple returns between consecutive closes of a newest-first series.

    r[i] = (p[i] - p[i+1]) / p[i+1]. Non-finite returns (a zero close) are dropped.
    """
    if len(points) < 2:
        return pd.Series(dtype=float)
    closes = pd.Series([finite(p.close, np.nan) for p in points], dtype=float)
    returns = closes / closes.shift(-1) - 1.0
    return returns.replace([np.inf, -np.inf], np.nan).dropna()


def annualized_volatility(points: list[PricePoint]) -> float:
    """Sample std of daily returns x 15.87; 0 when there are fewer than two returns."""
    returns = daily_returns(points)
    if returns.empty:
        return 0.0
    return finite(returns.std(ddof=1)) * ANNUALIZATION_FACTOR


# ------------------------------------------------------------------
# Portfolio
# ------------------------------------------------------------------

def weighted_beta(weights: dict[str, float], profiles: dict[str, Profile]) -> float:
    """Sum of beta x weight; holdings without a profile beta count as 1.0."""
    total = 0.0
    for symbol, weight in weights.items():
        profile = profiles.get(symbol)
        beta = profile.beta if profile is not None and profile.beta is not None else DEFAULT_BETA
        total += finite(beta, DEFAULT_BETA) * weight
    return total


def diversification_factor(asset_count: int) -> float:
    """1 asset -> 1.0, tending to 0.5 as the count grows."""
    return 1.0 / math.sqrt(max(asset_count, 1)) * 0.5 + 0.5


def quote_volatility(quotes: list[Quote]) -> float:
    """Mean absolute daily change across quotes, annualised."""
    changes = [abs(finite(q.change_percent)) / 100.0 for q in quotes]
    if not changes:
        return 0.0
    return float(np.mean(changes)) * ANNUALIZATION_FACTOR


def portfolio_volatility(
    weights: dict[str, float],
    charts: dict[str, list[PricePoint]],
    quotes: list[Quote],
) -> tuple[float, bool]:
    """Return (discounted annualised volatility, used_quote_fallback).

    When no holding has usable chart data the weighted sum is exactly 0 and
    the estimate comes from the quotes' daily change instead.
    """
    weighted = 0.0
    for symbol, weight in weights.items():
        points = charts.get(symbol) or []
        if len(points) > 1:
            weighted += annualized_volatility(points) * weight

    fallback = False
    if weighted == 0.0:
        weighted = quote_volatility(quotes)
        fallback = True
        logger.info("No usable chart data; volatility estimated from %d quotes", len(quotes))

    return finite(weighted * diversification_factor(len(weights))), fallback


def sharpe_ratio(total_return_pct: float, volatility: float) -> float:
    if volatility <= MIN_VOLATILITY:
        return 0.0
    return safe_div(total_return_pct / 100.0 - RISK_FREE_RATE, volatility)


def value_at_risk(total_value: float, volatility: float) -> float:
    """1-day 95% VaR: de-annualise, then scale by the z-score."""
    return finite(total_value * volatility * VAR_Z_SCORE / ANNUALIZATION_FACTOR)


def risk_score(high_risk_pct: float, alert_count: int, volatility: float) -> int:
    penalty = (
        high_risk_pct * HIGH_RISK_WEIGHT
        + alert_count * ALERT_PENALTY
        + min(volatility * 100.0, VOLATILITY_PENALTY_CAP)
    )
    score = min(max(100.0 - finite(penalty), SCORE_MIN), SCORE_MAX)
    return int(score)


def risk_level(score: int) -> RiskLevel:
    if score >= LOW_RISK_MIN_SCORE:
        return RiskLevel.LOW
    if score >= MEDIUM_RISK_MIN_SCORE:
        return RiskLevel.MEDIUM
    return RiskLevel.HIGH


def compute_risk(
    weights: dict[str, float],
    profiles: dict[str, Profile],
    charts: dict[str, list[PricePoint]],
    quotes: list[Quote],
    total_value: float,
    total_return_pct: float,
    high_risk_pct: float,
    alert_count: int,
) -> RiskMetrics:
    """All risk metrics for one portfolio.

    Args:
        weights: symbol -> fractional weight (0-1) of total value.
        high_risk_pct: summed percentage (0-100) of holdings in high-risk sectors.
        alert_count: number of concentration alerts.
    """
    volatility, fallback = portfolio_volatility(weights, charts, quotes)
    score = risk_score(high_risk_pct, alert_count, volatility)
    return RiskMetrics(
        beta=weighted_beta(weights, profiles),
        volatility=volatility,
        sharpe_ratio=sharpe_ratio(total_return_pct, volatility),
        value_at_risk=value_at_risk(total_value, volatility),
        score=score,
        level=risk_level(score),
        used_quote_fallback=fallback,
    )
