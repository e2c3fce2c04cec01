"""Immutable run outputs: the metrics snapshot and the full exposed state."""

from __future__ import annotations

from dataclasses import dataclass, field

from folio_analytics.analysis.alerts import ConcentrationAlert, HighRiskAsset
from folio_analytics.analysis.exposure import ExposureBucket
from folio_analytics.analysis.income import IncomeProjection
from folio_analytics.analysis.risk import RiskLevel
from folio_analytics.analysis.valuation import HoldingValuation
from folio_analytics.data_sources.records import DividendRecord, NewsItem, Quote, SplitRecord
from folio_analytics.utils.numbers import to_float


@dataclass(frozen=True)
class PortfolioMetricsSnapshot:
    total_value: float
    total_cost: float
    total_return: float
    total_return_pct: float
    top_gainer: Quote | None
    top_loser: Quote | None
    volatility: float               # annualised, percent
    beta: float
    sharpe_ratio: float
    value_at_risk: float            # 1-day 95%
    risk_score: int
    risk_level: RiskLevel
    annual_income: float
    current_yield: float            # percent
    rebalancing_suggestion: str

    def to_dict(self) -> dict:
        return {
            "total_value": to_float(self.total_value, 2),
            "total_cost": to_float(self.total_cost, 2),
            "total_return": to_float(self.total_return, 2),
            "total_return_pct": to_float(self.total_return_pct, 4),
            "top_gainer": self.top_gainer.to_dict() if self.top_gainer else None,
            "top_loser": self.top_loser.to_dict() if self.top_loser else None,
            "volatility": to_float(self.volatility, 4),
            "beta": to_float(self.beta, 4),
            "sharpe_ratio": to_float(self.sharpe_ratio, 4),
            "value_at_risk": to_float(self.value_at_risk, 2),
            "risk_score": self.risk_score,
            "risk_level": self.risk_level.value,
            "annual_income": to_float(self.annual_income, 2),
            "current_yield": to_float(self.current_yield, 4),
            "rebalancing_suggestion": self.rebalancing_suggestion,
        }


@dataclass(frozen=True)
class AnalyticsState:
    """What the engine exposes. A run replaces it whole; nothing is patched in place."""

    snapshot: PortfolioMetricsSnapshot | None = None
    holdings: tuple[HoldingValuation, ...] = ()
    sector_exposure: tuple[ExposureBucket, ...] = ()
    country_exposure: tuple[ExposureBucket, ...] = ()
    asset_class_exposure: tuple[ExposureBucket, ...] = ()
    concentration_alerts: tuple[ConcentrationAlert, ...] = ()
    high_risk_assets: tuple[HighRiskAsset, ...] = ()
    income: tuple[IncomeProjection, ...] = ()
    dividend_calendar: tuple[str, ...] = ()
    dividends: dict[str, list[DividendRecord]] = field(default_factory=dict)
    splits: dict[str, list[SplitRecord]] = field(default_factory=dict)
    news: tuple[NewsItem, ...] = ()
    is_computing: bool = False
    error: str | None = None

    def to_dict(self) -> dict:
        return {
            "snapshot": self.snapshot.to_dict() if self.snapshot else None,
            "holdings": [h.to_dict() for h in self.holdings],
            "exposure": {
                "sector": [b.to_dict() for b in self.sector_exposure],
                "country": [b.to_dict() for b in self.country_exposure],
                "asset_class": [b.to_dict() for b in self.asset_class_exposure],
            },
            "concentration_alerts": [a.to_dict() for a in self.concentration_alerts],
            "high_risk_assets": [a.to_dict() for a in self.high_risk_assets],
            "income": [p.to_dict() for p in self.income],
            "dividend_calendar": list(self.dividend_calendar),
            "dividends": {s: [d.to_dict() for d in recs] for s, recs in self.dividends.items()},
            "splits": {s: [r.to_dict() for r in recs] for s, recs in self.splits.items()},
            "news": [n.to_dict() for n in self.news],
            "is_computing": self.is_computing,
            "error": self.error,
        }
