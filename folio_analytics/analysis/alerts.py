"""Concentration alerts and high-risk sector flags."""

from __future__ import annotations

from dataclasses import dataclass

from folio_analytics.analysis.classifier import ResolvedClassification
from folio_analytics.analysis.risk import HIGH_RISK_SECTORS
from folio_analytics.analysis.valuation import HoldingValuation
from folio_analytics.utils.numbers import to_float

CONCENTRATION_THRESHOLD = 10.0     # percent of total value


@dataclass(frozen=True)
class ConcentrationAlert:
    symbol: str
    name: str
    logo_url: str | None
    percentage: float
    threshold: float = CONCENTRATION_THRESHOLD

    def to_dict(self) -> dict:
        return {"symbol": self.symbol, "name": self.name, "logo_url": self.logo_url,
                "percentage": to_float(self.percentage, 4), "threshold": self.threshold}


@dataclass(frozen=True)
class HighRiskAsset:
    symbol: str
    name: str
    logo_url: str | None
    percentage: float
    sector: str

    def to_dict(self) -> dict:
        return {"symbol": self.symbol, "name": self.name, "logo_url": self.logo_url,
                "percentage": to_float(self.percentage, 4), "sector": self.sector}


def concentration_alerts(
    valuations: list[HoldingValuation] | tuple[HoldingValuation, ...],
    threshold: float = CONCENTRATION_THRESHOLD,
) -> tuple[ConcentrationAlert, ...]:
    """Holdings whose share of total value is strictly above ``threshold``, largest first."""
    alerts = [
        ConcentrationAlert(symbol=v.symbol, name=v.name, logo_url=v.logo_url,
                           percentage=v.percentage, threshold=threshold)
        for v in valuations
        if v.percentage > threshold
    ]
    alerts.sort(key=lambda a: a.percentage, reverse=True)
    return tuple(alerts)


def high_risk_assets(
    valuations: list[HoldingValuation] | tuple[HoldingValuation, ...],
    classifications: dict[str, ResolvedClassification],
) -> tuple[HighRiskAsset, ...]:
    """Holdings whose resolved sector is one of ``HIGH_RISK_SECTORS``, largest first."""
    flagged = []
    for v in valuations:
        cls = classifications.get(v.symbol)
        if cls is None or cls.sector not in HIGH_RISK_SECTORS:
            continue
        flagged.append(HighRiskAsset(symbol=v.symbol, name=v.name, logo_url=v.logo_url,
                                     percentage=v.percentage, sector=cls.sector))
    flagged.sort(key=lambda a: a.percentage, reverse=True)
    return tuple(flagged)
