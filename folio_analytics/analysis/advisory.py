"""One-line rebalancing suggestion. Rules are checked in order; the first match wins."""

from __future__ import annotations

from folio_analytics.analysis.classifier import ASSET_CLASS_CRYPTO
from folio_analytics.analysis.exposure import ExposureBreakdown
from folio_analytics.analysis.risk import RiskLevel

TOP_SECTOR_LIMIT = 40.0
CRYPTO_LIMIT = 20.0
LOW_SHARPE = 0.5

HIGH_RISK_MESSAGE = (
    "Your portfolio risk is High. Consider diversifying into defensive sectors "
    "like Utilities or Consumer Defensive to lower volatility."
)
SECTOR_HEAVY_MESSAGE = (
    "Your portfolio is heavily weighted towards {sector} ({pct}%). "
    "Consider trimming this position to reduce sector-specific risk."
)
LOW_SHARPE_MESSAGE = (
    "Your risk-adjusted returns are low. Review your underperforming assets and "
    "consider reallocating to higher quality growth or dividend stocks."
)
CRYPTO_HEAVY_MESSAGE = (
    "You have significant exposure to Crypto (>20%). Ensure you are comfortable "
    "with the high volatility associated with this asset class."
)
BALANCED_MESSAGE = "Your portfolio looks balanced. Keep monitoring your asset allocation."


def rebalancing_suggestion(
    level: RiskLevel,
    exposure: ExposureBreakdown,
    sharpe_ratio: float,
    total_return_pct: float,
) -> str:
    if level == RiskLevel.HIGH:
        return HIGH_RISK_MESSAGE

    top = exposure.top_sector
    if top is not None and top.percentage > TOP_SECTOR_LIMIT:
        return SECTOR_HEAVY_MESSAGE.format(sector=top.label, pct=int(top.percentage))

    if sharpe_ratio < LOW_SHARPE and total_return_pct < 0:
        return LOW_SHARPE_MESSAGE

    if exposure.asset_class_percentage(ASSET_CLASS_CRYPTO) > CRYPTO_LIMIT:
        return CRYPTO_HEAVY_MESSAGE

    return BALANCED_MESSAGE
