from .classifier import ResolvedClassification, classify, classify_all
from .valuation import HoldingValuation, PortfolioValuation, value_holdings
from .exposure import ExposureBucket, ExposureBreakdown, aggregate_exposure
from .income import IncomeProjection, IncomeSummary, project_income
from .risk import RiskLevel, RiskMetrics, compute_risk
from .alerts import ConcentrationAlert, HighRiskAsset, concentration_alerts, high_risk_assets
from .advisory import rebalancing_suggestion
