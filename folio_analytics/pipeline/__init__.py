from .context import CancellationToken, FetchedData, RunCancelledError
from .fetch import fetch_all
from .snapshot import AnalyticsState, PortfolioMetricsSnapshot
from .engine import AnalyticsEngine, AnalyticsService
