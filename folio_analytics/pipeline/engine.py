"""AnalyticsEngine runs one holdings -> metrics pass; AnalyticsService owns the exposed state."""

from __future__ import annotations

import threading
import time
from collections.abc import Callable, Iterable
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import replace
from datetime import date

import pandas as pd

from folio_analytics.analysis.advisory import rebalancing_suggestion
from folio_analytics.analysis.alerts import concentration_alerts, high_risk_assets
from folio_analytics.analysis.classifier import classify_all
from folio_analytics.analysis.exposure import aggregate_exposure
from folio_analytics.analysis.income import project_income
from folio_analytics.analysis.risk import compute_risk
from folio_analytics.analysis.valuation import value_holdings
from folio_analytics.config import setting
from folio_analytics.data_sources.base import MarketDataSource
from folio_analytics.data_sources.records import Holding
from folio_analytics.pipeline.context import CancellationToken, FetchedData, RunCancelledError
from folio_analytics.pipeline.fetch import fetch_all
from folio_analytics.pipeline.snapshot import AnalyticsState, PortfolioMetricsSnapshot
from folio_analytics.utils.logger import setup_logger

logger = setup_logger("pipeline")

DEFAULT_LOOKBACK_MONTHS = 3
ERROR_PREFIX = "Failed to load portfolio analytics"

StateListener = Callable[[AnalyticsState], None]


class AnalyticsEngine:
    """Fetch concurrently, then compute every component in sequence.

    ``compute`` is pure: the same holdings, fetched data and ``today`` always
    give an equal state.
    """

    def __init__(
        self,
        source: MarketDataSource,
        max_workers: int | None = None,
        lookback_months: int | None = None,
        poll_interval: float | None = None,
    ):
        self.source = source
        self.max_workers = max_workers
        self.lookback_months = lookback_months or setting(
            "fetch", "chart_lookback_months", DEFAULT_LOOKBACK_MONTHS)
        self.poll_interval = poll_interval

    def chart_window(self, today: date) -> tuple[date, date]:
        start = (pd.Timestamp(today) - pd.DateOffset(months=self.lookback_months)).date()
        return start, today

    def fetch(
        self,
        holdings: list[Holding],
        token: CancellationToken | None = None,
        today: date | None = None,
    ) -> FetchedData:
        start, end = self.chart_window(today or date.today())
        return fetch_all(
            self.source,
            [h.symbol for h in holdings],
            start,
            end,
            token=token,
            max_workers=self.max_workers,
            poll_interval=self.poll_interval,
        )

    def compute(
        self, holdings: list[Holding], data: FetchedData, today: date | None = None,
    ) -> AnalyticsState:
        profiles = data.profile_map
        valuation = value_holdings(holdings, data.quote_map, profiles, data.quotes)
        total_value = valuation.total_value

        classifications = classify_all(holdings, profiles)
        exposure = aggregate_exposure(
            ((classifications[v.symbol], v.current_value) for v in valuation.holdings),
            total_value,
        )
        income = project_income(holdings, data.dividends, profiles, total_value, today)

        alerts = concentration_alerts(valuation.holdings)
        high_risk = high_risk_assets(valuation.holdings, classifications)

        risk = compute_risk(
            weights={v.symbol: v.percentage / 100.0 for v in valuation.holdings},
            profiles=profiles,
            charts=data.charts,
            quotes=data.quotes,
            total_value=total_value,
            total_return_pct=valuation.total_return_pct,
            high_risk_pct=sum(a.percentage for a in high_risk),
            alert_count=len(alerts),
        )
        suggestion = rebalancing_suggestion(
            risk.level, exposure, risk.sharpe_ratio, valuation.total_return_pct)

        snapshot = PortfolioMetricsSnapshot(
            total_value=total_value,
            total_cost=valuation.total_cost,
            total_return=valuation.total_return,
            total_return_pct=valuation.total_return_pct,
            top_gainer=valuation.top_gainer,
            top_loser=valuation.top_loser,
            volatility=risk.volatility * 100.0,
            beta=risk.beta,
            sharpe_ratio=risk.sharpe_ratio,
            value_at_risk=risk.value_at_risk,
            risk_score=risk.score,
            risk_level=risk.level,
            annual_income=income.total_income,
            current_yield=income.current_yield,
            rebalancing_suggestion=suggestion,
        )
        return AnalyticsState(
            snapshot=snapshot,
            holdings=valuation.holdings,
            sector_exposure=exposure.sector,
            country_exposure=exposure.country,
            asset_class_exposure=exposure.asset_class,
            concentration_alerts=alerts,
            high_risk_assets=high_risk,
            income=income.projections,
            dividend_calendar=income.calendar,
            dividends=dict(data.dividends),
            splits=dict(data.splits),
            news=tuple(data.news),
        )

    def run(
        self,
        holdings: list[Holding],
        token: CancellationToken | None = None,
        today: date | None = None,
    ) -> AnalyticsState | None:
        """One full run. Returns None for an empty portfolio.

        Raises:
            RunCancelledError: ``token`` was cancelled before assembly.
            DataSourceUnavailableError: the data source is unreachable.
        """
        if not holdings:
            logger.info("No holdings; nothing to compute")
            return None

        today = today or date.today()
        t0 = time.monotonic()
        logger.info("Analytics run started: %d holdings", len(holdings))

        data = self.fetch(holdings, token=token, today=today)
        if token is not None:
            token.raise_if_cancelled()
        state = self.compute(holdings, data, today=today)

        logger.info(
            "Analytics run finished in %.2fs: value=%.2f score=%d (%s)",
            time.monotonic() - t0, state.snapshot.total_value,
            state.snapshot.risk_score, state.snapshot.risk_level.value,
        )
        return state


class AnalyticsService:
    """Holds the current ``AnalyticsState`` and re-runs the engine on demand.

    Each ``submit`` cancels the run in flight and starts a new one. Only the
    most recent run may publish; a failed run keeps the previous snapshot
    and sets ``error``.
    """

    def __init__(self, engine: AnalyticsEngine, listener: StateListener | None = None):
        self.engine = engine
        self.listener = listener
        self._lock = threading.Lock()
        self._state = AnalyticsState()
        self._generation = 0
        self._token: CancellationToken | None = None
        self._future: Future | None = None
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="analytics")

    @property
    def state(self) -> AnalyticsState:
        with self._lock:
            return self._state

    @property
    def is_computing(self) -> bool:
        return self.state.is_computing

    def submit(self, holdings: list[Holding], today: date | None = None) -> Future:
        """Start a run for ``holdings``, cancelling any run still in flight."""
        with self._lock:
            if self._token is not None:
                self._token.cancel()
            self._generation += 1
            generation = self._generation
            token = CancellationToken()
            self._token = token
            self._state = replace(self._state, is_computing=bool(holdings), error=None)
            future = self._executor.submit(self._run, generation, token, list(holdings), today)
            self._future = future
        return future

    def watch(self, stream: Iterable[list[Holding]], today: date | None = None) -> None:
        """Submit every emission of a holdings stream. Returns when the stream ends."""
        for holdings in stream:
            self.submit(holdings, today=today)

    def wait(self, timeout: float | None = None) -> AnalyticsState:
        """Block until the latest submitted run has finished, then return the state."""
        with self._lock:
            future = self._future
        if future is not None:
            future.result(timeout=timeout)
        return self.state

    def close(self) -> None:
        with self._lock:
            if self._token is not None:
                self._token.cancel()
        self._executor.shutdown(wait=True)

    def __enter__(self) -> AnalyticsService:
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    # ------------------------------------------------------------------

    def _run(
        self,
        generation: int,
        token: CancellationToken,
        holdings: list[Holding],
        today: date | None,
    ) -> None:
        if token.cancelled:
            return
        try:
            result = self.engine.run(holdings, token=token, today=today)
        except RunCancelledError:
            logger.info("Run %d cancelled", generation)
            return
        except Exception as e:
            logger.error("Run %d failed: %s", generation, e)
            self._publish(generation, token, lambda s: replace(
                s, is_computing=False, error=f"{ERROR_PREFIX}: {e}"))
            return

        if result is None:
            self._publish(generation, token, lambda s: replace(s, is_computing=False))
        else:
            self._publish(generation, token, lambda s: result)

    def _publish(
        self,
        generation: int,
        token: CancellationToken,
        update: Callable[[AnalyticsState], AnalyticsState],
    ) -> None:
        with self._lock:
            if generation != self._generation or token.cancelled:
                logger.debug("Discarding stale run %d", generation)
                return
            self._state = update(self._state)
            state = self._state
        if self.listener is not None:
            self.listener(state)
