"""Concurrent fan-out of every fetch a run needs, joined once.

Batch calls (profiles, quotes, news) and per-symbol calls (chart, dividends,
splits) each run as an independent task. A task that fails logs a warning
and yields an empty result; only ``DataSourceUnavailableError`` escapes and
aborts the run.
"""

from __future__ import annotations

import time
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from datetime import date
from typing import Any, Callable

from folio_analytics.config import setting
from folio_analytics.data_sources.base import DataSourceUnavailableError, MarketDataSource
from folio_analytics.pipeline.context import CancellationToken, FetchedData, RunCancelledError
from folio_analytics.utils.logger import setup_logger

logger = setup_logger("fetch")

DEFAULT_MAX_WORKERS = 8
DEFAULT_POLL_INTERVAL = 0.1

TaskKey = tuple[str, "str | None"]


def _guarded(key: TaskKey, fn: Callable[[], list | None]) -> list:
    """Run one fetch; any failure other than an unreachable source becomes []."""
    kind, symbol = key
    try:
        return list(fn() or [])
    except DataSourceUnavailableError:
        raise
    except Exception as e:
        logger.warning("Fetch %s failed for %s: %s", kind, symbol or "batch", e)
        return []


def build_tasks(
    source: MarketDataSource, symbols: list[str], start: date, end: date,
) -> dict[TaskKey, Callable[[], Any]]:
    tasks: dict[TaskKey, Callable[[], Any]] = {
        ("profiles", None): lambda: source.get_profiles(symbols),
        ("quotes", None): lambda: source.get_quotes(symbols),
        ("news", None): lambda: source.get_stock_news(symbols),
    }
    for symbol in symbols:
        tasks[("chart", symbol)] = lambda s=symbol: source.get_chart(s, start, end)
        tasks[("dividends", symbol)] = lambda s=symbol: source.get_dividends(s)
        tasks[("splits", symbol)] = lambda s=symbol: source.get_splits(s)
    return tasks


def _assemble(results: dict[TaskKey, list]) -> FetchedData:
    data = FetchedData(
        quotes=results.get(("quotes", None), []),
        profiles=results.get(("profiles", None), []),
        news=results.get(("news", None), []),
    )
    per_symbol = {"chart": data.charts, "dividends": data.dividends, "splits": data.splits}
    for (kind, symbol), value in results.items():
        if symbol is not None and value:
            per_symbol[kind][symbol] = value
    return data


def fetch_all(
    source: MarketDataSource,
    symbols: list[str],
    start: date,
    end: date,
    token: CancellationToken | None = None,
    max_workers: int | None = None,
    poll_interval: float | None = None,
) -> FetchedData:
    """Fetch everything for ``symbols`` concurrently and join the results.

    Raises:
        RunCancelledError: ``token`` was cancelled before the join finished.
        DataSourceUnavailableError: the source reported itself unreachable.
    """
    symbols = list(dict.fromkeys(symbols))
    max_workers = max_workers or setting("fetch", "max_workers", DEFAULT_MAX_WORKERS)
    poll_interval = poll_interval or setting("fetch", "poll_interval_seconds", DEFAULT_POLL_INTERVAL)

    tasks = build_tasks(source, symbols, start, end)
    t0 = time.monotonic()
    logger.info("Fetching %d tasks for %d symbols (workers=%d)", len(tasks), len(symbols), max_workers)

    results: dict[TaskKey, list] = {}
    pool = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="fetch")
    try:
        futures: dict[Future, TaskKey] = {
            pool.submit(_guarded, key, fn): key for key, fn in tasks.items()
        }
        pending = set(futures)
        while pending:
            if token is not None and token.cancelled:
                for f in pending:
                    f.cancel()
                raise RunCancelledError("analytics run cancelled during fetch")
            done, pending = wait(pending, timeout=poll_interval, return_when=FIRST_COMPLETED)
            for f in done:
                try:
                    results[futures[f]] = f.result()
                except DataSourceUnavailableError:
                    for p in pending:
                        p.cancel()
                    raise
    finally:
        # Don't block on fetches still in flight after a cancel or abort.
        pool.shutdown(wait=False, cancel_futures=True)

    logger.info("Fetch complete in %.2fs", time.monotonic() - t0)
    return _assemble(results)
