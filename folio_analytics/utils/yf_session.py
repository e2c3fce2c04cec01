"""Shared Yahoo Finance access: request pacing, ``info`` dedupe, outage detection.

Quotes and profiles are both mapped from ``Ticker.info`` and are fetched by
two concurrent tasks, so without dedupe every symbol costs two identical
quoteSummary requests per run. Bursts like that are what make Yahoo answer
429. This module keeps:

1. A process-level ``info`` cache (5 minutes by default), filled once per
   symbol even when both tasks ask at the same moment.
2. A minimum gap between Yahoo requests, shared by every caller.
3. The list of transport exceptions that mean Yahoo is unreachable, as
   raised by curl_cffi (yfinance >= 0.2.54) and by requests (older releases).

Usage:
    from folio_analytics.utils.yf_session import get_session
    info = get_session().info("AAPL")
    history = get_session().request(lambda: yf.Ticker("AAPL").history(period="1mo"))
"""

from __future__ import annotations

import threading
import time
from typing import Callable, TypeVar

import requests
import yfinance as yf
from curl_cffi.requests import exceptions as curl_exceptions

from folio_analytics.config import setting
from folio_analytics.utils.logger import setup_logger

logger = setup_logger("yf_session")

T = TypeVar("T")

# Connection-level failures only; HTTP status errors stay per-symbol
TRANSPORT_ERRORS: tuple[type[BaseException], ...] = (
    curl_exceptions.ConnectionError,
    curl_exceptions.Timeout,
    requests.exceptions.ConnectionError,
    requests.exceptions.Timeout,
    ConnectionError,
    TimeoutError,
)

DEFAULT_MIN_INTERVAL = 0.5
DEFAULT_INFO_TTL = 300.0


class YahooSession:
    """Rate-limited gateway to yfinance with a TTL cache for ``Ticker.info``."""

    def __init__(
        self,
        min_interval: float | None = None,
        info_ttl: float | None = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ):
        if min_interval is None:
            min_interval = setting("yahoo", "min_request_interval_seconds", DEFAULT_MIN_INTERVAL)
        if info_ttl is None:
            info_ttl = setting("yahoo", "info_ttl_seconds", DEFAULT_INFO_TTL)
        self.min_interval = float(min_interval)
        self.info_ttl = float(info_ttl)
        self._clock = clock
        self._sleep = sleep

        self._rate_lock = threading.Lock()
        self._last_request: float | None = None

        self._info_lock = threading.Lock()
        self._info: dict[str, tuple[float, dict]] = {}
        self._symbol_locks: dict[str, threading.Lock] = {}

    # ------------------------------------------------------------------
    # Pacing
    # ------------------------------------------------------------------

    def throttle(self) -> None:
        """Block until ``min_interval`` has passed since the previous request."""
        with self._rate_lock:
            if self._last_request is not None:
                wait = self._last_request + self.min_interval - self._clock()
                if wait > 0:
                    self._sleep(wait)
            self._last_request = self._clock()

    def request(self, fn: Callable[[], T]) -> T:
        self.throttle()
        return fn()

    # ------------------------------------------------------------------
    # info cache
    # ------------------------------------------------------------------

    def _lock_for(self, symbol: str) -> threading.Lock:
        with self._info_lock:
            return self._symbol_locks.setdefault(symbol, threading.Lock())

    def _cached(self, symbol: str) -> dict | None:
        with self._info_lock:
            entry = self._info.get(symbol)
        if entry is None:
            return None
        fetched_at, info = entry
        if self._clock() - fetched_at >= self.info_ttl:
            return None
        return info

    def info(self, symbol: str) -> dict:
        """``yf.Ticker(symbol).info``, fetched at most once per TTL window.

        Empty payloads are not cached so a transient miss is retried on the
        next call.
        """
        with self._lock_for(symbol):
            cached = self._cached(symbol)
            if cached is not None:
                logger.debug("info cache hit: %s", symbol)
                return cached
            info = self.request(lambda: yf.Ticker(symbol).info) or {}
            if info and self.info_ttl > 0:
                with self._info_lock:
                    self._info[symbol] = (self._clock(), info)
            return info

    def clear(self, symbol: str | None = None) -> None:
        with self._info_lock:
            if symbol:
                self._info.pop(symbol, None)
            else:
                self._info.clear()


_session: YahooSession | None = None
_session_lock = threading.Lock()


def get_session() -> YahooSession:
    """Process-wide YahooSession built from the ``yahoo`` settings section."""
    global _session
    if _session is not None:
        return _session
    with _session_lock:
        if _session is None:
            _session = YahooSession()
            logger.info(
                "Created Yahoo session: min gap %.2fs, info TTL %.0fs",
                _session.min_interval, _session.info_ttl,
            )
        return _session
