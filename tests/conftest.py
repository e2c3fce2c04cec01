"""Shared pytest fixtures for the folio-analytics test suite.

Everything runs against an in-memory ``FakeDataSource``; no test touches
the network.
"""

import threading
from datetime import date, timedelta

import pytest

from folio_analytics.data_sources.base import MarketDataSource
from folio_analytics.data_sources.records import (
    DividendRecord,
    Holding,
    PricePoint,
    Profile,
    Quote,
)


# ---------------------------------------------------------------------------
# 1. Fake data source
# ---------------------------------------------------------------------------

class FakeDataSource(MarketDataSource):
    """Dict-backed MarketDataSource.

    ``failures`` maps ``(kind, symbol)`` to an exception raised by that call;
    batch calls use ``symbol=None``. ``gate`` (a threading.Event), when given,
    blocks every chart fetch until it is set.
    """

    def __init__(self, quotes=None, profiles=None, charts=None, dividends=None,
                 splits=None, news=None, failures=None, gate=None):
        self.quotes = list(quotes or [])
        self.profiles = list(profiles or [])
        self.charts = dict(charts or {})
        self.dividends = dict(dividends or {})
        self.splits = dict(splits or {})
        self.news = list(news or [])
        self.failures = dict(failures or {})
        self.gate = gate
        self.calls = []
        self._lock = threading.Lock()

    def _record(self, kind, symbol=None):
        with self._lock:
            self.calls.append((kind, symbol))
        exc = self.failures.get((kind, symbol))
        if exc is not None:
            raise exc

    def get_quotes(self, symbols):
        self._record("quotes")
        return [q for q in self.quotes if q.symbol in symbols]

    def get_profiles(self, symbols):
        self._record("profiles")
        return [p for p in self.profiles if p.symbol in symbols]

    def get_chart(self, symbol, start, end):
        if self.gate is not None:
            self.gate.wait(5)
        self._record("chart", symbol)
        return list(self.charts.get(symbol, []))

    def get_dividends(self, symbol):
        self._record("dividends", symbol)
        return list(self.dividends.get(symbol, []))

    def get_splits(self, symbol):
        self._record("splits", symbol)
        return list(self.splits.get(symbol, []))

    def get_stock_news(self, symbols):
        self._record("news")
        return [n for n in self.news if n.symbol in symbols]


def make_chart(closes, end=date(2024, 6, 14)):
    """PricePoints newest first from closes given oldest first."""
    n = len(closes)
    return [PricePoint(date=end - timedelta(days=n - 1 - i), close=c)
            for i, c in enumerate(closes)][::-1]


# ---------------------------------------------------------------------------
# 2. Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def today():
    return date(2024, 6, 15)


@pytest.fixture
def sample_holdings():
    return [
        Holding(symbol="AAPL", name="Apple Inc.", quantity=10, purchase_price=150.0),
        Holding(symbol="JNJ", name="Johnson & Johnson", quantity=20, purchase_price=160.0),
        Holding(symbol="BTC-USD", name="Bitcoin USD", quantity=0.05, purchase_price=40000.0),
    ]


@pytest.fixture
def sample_source():
    """Three holdings with quotes, profiles, charts and dividends."""
    return FakeDataSource(
        quotes=[
            Quote(symbol="AAPL", price=200.0, change_percent=1.5, change=3.0),
            Quote(symbol="JNJ", price=150.0, change_percent=-0.5, change=-0.75),
            Quote(symbol="BTC-USD", price=60000.0, change_percent=4.0, change=2300.0),
        ],
        profiles=[
            Profile(symbol="AAPL", sector="Technology", country="United States",
                    exchange="NASDAQ", beta=1.2, last_dividend=0.25, image="aapl.png"),
            Profile(symbol="JNJ", sector="Healthcare", country="United States",
                    exchange="NYSE", beta=0.6, last_dividend=1.19),
        ],
        charts={
            "AAPL": make_chart([190.0, 192.0, 189.0, 195.0, 200.0]),
            "JNJ": make_chart([152.0, 151.0, 150.5, 149.0, 150.0]),
        },
        dividends={
            "JNJ": [
                DividendRecord(date="2024-05-20", amount=1.24, payment_date="2024-06-04"),
                DividendRecord(date="2024-02-16", amount=1.19, payment_date="2024-03-05"),
                DividendRecord(date="2023-11-20", amount=1.19, payment_date="2023-12-05"),
                DividendRecord(date="2023-08-25", amount=1.19, payment_date="2023-09-07"),
                DividendRecord(date="2023-05-22", amount=1.19, payment_date="2023-06-06"),
            ],
        },
    )
