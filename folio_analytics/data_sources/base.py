"""Interface every market-data client must implement."""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import date

from folio_analytics.data_sources.records import (
    DividendRecord,
    NewsItem,
    PricePoint,
    Profile,
    Quote,
    SplitRecord,
)


class DataSourceError(Exception):
    """A single fetch failed. The engine treats it as "no data" for that call."""


class DataSourceUnavailableError(DataSourceError):
    """The whole source is unreachable. Aborts the analytics run."""


class MarketDataSource(ABC):
    """Remote market-data client consumed by the analytics engine.

    Any method may return an empty list or raise. Batch methods return
    records only for the symbols they could resolve, in any order.
    """

    @abstractmethod
    def get_quotes(self, symbols: list[str]) -> list[Quote]:
        ...

    @abstractmethod
    def get_profiles(self, symbols: list[str]) -> list[Profile]:
        ...

    @abstractmethod
    def get_chart(self, symbol: str, start: date, end: date) -> list[PricePoint]:
        """Daily closes between ``start`` and ``end``, newest first."""
        ...

    @abstractmethod
    def get_dividends(self, symbol: str) -> list[DividendRecord]:
        """Full dividend history, newest first."""
        ...

    @abstractmethod
    def get_splits(self, symbol: str) -> list[SplitRecord]:
        ...

    @abstractmethod
    def get_stock_news(self, symbols: list[str]) -> list[NewsItem]:
        ...
