"""Market data client - quotes, profiles, daily closes, dividends, splits, news.

Primary: yfinance, reached through the shared YahooSession (request pacing
and a short-lived ``info`` cache, see utils/yf_session.py). Profiles are also
cached on disk (they change slowly); quotes follow the
``cache.ttl_hours.quotes`` setting, which is off by default.

Transport failures (DNS, refused connection, timeout) mean Yahoo is
unreachable and raise DataSourceUnavailableError from every method. Other
per-symbol errors only drop that symbol, unless a quote or profile batch
loses every symbol it asked for.
"""

from __future__ import annotations

from datetime import date, timedelta
from fractions import Fraction
from typing import Callable, TypeVar

import pandas as pd
import yfinance as yf

from folio_analytics.data_sources.base import DataSourceUnavailableError, MarketDataSource
from folio_analytics.data_sources.records import (
    DividendRecord,
    NewsItem,
    PricePoint,
    Profile,
    Quote,
    SplitRecord,
)
from folio_analytics.utils.cache import DataCache
from folio_analytics.utils.logger import setup_logger
from folio_analytics.utils.yf_session import TRANSPORT_ERRORS, YahooSession, get_session

logger = setup_logger("market_data")

T = TypeVar("T")

# yfinance quoteType -> exchange label used by the classifier
_CRYPTO_QUOTE_TYPES = {"CRYPTOCURRENCY"}
_ETF_QUOTE_TYPES = {"ETF", "MUTUALFUND"}

# dividendRate is annual; Profile.last_dividend is one quarterly payment
_PAYMENTS_PER_YEAR = 4


def _first(info: dict, *keys):
    """First non-None value among ``keys`` in a yfinance info dict."""
    for k in keys:
        val = info.get(k)
        if val is not None:
            return val
    return None


def _iso(ts) -> str:
    return pd.Timestamp(ts).date().isoformat()


def _last_dividend(info: dict) -> float | None:
    last = info.get("lastDividendValue")
    if last is not None:
        return last
    rate = info.get("dividendRate")
    if rate is None:
        return None
    return float(rate) / _PAYMENTS_PER_YEAR


def quote_from_info(symbol: str, info: dict) -> Quote:
    """Map a yfinance ``info`` dict onto a Quote."""
    volume = _first(info, "regularMarketVolume", "volume")
    return Quote(
        symbol=symbol,
        name=_first(info, "shortName", "longName"),
        price=_first(info, "regularMarketPrice", "currentPrice"),
        change_percent=info.get("regularMarketChangePercent"),
        change=info.get("regularMarketChange"),
        day_low=_first(info, "regularMarketDayLow", "dayLow"),
        day_high=_first(info, "regularMarketDayHigh", "dayHigh"),
        year_low=info.get("fiftyTwoWeekLow"),
        year_high=info.get("fiftyTwoWeekHigh"),
        volume=int(volume) if volume is not None else None,
        market_cap=info.get("marketCap"),
    )


def profile_from_info(symbol: str, info: dict) -> Profile:
    """Map a yfinance ``info`` dict onto a Profile.

    Yahoo's ``info`` carries no logo, so ``image`` stays None.
    """
    quote_type = str(info.get("quoteType") or "").upper()
    exchange = info.get("exchange")
    if quote_type in _CRYPTO_QUOTE_TYPES:
        exchange = "CRYPTO"
    return Profile(
        symbol=symbol,
        sector=info.get("sector"),
        country=info.get("country"),
        exchange=exchange,
        beta=info.get("beta"),
        last_dividend=_last_dividend(info),
        is_etf=quote_type in _ETF_QUOTE_TYPES,
        company_name=_first(info, "longName", "shortName"),
    )


def news_from_item(symbol: str, item: dict) -> NewsItem | None:
    """Map one yfinance news entry (old flat or newer ``content`` layout)."""
    content = item.get("content") if isinstance(item.get("content"), dict) else item
    title = content.get("title")
    if not title:
        return None
    provider = content.get("provider") or {}
    canonical = content.get("canonicalUrl") or {}
    published = content.get("pubDate")
    if published is None and content.get("providerPublishTime") is not None:
        published = pd.Timestamp(content["providerPublishTime"], unit="s").isoformat()
    return NewsItem(
        symbol=symbol,
        title=title,
        publisher=provider.get("displayName") if isinstance(provider, dict) and provider else content.get("publisher"),
        url=canonical.get("url") if isinstance(canonical, dict) and canonical else content.get("link"),
        published_at=published,
    )


class YFinanceDataClient(MarketDataSource):
    """Fetch quotes, fundamentals and event histories from Yahoo Finance."""

    def __init__(self, profile_cache: DataCache | None = None,
                 quote_cache: DataCache | None = None,
                 session: YahooSession | None = None):
        self.profile_cache = profile_cache or DataCache("profiles")
        self.quote_cache = quote_cache or DataCache("quotes")
        self.session = session or get_session()

    def _call(self, what: str, symbol: str, fn: Callable[[], T]) -> T:
        try:
            return fn()
        except TRANSPORT_ERRORS as e:
            raise DataSourceUnavailableError(
                f"Yahoo Finance unreachable ({what} {symbol}): {e}") from e

    def _info(self, symbol: str) -> dict:
        return self._call("info", symbol, lambda: self.session.info(symbol))

    def _ticker_attr(self, what: str, symbol: str, attr: str):
        return self._call(what, symbol,
                          lambda: self.session.request(lambda: getattr(yf.Ticker(symbol), attr)))

    @staticmethod
    def _check_batch(kind: str, symbols: list[str], failed: int) -> None:
        if symbols and failed == len(symbols):
            raise DataSourceUnavailableError(
                f"Yahoo Finance returned no {kind} data: all {failed} symbols failed")

    # ------------------------------------------------------------------
    # Batch fetches
    # ------------------------------------------------------------------

    def get_quotes(self, symbols: list[str]) -> list[Quote]:
        quotes = []
        failed = 0
        for symbol in symbols:
            cached = self.quote_cache.get(f"quote_{symbol}")
            if cached is not None:
                quotes.append(Quote(**cached))
                continue
            try:
                info = self._info(symbol)
            except DataSourceUnavailableError:
                raise
            except Exception as e:
                logger.warning("Quote fetch failed for %s: %s", symbol, e)
                failed += 1
                continue
            if not info:
                logger.warning("No quote data for %s", symbol)
                continue
            quote = quote_from_info(symbol, info)
            self.quote_cache.set(f"quote_{symbol}", quote.to_dict())
            quotes.append(quote)
        self._check_batch("quote", symbols, failed)
        return quotes

    def get_profiles(self, symbols: list[str]) -> list[Profile]:
        profiles = []
        failed = 0
        for symbol in symbols:
            cached = self.profile_cache.get(f"profile_{symbol}")
            if cached is not None:
                logger.debug("Cache hit: profile_%s", symbol)
                profiles.append(Profile.from_dict(cached))
                continue
            try:
                info = self._info(symbol)
            except DataSourceUnavailableError:
                raise
            except Exception as e:
                logger.warning("Profile fetch failed for %s: %s", symbol, e)
                failed += 1
                continue
            if not info:
                continue
            profile = profile_from_info(symbol, info)
            self.profile_cache.set(f"profile_{symbol}", profile.to_dict())
            profiles.append(profile)
        self._check_batch("profile", symbols, failed)
        return profiles

    def get_stock_news(self, symbols: list[str]) -> list[NewsItem]:
        news = []
        for symbol in symbols:
            try:
                items = self._ticker_attr("news", symbol, "news") or []
            except DataSourceUnavailableError:
                raise
            except Exception as e:
                logger.warning("News fetch failed for %s: %s", symbol, e)
                continue
            for item in items:
                mapped = news_from_item(symbol, item)
                if mapped is not None:
                    news.append(mapped)
        return news

    # ------------------------------------------------------------------
    # Per-symbol fetches
    # ------------------------------------------------------------------

    def get_chart(self, symbol: str, start: date, end: date) -> list[PricePoint]:
        logger.info("Fetching daily closes: %s (%s -> %s)", symbol, start, end)
        # yfinance treats ``end`` as exclusive
        df = self._call("chart", symbol, lambda: self.session.request(
            lambda: yf.Ticker(symbol).history(start=start.isoformat(),
                                              end=(end + timedelta(days=1)).isoformat(),
                                              interval="1d")))
        if df is None or df.empty or "Close" not in df.columns:
            return []
        closes = df["Close"].dropna().sort_index(ascending=False)
        return [PricePoint(date=pd.Timestamp(ts).date(), close=float(c))
                for ts, c in closes.items()]

    def get_dividends(self, symbol: str) -> list[DividendRecord]:
        series = self._ticker_attr("dividends", symbol, "dividends")
        if series is None or series.empty:
            return []
        series = series.sort_index(ascending=False)
        # Yahoo only exposes ex-dates; payment dates stay blank
        return [DividendRecord(date=_iso(ts), amount=float(amount))
                for ts, amount in series.items()]

    def get_splits(self, symbol: str) -> list[SplitRecord]:
        series = self._ticker_attr("splits", symbol, "splits")
        if series is None or series.empty:
            return []
        records = []
        for ts, ratio in series.sort_index(ascending=False).items():
            if not ratio:
                continue
            frac = Fraction(float(ratio)).limit_denominator(1000)
            records.append(SplitRecord(date=_iso(ts), numerator=float(frac.numerator),
                                       denominator=float(frac.denominator)))
        return records
