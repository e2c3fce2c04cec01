"""Data source modules: input records, the consumed client interface, and the yfinance client."""

from .records import Holding, Quote, Profile, PricePoint, DividendRecord, SplitRecord, NewsItem
from .base import MarketDataSource, DataSourceError, DataSourceUnavailableError
from .holdings import load_holdings, parse_holdings, watch_holdings
from .market_data import YFinanceDataClient
