"""Input records: portfolio holdings and the market data fetched for them.

Every market-data field except the symbol is optional. Fundamentals may also
carry the literal sentinel ``"Unknown"``; the classifier treats it as missing.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import date


@dataclass(frozen=True)
class Holding:
    """One portfolio position."""
    symbol: str
    name: str = ""
    quantity: float = 0.0
    purchase_price: float = 0.0
    category: str | None = None   # free-form hint from the user, carried through

    @classmethod
    def from_dict(cls, data: dict) -> Holding:
        symbol = str(data.get("symbol", "")).strip()
        if not symbol:
            raise ValueError(f"Holding without a symbol: {data!r}")
        quantity = float(data.get("quantity", data.get("qty", 0.0)) or 0.0)
        if quantity < 0:
            raise ValueError(f"Negative quantity for {symbol}: {quantity}")
        return cls(
            symbol=symbol,
            name=str(data.get("name") or ""),
            quantity=quantity,
            purchase_price=float(data.get("purchase_price", 0.0) or 0.0),
            category=data.get("category"),
        )


@dataclass(frozen=True)
class Quote:
    symbol: str
    name: str | None = None
    price: float | None = None
    change_percent: float | None = None
    change: float | None = None
    day_low: float | None = None
    day_high: float | None = None
    year_low: float | None = None
    year_high: float | None = None
    volume: int | None = None
    market_cap: float | None = None

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class Profile:
    """Slow-changing fundamentals for a symbol."""
    symbol: str
    sector: str | None = None
    country: str | None = None
    exchange: str | None = None
    beta: float | None = None
    last_dividend: float | None = None
    is_etf: bool | None = None
    image: str | None = None
    company_name: str | None = None

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> Profile:
        fields = cls.__dataclass_fields__
        return cls(**{k: v for k, v in data.items() if k in fields})


@dataclass(frozen=True)
class PricePoint:
    date: date
    close: float


@dataclass(frozen=True)
class DividendRecord:
    """A dividend event. Dates are raw strings from the feed and may not parse."""
    date: str                       # ex-dividend date
    amount: float
    payment_date: str = ""
    record_date: str = ""
    declaration_date: str = ""

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class SplitRecord:
    date: str
    numerator: float
    denominator: float

    @property
    def ratio(self) -> float:
        return self.numerator / self.denominator if self.denominator else 0.0

    def to_dict(self) -> dict:
        return {"date": self.date, "numerator": self.numerator,
                "denominator": self.denominator}


@dataclass(frozen=True)
class NewsItem:
    symbol: str
    title: str
    publisher: str | None = None
    url: str | None = None
    published_at: str | None = None

    def to_dict(self) -> dict:
        return asdict(self)
