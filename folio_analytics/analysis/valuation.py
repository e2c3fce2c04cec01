"""Per-holding valuation and portfolio totals."""

from __future__ import annotations

from dataclasses import dataclass

from folio_analytics.data_sources.records import Holding, Profile, Quote
from folio_analytics.utils.numbers import finite, pct_of, safe_div, to_float


@dataclass(frozen=True)
class HoldingValuation:
    symbol: str
    name: str
    logo_url: str | None
    quantity: float
    current_price: float
    current_value: float
    cost: float
    percentage: float          # share of total portfolio value, 0-100
    daily_change: float
    daily_change_percent: float

    def to_dict(self) -> dict:
        return {
            "symbol": self.symbol,
            "name": self.name,
            "logo_url": self.logo_url,
            "quantity": to_float(self.quantity),
            "current_price": to_float(self.current_price),
            "current_value": to_float(self.current_value, 2),
            "cost": to_float(self.cost, 2),
            "percentage": to_float(self.percentage, 4),
            "daily_change": to_float(self.daily_change, 4),
            "daily_change_percent": to_float(self.daily_change_percent, 4),
        }


@dataclass(frozen=True)
class PortfolioValuation:
    holdings: tuple[HoldingValuation, ...]     # sorted by value, largest first
    total_value: float
    total_cost: float
    total_return: float
    total_return_pct: float
    top_gainer: Quote | None
    top_loser: Quote | None

    def weight(self, symbol: str) -> float:
        """Fractional weight (0-1) of ``symbol``; 0 if not held."""
        for h in self.holdings:
            if h.symbol == symbol:
                return h.percentage / 100.0
        return 0.0


def current_price(holding: Holding, quote: Quote | None) -> float:
    """Latest quote price, else the purchase price."""
    if quote is not None and quote.price is not None:
        return finite(quote.price)
    return finite(holding.purchase_price)


def rank_movers(quotes: list[Quote]) -> tuple[Quote | None, Quote | None]:
    """(top gainer, top loser) by daily change percent; a missing change counts as 0."""
    if not quotes:
        return None, None
    ranked = sorted(quotes, key=lambda q: finite(q.change_percent), reverse=True)
    return ranked[0], ranked[-1]


def value_holdings(
    holdings: list[Holding],
    quotes: dict[str, Quote],
    profiles: dict[str, Profile],
    quote_list: list[Quote] | None = None,
) -> PortfolioValuation:
    """Price every holding and compute totals, weights, and return.

    ``quote_list`` keeps the order quotes were fetched in, which decides
    ties when ranking movers; it defaults to ``quotes.values()``.
    """
    rows = []
    total_value = 0.0
    total_cost = 0.0
    for holding in holdings:
        quote = quotes.get(holding.symbol)
        profile = profiles.get(holding.symbol)
        price = current_price(holding, quote)
        value = finite(holding.quantity * price)
        cost = finite(holding.quantity * holding.purchase_price)
        total_value += value
        total_cost += cost
        rows.append((holding, quote, profile, price, value, cost))

    valuations = [
        HoldingValuation(
            symbol=holding.symbol,
            name=holding.name,
            logo_url=profile.image if profile is not None else None,
            quantity=holding.quantity,
            current_price=price,
            current_value=value,
            cost=cost,
            percentage=pct_of(value, total_value),
            daily_change=finite(quote.change) if quote is not None else 0.0,
            daily_change_percent=finite(quote.change_percent) if quote is not None else 0.0,
        )
        for holding, quote, profile, price, value, cost in rows
    ]
    valuations.sort(key=lambda v: v.current_value, reverse=True)

    total_return = total_value - total_cost
    total_return_pct = safe_div(total_return, total_cost) * 100.0 if total_cost > 0 else 0.0
    gainer, loser = rank_movers(list(quote_list) if quote_list is not None else list(quotes.values()))

    return PortfolioValuation(
        holdings=tuple(valuations),
        total_value=total_value,
        total_cost=total_cost,
        total_return=total_return,
        total_return_pct=total_return_pct,
        top_gainer=gainer,
        top_loser=loser,
    )
