"""Dividend income projection and the payments calendar."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date

import pandas as pd

from folio_analytics.data_sources.records import DividendRecord, Holding, Profile
from folio_analytics.utils.logger import setup_logger
from folio_analytics.utils.numbers import finite, pct_of, to_float

logger = setup_logger("income")

QUARTERS_PER_YEAR = 4.0
CALENDAR_ENTRIES_PER_HOLDING = 3

SOURCE_HISTORY = "history"
SOURCE_PROFILE = "profile"
SOURCE_NONE = "none"


@dataclass(frozen=True)
class IncomeProjection:
    symbol: str
    annual_per_share: float
    annual_income: float
    source: str

    def to_dict(self) -> dict:
        return {"symbol": self.symbol,
                "annual_per_share": to_float(self.annual_per_share),
                "annual_income": to_float(self.annual_income, 2),
                "source": self.source}


@dataclass(frozen=True)
class IncomeSummary:
    projections: tuple[IncomeProjection, ...]
    total_income: float
    current_yield: float                # percent of total value
    calendar: tuple[str, ...]


def parse_date(raw: str | None) -> date | None:
    """ISO date or None. Feed dates are free text and may be garbage."""
    if not raw:
        return None
    try:
        return date.fromisoformat(raw.strip()[:10])
    except ValueError:
        return None


def trailing_cutoff(today: date) -> date:
    """Same calendar day one year earlier (Feb 29 maps to Feb 28)."""
    return (pd.Timestamp(today) - pd.DateOffset(years=1)).date()


def trailing_dividends(records: list[DividendRecord], today: date) -> list[DividendRecord]:
    """Records whose ex-date parses and is on or after the trailing-year cutoff."""
    cutoff = trailing_cutoff(today)
    kept = []
    for r in records:
        d = parse_date(r.date)
        if d is None:
            logger.debug("Skipping dividend with unparseable date %r", r.date)
            continue
        if d >= cutoff:
            kept.append(r)
    return kept


def project_holding_income(
    holding: Holding,
    records: list[DividendRecord],
    profile: Profile | None,
    today: date,
) -> IncomeProjection:
    """Trailing-twelve-month dividends per share x quantity.

    Falls back to the profile's last dividend x 4 when there is no history,
    or when none of it falls in the trailing year.
    """
    per_share = 0.0
    source = SOURCE_NONE

    trailing = trailing_dividends(records, today) if records else []
    if trailing:
        per_share = sum(finite(r.amount) for r in trailing)
        source = SOURCE_HISTORY
    else:
        last_div = finite(profile.last_dividend) if profile is not None else 0.0
        if last_div > 0:
            per_share = last_div * QUARTERS_PER_YEAR
            source = SOURCE_PROFILE

    income = per_share * holding.quantity if per_share > 0 else 0.0
    return IncomeProjection(symbol=holding.symbol, annual_per_share=per_share,
                            annual_income=finite(income), source=source)


def build_dividend_calendar(
    holdings: list[Holding], dividends: dict[str, list[DividendRecord]],
) -> tuple[str, ...]:
    """Up to three payment lines per holding, taken in feed order.

    The list is sorted descending as plain strings, which is not a true
    date order across symbols.
    """
    entries = []
    for holding in holdings:
        for record in dividends.get(holding.symbol, [])[:CALENDAR_ENTRIES_PER_HOLDING]:
            if record.payment_date and record.payment_date.strip():
                entries.append(
                    f"Payment: {record.payment_date} - {holding.symbol} (${float(record.amount)})"
                )
    entries.sort(reverse=True)
    return tuple(entries)


def project_income(
    holdings: list[Holding],
    dividends: dict[str, list[DividendRecord]],
    profiles: dict[str, Profile],
    total_value: float,
    today: date | None = None,
) -> IncomeSummary:
    today = today or date.today()
    projections = tuple(
        project_holding_income(h, dividends.get(h.symbol, []), profiles.get(h.symbol), today)
        for h in holdings
    )
    total_income = sum(p.annual_income for p in projections)
    return IncomeSummary(
        projections=projections,
        total_income=total_income,
        current_yield=pct_of(total_income, total_value),
        calendar=build_dividend_calendar(holdings, dividends),
    )
