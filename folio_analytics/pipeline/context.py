"""Run-scoped state: the fetched-input bundle and the cancellation token."""

from __future__ import annotations

import threading
from dataclasses import dataclass, field

from folio_analytics.data_sources.records import (
    DividendRecord,
    NewsItem,
    PricePoint,
    Profile,
    Quote,
    SplitRecord,
)


class RunCancelledError(Exception):
    """Raised inside a run whose token was cancelled. Never surfaced to the caller."""


class CancellationToken:
    """Thread-safe cancel flag shared between a run and whoever started it."""

    def __init__(self):
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise RunCancelledError("analytics run cancelled")


@dataclass
class FetchedData:
    """Everything one run fetched, joined once after the fan-out.

    ``quotes`` keeps the order the source returned them in. Symbols with no
    data are simply missing from the per-symbol maps.
    """

    quotes: list[Quote] = field(default_factory=list)
    profiles: list[Profile] = field(default_factory=list)
    news: list[NewsItem] = field(default_factory=list)
    charts: dict[str, list[PricePoint]] = field(default_factory=dict)
    dividends: dict[str, list[DividendRecord]] = field(default_factory=dict)
    splits: dict[str, list[SplitRecord]] = field(default_factory=dict)

    @property
    def quote_map(self) -> dict[str, Quote]:
        return {q.symbol: q for q in self.quotes}

    @property
    def profile_map(self) -> dict[str, Profile]:
        return {p.symbol: p for p in self.profiles}
