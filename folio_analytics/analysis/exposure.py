"""Exposure breakdowns by sector, country, and asset class.

Each dimension is a list of buckets sorted by percentage, largest first.
Percentages are of total portfolio value, so a dimension sums to 100 when
the portfolio has value and every bucket is 0 when it does not.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from folio_analytics.analysis.classifier import ResolvedClassification
from folio_analytics.utils.numbers import pct_of, to_float

# Chart colours (opaque ARGB). Labels outside the palette get a hash-derived colour.
PALETTE: dict[str, int] = {
    # Sectors
    "Technology": 0xFF6366F1,
    "Healthcare": 0xFF22C55E,
    "Financial Services": 0xFF3B82F6,
    "Consumer Cyclical": 0xFFF59E0B,
    "Consumer Defensive": 0xFF84CC16,
    "Industrials": 0xFF8B5CF6,
    "Energy": 0xFFEF4444,
    "Real Estate": 0xFF14B8A6,
    "Communication Services": 0xFFEC4899,
    "Basic Materials": 0xFF78716C,
    "Utilities": 0xFF0EA5E9,
    "Cryptocurrency": 0xFFF97316,
    "Precious Metals": 0xFFEAB308,
    "Unknown": 0xFF9CA3AF,
    # Asset classes
    "Stocks": 0xFF3B82F6,
    "ETF": 0xFF06B6D4,
    "Crypto": 0xFFF97316,
    "Commodities": 0xFFEAB308,
    # Countries
    "US": 0xFF2563EB,
    "Global": 0xFF10B981,
    "China": 0xFFEF4444,
    "Europe": 0xFF6366F1,
}

_OPAQUE = 0xFF000000


def label_hash(label: str) -> int:
    """Stable 32-bit signed string hash (s[0]*31^(n-1) + ... over UTF-16 code units).

    Python's built-in ``hash`` is salted per process, so colours would change
    between runs without this.
    """
    raw = label.encode("utf-16-be")
    h = 0
    for i in range(0, len(raw), 2):
        h = (31 * h + ((raw[i] << 8) | raw[i + 1])) & 0xFFFFFFFF
    return h - (1 << 32) if h & 0x80000000 else h


def chart_color(label: str) -> int:
    """Palette colour for ``label``, else an opaque colour from its hash."""
    color = PALETTE.get(label)
    if color is not None:
        return color
    return _OPAQUE | (label_hash(label) & 0xFFFFFF)


@dataclass(frozen=True)
class ExposureBucket:
    label: str
    value: float
    percentage: float
    color: int

    @property
    def color_hex(self) -> str:
        return f"#{self.color & 0xFFFFFF:06X}"

    def to_dict(self) -> dict:
        return {
            "label": self.label,
            "value": to_float(self.value, 2),
            "percentage": to_float(self.percentage, 4),
            "color": self.color_hex,
        }


@dataclass(frozen=True)
class ExposureBreakdown:
    sector: tuple[ExposureBucket, ...]
    country: tuple[ExposureBucket, ...]
    asset_class: tuple[ExposureBucket, ...]

    @property
    def top_sector(self) -> ExposureBucket | None:
        return self.sector[0] if self.sector else None

    def asset_class_percentage(self, label: str) -> float:
        for b in self.asset_class:
            if b.label == label:
                return b.percentage
        return 0.0

    def to_dict(self) -> dict:
        return {
            "sector": [b.to_dict() for b in self.sector],
            "country": [b.to_dict() for b in self.country],
            "asset_class": [b.to_dict() for b in self.asset_class],
        }


def to_buckets(values: dict[str, float], total_value: float) -> tuple[ExposureBucket, ...]:
    """Turn label -> value sums into buckets sorted by percentage (ties keep insertion order)."""
    buckets = [
        ExposureBucket(label=label, value=value,
                       percentage=pct_of(value, total_value),
                       color=chart_color(label))
        for label, value in values.items()
    ]
    buckets.sort(key=lambda b: b.percentage, reverse=True)
    return tuple(buckets)


def aggregate_exposure(
    rows: Iterable[tuple[ResolvedClassification, float]],
    total_value: float | None = None,
) -> ExposureBreakdown:
    """Bucket holding values by sector, country and asset class.

    ``rows`` are (classification, holding value) pairs. ``total_value``
    defaults to the sum of the row values. Holdings with a blank country
    are left out of the country breakdown.
    """
    sector_map: dict[str, float] = {}
    country_map: dict[str, float] = {}
    asset_class_map: dict[str, float] = {}
    running_total = 0.0

    for cls, value in rows:
        running_total += value
        sector_map[cls.sector] = sector_map.get(cls.sector, 0.0) + value
        if cls.country and cls.country.strip():
            country_map[cls.country] = country_map.get(cls.country, 0.0) + value
        asset_class_map[cls.asset_class] = asset_class_map.get(cls.asset_class, 0.0) + value

    total = running_total if total_value is None else total_value
    return ExposureBreakdown(
        sector=to_buckets(sector_map, total),
        country=to_buckets(country_map, total),
        asset_class=to_buckets(asset_class_map, total),
    )
