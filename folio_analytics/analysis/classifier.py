"""Sector / country / asset-class resolution with symbol- and name-based fallbacks.

Fundamentals are trusted when they carry a real sector. Otherwise the
holding is run through ``FALLBACK_RULES`` in order and the first match wins:

    crypto -> ETF -> index -> forex -> precious metals -> energy
           -> base metals -> agricultural -> Unknown

Asset class is derived independently, after the sector is settled.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable

from folio_analytics.data_sources.records import Holding, Profile

UNKNOWN = "Unknown"
GLOBAL = "Global"

SECTOR_CRYPTO = "Cryptocurrency"
SECTOR_ETF = "Exchange Traded Fund"
SECTOR_INDEX = "Index"
SECTOR_CURRENCY = "Currency"
SECTOR_PRECIOUS_METALS = "Precious Metals"
SECTOR_ENERGY = "Energy"
SECTOR_BASIC_MATERIALS = "Basic Materials"
SECTOR_AGRICULTURAL = "Agricultural"

ASSET_CLASS_ETF = "ETF"
ASSET_CLASS_CRYPTO = "Crypto"
ASSET_CLASS_COMMODITIES = "Commodities"
ASSET_CLASS_STOCKS = "Stocks"

COMMODITY_SECTORS = frozenset({SECTOR_PRECIOUS_METALS, SECTOR_ENERGY, SECTOR_AGRICULTURAL})

CRYPTO_EXCHANGE = "CRYPTO"


@dataclass(frozen=True)
class ResolvedClassification:
    symbol: str
    sector: str
    country: str
    asset_class: str

    def to_dict(self) -> dict:
        return {"symbol": self.symbol, "sector": self.sector,
                "country": self.country, "asset_class": self.asset_class}


Predicate = Callable[[Holding, "Profile | None"], bool]


@dataclass(frozen=True)
class FallbackRule:
    """One step of the fallback chain.

    ``force_global`` rules always set the country to "Global"; the others
    only fill it in when the profile has none.
    """
    name: str
    sector: str
    matches: Predicate
    force_global: bool = False

    def resolve_country(self, country: str | None) -> str:
        if self.force_global or _is_blank(country):
            return GLOBAL
        return country


# ---------------------------------------------------------------------------
# Predicates
# ---------------------------------------------------------------------------

def _is_blank(value: str | None) -> bool:
    return value is None or not value.strip()


def _sector_missing(sector: str | None) -> bool:
    return _is_blank(sector) or UNKNOWN in sector


def _symbol_is(holding: Holding, *codes: str) -> bool:
    symbol = holding.symbol.upper()
    return any(symbol == code.upper() for code in codes)


def _name_has(holding: Holding, *words: str) -> bool:
    name = (holding.name or "").lower()
    return any(w.lower() in name for w in words)


def _is_crypto(holding: Holding, profile: Profile | None) -> bool:
    if profile is not None and profile.exchange == CRYPTO_EXCHANGE:
        return True
    return any(tag in holding.symbol for tag in ("-USD", "BTC", "ETH"))


def _is_etf(holding: Holding, profile: Profile | None) -> bool:
    return bool(profile is not None and profile.is_etf) or _name_has(holding, "ETF")


def _is_index(holding: Holding, profile: Profile | None) -> bool:
    return holding.symbol.startswith("^")


def _is_forex(holding: Holding, profile: Profile | None) -> bool:
    return "=X" in holding.symbol


def _is_precious_metal(holding: Holding, profile: Profile | None) -> bool:
    return (
        _symbol_is(holding, "GC=F", "SI=F", "PL=F", "PA=F")
        or "gold" in holding.symbol.lower()
        or _name_has(holding, "Gold", "Silver", "Platinum", "Palladium")
    )


def _is_energy(holding: Holding, profile: Profile | None) -> bool:
    return (
        _symbol_is(holding, "CL=F", "NG=F", "BZ=F")
        or _name_has(holding, "Crude Oil", "Natural Gas", "Brent")
    )


def _is_base_metal(holding: Holding, profile: Profile | None) -> bool:
    return _symbol_is(holding, "HG=F") or _name_has(holding, "Copper")


def _is_agricultural(holding: Holding, profile: Profile | None) -> bool:
    return _symbol_is(holding, "ZC=F", "ZW=F", "ZS=F")


FALLBACK_RULES: tuple[FallbackRule, ...] = (
    FallbackRule("crypto", SECTOR_CRYPTO, _is_crypto),
    FallbackRule("etf", SECTOR_ETF, _is_etf),
    FallbackRule("index", SECTOR_INDEX, _is_index),
    FallbackRule("forex", SECTOR_CURRENCY, _is_forex, force_global=True),
    FallbackRule("precious_metals", SECTOR_PRECIOUS_METALS, _is_precious_metal, force_global=True),
    FallbackRule("energy", SECTOR_ENERGY, _is_energy, force_global=True),
    FallbackRule("base_metals", SECTOR_BASIC_MATERIALS, _is_base_metal, force_global=True),
    FallbackRule("agricultural", SECTOR_AGRICULTURAL, _is_agricultural, force_global=True),
)


# ---------------------------------------------------------------------------
# Resolution
# ---------------------------------------------------------------------------

def match_fallback_rule(holding: Holding, profile: Profile | None) -> FallbackRule | None:
    """First fallback rule matching the holding, or None."""
    for rule in FALLBACK_RULES:
        if rule.matches(holding, profile):
            return rule
    return None


def resolve_sector_country(holding: Holding, profile: Profile | None) -> tuple[str, str]:
    sector = profile.sector if profile is not None else None
    country = profile.country if profile is not None else None

    if not _sector_missing(sector):
        return sector, (UNKNOWN if _is_blank(country) else country)

    rule = match_fallback_rule(holding, profile)
    if rule is None:
        return UNKNOWN, (UNKNOWN if _is_blank(country) else country)
    return rule.sector, rule.resolve_country(country)


def resolve_asset_class(holding: Holding, profile: Profile | None, sector: str) -> str:
    if _is_etf(holding, profile):
        return ASSET_CLASS_ETF
    if sector == SECTOR_CRYPTO or (profile is not None and profile.exchange == CRYPTO_EXCHANGE):
        return ASSET_CLASS_CRYPTO
    if sector in COMMODITY_SECTORS:
        return ASSET_CLASS_COMMODITIES
    return ASSET_CLASS_STOCKS


def classify(holding: Holding, profile: Profile | None = None) -> ResolvedClassification:
    """Resolve (sector, country, asset class) for one holding. Never returns blanks."""
    sector, country = resolve_sector_country(holding, profile)
    return ResolvedClassification(
        symbol=holding.symbol,
        sector=sector,
        country=country,
        asset_class=resolve_asset_class(holding, profile, sector),
    )


def classify_all(
    holdings: list[Holding], profiles: dict[str, Profile],
) -> dict[str, ResolvedClassification]:
    return {h.symbol: classify(h, profiles.get(h.symbol)) for h in holdings}
