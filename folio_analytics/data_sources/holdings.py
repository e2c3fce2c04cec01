"""Holdings source: a YAML file standing in for the app's persistence layer.

The file looks like::

    holdings:
      - symbol: AAPL
        name: Apple Inc.
        quantity: 12
        purchase_price: 148.2
"""

from __future__ import annotations

import threading
from collections.abc import Iterator
from pathlib import Path

import yaml

from folio_analytics.config import setting
from folio_analytics.data_sources.records import Holding
from folio_analytics.utils.logger import setup_logger

logger = setup_logger("holdings")


def parse_holdings(data: dict | list | None) -> list[Holding]:
    """Build Holdings from parsed YAML (a mapping with ``holdings:`` or a bare list)."""
    if data is None:
        return []
    rows = data.get("holdings", []) if isinstance(data, dict) else data
    holdings: dict[str, Holding] = {}
    for row in rows or []:
        if not isinstance(row, dict):
            logger.warning("Skipping malformed holding entry: %r", row)
            continue
        holding = Holding.from_dict(row)
        if holding.symbol in holdings:
            logger.warning("Duplicate symbol %s, keeping the last entry", holding.symbol)
        holdings[holding.symbol] = holding
    return list(holdings.values())


def load_holdings(path: Path | str) -> list[Holding]:
    path = Path(path)
    with open(path) as f:
        return parse_holdings(yaml.safe_load(f))


def watch_holdings(
    path: Path | str,
    interval: float | None = None,
    stop: threading.Event | None = None,
) -> Iterator[list[Holding]]:
    """Yield the holdings now and again every time the file changes.

    Polls the file's mtime every ``interval`` seconds until ``stop`` is set.
    A file that fails to parse is logged and skipped until it changes again.
    """
    path = Path(path)
    interval = interval if interval is not None else setting("holdings", "watch_interval_seconds", 2)
    stop = stop or threading.Event()
    last_mtime: float | None = None

    while not stop.is_set():
        try:
            mtime = path.stat().st_mtime
        except FileNotFoundError:
            mtime = None
        if mtime is not None and mtime != last_mtime:
            last_mtime = mtime
            try:
                holdings = load_holdings(path)
            except (yaml.YAMLError, ValueError) as e:
                logger.error("Could not parse %s: %s", path, e)
            else:
                logger.info("Holdings changed: %d positions", len(holdings))
                yield holdings
        stop.wait(interval)
