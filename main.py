#!/usr/bin/env python3
"""folio-analytics: portfolio exposure, income and risk.

Usage:
    python main.py analyze configs/holdings.yaml                  # JSON state
    python main.py analyze configs/holdings.yaml --format markdown
    python main.py analyze configs/holdings.yaml --save           # write reports/output/*.md
    python main.py classify GC=F --name "Gold Futures"            # sector / country / asset class
    python main.py watch configs/holdings.yaml                    # re-run on every file change
"""

import argparse
import json
import sys
import threading

from folio_analytics.analysis.classifier import classify
from folio_analytics.config import LOG_LEVEL, Paths
from folio_analytics.data_sources import (
    DataSourceUnavailableError,
    Holding,
    YFinanceDataClient,
    load_holdings,
    watch_holdings,
)
from folio_analytics.pipeline.engine import ERROR_PREFIX, AnalyticsEngine, AnalyticsService
from folio_analytics.pipeline.snapshot import AnalyticsState
from folio_analytics.reports.renderer import ReportRenderer
from folio_analytics.utils.logger import setup_logger

logger = setup_logger("main", LOG_LEVEL)


def _summary_line(state: AnalyticsState) -> str:
    if state.error:
        return f"ERROR: {state.error}"
    snap = state.snapshot
    if snap is None:
        return "No holdings."
    return (
        f"value={snap.total_value:,.2f} return={snap.total_return_pct:+.2f}% "
        f"risk={snap.risk_score} ({snap.risk_level.value}) vol={snap.volatility:.1f}% "
        f"income={snap.annual_income:,.2f} | {snap.rebalancing_suggestion}"
    )


def cmd_analyze(args):
    """Single analytics run over a holdings file."""
    holdings = load_holdings(args.holdings)
    engine = AnalyticsEngine(YFinanceDataClient())
    try:
        state = engine.run(holdings)
    except DataSourceUnavailableError as e:
        print(f"{ERROR_PREFIX}: {e}", file=sys.stderr)
        sys.exit(1)
    state = state or AnalyticsState()

    renderer = ReportRenderer()
    if args.format == "markdown":
        print(renderer.render(state))
    else:
        print(json.dumps(state.to_dict(), indent=2, default=str))
    if args.save:
        path = renderer.save(state, Paths.REPORTS_OUTPUT)
        print(f"Saved: {path}", file=sys.stderr)


def cmd_classify(args):
    """Resolve sector, country and asset class for one symbol."""
    client = YFinanceDataClient()
    profiles = client.get_profiles([args.symbol])
    profile = profiles[0] if profiles else None
    name = args.name or (profile.company_name if profile and profile.company_name else "")
    resolved = classify(Holding(symbol=args.symbol, name=name), profile)
    print(json.dumps(resolved.to_dict(), indent=2))


def cmd_watch(args):
    """Re-run analytics every time the holdings file changes."""
    stop = threading.Event()
    engine = AnalyticsEngine(YFinanceDataClient())
    service = AnalyticsService(engine, listener=lambda s: print(_summary_line(s), flush=True))
    try:
        service.watch(watch_holdings(args.holdings, interval=args.interval, stop=stop))
    except KeyboardInterrupt:
        logger.info("Stopping watch")
    finally:
        stop.set()
        service.close()


def main():
    parser = argparse.ArgumentParser(
        description="folio-analytics: portfolio exposure, income and risk",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    sub = parser.add_subparsers(dest="command", help="Commands")

    # analyze
    p = sub.add_parser("analyze", help="Run analytics once")
    p.add_argument("holdings", nargs="?", default=str(Paths.HOLDINGS), help="Holdings YAML file")
    p.add_argument("--format", default="json", choices=["json", "markdown"])
    p.add_argument("--save", action="store_true", help="Write a markdown report to reports/output/")
    p.set_defaults(func=cmd_analyze)

    # classify
    p = sub.add_parser("classify", help="Resolve sector / country / asset class")
    p.add_argument("symbol")
    p.add_argument("--name", default="", help="Display name used by the fallback rules")
    p.set_defaults(func=cmd_classify)

    # watch
    p = sub.add_parser("watch", help="Re-run on every holdings change")
    p.add_argument("holdings", nargs="?", default=str(Paths.HOLDINGS), help="Holdings YAML file")
    p.add_argument("--interval", type=float, default=None, help="Poll interval in seconds")
    p.set_defaults(func=cmd_watch)

    args = parser.parse_args()
    if args.command is None:
        parser.print_help()
        sys.exit(0)
    args.func(args)


if __name__ == "__main__":
    main()
