"""Jinja2-based markdown report renderer for analytics state."""

from __future__ import annotations

import math
from datetime import datetime
from pathlib import Path

from jinja2 import Environment, FileSystemLoader

from folio_analytics.config import Paths
from folio_analytics.pipeline.snapshot import AnalyticsState
from folio_analytics.utils.logger import setup_logger

logger = setup_logger("renderer")

DEFAULT_TEMPLATE = "portfolio.md.j2"


# (value, suffix) from largest down; below 1e3 prints cents
_SCALES = ((1e12, "T"), (1e9, "B"), (1e6, "M"), (1e3, "K"))


def _number(val):
    """Finite float for numerics, None for None/NaN/Inf, anything else unchanged."""
    if val is None:
        return None
    try:
        num = float(val)
    except (TypeError, ValueError):
        return val
    return num if math.isfinite(num) else None


def fmt_num(val, currency="$") -> str:
    """Compact money figure: 8000 -> "$8.0K", 12.5 -> "$12.50"."""
    num = _number(val)
    if num is None:
        return "N/A"
    if not isinstance(num, float):
        return str(num)
    for scale, suffix in _SCALES:
        if abs(num) >= scale:
            return f"{currency}{num / scale:.1f}{suffix}"
    return f"{currency}{num:.2f}"


def fmt_pct(val) -> str:
    """Format a value that is already a percentage (12.3 -> "12.3%")."""
    num = _number(val)
    if num is None:
        return "N/A"
    return f"{num:.1f}%" if isinstance(num, float) else str(num)


def fmt_ratio(val) -> str:
    num = _number(val)
    if num is None:
        return "N/A"
    return f"{num:.2f}" if isinstance(num, float) else str(num)


class ReportRenderer:
    """Render AnalyticsState into markdown using Jinja2 templates."""

    def __init__(self, template_dir: Path | None = None):
        tpl_dir = template_dir or Paths.REPORTS_TEMPLATES
        self.env = Environment(
            loader=FileSystemLoader(str(tpl_dir)),
            trim_blocks=True,
            lstrip_blocks=True,
        )
        self.env.filters["fmt_num"] = fmt_num
        self.env.filters["fmt_pct"] = fmt_pct
        self.env.filters["fmt_ratio"] = fmt_ratio

    def render(
        self,
        state: AnalyticsState,
        template_name: str = DEFAULT_TEMPLATE,
        now: datetime | None = None,
    ) -> str:
        template = self.env.get_template(template_name)
        return template.render(state=state, snap=state.snapshot, now=now or datetime.now())

    def save(self, state: AnalyticsState, output_dir: Path | None = None) -> Path:
        """Render and write the report to ``output_dir`` (default reports/output/)."""
        output_dir = output_dir or Paths.REPORTS_OUTPUT
        output_dir.mkdir(parents=True, exist_ok=True)
        now = datetime.now()
        report_path = output_dir / f"portfolio_{now.strftime('%Y%m%d_%H%M%S')}.md"
        report_path.write_text(self.render(state, now=now))
        logger.info("Report saved: %s", report_path)
        return report_path
