"""Logging configuration for folio-analytics."""

import logging
import sys

from folio_analytics.config import LOG_LEVEL


def setup_logger(name: str = "folio_analytics", level: str | None = None) -> logging.Logger:
    """Create and configure a logger.

    ``level`` defaults to ``LOG_LEVEL`` (env var, then ``app.log_level`` in settings.yaml).
    """
    logger = logging.getLogger(name)
    if not logger.handlers:
        handler = logging.StreamHandler(sys.stderr)
        fmt = logging.Formatter(
            "%(asctime)s | %(name)-20s | %(levelname)-7s | %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
        handler.setFormatter(fmt)
        logger.addHandler(handler)
    logger.setLevel(getattr(logging, (level or LOG_LEVEL).upper(), logging.INFO))
    return logger
