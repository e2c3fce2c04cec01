"""Portfolio analytics: exposure, income, risk and advice for a set of holdings."""

__version__ = "0.1.0"
