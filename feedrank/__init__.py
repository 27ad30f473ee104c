"""feedrank: content ranking and diversification engine."""

__version__ = "1.0.0"
