"""Liquidity position valuation and yield attribution."""

__version__ = "0.1.0"
