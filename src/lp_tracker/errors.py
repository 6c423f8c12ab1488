"""Error taxonomy for position valuation."""

from __future__ import annotations


class TrackerError(Exception):
    """Base class for all tracker errors."""


class NoDataSourceError(TrackerError):
    """Raised when no position facts could be read for a vault."""


class PriceUnavailableError(TrackerError):
    """Raised when a USD price cannot be resolved."""


class UnknownTokenError(PriceUnavailableError):
    """Raised when a token symbol has no price-feed identifier."""

    def __init__(self, symbol: str):
        super().__init__(f"No price feed identifier mapped for token '{symbol}'")
        self.symbol = symbol


class SubgraphQueryError(TrackerError):
    """Raised when a subgraph responds with errors or without data."""
