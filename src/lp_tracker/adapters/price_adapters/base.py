from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import date
from decimal import Decimal

from ...settings import TrackerSettings


class BasePriceAdapter(ABC):
    """Abstract base class for network USD price lookups."""

    def __init__(self, config: TrackerSettings):
        """Initialize the adapter with configuration."""
        self.config = config

    @property
    @abstractmethod
    def adapter_name(self) -> str:
        """Return the name of this adapter."""
        ...

    @abstractmethod
    async def fetch_price(self, feed_id: str) -> Decimal:
        """Fetch the current USD price for a price-feed identifier."""
        ...

    @abstractmethod
    async def fetch_historical_price(self, feed_id: str, day: date) -> Decimal:
        """Fetch the USD price for a price-feed identifier on a calendar day."""
        ...
