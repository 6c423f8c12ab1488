from __future__ import annotations

from collections.abc import Mapping
from datetime import date, datetime, timezone
from decimal import Decimal

from ..adapters.price_adapters.base import BasePriceAdapter
from ..constants import (
    COINGECKO_DATE_FORMAT,
    COINGECKO_HISTORICAL_RATES,
    COINGECKO_RATES,
    COINGECKO_TOKEN_IDS,
)
from ..errors import UnknownTokenError
from ..logger import get_logger
from .price_cache import PriceCache

logger = get_logger(__name__)


def to_price_date(timestamp: int) -> date:
    """Calendar day of a unix timestamp in UTC."""
    return datetime.fromtimestamp(timestamp, tz=timezone.utc).date()


class PriceResolver:
    """Maps token symbols to USD prices, now or on a past day.

    Current prices are looked up in the cache, then the static rate
    table, then the network (and cached). Historical prices are looked
    up in the static historical table, then the network; historical
    network results are never cached.
    """

    def __init__(
        self,
        source: BasePriceAdapter,
        cache: PriceCache | None = None,
        *,
        token_ids: Mapping[str, str] = COINGECKO_TOKEN_IDS,
        static_rates: Mapping[str, float] = COINGECKO_RATES,
        historical_rates: Mapping[str, Mapping[str, float]] = COINGECKO_HISTORICAL_RATES,
        use_static_rates: bool = True,
    ):
        self.source = source
        self.cache = cache if cache is not None else PriceCache()
        self._token_ids = {symbol.lower(): feed for symbol, feed in token_ids.items()}
        self._static_rates = static_rates if use_static_rates else {}
        self._historical_rates = historical_rates if use_static_rates else {}

    def resolve_id(self, symbol: str) -> str:
        """Price-feed identifier for ``symbol`` (case-insensitive).

        Raises:
            UnknownTokenError: If the symbol is not mapped.
        """
        feed_id = self._token_ids.get(symbol.lower())
        if feed_id is None:
            raise UnknownTokenError(symbol)
        return feed_id

    async def price(self, symbol: str, at_timestamp: int | None = None) -> Decimal:
        """USD price of ``symbol``, at ``at_timestamp`` (unix seconds) when given.

        Raises:
            UnknownTokenError: If the symbol is not mapped.
            PriceUnavailableError: If the network lookup yields no price.
        """
        feed_id = self.resolve_id(symbol)
        if at_timestamp is not None:
            return await self._historical_price(feed_id, at_timestamp)
        return await self._current_price(feed_id)

    async def _current_price(self, feed_id: str) -> Decimal:
        cached = self.cache.get(feed_id)
        if cached is not None:
            return cached

        static = self._static_rates.get(feed_id)
        if static is not None:
            return Decimal(str(static))

        price = await self.source.fetch_price(feed_id)
        self.cache.set(feed_id, price)
        return price

    async def _historical_price(self, feed_id: str, at_timestamp: int) -> Decimal:
        day = to_price_date(at_timestamp)
        day_key = day.strftime(COINGECKO_DATE_FORMAT)

        static = self._historical_rates.get(feed_id, {}).get(day_key)
        if static is not None:
            logger.debug(
                "Using static historical price for %s on %s: %s", feed_id, day_key, static
            )
            return Decimal(str(static))

        return await self.source.fetch_historical_price(feed_id, day)
