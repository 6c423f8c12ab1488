from __future__ import annotations

import asyncio
from decimal import Decimal

import backoff
import requests

from ...clients.subgraph import is_permanent_http_error
from ...errors import PriceUnavailableError
from ...logger import get_logger
from ...settings import TrackerSettings
from ...units import to_decimal

logger = get_logger(__name__)


class BeefyLpPriceAdapter:
    """USD valuation of vault underlying ("want") tokens from the Beefy API.

    The want token is frequently an LP token, so it is priced by its
    Beefy oracle id rather than by symbol.
    """

    def __init__(self, config: TrackerSettings):
        self.api_base_url = config.beefy_api_url.rstrip("/")
        self.request_timeout = config.request_timeout
        self._lp_prices: dict[str, Decimal] | None = None
        self._lock = asyncio.Lock()

    @property
    def adapter_name(self) -> str:
        return "beefy_lps"

    @backoff.on_exception(
        backoff.expo,
        requests.exceptions.RequestException,
        max_tries=5,
        giveup=is_permanent_http_error,
        jitter=backoff.full_jitter,
    )
    async def _fetch_lp_prices(self) -> dict[str, Decimal]:
        url = f"{self.api_base_url}/lps"
        logger.debug("Calling %s", url)
        response = await asyncio.to_thread(
            requests.get, url, timeout=self.request_timeout
        )
        response.raise_for_status()
        data = response.json()
        if not isinstance(data, dict):
            raise PriceUnavailableError(f"Unexpected Beefy LP price payload from {url}")
        return {
            oracle_id: Decimal(str(price))
            for oracle_id, price in data.items()
            if price is not None
        }

    async def lp_price(self, oracle_id: str) -> Decimal:
        """USD price of one whole want token for ``oracle_id``."""
        async with self._lock:
            if self._lp_prices is None:
                self._lp_prices = await self._fetch_lp_prices()
        price = self._lp_prices.get(oracle_id)
        if price is None:
            raise PriceUnavailableError(f"Beefy API has no LP price for '{oracle_id}'")
        return price

    async def vault_usd_value(
        self, oracle_id: str, underlying_raw: int, decimals: int
    ) -> Decimal:
        """USD value of ``underlying_raw`` want tokens."""
        price = await self.lp_price(oracle_id)
        return to_decimal(underlying_raw, decimals) * price
