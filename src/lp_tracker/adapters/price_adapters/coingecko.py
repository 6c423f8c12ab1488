from __future__ import annotations

import asyncio
import json
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Any

import backoff
import requests

from ...clients.subgraph import is_permanent_http_error
from ...constants import COINGECKO_DATE_FORMAT
from ...errors import PriceUnavailableError
from ...logger import get_logger
from ...settings import TrackerSettings
from .base import BasePriceAdapter

logger = get_logger(__name__)


def _to_price(value: Any, feed_id: str) -> Decimal:
    try:
        price = Decimal(str(value))
    except (InvalidOperation, ValueError) as e:
        raise PriceUnavailableError(f"Invalid price value for {feed_id}: {value}") from e
    if price < 0 or not price.is_finite():
        raise PriceUnavailableError(f"Invalid price value for {feed_id}: {value}")
    return price


class CoinGeckoAdapter(BasePriceAdapter):
    """Adapter for CoinGecko simple and historical USD prices."""

    def __init__(self, config: TrackerSettings):
        super().__init__(config)
        self.api_base_url = config.coingecko_api_url.rstrip("/")
        self.request_timeout = config.request_timeout
        self._headers: dict[str, str] = {"accept": "application/json"}
        if config.coingecko_api_key:
            self._headers["x-cg-demo-api-key"] = (
                config.coingecko_api_key.get_secret_value()
            )

    @property
    def adapter_name(self) -> str:
        return "coingecko"

    @backoff.on_exception(
        backoff.expo,
        requests.exceptions.RequestException,
        max_tries=5,
        giveup=is_permanent_http_error,
        jitter=backoff.full_jitter,
    )
    async def _get_json(self, url: str, params: dict[str, str]) -> Any:
        logger.debug("Calling %s %s", url, params)
        response = await asyncio.to_thread(
            requests.get,
            url,
            params=params,
            headers=self._headers,
            timeout=self.request_timeout,
        )
        response.raise_for_status()
        try:
            return response.json()
        except json.JSONDecodeError as e:
            raise PriceUnavailableError(f"Invalid JSON from CoinGecko: {url}") from e

    async def fetch_price(self, feed_id: str) -> Decimal:
        """Fetch the current USD price from ``/simple/price``.

        Raises:
            PriceUnavailableError: If the coin is missing from the response.
            requests.exceptions.RequestException: If the request keeps failing.
        """
        logger.debug("CoinGecko API: get token price %s", feed_id)
        data = await self._get_json(
            f"{self.api_base_url}/simple/price",
            {"ids": feed_id, "vs_currencies": "usd"},
        )
        try:
            value = data[feed_id]["usd"]
        except (KeyError, TypeError) as e:
            raise PriceUnavailableError(f"CoinGecko returned no USD price for {feed_id}") from e
        return _to_price(value, feed_id)

    async def fetch_historical_price(self, feed_id: str, day: date) -> Decimal:
        """Fetch the USD price on ``day`` from ``/coins/{id}/history``.

        Raises:
            PriceUnavailableError: If the payload has no USD market price.
        """
        day_str = day.strftime(COINGECKO_DATE_FORMAT)
        logger.debug("CoinGecko API: get token price %s (%s)", feed_id, day_str)
        data = await self._get_json(
            f"{self.api_base_url}/coins/{feed_id}/history",
            {"date": day_str, "localization": "false"},
        )
        value = (
            (data or {}).get("market_data", {}).get("current_price", {}).get("usd")
        )
        if value is None:
            raise PriceUnavailableError(
                f"CoinGecko has no historical USD price for {feed_id} on {day_str}"
            )
        return _to_price(value, feed_id)
