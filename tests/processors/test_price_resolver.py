from __future__ import annotations

from datetime import date
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import pytest

from lp_tracker.adapters.price_adapters.base import BasePriceAdapter
from lp_tracker.errors import PriceUnavailableError, UnknownTokenError
from lp_tracker.processors.price_cache import PriceCache
from lp_tracker.processors.price_resolver import PriceResolver, to_price_date

# 2025-05-22 01:00:00 UTC
MAY_22 = 1747872000 + 3600


@pytest.fixture
def source():
    src = MagicMock(spec=BasePriceAdapter)
    src.fetch_price = AsyncMock(return_value=Decimal("2.5"))
    src.fetch_historical_price = AsyncMock(return_value=Decimal("3.5"))
    return src


def make_resolver(source, **kwargs) -> PriceResolver:
    kwargs.setdefault("token_ids", {"ABC": "abc-coin", "scbtc": "rings-scbtc"})
    kwargs.setdefault("static_rates", {})
    kwargs.setdefault("historical_rates", {})
    return PriceResolver(source, **kwargs)


def test_to_price_date_uses_utc():
    assert to_price_date(MAY_22) == date(2025, 5, 22)
    assert to_price_date(1747872000 - 1) == date(2025, 5, 21)


def test_resolve_id_is_case_insensitive(source):
    resolver = make_resolver(source)
    assert resolver.resolve_id("abc") == "abc-coin"
    assert resolver.resolve_id("SCBTC") == "rings-scbtc"


@pytest.mark.asyncio
async def test_unknown_symbol_fails_without_network(source):
    resolver = make_resolver(source)

    with pytest.raises(UnknownTokenError) as exc:
        await resolver.price("nope")

    assert exc.value.symbol == "nope"
    assert isinstance(exc.value, PriceUnavailableError)
    source.fetch_price.assert_not_called()


@pytest.mark.asyncio
async def test_current_price_prefers_cache_over_static(source):
    cache = PriceCache()
    cache.set("abc-coin", Decimal("9"))
    resolver = make_resolver(source, cache=cache, static_rates={"abc-coin": 1.0})

    assert await resolver.price("abc") == Decimal("9")
    source.fetch_price.assert_not_called()


@pytest.mark.asyncio
async def test_current_price_uses_static_table_before_network(source):
    resolver = make_resolver(source, static_rates={"abc-coin": 0.1329})

    assert await resolver.price("abc") == Decimal("0.1329")
    source.fetch_price.assert_not_called()


@pytest.mark.asyncio
async def test_current_network_price_is_cached(source):
    cache = PriceCache()
    resolver = make_resolver(source, cache=cache)

    first = await resolver.price("abc")
    second = await resolver.price("ABC")

    assert first == second == Decimal("2.5")
    source.fetch_price.assert_awaited_once_with("abc-coin")
    assert cache.get("abc-coin") == Decimal("2.5")


@pytest.mark.asyncio
async def test_static_tables_can_be_disabled(source):
    resolver = make_resolver(
        source,
        static_rates={"abc-coin": 1.0},
        historical_rates={"abc-coin": {"22-05-2025": 1.0}},
        use_static_rates=False,
    )

    assert await resolver.price("abc") == Decimal("2.5")
    assert await resolver.price("abc", MAY_22) == Decimal("3.5")


@pytest.mark.asyncio
async def test_historical_price_uses_static_table(source):
    resolver = make_resolver(
        source, historical_rates={"rings-scbtc": {"22-05-2025": 109353.807744479}}
    )

    price = await resolver.price("scBTC", MAY_22)

    assert price == Decimal("109353.807744479")
    source.fetch_historical_price.assert_not_called()


@pytest.mark.asyncio
async def test_historical_network_lookup_is_not_cached(source):
    cache = PriceCache()
    resolver = make_resolver(source, cache=cache)

    assert await resolver.price("abc", MAY_22) == Decimal("3.5")
    source.fetch_historical_price.assert_awaited_once_with("abc-coin", date(2025, 5, 22))
    assert len(cache) == 0

    await resolver.price("abc", MAY_22)
    assert source.fetch_historical_price.await_count == 2
    source.fetch_price.assert_not_called()


@pytest.mark.asyncio
async def test_timestamp_zero_is_a_historical_lookup(source):
    resolver = make_resolver(source)

    await resolver.price("abc", 0)

    source.fetch_historical_price.assert_awaited_once_with("abc-coin", date(1970, 1, 1))
    source.fetch_price.assert_not_called()


@pytest.mark.asyncio
async def test_network_failure_propagates(source):
    source.fetch_price.side_effect = PriceUnavailableError("down")
    resolver = make_resolver(source)

    with pytest.raises(PriceUnavailableError):
        await resolver.price("abc")
