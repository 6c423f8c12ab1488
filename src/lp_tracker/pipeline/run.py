"""High-level pipeline orchestration."""

from __future__ import annotations

import asyncio
import time
from collections.abc import Callable

from ..adapters import CoinGeckoAdapter, build_position_adapter
from ..adapters.position_adapters.base import BasePositionAdapter
from ..clients import ChainReader
from ..domain import PortfolioItem
from ..errors import NoDataSourceError
from ..processors import PriceCache, PriceResolver
from ..settings import TrackerSettings, VaultSettings
from ..state import AppState
from .context import VaultContext
from .valuation import value_vault

AdapterFactory = Callable[
    [TrackerSettings, VaultSettings, ChainReader], BasePositionAdapter
]


def build_price_resolver(settings: TrackerSettings) -> PriceResolver:
    """PriceResolver backed by CoinGecko with a cache scoped to one run."""
    return PriceResolver(
        CoinGeckoAdapter(settings),
        PriceCache(ttl_seconds=settings.price_cache_ttl_seconds),
        use_static_rates=settings.use_static_rates,
    )


async def run_portfolio(
    state: AppState,
    wallet: str,
    *,
    chain: ChainReader | None = None,
    prices: PriceResolver | None = None,
    adapter_factory: AdapterFactory = build_position_adapter,
    now: float | None = None,
) -> list[PortfolioItem]:
    """Value every configured vault for ``wallet`` concurrently.

    Failures are contained per vault: a vault that raises or times out is
    logged and left out, as is a vault without deposit history. The
    result preserves the configured vault order.

    Args:
        state: Application state containing settings and logger
        wallet: Checksummed wallet address
        chain: Chain reader shared by all vaults (built from settings if omitted)
        prices: Price resolver shared by all vaults (built from settings if omitted)
        adapter_factory: Builds the position adapter for a vault
        now: Unix time the elapsed-time metrics are measured to

    Returns:
        PortfolioItems for the vaults that could be fully valued.
    """
    s = state.settings
    log = state.logger

    chain = chain or ChainReader(s)
    prices = prices or build_price_resolver(s)
    now = time.time() if now is None else now
    timeout_s = s.vault_timeout_seconds

    log.info("Valuing %d vault(s) for %s", len(s.vaults), wallet)

    async def _value(vault: VaultSettings) -> PortfolioItem | None:
        ctx = VaultContext(
            state=state,
            vault=vault,
            wallet=wallet,
            adapter=adapter_factory(s, vault, chain),
            prices=prices,
            now=now,
        )
        if timeout_s is None or timeout_s <= 0:
            return await value_vault(ctx)
        try:
            async with asyncio.timeout(timeout_s):
                return await value_vault(ctx)
        except TimeoutError as exc:
            raise TimeoutError(
                f"Vault '{vault.name}' exceeded {timeout_s}s. "
                "N.B. This can be changed via `vault_timeout_seconds`."
            ) from exc

    results = await asyncio.gather(
        *(_value(vault) for vault in s.vaults), return_exceptions=True
    )

    items: list[PortfolioItem] = []
    failures = 0
    for vault, result in zip(s.vaults, results):
        if isinstance(result, NoDataSourceError):
            log.warning("Vault '%s' omitted: %s", vault.name, result)
            failures += 1
        elif isinstance(result, BaseException):
            log.error("Vault '%s' failed: %s", vault.name, result)
            failures += 1
        elif result is not None:
            items.append(result)

    if s.vaults and failures == len(s.vaults):
        log.error("No vault could be valued; returning an empty report")
    log.info("Report completed: %d of %d vault(s) valued", len(items), len(s.vaults))
    return items
