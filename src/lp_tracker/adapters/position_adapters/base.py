from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from collections.abc import Awaitable
from decimal import Decimal
from typing import TypeVar

from ...clients.chain import ChainReader
from ...domain import GaugeRewardClaim, PositionFacts, VaultKind
from ...errors import NoDataSourceError
from ...logger import get_logger
from ...settings import TrackerSettings, VaultSettings

logger = get_logger(__name__)

A = TypeVar("A")
B = TypeVar("B")


class BasePositionAdapter(ABC):
    """Abstract base class for protocol-specific position fact readers.

    Capabilities that only some protocols offer (gauges, rate providers,
    vault USD valuation) raise NotImplementedError by default.
    """

    def __init__(self, config: TrackerSettings, vault: VaultSettings, chain: ChainReader):
        self.config = config
        self.vault = vault
        self.chain = chain

    @property
    @abstractmethod
    def adapter_name(self) -> str:
        """Return the name of this adapter."""
        ...

    @property
    def kind(self) -> VaultKind:
        return self.vault.kind

    @abstractmethod
    async def fetch_facts(self, user_address: str) -> PositionFacts:
        """Read current holdings and deposit history for ``user_address``.

        Deposits are returned in ascending timestamp order.

        Raises:
            NoDataSourceError: If neither the current holding nor the
                deposit history could be read.
        """
        ...

    async def fetch_gauge_rewards(self, user_address: str) -> list[GaugeRewardClaim]:
        """Per-token gauge claims for the staked-gauge mode.

        Overridden by the Balancer adapter; only v2 pools have a gauge.
        """
        raise NotImplementedError(f"{self.adapter_name} has no reward gauge")

    async def fetch_rate(self, symbol: str) -> int | None:
        """Current 18-decimal rate of a yield-bearing token, or None.

        Overridden by the Balancer adapter for v3 yield-rate pools.
        """
        raise NotImplementedError(f"{self.adapter_name} has no rate providers")

    async def underlying_usd_value(self, underlying_raw: int, decimals: int) -> Decimal:
        """USD value of a raw amount of the vault's underlying token.

        Overridden by the Beefy adapter for share-price accrual.
        """
        raise NotImplementedError(f"{self.adapter_name} has no vault USD oracle")

    async def current_block(self) -> int:
        return await self.chain.block_number()

    async def _read_both(
        self,
        current: Awaitable[A],
        history: Awaitable[B],
        *,
        current_default: A,
        history_default: B,
    ) -> tuple[A, B]:
        """Run the current-holding and history reads concurrently.

        A single failed read is logged and replaced by its default; when
        both fail the vault has no data source.
        """
        current_result, history_result = await asyncio.gather(
            current, history, return_exceptions=True
        )
        if isinstance(current_result, BaseException) and isinstance(
            history_result, BaseException
        ):
            logger.error(
                "%s: current holding read failed: %s; deposit history read failed: %s",
                self.vault.name,
                current_result,
                history_result,
            )
            raise NoDataSourceError(
                f"No position data for vault '{self.vault.name}'"
            ) from history_result

        if isinstance(current_result, BaseException):
            logger.warning(
                "%s: current holding read failed, continuing with history only: %s",
                self.vault.name,
                current_result,
            )
            current_result = current_default
        if isinstance(history_result, BaseException):
            logger.warning(
                "%s: deposit history read failed: %s", self.vault.name, history_result
            )
            history_result = history_default

        return current_result, history_result
