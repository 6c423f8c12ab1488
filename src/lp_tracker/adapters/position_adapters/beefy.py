from __future__ import annotations

import asyncio
from decimal import Decimal
from typing import Any

from web3.exceptions import BadFunctionCallOutput, ContractLogicError, Web3Exception

from ...abi import load_beefy_vault_abi, load_erc20_abi
from ...clients.chain import TRANSIENT_RPC_ERRORS, ChainReader
from ...clients.subgraph import SubgraphClient
from ...domain import Deposit, PositionFacts, TokenInfo, VaultShareFacts
from ...logger import get_logger
from ...settings import TrackerSettings, VaultSettings
from ..price_adapters.beefy import BeefyLpPriceAdapter
from .base import BasePositionAdapter

logger = get_logger(__name__)

DEPOSITS_QUERY = """
query Deposits($investor: String!, $vault: String!, $first: Int!) {
  investorPositionInteractions(
    where: {investor: $investor, vault: $vault, type: "DEPOSIT"}
    orderBy: timestamp
    orderDirection: asc
    first: $first
  ) {
    id
    timestamp
    blockNumber
    sharesBalanceDelta
  }
}
"""


class BeefyVaultAdapter(BasePositionAdapter):
    """Beefy autocompounding vault positions.

    Shares and price-per-full-share are read on-chain; the deposit
    history comes from the Beefy balances subgraph. The PPFS at deposit
    time is read at the deposit block, which needs an archive node; when
    that read fails the deposit PPFS is taken as zero.
    """

    deposit_page_size = 1

    def __init__(
        self,
        config: TrackerSettings,
        vault: VaultSettings,
        chain: ChainReader,
        *,
        subgraph: SubgraphClient | None = None,
        usd_oracle: BeefyLpPriceAdapter | None = None,
    ):
        super().__init__(config, vault, chain)
        self.subgraph = subgraph or SubgraphClient(
            config.subgraph_url(vault.kind),
            request_timeout=config.request_timeout,
        )
        self.usd_oracle = usd_oracle or BeefyLpPriceAdapter(config)
        self.vault_contract = chain.contract(vault.address, load_beefy_vault_abi())

    @property
    def adapter_name(self) -> str:
        return "beefy"

    async def _read_holding(self, user_address: str) -> tuple[TokenInfo, int, int]:
        user = self.chain.to_checksum(user_address)
        want_address, shares, current_ppfs = await asyncio.gather(
            self.chain.read_view(self.vault_contract, "want"),
            self.chain.read_view(self.vault_contract, "balanceOf", user),
            self.chain.read_view(self.vault_contract, "getPricePerFullShare"),
        )
        want = self.chain.contract(want_address, load_erc20_abi())
        symbol, decimals = await asyncio.gather(
            self.chain.read_view(want, "symbol"),
            self.chain.read_view(want, "decimals"),
        )
        info = TokenInfo(address=want_address, symbol=symbol, decimals=int(decimals))
        return info, int(shares), int(current_ppfs)

    async def _read_deposits(self, user_address: str) -> list[Deposit]:
        data = await self.subgraph.query(
            DEPOSITS_QUERY,
            {
                "investor": user_address.lower(),
                "vault": self.vault.address.lower(),
                "first": self.deposit_page_size,
            },
        )
        return sorted(
            (self._parse_deposit(d) for d in data.get("investorPositionInteractions") or []),
            key=lambda d: d.timestamp,
        )

    @staticmethod
    def _parse_deposit(deposit: dict[str, Any]) -> Deposit:
        return Deposit(
            timestamp=int(deposit["timestamp"]),
            block_number=int(deposit["blockNumber"]),
        )

    async def _deposit_ppfs(self, block_number: int) -> int:
        try:
            return int(
                await self.chain.read_view(
                    self.vault_contract,
                    "getPricePerFullShare",
                    block_identifier=block_number,
                )
            )
        except (
            BadFunctionCallOutput,
            ContractLogicError,
            Web3Exception,
            ValueError,
            *TRANSIENT_RPC_ERRORS,
        ) as e:
            logger.warning(
                "%s: no historical PPFS at block %d, using 0: %s",
                self.vault.name,
                block_number,
                e,
            )
            return 0

    async def fetch_facts(self, user_address: str) -> PositionFacts:
        holding, deposits = await self._read_both(
            self._read_holding(user_address),
            self._read_deposits(user_address),
            current_default=None,
            history_default=[],
        )

        if holding is None or not deposits:
            return PositionFacts(deposits=deposits)

        want, shares, current_ppfs = holding
        deposit_ppfs = await self._deposit_ppfs(deposits[0].block_number)
        return PositionFacts(
            deposits=deposits,
            vault_share=VaultShareFacts(
                want=want,
                shares=shares,
                current_ppfs=current_ppfs,
                deposit_ppfs=deposit_ppfs,
            ),
        )

    async def underlying_usd_value(self, underlying_raw: int, decimals: int) -> Decimal:
        assert self.vault.oracle_id is not None
        return await self.usd_oracle.vault_usd_value(
            self.vault.oracle_id, underlying_raw, decimals
        )
