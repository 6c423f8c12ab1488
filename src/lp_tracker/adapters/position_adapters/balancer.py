from __future__ import annotations

import asyncio
from abc import abstractmethod
from decimal import Decimal
from typing import Any

from ...abi import load_erc20_abi, load_rate_provider_abi, load_rewards_gauge_abi
from ...clients.chain import ChainReader
from ...clients.subgraph import SubgraphClient
from ...constants import BPT_DECIMALS, RATE_PROVIDER_ADDRESSES
from ...domain import (
    Deposit,
    GaugeRewardClaim,
    PoolSnapshot,
    PositionFacts,
    PositionShare,
    TokenAmount,
    TokenInfo,
)
from ...logger import get_logger
from ...settings import TrackerSettings, VaultSettings
from ...units import to_raw
from .base import BasePositionAdapter

logger = get_logger(__name__)

V2_POOL_SHARES_QUERY = """
query PoolShares($user: String!, $pool: String!) {
  poolShares(where: {userAddress: $user, poolId_contains: $pool}) {
    id
    balance
    poolId {
      id
      address
      totalLiquidity
      totalShares
      tokens {
        address
        symbol
        name
        balance
        decimals
      }
    }
  }
}
"""

V2_JOINS_QUERY = """
query Joins($user: String!, $pool: String!, $first: Int!) {
  joinExits(
    where: {user: $user, pool_contains: $pool, type: "Join"}
    orderBy: timestamp
    orderDirection: asc
    first: $first
  ) {
    id
    timestamp
    amounts
    valueUSD
    block
    pool {
      id
      tokens {
        address
        symbol
        name
        decimals
      }
    }
  }
}
"""

V3_POOL_SHARES_QUERY = """
query PoolShares($user: String!, $pool: String!) {
  poolShares(where: {user: $user, pool: $pool}) {
    id
    balance
    pool {
      id
      address
      totalShares
      tokens {
        address
        symbol
        name
        balance
        decimals
      }
    }
  }
}
"""

V3_ADDS_QUERY = """
query Adds($user: String!, $pool: String!, $first: Int!) {
  addRemoves(
    where: {user: $user, pool: $pool, type: "Add"}
    orderBy: blockTimestamp
    orderDirection: asc
    first: $first
  ) {
    id
    blockTimestamp
    type
    amounts
    blockNumber
    pool {
      id
      tokens {
        address
        symbol
        name
        decimals
      }
    }
  }
}
"""


def _token_info(token: dict[str, Any]) -> TokenInfo:
    return TokenInfo(
        address=token["address"],
        symbol=token["symbol"],
        decimals=int(token["decimals"]),
        name=token.get("name") or token["symbol"],
    )


def _parse_token_amounts(
    tokens: list[dict[str, Any]], amounts: list[str]
) -> tuple[TokenAmount, ...]:
    """Pair subgraph decimal-string amounts with their pool tokens as raw integers."""
    if len(amounts) != len(tokens):
        raise ValueError(
            f"Deposit has {len(amounts)} amounts for {len(tokens)} pool tokens"
        )
    result = []
    for token, amount in zip(tokens, amounts):
        info = _token_info(token)
        result.append(TokenAmount(token=info, raw_quantity=to_raw(amount, info.decimals)))
    return tuple(result)


class BalancerPoolAdapter(BasePositionAdapter):
    """Balancer (Beets) pool positions from the protocol subgraph.

    Also reads gauge rewards and ERC4626 rate providers on-chain.
    """

    pool_shares_query: str
    deposits_query: str
    deposits_field: str
    deposit_page_size = 1

    def __init__(
        self,
        config: TrackerSettings,
        vault: VaultSettings,
        chain: ChainReader,
        *,
        subgraph: SubgraphClient | None = None,
        rate_providers: dict[str, str] | None = None,
    ):
        super().__init__(config, vault, chain)
        self.subgraph = subgraph or SubgraphClient(
            config.subgraph_url(vault.kind),
            request_timeout=config.request_timeout,
        )
        providers = rate_providers if rate_providers is not None else RATE_PROVIDER_ADDRESSES
        self.rate_providers = {symbol.lower(): addr for symbol, addr in providers.items()}

    @property
    def adapter_name(self) -> str:
        return f"balancer_v{self.kind.protocol_version}"

    def _variables(self, user_address: str) -> dict[str, Any]:
        return {"user": user_address.lower(), "pool": self.vault.address.lower()}

    async def fetch_facts(self, user_address: str) -> PositionFacts:
        variables = self._variables(user_address)
        shares_data, deposits_data = await self._read_both(
            self.subgraph.query(self.pool_shares_query, variables),
            self.subgraph.query(
                self.deposits_query, {**variables, "first": self.deposit_page_size}
            ),
            current_default={"poolShares": []},
            history_default={self.deposits_field: []},
        )

        shares = [self._parse_share(s) for s in shares_data.get("poolShares") or []]
        deposits = sorted(
            (self._parse_deposit(d) for d in deposits_data.get(self.deposits_field) or []),
            key=lambda d: d.timestamp,
        )
        logger.debug(
            "%s: %d pool share record(s), %d deposit(s) for %s",
            self.vault.name,
            len(shares),
            len(deposits),
            user_address,
        )
        return PositionFacts(
            deposits=deposits,
            current_share=shares[0] if shares else None,
        )

    @abstractmethod
    def _parse_share(self, share: dict[str, Any]) -> PositionShare: ...

    @abstractmethod
    def _parse_deposit(self, deposit: dict[str, Any]) -> Deposit: ...

    def _parse_pool(
        self, pool: dict[str, Any], total_liquidity_usd: Decimal | None
    ) -> PoolSnapshot:
        balances = tuple(
            TokenAmount(
                token=_token_info(token),
                raw_quantity=to_raw(token["balance"], int(token["decimals"])),
            )
            for token in pool["tokens"]
        )
        return PoolSnapshot(
            total_shares=to_raw(pool["totalShares"], BPT_DECIMALS),
            balances=balances,
            total_liquidity_usd=total_liquidity_usd,
        )

    async def fetch_gauge_rewards(self, user_address: str) -> list[GaugeRewardClaim]:
        """Claimable and claimed amounts for every reward token of the vault's gauge."""
        if not self.vault.gauge_address:
            raise ValueError(f"Vault '{self.vault.name}' has no gauge configured")

        user = self.chain.to_checksum(user_address)
        gauge = self.chain.contract(self.vault.gauge_address, load_rewards_gauge_abi())

        reward_count = int(await self.chain.read_view(gauge, "reward_count"))
        reward_tokens = await asyncio.gather(
            *(self.chain.read_view(gauge, "reward_tokens", i) for i in range(reward_count))
        )

        async def _read_claim(token_address: str) -> GaugeRewardClaim:
            token = self.chain.contract(token_address, load_erc20_abi())
            symbol, decimals, name, claimable, claimed = await asyncio.gather(
                self.chain.read_view(token, "symbol"),
                self.chain.read_view(token, "decimals"),
                self.chain.read_view(token, "name"),
                self.chain.read_view(gauge, "claimable_reward", user, token_address),
                self.chain.read_view(gauge, "claimed_reward", user, token_address),
            )
            return GaugeRewardClaim(
                token=TokenInfo(
                    address=token_address,
                    symbol=symbol,
                    decimals=int(decimals),
                    name=name,
                ),
                claimable_raw=int(claimable),
                claimed_raw=int(claimed),
            )

        claims = await asyncio.gather(*(_read_claim(addr) for addr in reward_tokens))
        return list(claims)

    async def fetch_rate(self, symbol: str) -> int | None:
        """Current 18-decimal exchange rate of a yield-bearing token, or None."""
        address = self.rate_providers.get(symbol.lower())
        if address is None:
            return None
        provider = self.chain.contract(address, load_rate_provider_abi())
        return int(await self.chain.read_view(provider, "getRate"))


class BalancerV2Adapter(BalancerPoolAdapter):
    pool_shares_query = V2_POOL_SHARES_QUERY
    deposits_query = V2_JOINS_QUERY
    deposits_field = "joinExits"

    def _parse_share(self, share: dict[str, Any]) -> PositionShare:
        pool = share["poolId"]
        liquidity = pool.get("totalLiquidity")
        return PositionShare(
            balance=to_raw(share["balance"], BPT_DECIMALS),
            pool=self._parse_pool(
                pool, Decimal(str(liquidity)) if liquidity is not None else None
            ),
        )

    def _parse_deposit(self, deposit: dict[str, Any]) -> Deposit:
        value_usd = deposit.get("valueUSD")
        return Deposit(
            timestamp=int(deposit["timestamp"]),
            block_number=int(deposit["block"]),
            amounts=_parse_token_amounts(deposit["pool"]["tokens"], deposit["amounts"]),
            value_usd=Decimal(str(value_usd)) if value_usd is not None else None,
        )


class BalancerV3Adapter(BalancerPoolAdapter):
    """v3 pools: no USD liquidity on pool shares and no USD value on deposits."""

    pool_shares_query = V3_POOL_SHARES_QUERY
    deposits_query = V3_ADDS_QUERY
    deposits_field = "addRemoves"

    def _parse_share(self, share: dict[str, Any]) -> PositionShare:
        return PositionShare(
            balance=to_raw(share["balance"], BPT_DECIMALS),
            pool=self._parse_pool(share["pool"], None),
        )

    def _parse_deposit(self, deposit: dict[str, Any]) -> Deposit:
        return Deposit(
            timestamp=int(deposit["blockTimestamp"]),
            block_number=int(deposit["blockNumber"]),
            amounts=_parse_token_amounts(deposit["pool"]["tokens"], deposit["amounts"]),
        )
