"""Domain models for position valuation."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum

from ..units import to_decimal

ZERO = Decimal(0)


class VaultKind(str, Enum):
    BALANCER_V2 = "balancer-v2-pool"
    BALANCER_V3 = "balancer-v3-pool"
    BEEFY = "beefy-vault"

    @property
    def protocol_version(self) -> int | None:
        """Balancer protocol version for pool kinds, None for vaults."""
        return {
            VaultKind.BALANCER_V2: 2,
            VaultKind.BALANCER_V3: 3,
        }.get(self)


class ValuationMode(str, Enum):
    """Mutually exclusive valuation strategies, decided once per vault."""

    UNSTAKED_POOL = "unstaked_pool"
    STAKED_GAUGE = "staked_gauge"
    YIELD_RATE_APPRECIATION = "yield_rate_appreciation"
    VAULT_SHARE_ACCRUAL = "vault_share_accrual"


@dataclass(frozen=True)
class TokenInfo:
    address: str
    symbol: str
    decimals: int
    name: str | None = None


@dataclass(frozen=True)
class TokenAmount:
    """A raw on-chain quantity of a token, optionally priced in USD."""

    token: TokenInfo
    raw_quantity: int
    usd_price: Decimal | None = None

    def __post_init__(self) -> None:
        if self.usd_price is not None and self.usd_price < 0:
            raise ValueError(
                f"usd_price must be non-negative, got {self.usd_price} for {self.symbol}"
            )

    @property
    def symbol(self) -> str:
        return self.token.symbol

    @property
    def decimals(self) -> int:
        return self.token.decimals

    @property
    def amount(self) -> Decimal:
        """Human quantity, ``raw_quantity / 10**decimals``."""
        return to_decimal(self.raw_quantity, self.token.decimals)

    @property
    def value_usd(self) -> Decimal | None:
        if self.usd_price is None:
            return None
        return self.amount * self.usd_price


@dataclass(frozen=True)
class Deposit:
    """Earliest join event of a user in a pool; the position's cost basis."""

    timestamp: int
    block_number: int
    amounts: tuple[TokenAmount, ...] = ()
    value_usd: Decimal | None = None

    @property
    def deposited_at(self) -> datetime:
        return datetime.fromtimestamp(self.timestamp, tz=timezone.utc)


@dataclass(frozen=True)
class PoolSnapshot:
    total_shares: int
    balances: tuple[TokenAmount, ...]
    total_liquidity_usd: Decimal | None = None

    @property
    def share_price_usd(self) -> Decimal:
        """USD value of one whole pool token; zero when the pool is empty."""
        if self.total_liquidity_usd is None or self.total_shares == 0:
            return ZERO
        return self.total_liquidity_usd / to_decimal(self.total_shares, 18)


@dataclass(frozen=True)
class PositionShare:
    """Pool tokens held directly in the user's wallet."""

    balance: int
    pool: PoolSnapshot

    @property
    def share_fraction(self) -> Decimal:
        if self.pool.total_shares == 0:
            return ZERO
        return Decimal(self.balance) / Decimal(self.pool.total_shares)


@dataclass(frozen=True)
class VaultShareFacts:
    """Autocompounding vault shares and their price-per-full-share history."""

    want: TokenInfo
    shares: int
    current_ppfs: int
    deposit_ppfs: int


@dataclass
class PositionFacts:
    """Raw protocol facts for a single vault, as returned by a position adapter."""

    deposits: list[Deposit] = field(default_factory=list)
    current_share: PositionShare | None = None
    vault_share: VaultShareFacts | None = None

    @property
    def initial_deposit(self) -> Deposit | None:
        return self.deposits[0] if self.deposits else None


@dataclass(frozen=True)
class GaugeRewardClaim:
    """Claimable and already-claimed raw reward amounts for one gauge reward token."""

    token: TokenInfo
    claimable_raw: int
    claimed_raw: int

    @property
    def total_earned_raw(self) -> int:
        return self.claimable_raw + self.claimed_raw


@dataclass(frozen=True)
class AssetValue:
    symbol: str
    amount: Decimal
    value_usd: Decimal


@dataclass(frozen=True)
class RewardShare:
    """Attributed gain in one token."""

    symbol: str
    amount: Decimal
    value_usd: Decimal

    @classmethod
    def zero(cls, symbol: str) -> RewardShare:
        return cls(symbol=symbol, amount=ZERO, value_usd=ZERO)


@dataclass(frozen=True)
class PortfolioItem:
    """Normalized valuation record for one vault.

    Holds at most two deposit tuples and two reward tuples.
    """

    type: str
    name: str
    address: str
    deposit_link: str
    mode: ValuationMode
    deposit_time: datetime
    deposits: tuple[AssetValue, ...]
    rewards: tuple[RewardShare, ...]
    deposit_value: Decimal
    reward_value: Decimal
    total_days: Decimal
    total_blocks: int
    apr: Decimal


@dataclass(frozen=True)
class ValuationResult:
    """Mode-specific valuation of one vault, before report assembly.

    ``apr_gain`` is the USD gain the headline return is computed from; it
    can differ from ``reward_value`` (BPT-priced gain for unstaked pools,
    zero when no headline reward exists).
    """

    deposits: tuple[AssetValue, ...]
    rewards: tuple[RewardShare, ...]
    deposit_value: Decimal
    reward_value: Decimal
    apr_gain: Decimal
