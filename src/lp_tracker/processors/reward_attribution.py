"""Reward attribution for the four valuation modes.

Everything here is synchronous arithmetic over already-fetched facts.
Raw on-chain quantities stay ``int`` until they are converted to a
Decimal amount; USD values are Decimal.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from decimal import Decimal

from ..constants import FIXED_POINT_ONE
from ..domain import GaugeRewardClaim, RewardShare
from ..units import to_decimal

ZERO = Decimal(0)
ONE = Decimal(1)


@dataclass(frozen=True)
class TokenPosition:
    """A token quantity valued at a known USD price."""

    symbol: str
    amount: Decimal
    price: Decimal

    @property
    def value(self) -> Decimal:
        return self.amount * self.price


def total_value(positions: Iterable[TokenPosition]) -> Decimal:
    return sum((p.value for p in positions), ZERO)


# --- unstaked pool -----------------------------------------------------------


def attribute_pool_gain(
    positions: Sequence[TokenPosition], total_gain: Decimal
) -> list[RewardShare]:
    """Split a pool-level gain across tokens by their share of current value.

    ``token_gain = total_gain * token_value / position_value`` and
    ``token_gain_amount = token_gain / token_price``. Which token actually
    appreciated is deliberately ignored.

    A zero position value yields all-zero rewards, as does a zero token
    price for that token's amount.
    """
    position_value = total_value(positions)
    if position_value == 0:
        return [RewardShare.zero(p.symbol) for p in positions]

    rewards = []
    for p in positions:
        token_gain = total_gain * (p.value / position_value)
        token_gain_amount = token_gain / p.price if p.price else ZERO
        rewards.append(
            RewardShare(symbol=p.symbol, amount=token_gain_amount, value_usd=token_gain)
        )
    return rewards


# --- staked gauge ------------------------------------------------------------


@dataclass(frozen=True)
class GaugeReward:
    claim: GaugeRewardClaim
    price: Decimal

    @property
    def symbol(self) -> str:
        return self.claim.token.symbol

    @property
    def claimable(self) -> Decimal:
        return to_decimal(self.claim.claimable_raw, self.claim.token.decimals)

    @property
    def claimed(self) -> Decimal:
        return to_decimal(self.claim.claimed_raw, self.claim.token.decimals)

    @property
    def total_earned(self) -> Decimal:
        return to_decimal(self.claim.total_earned_raw, self.claim.token.decimals)

    @property
    def reward_value(self) -> Decimal:
        """Claimable amount valued at the current price."""
        return self.claimable * self.price

    def as_reward_share(self) -> RewardShare:
        return RewardShare(
            symbol=self.symbol.lower(),
            amount=self.claimable,
            value_usd=self.reward_value,
        )


def rank_gauge_rewards(
    claims: Sequence[GaugeRewardClaim], symbols: Sequence[str]
) -> tuple[GaugeRewardClaim | None, list[GaugeRewardClaim]]:
    """Pick the headline reward by a ranked symbol list (case-insensitive).

    Returns:
        The best-ranked matching claim (or None) and the remaining
        claims in gauge order.
    """
    by_symbol: dict[str, GaugeRewardClaim] = {}
    for claim in claims:
        by_symbol.setdefault(claim.token.symbol.lower(), claim)

    selected = next(
        (by_symbol[s.lower()] for s in symbols if s.lower() in by_symbol), None
    )
    others = [c for c in claims if c is not selected]
    return selected, others


# --- yield-bearing token appreciation ----------------------------------------


def yield_rate_reward(
    symbol: str,
    initial_amount: Decimal,
    rate_raw: int | None,
    price: Decimal | None,
) -> RewardShare:
    """Yield from a rate provider, assuming the deposit-time rate was 1.0.

    ``yield_amount = initial_amount * (rate / 1e18 - 1)``, valued at the
    current price. Tokens without a rate provider (``rate_raw is None``) or
    without a deposited amount earn nothing.
    """
    reported = symbol.lower()
    if initial_amount == 0 or rate_raw is None:
        return RewardShare.zero(reported)

    rate_appreciation = to_decimal(rate_raw, 18)
    yield_amount = initial_amount * (rate_appreciation - ONE)
    yield_value = yield_amount * (price if price is not None else ZERO)
    return RewardShare(symbol=reported, amount=yield_amount, value_usd=yield_value)


# --- autocompounding vault ---------------------------------------------------


@dataclass(frozen=True)
class ShareAccrual:
    initial_underlying: int
    current_underlying: int

    @property
    def gain_tokens(self) -> int:
        return self.current_underlying - self.initial_underlying


def vault_share_accrual(shares: int, deposit_ppfs: int, current_ppfs: int) -> ShareAccrual:
    """Underlying token quantities of ``shares`` at deposit and now."""
    return ShareAccrual(
        initial_underlying=shares * deposit_ppfs // FIXED_POINT_ONE,
        current_underlying=shares * current_ppfs // FIXED_POINT_ONE,
    )
