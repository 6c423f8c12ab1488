"""Per-vault valuation: mode selection and the four valuation strategies."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from decimal import Decimal

from ..constants import BPT_DECIMALS, MAX_REPORTED_TOKENS
from ..domain import (
    ZERO,
    AssetValue,
    Deposit,
    PortfolioItem,
    PositionFacts,
    RewardShare,
    ValuationMode,
    ValuationResult,
    VaultKind,
)
from ..errors import PriceUnavailableError
from ..processors import (
    GaugeReward,
    TokenPosition,
    attribute_pool_gain,
    calculate_apr,
    days_elapsed,
    rank_gauge_rewards,
    total_value,
    vault_share_accrual,
    yield_rate_reward,
)
from ..report import build_portfolio_item
from ..settings import VaultSettings
from ..units import format_units, to_decimal
from .context import VaultContext


def select_mode(vault: VaultSettings, facts: PositionFacts) -> ValuationMode:
    """Decide the valuation strategy from the vault kind and on-chain state.

    A v2 pool is valued as unstaked only while the wallet holds pool
    tokens directly; otherwise the tokens are assumed staked in the gauge.
    """
    if vault.kind == VaultKind.BEEFY:
        return ValuationMode.VAULT_SHARE_ACCRUAL
    if vault.kind == VaultKind.BALANCER_V3:
        return ValuationMode.YIELD_RATE_APPRECIATION
    share = facts.current_share
    if share is not None and share.balance > 0:
        return ValuationMode.UNSTAKED_POOL
    return ValuationMode.STAKED_GAUGE


async def price_deposit(
    ctx: VaultContext, deposit: Deposit
) -> tuple[tuple[AssetValue, ...], Decimal]:
    """Value the deposited token amounts at deposit-time prices.

    Zero-amount tokens are not priced and not reported.
    """
    amounts = [a for a in deposit.amounts if a.raw_quantity > 0]
    prices = await asyncio.gather(
        *(ctx.prices.price(a.symbol, deposit.timestamp) for a in amounts)
    )
    deposits = tuple(
        AssetValue(symbol=a.symbol, amount=a.amount, value_usd=a.amount * price)
        for a, price in zip(amounts, prices)
    )
    return deposits, sum((d.value_usd for d in deposits), ZERO)


async def value_unstaked_pool(ctx: VaultContext) -> ValuationResult:
    share = ctx.facts_required.current_share
    assert share is not None
    deposits, deposit_value = await price_deposit(ctx, ctx.deposit_required)

    fraction = share.share_fraction
    balances = share.pool.balances
    prices = await asyncio.gather(*(ctx.prices.price(t.symbol) for t in balances))
    positions = [
        TokenPosition(symbol=t.symbol, amount=t.amount * fraction, price=price)
        for t, price in zip(balances, prices)
    ]

    current_value = total_value(positions)
    total_gain = current_value - deposit_value
    # attributed over every pool token; the report keeps the first two
    rewards = attribute_pool_gain(positions, total_gain)[:MAX_REPORTED_TOKENS]

    if share.pool.total_liquidity_usd is not None:
        bpt_value = to_decimal(share.balance, BPT_DECIMALS) * share.pool.share_price_usd
        apr_gain = bpt_value - deposit_value
    else:
        apr_gain = total_gain

    ctx.state.logger.debug(
        "%s: position value %s, deposit value %s, gain %s",
        ctx.vault.name,
        current_value,
        deposit_value,
        total_gain,
    )
    return ValuationResult(
        deposits=deposits,
        rewards=tuple(rewards),
        deposit_value=deposit_value,
        reward_value=sum((r.value_usd for r in rewards), ZERO),
        apr_gain=apr_gain,
    )


async def value_staked_gauge(ctx: VaultContext) -> ValuationResult:
    log = ctx.state.logger
    (deposits, deposit_value), claims = await asyncio.gather(
        price_deposit(ctx, ctx.deposit_required),
        ctx.adapter.fetch_gauge_rewards(ctx.wallet),
    )

    symbols = ctx.state.settings.reward_symbols_for(ctx.vault)
    selected, others = rank_gauge_rewards(claims, symbols)

    rewards: list[RewardShare] = []
    reward_value = ZERO
    if selected is None:
        log.info(
            "%s: no gauge reward matches %s; reward and APR are zero",
            ctx.vault.name,
            symbols,
        )
    else:
        headline = GaugeReward(
            claim=selected, price=await ctx.prices.price(selected.token.symbol)
        )
        reward_value = headline.reward_value
        rewards.append(headline.as_reward_share())
        log.debug(
            "%s: %s earned %s (claimable %s, claimed %s)",
            ctx.vault.name,
            headline.symbol,
            format_units(selected.total_earned_raw, selected.token.decimals),
            format_units(selected.claimable_raw, selected.token.decimals),
            format_units(selected.claimed_raw, selected.token.decimals),
        )

    if others:
        # informational, not part of the headline total
        other = others[0]
        try:
            price = await ctx.prices.price(other.token.symbol)
        except PriceUnavailableError as e:
            log.warning(
                "%s: skipping reward %s: %s", ctx.vault.name, other.token.symbol, e
            )
        else:
            rewards.append(GaugeReward(claim=other, price=price).as_reward_share())

    return ValuationResult(
        deposits=deposits,
        rewards=tuple(rewards),
        deposit_value=deposit_value,
        reward_value=reward_value,
        apr_gain=reward_value,
    )


async def value_yield_rate(ctx: VaultContext) -> ValuationResult:
    deposit = ctx.deposit_required
    deposits, deposit_value = await price_deposit(ctx, deposit)

    async def _token_yield(symbol: str, amount: Decimal) -> RewardShare:
        if amount == 0:
            return yield_rate_reward(symbol, amount, None, None)
        rate = await ctx.adapter.fetch_rate(symbol)
        if rate is None:
            return yield_rate_reward(symbol, amount, None, None)
        price = await ctx.prices.price(symbol)
        return yield_rate_reward(symbol, amount, rate, price)

    rewards = await asyncio.gather(
        *(
            _token_yield(a.symbol, a.amount)
            for a in deposit.amounts[:MAX_REPORTED_TOKENS]
        )
    )
    reward_value = sum((r.value_usd for r in rewards), ZERO)
    return ValuationResult(
        deposits=deposits,
        rewards=tuple(rewards),
        deposit_value=deposit_value,
        reward_value=reward_value,
        apr_gain=reward_value if reward_value > 0 else ZERO,
    )


async def value_vault_shares(ctx: VaultContext) -> ValuationResult:
    facts = ctx.facts_required.vault_share
    assert facts is not None
    accrual = vault_share_accrual(facts.shares, facts.deposit_ppfs, facts.current_ppfs)
    decimals = facts.want.decimals

    initial_usd, current_usd = await asyncio.gather(
        ctx.adapter.underlying_usd_value(accrual.initial_underlying, decimals),
        ctx.adapter.underlying_usd_value(accrual.current_underlying, decimals),
    )
    gain_usd = current_usd - initial_usd
    symbol = facts.want.symbol
    return ValuationResult(
        deposits=(
            AssetValue(
                symbol=symbol,
                amount=to_decimal(accrual.initial_underlying, decimals),
                value_usd=initial_usd,
            ),
        ),
        rewards=(
            RewardShare(
                symbol=symbol,
                amount=to_decimal(accrual.gain_tokens, decimals),
                value_usd=gain_usd,
            ),
        ),
        deposit_value=initial_usd,
        reward_value=gain_usd,
        apr_gain=gain_usd,
    )


VALUATORS: dict[ValuationMode, Callable[[VaultContext], Awaitable[ValuationResult]]] = {
    ValuationMode.UNSTAKED_POOL: value_unstaked_pool,
    ValuationMode.STAKED_GAUGE: value_staked_gauge,
    ValuationMode.YIELD_RATE_APPRECIATION: value_yield_rate,
    ValuationMode.VAULT_SHARE_ACCRUAL: value_vault_shares,
}


async def value_vault(ctx: VaultContext) -> PortfolioItem | None:
    """Value one vault for ``ctx.wallet``.

    Returns:
        The vault's PortfolioItem, or None when the vault is omitted
        (no deposit history, or no vault shares held).

    Raises:
        NoDataSourceError: If no position facts could be read.
        PriceUnavailableError: If a required price cannot be resolved.
    """
    log = ctx.state.logger
    vault = ctx.vault

    ctx.facts = await ctx.adapter.fetch_facts(ctx.wallet)
    deposit = ctx.facts.initial_deposit
    if deposit is None:
        log.info("%s: no deposit history for %s, omitting", vault.name, ctx.wallet)
        return None

    ctx.mode = select_mode(vault, ctx.facts)
    if ctx.mode == ValuationMode.VAULT_SHARE_ACCRUAL and (
        ctx.facts.vault_share is None or ctx.facts.vault_share.shares == 0
    ):
        log.info("%s: no vault shares held by %s, omitting", vault.name, ctx.wallet)
        return None

    log.debug("%s: valuing as %s", vault.name, ctx.mode.value)
    ctx.current_block = await ctx.adapter.current_block()
    result = await VALUATORS[ctx.mode](ctx)

    days = days_elapsed(deposit.timestamp, ctx.now)
    apr = calculate_apr(result.deposit_value, result.apr_gain, days)
    return build_portfolio_item(
        vault,
        ctx.mode,
        deposit,
        result,
        total_days=days,
        total_blocks=ctx.current_block_required - deposit.block_number,
        apr=apr,
    )
