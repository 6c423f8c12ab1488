from __future__ import annotations

from decimal import Decimal

import pytest

from factories import (
    DEPOSIT_TS,
    amount,
    position_adapter,
    price_resolver,
    token,
    vault_settings,
)
from lp_tracker.domain import (
    Deposit,
    GaugeRewardClaim,
    PoolSnapshot,
    PositionFacts,
    PositionShare,
    ValuationMode,
    VaultKind,
    VaultShareFacts,
)
from lp_tracker.pipeline.valuation import select_mode, value_vault


def _deposit(*amounts, block: int = 400) -> Deposit:
    return Deposit(timestamp=DEPOSIT_TS, block_number=block, amounts=tuple(amounts))


def _pool_share(balance: int, liquidity: Decimal | None = Decimal(2200)) -> PositionShare:
    return PositionShare(
        balance=balance,
        pool=PoolSnapshot(
            total_shares=10 * 10**18,
            balances=(amount("A", 600), amount("B", 400)),
            total_liquidity_usd=liquidity,
        ),
    )


def _claim(symbol: str, claimable: int, claimed: int = 0) -> GaugeRewardClaim:
    return GaugeRewardClaim(token=token(symbol), claimable_raw=claimable, claimed_raw=claimed)


# --- mode selection ----------------------------------------------------------


def test_select_mode_unstaked_when_wallet_holds_pool_tokens():
    facts = PositionFacts(current_share=_pool_share(10**18))
    assert select_mode(vault_settings(VaultKind.BALANCER_V2), facts) == ValuationMode.UNSTAKED_POOL


@pytest.mark.parametrize("share", [None, "zero"])
def test_select_mode_staked_without_direct_balance(share):
    current = _pool_share(0) if share == "zero" else None
    facts = PositionFacts(current_share=current)
    assert select_mode(vault_settings(VaultKind.BALANCER_V2), facts) == ValuationMode.STAKED_GAUGE


def test_select_mode_by_vault_kind():
    facts = PositionFacts(current_share=_pool_share(10**18))
    assert (
        select_mode(vault_settings(VaultKind.BALANCER_V3), facts)
        == ValuationMode.YIELD_RATE_APPRECIATION
    )
    assert select_mode(vault_settings(VaultKind.BEEFY), facts) == ValuationMode.VAULT_SHARE_ACCRUAL


# --- unstaked pool -----------------------------------------------------------


@pytest.mark.asyncio
async def test_unstaked_pool_attributes_gain_by_value(make_ctx):
    facts = PositionFacts(
        deposits=[_deposit(amount("A", 100), amount("B", 100))],
        current_share=_pool_share(10**18),
    )
    prices = price_resolver(current={"A": "1", "B": "4"}, historical={"A": "1", "B": "1"})
    ctx = make_ctx(vault_settings(VaultKind.BALANCER_V2), position_adapter(facts), prices)

    item = await value_vault(ctx)

    assert item.mode == ValuationMode.UNSTAKED_POOL
    assert item.deposit_value == Decimal(200)
    assert [(d.symbol, d.amount, d.value_usd) for d in item.deposits] == [
        ("A", 100, 100),
        ("B", 100, 100),
    ]
    assert [r.symbol for r in item.rewards] == ["A", "B"]
    assert item.rewards[0].value_usd.quantize(Decimal("0.0001")) == Decimal("5.4545")
    assert item.rewards[1].value_usd.quantize(Decimal("0.0001")) == Decimal("14.5455")
    assert abs(item.reward_value - Decimal(20)) < Decimal("1e-20")
    assert item.total_days == Decimal(365)
    assert item.total_blocks == 600
    assert item.apr == Decimal(10)


@pytest.mark.asyncio
async def test_unstaked_pool_apr_uses_bpt_price(make_ctx):
    # 2400 USD liquidity over 10 BPT: 1 BPT is worth 240 while tokens value 220.
    facts = PositionFacts(
        deposits=[_deposit(amount("A", 100), amount("B", 100))],
        current_share=_pool_share(10**18, liquidity=Decimal(2400)),
    )
    prices = price_resolver(current={"A": "1", "B": "4"}, historical={"A": "1", "B": "1"})
    ctx = make_ctx(vault_settings(VaultKind.BALANCER_V2), position_adapter(facts), prices)

    item = await value_vault(ctx)

    assert abs(item.reward_value - Decimal(20)) < Decimal("1e-20")
    assert item.apr == Decimal(20)


@pytest.mark.asyncio
async def test_unstaked_pool_reports_first_two_tokens(make_ctx):
    share = PositionShare(
        balance=10**18,
        pool=PoolSnapshot(
            total_shares=10 * 10**18,
            balances=(amount("A", 600), amount("B", 400), amount("C", 1000)),
        ),
    )
    facts = PositionFacts(
        deposits=[_deposit(amount("A", 100), amount("B", 100), amount("C", 100))],
        current_share=share,
    )
    prices = price_resolver(
        current={"A": "1", "B": "4", "C": "1"},
        historical={"A": "1", "B": "1", "C": "1"},
    )
    ctx = make_ctx(vault_settings(VaultKind.BALANCER_V2), position_adapter(facts), prices)

    item = await value_vault(ctx)

    assert [d.symbol for d in item.deposits] == ["A", "B"]
    assert item.deposit_value == Decimal(300)
    assert [(r.symbol, r.value_usd) for r in item.rewards] == [
        ("A", Decimal("3.75")),
        ("B", Decimal(10)),
    ]
    assert item.reward_value == Decimal("13.75")
    # headline gain still covers the whole pool: 320 - 300
    assert item.apr.quantize(Decimal("0.01")) == Decimal("6.67")

@pytest.mark.asyncio
async def test_deposit_prices_are_historical(make_ctx):
    facts = PositionFacts(
        deposits=[_deposit(amount("A", 100), amount("B", 0))],
        current_share=_pool_share(10**18),
    )
    prices = price_resolver(current={"A": "1", "B": "4"}, historical={"A": "2"})
    ctx = make_ctx(vault_settings(VaultKind.BALANCER_V2), position_adapter(facts), prices)

    item = await value_vault(ctx)

    assert item.deposit_value == Decimal(200)
    assert [d.symbol for d in item.deposits] == ["A"]
    historical_calls = [c for c in prices.price.await_args_list if len(c.args) == 2]
    assert [c.args for c in historical_calls] == [("A", DEPOSIT_TS)]


# --- staked gauge ------------------------------------------------------------


@pytest.mark.asyncio
async def test_staked_gauge_uses_ranked_reward(make_ctx):
    facts = PositionFacts(deposits=[_deposit(amount("A", 100))])
    adapter = position_adapter(facts)
    adapter.fetch_gauge_rewards.return_value = [
        _claim("wS", 10 * 10**18),
        _claim("BEETS", 400 * 10**18, 600 * 10**18),
    ]
    prices = price_resolver(current={"BEETS": "0.05", "wS": "0.5"}, historical={"A": "1"})
    ctx = make_ctx(vault_settings(VaultKind.BALANCER_V2), adapter, prices)

    item = await value_vault(ctx)

    assert item.mode == ValuationMode.STAKED_GAUGE
    assert [(r.symbol, r.amount, r.value_usd) for r in item.rewards] == [
        ("beets", 400, 20),
        ("ws", 10, 5),
    ]
    assert item.reward_value == Decimal(20)
    assert item.apr == Decimal(20)


@pytest.mark.asyncio
async def test_staked_gauge_reward_list_is_configurable(make_ctx):
    facts = PositionFacts(deposits=[_deposit(amount("A", 100))])
    adapter = position_adapter(facts)
    adapter.fetch_gauge_rewards.return_value = [
        _claim("BEETS", 400 * 10**18),
        _claim("wS", 10 * 10**18),
    ]
    prices = price_resolver(current={"BEETS": "0.05", "wS": "0.5"}, historical={"A": "1"})
    ctx = make_ctx(
        vault_settings(VaultKind.BALANCER_V2), adapter, prices, reward_symbols=["ws", "beets"]
    )

    item = await value_vault(ctx)

    assert item.rewards[0].symbol == "ws"
    assert item.reward_value == Decimal(5)


@pytest.mark.asyncio
async def test_staked_gauge_skips_unpriced_informational_reward(make_ctx):
    facts = PositionFacts(deposits=[_deposit(amount("A", 100))])
    adapter = position_adapter(facts)
    adapter.fetch_gauge_rewards.return_value = [
        _claim("BEETS", 400 * 10**18),
        _claim("MYSTERY", 1),
    ]
    prices = price_resolver(current={"BEETS": "0.05"}, historical={"A": "1"})
    ctx = make_ctx(vault_settings(VaultKind.BALANCER_V2), adapter, prices)

    item = await value_vault(ctx)

    assert [r.symbol for r in item.rewards] == ["beets"]


@pytest.mark.asyncio
async def test_staked_gauge_without_matching_reward(make_ctx):
    facts = PositionFacts(deposits=[_deposit(amount("A", 100))])
    prices = price_resolver(current={}, historical={"A": "1"})
    ctx = make_ctx(vault_settings(VaultKind.BALANCER_V2), position_adapter(facts), prices)

    item = await value_vault(ctx)

    assert item.rewards == ()
    assert item.reward_value == 0
    assert item.apr == 0


# --- yield-bearing token appreciation ----------------------------------------


@pytest.mark.asyncio
async def test_yield_rate_per_token(make_ctx):
    facts = PositionFacts(
        deposits=[_deposit(amount("waSonicSolvBTC", 100), amount("scBTC", 0))]
    )
    adapter = position_adapter(facts)
    adapter.fetch_rate.side_effect = lambda symbol: 105 * 10**16
    prices = price_resolver(
        current={"waSonicSolvBTC": "2"}, historical={"waSonicSolvBTC": "1"}
    )
    ctx = make_ctx(vault_settings(VaultKind.BALANCER_V3), adapter, prices)

    item = await value_vault(ctx)

    assert item.mode == ValuationMode.YIELD_RATE_APPRECIATION
    assert [(r.symbol, r.amount, r.value_usd) for r in item.rewards] == [
        ("wasonicsolvbtc", 5, 10),
        ("scbtc", 0, 0),
    ]
    adapter.fetch_rate.assert_awaited_once_with("waSonicSolvBTC")
    assert item.deposit_value == Decimal(100)
    assert item.reward_value == Decimal(10)
    assert item.apr == Decimal(10)


@pytest.mark.asyncio
async def test_yield_rate_without_rate_providers(make_ctx):
    facts = PositionFacts(deposits=[_deposit(amount("scBTC", 1), amount("LBTC", 1))])
    prices = price_resolver(current={}, historical={"scBTC": "100000", "LBTC": "100000"})
    ctx = make_ctx(vault_settings(VaultKind.BALANCER_V3), position_adapter(facts), prices)

    item = await value_vault(ctx)

    assert item.reward_value == 0
    assert item.apr == 0
    assert item.deposit_value == Decimal(200000)


@pytest.mark.asyncio
async def test_yield_rate_reports_first_two_tokens(make_ctx):
    facts = PositionFacts(
        deposits=[_deposit(amount("scBTC", 1), amount("LBTC", 1), amount("wBTC", 1))]
    )
    adapter = position_adapter(facts)
    adapter.fetch_rate.side_effect = lambda symbol: 105 * 10**16
    prices = price_resolver(
        current={"scBTC": "1", "LBTC": "1", "wBTC": "1"},
        historical={"scBTC": "1", "LBTC": "1", "wBTC": "1"},
    )
    ctx = make_ctx(vault_settings(VaultKind.BALANCER_V3), adapter, prices)

    item = await value_vault(ctx)

    assert len(item.deposits) == 2
    assert [r.symbol for r in item.rewards] == ["scbtc", "lbtc"]
    assert item.reward_value == Decimal("0.10")
    assert item.deposit_value == Decimal(3)
    assert item.apr.quantize(Decimal("0.01")) == Decimal("3.33")
    assert [c.args for c in adapter.fetch_rate.await_args_list] == [("scBTC",), ("LBTC",)]

# --- autocompounding vault ---------------------------------------------------


def _vault_facts(shares: int) -> PositionFacts:
    return PositionFacts(
        deposits=[_deposit(block=900)],
        vault_share=VaultShareFacts(
            want=token("ICHI-wBTC-scBTC"),
            shares=shares,
            current_ppfs=11 * 10**17,
            deposit_ppfs=10**18,
        ),
    )


@pytest.mark.asyncio
async def test_vault_share_accrual_values_underlying_separately(make_ctx):
    adapter = position_adapter(_vault_facts(2 * 10**18))

    async def _usd(raw: int, decimals: int) -> Decimal:
        return Decimal(raw) / Decimal(10**decimals) * 3

    adapter.underlying_usd_value.side_effect = _usd
    prices = price_resolver(current={}, historical={})
    ctx = make_ctx(vault_settings(VaultKind.BEEFY), adapter, prices)

    item = await value_vault(ctx)

    assert item.mode == ValuationMode.VAULT_SHARE_ACCRUAL
    assert [(d.symbol, d.amount, d.value_usd) for d in item.deposits] == [
        ("ICHI-wBTC-scBTC", 2, 6)
    ]
    assert item.rewards[0].amount == Decimal("0.2")
    assert item.reward_value == Decimal("0.6")
    assert item.deposit_value == Decimal(6)
    assert item.apr == Decimal(10)
    assert item.total_blocks == 100
    prices.price.assert_not_called()


@pytest.mark.asyncio
async def test_vault_without_shares_is_omitted(make_ctx):
    adapter = position_adapter(_vault_facts(0))
    ctx = make_ctx(vault_settings(VaultKind.BEEFY), adapter, price_resolver({}, {}))

    assert await value_vault(ctx) is None
    adapter.underlying_usd_value.assert_not_called()


# --- omission ----------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.parametrize("kind", list(VaultKind))
async def test_vault_without_deposit_history_is_omitted(make_ctx, kind):
    adapter = position_adapter(PositionFacts())
    ctx = make_ctx(vault_settings(kind), adapter, price_resolver({}, {}))

    assert await value_vault(ctx) is None
    adapter.current_block.assert_not_called()
