from __future__ import annotations

from dataclasses import asdict
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any

from ..constants import MAX_REPORTED_TOKENS
from ..domain import Deposit, PortfolioItem, ValuationMode, ValuationResult
from ..settings import VaultSettings


def build_portfolio_item(
    vault: VaultSettings,
    mode: ValuationMode,
    deposit: Deposit,
    result: ValuationResult,
    *,
    total_days: Decimal,
    total_blocks: int,
    apr: Decimal,
) -> PortfolioItem:
    """Assemble the normalized record for one valued vault.

    Args:
        vault: The configured vault
        mode: Valuation mode the vault was valued with
        deposit: The initial deposit (cost basis)
        result: Mode-specific valuation
        total_days: Days elapsed since the deposit
        total_blocks: Blocks elapsed since the deposit
        apr: Annualized return in percent

    Returns:
        PortfolioItem with full-precision Decimal values and the first two
        deposit and reward tuples; rounding is a display concern of the
        formatter.
    """
    return PortfolioItem(
        type=vault.kind.value,
        name=vault.name,
        address=vault.address,
        deposit_link=vault.url,
        mode=mode,
        deposit_time=deposit.deposited_at,
        deposits=result.deposits[:MAX_REPORTED_TOKENS],
        rewards=result.rewards[:MAX_REPORTED_TOKENS],
        deposit_value=result.deposit_value,
        reward_value=result.reward_value,
        total_days=total_days,
        total_blocks=total_blocks,
        apr=apr,
    )


def _jsonable(value: Any) -> Any:
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, dict):
        return {k: _jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_jsonable(v) for v in value]
    return value


def item_to_dict(item: PortfolioItem) -> dict[str, Any]:
    """Convert a PortfolioItem to a JSON-friendly dict (Decimals as strings)."""
    return _jsonable(asdict(item))


def portfolio_to_dict(items: list[PortfolioItem]) -> list[dict[str, Any]]:
    return [item_to_dict(item) for item in items]
