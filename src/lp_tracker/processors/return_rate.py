from __future__ import annotations

from decimal import Decimal

from ..constants import DAYS_PER_YEAR, SECONDS_PER_DAY

ZERO = Decimal(0)


def days_elapsed(start_timestamp: int, now: float) -> Decimal:
    """Fractional days between a unix timestamp and ``now`` (unix seconds)."""
    return (Decimal(str(now)) - Decimal(start_timestamp)) / SECONDS_PER_DAY


def calculate_apr(
    deposit_value_usd: Decimal, gain_usd: Decimal, days_elapsed: Decimal
) -> Decimal:
    """Linear annualized return in percent.

    ``(gain / deposit) * (365 / days) * 100``; zero when the deposit
    value or the elapsed time is not positive.
    """
    if deposit_value_usd <= 0 or days_elapsed <= 0:
        return ZERO
    return (gain_usd / deposit_value_usd) * (Decimal(DAYS_PER_YEAR) / days_elapsed) * 100
