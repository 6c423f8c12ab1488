from __future__ import annotations

from .price_cache import PriceCache
from .price_resolver import PriceResolver
from .return_rate import calculate_apr, days_elapsed
from .reward_attribution import (
    GaugeReward,
    ShareAccrual,
    TokenPosition,
    attribute_pool_gain,
    rank_gauge_rewards,
    total_value,
    vault_share_accrual,
    yield_rate_reward,
)

__all__ = [
    "GaugeReward",
    "PriceCache",
    "PriceResolver",
    "ShareAccrual",
    "TokenPosition",
    "attribute_pool_gain",
    "calculate_apr",
    "days_elapsed",
    "rank_gauge_rewards",
    "total_value",
    "vault_share_accrual",
    "yield_rate_reward",
]
