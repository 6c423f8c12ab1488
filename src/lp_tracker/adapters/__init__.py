from __future__ import annotations

from .position_adapters import POSITION_ADAPTERS, build_position_adapter
from .price_adapters import CoinGeckoAdapter

__all__ = ["CoinGeckoAdapter", "POSITION_ADAPTERS", "build_position_adapter"]
