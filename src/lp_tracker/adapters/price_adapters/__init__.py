from __future__ import annotations

from .beefy import BeefyLpPriceAdapter
from .coingecko import CoinGeckoAdapter

__all__ = ["BeefyLpPriceAdapter", "CoinGeckoAdapter"]
