from __future__ import annotations

from .formatter import format_portfolio_table, round_to_significant_digits
from .generator import build_portfolio_item, item_to_dict, portfolio_to_dict

__all__ = [
    "build_portfolio_item",
    "format_portfolio_table",
    "item_to_dict",
    "portfolio_to_dict",
    "round_to_significant_digits",
]
