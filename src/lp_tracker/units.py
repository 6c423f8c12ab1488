from __future__ import annotations

from decimal import ROUND_HALF_EVEN, Decimal, localcontext

# Enough digits for any uint256 quantity.
_PRECISION = 100


def to_decimal(raw: int, decimals: int) -> Decimal:
    """Convert a raw on-chain integer quantity to its human decimal amount.

    Args:
        raw: Integer amount in the token's smallest unit.
        decimals: Token decimal places.

    Returns:
        ``raw / 10**decimals`` as an exact Decimal.
    """
    with localcontext() as ctx:
        ctx.prec = _PRECISION
        return Decimal(raw).scaleb(-decimals)


def to_raw(amount: Decimal | str | int, decimals: int) -> int:
    """Convert a human decimal amount to the token's smallest unit.

    Rounds half-even to the nearest integer unit, so
    ``to_raw(to_decimal(raw, d), d) == raw`` for every integer ``raw``.
    """
    with localcontext() as ctx:
        ctx.prec = _PRECISION
        scaled = Decimal(str(amount)).scaleb(decimals)
        return int(scaled.to_integral_value(rounding=ROUND_HALF_EVEN))


def format_units(raw: int, decimals: int) -> str:
    """Render a raw quantity as a plain decimal string (no exponent)."""
    value = to_decimal(raw, decimals)
    if value == value.to_integral_value():
        return f"{value.quantize(Decimal(1)):f}"
    return f"{value.normalize():f}"

