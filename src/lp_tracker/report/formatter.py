"""Rich console formatter for portfolio reports."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime
from decimal import ROUND_HALF_EVEN, Decimal, localcontext

from rich.console import Console
from rich.table import Table

from ..domain import AssetValue, PortfolioItem, RewardShare

DEPOSIT_TIME_FORMAT = "%y/%m/%d %H:%M:%S"


def round_to_significant_digits(value: Decimal, digits: int = 6) -> str:
    """Round to ``digits`` significant digits and render without an exponent.

    >>> round_to_significant_digits(Decimal("5.454545454"))
    '5.45455'
    """
    if digits < 1:
        raise ValueError("digits must be at least 1")
    if not value.is_finite():
        return str(value)
    if value == 0:
        return "0"
    with localcontext() as ctx:
        ctx.prec = 100
        quantum = Decimal(1).scaleb(value.adjusted() - digits + 1)
        rounded = value.quantize(quantum, rounding=ROUND_HALF_EVEN)
        return f"{rounded.normalize():f}"


def format_deposit_time(moment: datetime) -> str:
    return moment.strftime(DEPOSIT_TIME_FORMAT)


def _format_assets(entries: Sequence[AssetValue | RewardShare]) -> str:
    return "\n".join(
        f"{round_to_significant_digits(e.amount)} {e.symbol} "
        f"(${round_to_significant_digits(e.value_usd)})"
        for e in entries
    )


def _truncate_address(address: str) -> str:
    """Truncate address for display."""
    return f"{address[:10]}...{address[-4:]}"


def build_portfolio_table(items: Sequence[PortfolioItem]) -> Table:
    table = Table(title="[bold]LP Positions[/]", show_lines=True)
    table.add_column("Vault", style="cyan")
    table.add_column("Type", style="dim")
    table.add_column("Deposited", style="dim")
    table.add_column("Deposit")
    table.add_column("Deposit $", justify="right", style="green")
    table.add_column("Rewards")
    table.add_column("Reward $", justify="right", style="green")
    table.add_column("Days", justify="right")
    table.add_column("Blocks", justify="right")
    table.add_column("APR %", justify="right", style="bold yellow")

    for item in items:
        table.add_row(
            f"{item.name}\n[dim]{_truncate_address(item.address)}[/]",
            f"{item.type}\n{item.mode.value}",
            format_deposit_time(item.deposit_time),
            _format_assets(item.deposits),
            round_to_significant_digits(item.deposit_value, 2),
            _format_assets(item.rewards),
            round_to_significant_digits(item.reward_value, 2),
            round_to_significant_digits(item.total_days, 4),
            str(item.total_blocks),
            round_to_significant_digits(item.apr),
        )
    return table


def format_portfolio_table(
    items: Sequence[PortfolioItem], console: Console | None = None
) -> None:
    """Print the portfolio as a rich table to stdout.

    Args:
        items: Valued vaults, in configuration order
        console: Console to print to (defaults to stdout)
    """
    console = console or Console()
    if not items:
        console.print("[yellow]No LP positions found.[/]")
        return
    console.print()
    console.print(build_portfolio_table(items))
    console.print()
