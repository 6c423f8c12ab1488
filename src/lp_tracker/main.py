"""CLI entrypoint for the LP tracker."""

from __future__ import annotations

import asyncio
import json
import logging
import os
from pathlib import Path
from typing import Annotated

import typer
from web3 import Web3

from .logger import setup_logging
from .settings import TrackerSettings
from .state import AppState

app = typer.Typer(
    add_completion=False,
    no_args_is_help=False,
    add_help_option=True,
    pretty_exceptions_enable=True,
    pretty_exceptions_short=True,
    pretty_exceptions_show_locals=False,
    rich_markup_mode="rich",
    help="Value a wallet's LP positions across Beets pools and Beefy vaults.",
)


def _build_logger() -> logging.Logger:
    """Build a logger instance."""
    return logging.getLogger("lp_tracker")


def _checksum_wallet(wallet: str) -> str:
    try:
        return Web3.to_checksum_address(wallet)
    except ValueError as e:
        raise typer.BadParameter(
            f"'{wallet}' is not a valid address", param_hint="WALLET"
        ) from e


@app.callback(invoke_without_command=True)
def report(
    wallet: Annotated[
        str | None, typer.Argument(help="Wallet address to value.")
    ] = None,
    config_path: Annotated[
        Path | None,
        typer.Option(
            "--config",
            "-c",
            help="Path to a TOML config file (can include [lp_tracker] table).",
        ),
    ] = None,
    log_level: Annotated[
        str | None,
        typer.Option(
            "--log-level",
            help="Override logging verbosity (TRACE, DEBUG, INFO, WARNING, ERROR, CRITICAL).",
        ),
    ] = None,
    as_json: Annotated[
        bool,
        typer.Option("--json", help="Print the report as JSON instead of a table."),
    ] = False,
    show_config: Annotated[
        bool,
        typer.Option(
            "--show-config",
            help="Print effective config (with secrets redacted) and exit.",
        ),
    ] = False,
):
    """Value every configured vault for a wallet and print the report."""
    if config_path:
        os.environ["LP_TRACKER_CONFIG"] = str(config_path)

    init_kwargs: dict[str, str] = {}
    if log_level is not None:
        init_kwargs["log_level"] = log_level.upper()

    settings = TrackerSettings(**init_kwargs)

    setup_logging(settings.log_level)
    state = AppState(settings=settings, logger=_build_logger())

    if show_config:
        typer.echo(json.dumps(settings.as_safe_dict(), indent=2))
        raise typer.Exit(code=0)

    if not wallet:
        raise typer.BadParameter("wallet address is required", param_hint="WALLET")
    address = _checksum_wallet(wallet)

    from .pipeline.run import run_portfolio
    from .report import format_portfolio_table, portfolio_to_dict

    items = asyncio.run(run_portfolio(state, address))

    if as_json:
        typer.echo(json.dumps(portfolio_to_dict(items), indent=2))
    else:
        format_portfolio_table(items)


def run() -> None:
    """Entrypoint used by the console script."""
    app()


if __name__ == "__main__":
    run()
