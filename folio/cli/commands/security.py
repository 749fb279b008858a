"""Security catalog commands."""

import click
from rich.console import Console
from rich.table import Table

from folio.cli import services
from folio.cli.error_handler import handle_cli_errors
from folio.cli.formatting import MISSING, print_empty_state


@click.group()
def security() -> None:
    """
    Manage the security catalog.

    Transactions and targets can only reference catalogued tickers.

    \b
    Examples:
        folio security add AAPL --name "Apple Inc." --sector Technology
        folio security list
    """
    pass


@security.command("add")
@click.argument("ticker")
@click.option("--name", "-n", required=True, help="Display name")
@click.option("--sector", "-s", default=None, help="Sector (enables sector exposure checks)")
@click.option("--type", "security_type", default="stock", type=click.Choice(["stock", "etf", "fund"]))
@click.pass_context
@handle_cli_errors
def security_add(ctx: click.Context, ticker: str, name: str, sector: str, security_type: str) -> None:
    """Add or update a security."""
    console: Console = ctx.obj["console"]
    row = services.get_repository().add_security(ticker, name, sector=sector, security_type=security_type)
    console.print(f"[green]Saved {row.ticker}[/green] {row.security_name}")


@security.command("list")
@click.pass_context
@handle_cli_errors
def security_list(ctx: click.Context) -> None:
    """List catalogued securities."""
    console: Console = ctx.obj["console"]
    rows = services.get_repository().list_securities()
    if not rows:
        print_empty_state(console, "securities", "folio security add TICKER --name NAME")
        return

    table = Table(title="Securities")
    table.add_column("Ticker", style="cyan")
    table.add_column("Name", max_width=30)
    table.add_column("Sector")
    table.add_column("Type", justify="center")
    for row in rows:
        table.add_row(row.ticker, row.security_name, row.sector or MISSING, row.security_type)
    console.print(table)
