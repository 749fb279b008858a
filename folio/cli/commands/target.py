"""Allocation target commands."""

import click
from rich.console import Console
from rich.table import Table

from folio.cli import services
from folio.cli.error_handler import handle_cli_errors
from folio.cli.formatting import fmt_pct, print_empty_state


@click.group()
def target() -> None:
    """
    Manage target allocations (percent of portfolio).

    \b
    Examples:
        folio target set VTI 60
        folio target list
    """
    pass


@target.command("set")
@click.argument("ticker")
@click.argument("percentage", type=float)
@click.pass_context
@handle_cli_errors
def target_set(ctx: click.Context, ticker: str, percentage: float) -> None:
    """Set the target allocation for TICKER."""
    console: Console = ctx.obj["console"]
    saved = services.get_repository().set_allocation_target(
        ticker, percentage, user_id=ctx.obj.get("user_id")
    )
    console.print(f"[green]Target for {saved.ticker} set to {fmt_pct(saved.target_percentage, 2)}[/green]")


@target.command("list")
@click.pass_context
@handle_cli_errors
def target_list(ctx: click.Context) -> None:
    """List allocation targets."""
    console: Console = ctx.obj["console"]
    targets = services.get_repository().get_allocation_targets(ctx.obj.get("user_id"))
    if not targets:
        print_empty_state(console, "allocation targets", "folio target set TICKER PCT")
        return

    table = Table(title="Allocation Targets")
    table.add_column("Ticker", style="cyan")
    table.add_column("Target", justify="right")
    for t in targets:
        table.add_row(t.ticker, fmt_pct(t.target_percentage, 2))
    console.print(table)

    total = sum(t.target_percentage for t in targets)
    if total != 100:
        console.print(f"[yellow]Targets sum to {fmt_pct(total, 2)}, not 100%[/yellow]")
