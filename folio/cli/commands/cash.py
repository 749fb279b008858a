"""Cash balance commands."""

import click
from rich.console import Console

from folio.cli import services
from folio.cli.error_handler import handle_cli_errors
from folio.cli.formatting import fmt_money, print_empty_state, print_json


@click.group()
def cash() -> None:
    """
    Track uninvested cash.

    Once a balance is set, recorded buys draw it down and sells and
    dividends add to it.

    \b
    Examples:
        folio cash set 2500
        folio cash show
    """
    pass


@cash.command("set")
@click.argument("amount", type=float)
@click.pass_context
@handle_cli_errors
def cash_set(ctx: click.Context, amount: float) -> None:
    """Set the cash balance to AMOUNT."""
    console: Console = ctx.obj["console"]
    saved = services.get_repository().set_cash_balance(amount, user_id=ctx.obj.get("user_id"))
    console.print(f"[green]Cash balance set to {fmt_money(saved)}[/green]")


@cash.command("show")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
@handle_cli_errors
def cash_show(ctx: click.Context, as_json: bool) -> None:
    """Show the cash balance."""
    console: Console = ctx.obj["console"]
    record = services.get_repository().get_cash_record(ctx.obj.get("user_id"))

    if as_json:
        print_json(console, record.to_dict() if record else None)
        return

    if record is None:
        print_empty_state(console, "cash balance", "folio cash set AMOUNT")
        return

    console.print(f"[cyan]Cash:[/cyan] {fmt_money(record.amount)}")
    console.print(
        f"[dim]Updated {record.last_updated_at:%Y-%m-%d %H:%M} ({record.last_updated_source.value})[/dim]"
    )
