"""Transaction recording commands."""

import logging
from datetime import datetime, timezone
from typing import Optional

import click
from rich.console import Console
from rich.table import Table

from folio.cli import services
from folio.cli.error_handler import handle_cli_errors
from folio.cli.formatting import fmt_money, fmt_shares, print_empty_state, print_json
from folio.core.models import Transaction, TransactionType

logger = logging.getLogger(__name__)


def _parse_date(value: Optional[str]) -> datetime:
    if not value:
        return datetime.now(timezone.utc)
    try:
        return datetime.strptime(value, "%Y-%m-%d")
    except ValueError:
        raise click.BadParameter("Invalid date format. Use YYYY-MM-DD", param_hint="--date")


@click.group()
def txn() -> None:
    """
    Record transactions.

    Transactions are immutable. Corrections are recorded as new
    transactions.

    \b
    Examples:
        folio txn buy AAPL -q 10 -p 150.00 --fees 1
        folio txn sell AAPL -q 5 -p 175.00
        folio txn dividend AAPL -q 10 --net 2.20 --tax 0.40
        folio txn split AAPL --ratio 4
        folio txn list
    """
    pass


def _record(ctx: click.Context, txn_obj: Transaction) -> Transaction:
    saved = services.get_repository().add_transaction(txn_obj, user_id=ctx.obj.get("user_id"))
    console: Console = ctx.obj["console"]
    console.print(
        f"[green]Recorded {saved.transaction_type.value} of {saved.ticker}[/green] "
        f"on {saved.date:%Y-%m-%d}"
    )
    return saved


@txn.command("buy")
@click.argument("ticker")
@click.option("--quantity", "-q", type=float, required=True, help="Number of shares")
@click.option("--price", "-p", type=float, required=True, help="Price per share")
@click.option("--fees", type=float, default=0.0, help="Brokerage fees")
@click.option("--date", "-d", default=None, help="Transaction date (YYYY-MM-DD)")
@click.pass_context
@handle_cli_errors
def txn_buy(ctx: click.Context, ticker: str, quantity: float, price: float, fees: float, date: str) -> None:
    """Record a purchase."""
    saved = _record(ctx, Transaction(
        ticker=ticker,
        transaction_type=TransactionType.BUY,
        date=_parse_date(date),
        shares_quantity=quantity,
        share_price=price,
        fees=fees,
    ))
    ctx.obj["console"].print(f"  Total Cost: {fmt_money(saved.total_amount_with_fees)}")


@txn.command("sell")
@click.argument("ticker")
@click.option("--quantity", "-q", type=float, required=True, help="Shares to sell")
@click.option("--price", "-p", type=float, required=True, help="Sale price per share")
@click.option("--fees", type=float, default=0.0, help="Brokerage fees")
@click.option("--date", "-d", default=None, help="Transaction date (YYYY-MM-DD)")
@click.pass_context
@handle_cli_errors
def txn_sell(ctx: click.Context, ticker: str, quantity: float, price: float, fees: float, date: str) -> None:
    """Record a sale."""
    _record(ctx, Transaction(
        ticker=ticker,
        transaction_type=TransactionType.SELL,
        date=_parse_date(date),
        shares_quantity=quantity,
        share_price=price,
        fees=fees,
    ))


@txn.command("dividend")
@click.argument("ticker")
@click.option("--quantity", "-q", type=float, required=True, help="Shares that received the dividend")
@click.option("--net", "net_amount", type=float, required=True, help="Net amount received")
@click.option("--tax", type=float, default=0.0, help="Tax withheld")
@click.option("--date", "-d", default=None, help="Payment date (YYYY-MM-DD)")
@click.pass_context
@handle_cli_errors
def txn_dividend(ctx: click.Context, ticker: str, quantity: float, net_amount: float, tax: float, date: str) -> None:
    """Record a dividend from the net amount received."""
    saved = services.get_repository().add_dividend(
        ticker,
        shares_quantity=quantity,
        net_amount=net_amount,
        tax=tax,
        date=_parse_date(date),
        user_id=ctx.obj.get("user_id"),
    )
    console: Console = ctx.obj["console"]
    console.print(f"[green]Recorded dividend of {saved.ticker}[/green] on {saved.date:%Y-%m-%d}")
    console.print(f"  Gross per share: {fmt_money(saved.share_price)}")


@txn.command("split")
@click.argument("ticker")
@click.option("--ratio", "-r", type=float, required=True, help="Split ratio (2 for 2-for-1, 0.5 for 1-for-2)")
@click.option("--date", "-d", default=None, help="Split date (YYYY-MM-DD)")
@click.pass_context
@handle_cli_errors
def txn_split(ctx: click.Context, ticker: str, ratio: float, date: str) -> None:
    """Record a stock split."""
    _record(ctx, Transaction(
        ticker=ticker,
        transaction_type=TransactionType.SPLIT,
        date=_parse_date(date),
        shares_quantity=ratio,
        share_price=0,
    ))


@txn.command("list")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
@handle_cli_errors
def txn_list(ctx: click.Context, as_json: bool) -> None:
    """List transactions in date order."""
    console: Console = ctx.obj["console"]
    transactions = services.get_repository().get_transactions(ctx.obj.get("user_id"))

    if as_json:
        print_json(console, [t.to_dict() for t in transactions])
        return

    if not transactions:
        print_empty_state(console, "transactions", "folio txn buy TICKER -q ... -p ...")
        return

    table = Table(title="Transactions")
    table.add_column("Date", style="dim")
    table.add_column("Ticker", style="cyan")
    table.add_column("Type", justify="center")
    table.add_column("Shares", justify="right")
    table.add_column("Price", justify="right")
    table.add_column("Fees", justify="right")
    for t in transactions:
        table.add_row(
            f"{t.date:%Y-%m-%d}",
            t.ticker,
            t.transaction_type.value,
            fmt_shares(t.shares_quantity),
            fmt_money(t.share_price),
            fmt_money(t.fees),
        )
    console.print(table)
