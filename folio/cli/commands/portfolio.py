"""Portfolio position and diversification commands."""

import logging

import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from folio.cli import services
from folio.cli.error_handler import handle_cli_errors
from folio.cli.formatting import (
    fmt_money,
    fmt_pct,
    fmt_shares,
    get_status_color,
    pnl_style,
    print_empty_state,
    print_json,
)
from folio.core.portfolio.manager import calculate_diversification

logger = logging.getLogger(__name__)


@click.group()
def portfolio() -> None:
    """
    View positions and diversification.

    \b
    Examples:
        folio portfolio positions
        folio portfolio positions --json
        folio portfolio diversification
    """
    pass


@portfolio.command("positions")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
@handle_cli_errors
def portfolio_positions(ctx: click.Context, as_json: bool) -> None:
    """Show open positions with allocation and rebalancing status."""
    console: Console = ctx.obj["console"]
    result = services.get_manager().get_portfolio(ctx.obj.get("user_id"))

    if as_json:
        print_json(console, result.to_dict())
        return

    if not result.positions:
        print_empty_state(console, "positions", "folio txn buy TICKER -q ... -p ...")
        return

    table = Table(title="Positions")
    table.add_column("Ticker", style="cyan")
    table.add_column("Name", max_width=25)
    table.add_column("Shares", justify="right")
    table.add_column("Avg Cost", justify="right")
    table.add_column("Cost Basis", justify="right")
    table.add_column("Value", justify="right")
    table.add_column("P&L", justify="right")
    table.add_column("Alloc", justify="right")
    table.add_column("Target", justify="right")
    table.add_column("Status", justify="center")

    for p in result.positions:
        status = p.rebalancing_status.value if p.rebalancing_status else None
        pnl = p.unrealized_pnl
        table.add_row(
            p.ticker,
            p.security_name or "",
            fmt_shares(p.total_shares),
            fmt_money(p.average_share_price),
            fmt_money(p.cost_basis),
            fmt_money(p.current_market_value),
            f"[{pnl_style(pnl)}]{fmt_money(pnl)}[/{pnl_style(pnl)}]" if pnl is not None else fmt_money(None),
            fmt_pct(p.current_allocation_percentage),
            fmt_pct(p.target_allocation_percentage),
            f"[{get_status_color(status)}]{status or '-'}[/{get_status_color(status)}]",
        )

    console.print(table)
    console.print(f"[cyan]Total Invested:[/cyan] {fmt_money(result.total_invested)}")
    console.print(f"[cyan]Market Value:[/cyan] {fmt_money(result.total_market_value)}")
    if result.cash_amount is not None:
        console.print(f"[cyan]Cash:[/cyan] {fmt_money(result.cash_amount)}")
    if result.missing_prices:
        console.print(
            f"[yellow]No price for {', '.join(result.missing_prices)}; valued at cost basis[/yellow]"
        )


@portfolio.command("diversification")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
@handle_cli_errors
def portfolio_diversification(ctx: click.Context, as_json: bool) -> None:
    """Show HHI, effective number of holdings, and top-N concentration."""
    console: Console = ctx.obj["console"]
    metrics = calculate_diversification(services.get_manager().get_portfolio(ctx.obj.get("user_id")))

    if as_json:
        print_json(console, metrics.to_dict())
        return

    if metrics.total_assets == 0:
        print_empty_state(console, "positions", "folio txn buy TICKER -q ... -p ...")
        return

    console.print(Panel.fit("[bold]Diversification[/bold]"))
    console.print(f"[cyan]Holdings:[/cyan] {metrics.total_assets}")
    console.print(f"[cyan]HHI:[/cyan] {metrics.hhi}")
    console.print(f"[cyan]Effective N:[/cyan] {metrics.effective_n}")
    console.print(f"[cyan]Score:[/cyan] {metrics.diversification_score}/100")
    console.print(f"[cyan]Top 3:[/cyan] {fmt_pct(metrics.top3_concentration)}")
    console.print(f"[cyan]Top 5:[/cyan] {fmt_pct(metrics.top5_concentration)}")
