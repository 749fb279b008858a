"""Rebalancing commands: standard, smart new-money, and timed."""

import logging
from typing import Optional

import click
from rich.console import Console
from rich.table import Table

from folio.cli import services
from folio.cli.error_handler import handle_cli_errors
from folio.cli.formatting import fmt_money, fmt_pct, get_action_color, print_json
from folio.core.rebalancing import SmartRebalancingRequest

logger = logging.getLogger(__name__)


@click.group()
def rebalance() -> None:
    """
    Rebalancing recommendations.

    \b
    Examples:
        folio rebalance actions
        folio rebalance smart --amount 1000 --max 3
        folio rebalance timed --amount 500
    """
    pass


@rebalance.command("actions")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
@handle_cli_errors
def rebalance_actions(ctx: click.Context, as_json: bool) -> None:
    """Buy/sell amounts that bring every holding to its target."""
    console: Console = ctx.obj["console"]
    result = services.get_rebalancing_engine().get_rebalancing_actions(
        services.get_manager().get_portfolio(ctx.obj.get("user_id"))
    )

    if as_json:
        print_json(console, result.to_dict())
        return

    if not result.actions:
        console.print("[green]Portfolio is on target. No actions needed.[/green]")
        return

    table = Table(title="Rebalancing Actions")
    table.add_column("Ticker", style="cyan")
    table.add_column("Action", justify="center")
    table.add_column("Current", justify="right")
    table.add_column("Target", justify="right")
    table.add_column("Amount", justify="right")
    for a in result.actions:
        color = get_action_color(a.action_type)
        table.add_row(
            a.ticker,
            f"[{color}]{a.action_type.upper()}[/{color}]",
            fmt_pct(a.current_allocation_percentage),
            fmt_pct(a.target_allocation_percentage),
            fmt_money(abs(a.difference_value)),
        )
    console.print(table)
    console.print(f"[cyan]Portfolio Value:[/cyan] {fmt_money(result.total_portfolio_value)}")
    console.print(f"[cyan]Total Buys:[/cyan] {fmt_money(result.total_buy_amount)}")
    console.print(f"[cyan]Total Sells:[/cyan] {fmt_money(result.total_sell_amount)}")
    console.print(f"[cyan]Net Cash Flow:[/cyan] {fmt_money(result.net_cash_flow)}")


@rebalance.command("smart")
@click.option("--amount", "-a", type=float, required=True, help="New money to invest")
@click.option("--max", "max_securities", type=int, default=None, help="Limit to N largest gaps")
@click.option("--include-overweight", is_flag=True, help="Also list holdings at or above target")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
@handle_cli_errors
def rebalance_smart(
    ctx: click.Context, amount: float, max_securities: Optional[int], include_overweight: bool, as_json: bool
) -> None:
    """Split new money across underweight holdings by allocation gap."""
    console: Console = ctx.obj["console"]
    request = SmartRebalancingRequest(
        investment_amount=amount,
        max_securities=max_securities,
        only_buy_underweight=not include_overweight,
    )
    result = services.get_rebalancing_engine().get_smart_recommendations(
        services.get_manager().get_portfolio(ctx.obj.get("user_id")), request
    )

    if as_json:
        print_json(console, result.to_dict())
        return

    if not result.recommendations:
        console.print("[yellow]No underweight holdings with targets.[/yellow]")
        console.print("[dim]Set targets: folio target set TICKER PCT[/dim]")
        return

    table = Table(title=f"Investing {fmt_money(result.total_investment_amount)}")
    table.add_column("Ticker", style="cyan")
    table.add_column("Current", justify="right")
    table.add_column("Target", justify="right")
    table.add_column("Gap", justify="right")
    table.add_column("Buy", justify="right", style="green")
    for r in result.recommendations:
        table.add_row(
            r.ticker,
            fmt_pct(r.current_allocation_percentage),
            fmt_pct(r.target_allocation_percentage),
            f"{r.gap_score:+.2f}",
            fmt_money(r.recommended_buy_amount),
        )
    console.print(table)


@rebalance.command("timed")
@click.option("--amount", "-a", type=float, default=None, help="New money available for buys")
@click.option("--max-actions", type=int, default=None, help="Maximum actions per side")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
@handle_cli_errors
def rebalance_timed(ctx: click.Context, amount: Optional[float], max_actions: Optional[int], as_json: bool) -> None:
    """Rebalance with 1-year price percentile timing."""
    console: Console = ctx.obj["console"]
    prices = services.get_market_data()
    portfolio = services.get_manager(prices=prices).get_portfolio(ctx.obj.get("user_id"))
    result = services.get_timed_service(prices).get_timed_actions(
        portfolio, investment_amount=amount, max_actions=max_actions
    )

    if as_json:
        print_json(console, result.to_dict())
        return

    if not result.sells and not result.buys:
        console.print("[green]No timed actions. Portfolio is on target or unfunded.[/green]")
        return

    table = Table(title="Timed Rebalancing")
    table.add_column("Action", justify="center")
    table.add_column("Ticker", style="cyan")
    table.add_column("Amount", justify="right")
    table.add_column("1Y Pctl", justify="right")
    table.add_column("Conf.", justify="right")
    table.add_column("Reason", max_width=50)
    for a in result.sells + result.buys:
        color = get_action_color(a.action_type)
        table.add_row(
            f"[{color}]{a.action_type.upper()}[/{color}]",
            a.ticker,
            fmt_money(a.amount),
            f"{a.percentile_1y:.0f}" if a.percentile_1y is not None else "-",
            f"{a.confidence:.2f}",
            a.reason,
        )
    console.print(table)
    console.print(f"[cyan]Cash Available:[/cyan] {fmt_money(result.cash_available)}")
    console.print(f"[cyan]Net Cash Flow:[/cyan] {fmt_money(result.net_cash_flow)}")
