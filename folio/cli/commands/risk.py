"""Risk metrics command."""

import click
from rich.console import Console
from rich.panel import Panel

from folio.cli import services
from folio.cli.error_handler import handle_cli_errors
from folio.cli.formatting import fmt_pct, print_json
from folio.core.constants import SUPPORTED_PERIODS


@click.command()
@click.option(
    "--period",
    type=click.Choice(SUPPORTED_PERIODS, case_sensitive=False),
    default="1Y",
    help="Lookback period",
)
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
@handle_cli_errors
def risk(ctx: click.Context, period: str, as_json: bool) -> None:
    """
    Show volatility, beta, and Sharpe ratio.

    \b
    Examples:
        folio risk
        folio risk --period 6M --json
    """
    console: Console = ctx.obj["console"]
    prices = services.get_market_data()
    portfolio = services.get_manager(prices=prices).get_portfolio(ctx.obj.get("user_id"))

    with console.status("[bold blue]Fetching price history...[/bold blue]"):
        metrics = services.get_risk_calculator(prices).calculate(portfolio, period)

    if as_json:
        print_json(console, metrics.to_dict())
        return

    console.print(Panel.fit(f"[bold]Risk Metrics ({metrics.period})[/bold]"))
    console.print(f"[cyan]Annualized Return:[/cyan] {fmt_pct(metrics.annualized_return * 100, 2)}")
    console.print(f"[cyan]Annualized Volatility:[/cyan] {fmt_pct(metrics.annualized_volatility * 100, 2)}")
    console.print(f"[cyan]Beta vs {metrics.benchmark_ticker}:[/cyan] {metrics.beta:.2f}")
    console.print(f"[cyan]Sharpe Ratio:[/cyan] {metrics.sharpe_ratio:.2f}")
