"""Portfolio insights command."""

from typing import Optional

import click
from rich.console import Console
from rich.panel import Panel

from folio.cli import services
from folio.cli.error_handler import handle_cli_errors
from folio.cli.formatting import get_severity_color, print_json
from folio.core.insights import rank_insights


@click.command()
@click.option("--top", "top_n", type=int, default=None, help="Show only the N most severe")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
@handle_cli_errors
def insights(ctx: click.Context, top_n: Optional[int], as_json: bool) -> None:
    """
    Scan the portfolio for risks, trends, income, and efficiency.

    \b
    Examples:
        folio insights
        folio insights --top 3 --json
    """
    console: Console = ctx.obj["console"]
    user_id = ctx.obj.get("user_id")
    prices = services.get_market_data()
    manager = services.get_manager(prices=prices)

    portfolio = manager.get_portfolio(user_id)
    history = manager.get_transactions(user_id)
    results = rank_insights(services.get_insight_engine(prices).generate(portfolio, history), top_n)

    if as_json:
        print_json(console, [i.to_dict() for i in results])
        return

    if not results:
        console.print("[green]Nothing noteworthy right now.[/green]")
        return

    for insight in results:
        color = get_severity_color(insight.severity.value)
        header = f"[{color}]{insight.severity.value}[/{color}] {insight.category.value}: {insight.title}"
        body = insight.message
        if insight.action_label:
            body += f"\n[dim]Action: {insight.action_label}[/dim]"
        console.print(Panel(body, title=header, title_align="left", border_style=color))
