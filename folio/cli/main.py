"""
Folio CLI - portfolio accounting and analytics.

Entry point for the command-line interface. Provides commands for:
- Security catalog management
- Transaction recording (buy, sell, dividend, split)
- Allocation targets
- Cash balance
- Positions and diversification
- Rebalancing (standard, smart new-money, timed)
- Risk metrics (volatility, beta, Sharpe)
- Portfolio insights
- Database management

Usage:
    folio --help
    folio db init
    folio security add AAPL --name "Apple Inc." --sector Technology
    folio txn buy AAPL -q 10 -p 150
    folio target set AAPL 25
    folio cash set 2500
    folio portfolio positions
    folio rebalance actions
    folio rebalance smart --amount 1000
    folio risk --period 6M
    folio insights --top 5
"""

import logging
from collections import OrderedDict
from typing import Optional

import click
from rich.console import Console
from rich.logging import RichHandler

from folio import __version__
from folio.cli.commands import cash, db, insights, portfolio, rebalance, risk, security, target, txn
from folio.config import config


class OrderedGroup(click.Group):
    """Custom group that displays commands in organized categories."""

    COMMAND_GROUPS: OrderedDict[str, list[str]] = OrderedDict([
        ("Records", ["security", "txn", "target", "cash"]),
        ("Analysis", ["portfolio", "rebalance", "risk", "insights"]),
        ("Setup", ["db"]),
    ])

    def format_commands(self, ctx: click.Context, formatter: click.HelpFormatter) -> None:
        """Write commands in organized groups."""
        for group_name, cmd_names in self.COMMAND_GROUPS.items():
            commands = []
            for cmd_name in cmd_names:
                cmd = self.get_command(ctx, cmd_name)
                if cmd:
                    help_text = cmd.get_short_help_str(limit=formatter.width)
                    commands.append((cmd_name, help_text))

            if commands:
                with formatter.section(group_name):
                    formatter.write_dl(commands)

# Global console for rich output
console = Console()


def configure_logging(verbose: bool) -> None:
    """Route library logging through Rich at the configured level."""
    level = logging.DEBUG if verbose else getattr(logging, config.log_level, logging.WARNING)
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), rich_tracebacks=True, show_path=False)],
        force=True,
    )


@click.group(cls=OrderedGroup)
@click.version_option(version=__version__, prog_name="folio")
@click.option("--user", "user_id", default=None, envvar="FOLIO_USER", help="User id to scope records to")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx: click.Context, user_id: Optional[str], verbose: bool) -> None:
    """
    Folio - portfolio accounting and analytics.

    Tracks transactions with weighted-average cost basis and turns them into
    positions, rebalancing plans, risk metrics, and insights.

    \b
    Examples:
        folio db init                          # Initialize database
        folio security add VTI --name "Vanguard Total Market"
        folio txn buy VTI -q 10 -p 220         # Record a purchase
        folio target set VTI 60                # Target 60% allocation
        folio portfolio positions              # Positions with allocation
        folio rebalance smart --amount 500     # Where to put new money
        folio insights                         # Portfolio insights
    """
    configure_logging(verbose)
    ctx.ensure_object(dict)
    ctx.obj["console"] = console
    ctx.obj["user_id"] = user_id


# Register command groups
cli.add_command(security.security)
cli.add_command(txn.txn)
cli.add_command(target.target)
cli.add_command(cash.cash)
cli.add_command(portfolio.portfolio)
cli.add_command(rebalance.rebalance)
cli.add_command(risk.risk)
cli.add_command(insights.insights)
cli.add_command(db.db)


def main() -> None:
    """Main entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()
