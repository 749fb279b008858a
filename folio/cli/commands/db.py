"""Database management commands."""

import logging

import click
from rich.console import Console

from folio.cli.error_handler import handle_cli_errors
from folio.config import config
from folio.db import init_db

logger = logging.getLogger(__name__)


@click.group()
def db() -> None:
    """Database management commands."""
    pass


@db.command()
@click.pass_context
@handle_cli_errors
def init(ctx: click.Context) -> None:
    """
    Initialize the local database.

    Creates the SQLite tables for securities, transactions, and allocation
    targets. Safe to run more than once.

    \b
    Example:
        folio db init
    """
    console: Console = ctx.obj["console"]

    config.ensure_directories()

    with console.status("[bold blue]Initializing database...[/bold blue]"):
        init_db()

    console.print("[green]Database initialized successfully![/green]")
    console.print(f"[dim]Database path: {config.db_path}[/dim]")
