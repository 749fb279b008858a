"""Shared CLI error handling decorator.

Catches Folio's domain errors in a single place so commands only contain
their happy path.

Usage:
    @click.command()
    @click.pass_context
    @handle_cli_errors
    def my_command(ctx, ...):
        ...
"""

import functools
import logging

import click
from rich.console import Console

from folio.core.exceptions import (
    AnalysisCancelledError,
    InsufficientDataError,
    MarketDataError,
    NotFoundError,
    ValidationError,
)

logger = logging.getLogger(__name__)


def handle_cli_errors(f):
    """Decorator that catches common CLI exceptions with Rich-formatted output.

    Handles validation, not-found, data and market errors plus unexpected
    exceptions with consistent formatting and exit code 1.

    Must be applied AFTER @click.pass_context so the first positional arg
    is the Click context (which provides the console via ctx.obj["console"]).
    """

    @functools.wraps(f)
    def wrapper(*args, **kwargs):
        ctx = click.get_current_context(silent=True)
        console = ctx.obj["console"] if ctx and ctx.obj and "console" in ctx.obj else Console()

        try:
            return f(*args, **kwargs)
        except SystemExit:
            raise  # Don't intercept explicit exits
        except ValidationError as e:
            console.print(f"[red]Invalid input:[/red] {e}")
            raise SystemExit(1)
        except NotFoundError as e:
            console.print(f"[red]Not found:[/red] {e}")
            console.print("[dim]Add it first: folio security add TICKER --name NAME[/dim]")
            raise SystemExit(1)
        except InsufficientDataError as e:
            console.print(f"[yellow]Not enough data:[/yellow] {e}")
            raise SystemExit(1)
        except MarketDataError as e:
            console.print(f"[red]Market data unavailable:[/red] {e}")
            console.print("[yellow]Check your connection and try again.[/yellow]")
            raise SystemExit(1)
        except AnalysisCancelledError as e:
            console.print(f"[yellow]{e}[/yellow]")
            raise SystemExit(1)
        except (click.exceptions.Exit, click.ClickException):
            raise  # Don't intercept Click exits or usage errors
        except Exception as e:
            logger.exception("Unexpected error in %s command", f.__name__)
            console.print(f"[red]Unexpected error:[/red] {e}")
            raise SystemExit(1)

    return wrapper
