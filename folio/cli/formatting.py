"""Centralized formatting utilities for CLI output.

Provides consistent colors, indicators, and number formatting across all
CLI commands.
"""

import json
from decimal import Decimal
from typing import Any, Optional

from rich.console import Console

from folio.core.models import jsonable


# Missing value indicator
MISSING = "-"


# =============================================================================
# Color Functions
# =============================================================================


def get_severity_color(severity: str) -> str:
    """Get Rich color based on insight severity."""
    colors = {
        "Info": "cyan",
        "Warning": "yellow",
        "Critical": "red",
    }
    return colors.get(severity, "white")


def get_status_color(status: Optional[str]) -> str:
    """Get Rich color based on rebalancing status."""
    colors = {
        "Balanced": "green",
        "Overweight": "yellow",
        "Underweight": "cyan",
    }
    return colors.get(status or "", "white")


def get_action_color(action: str) -> str:
    """Get Rich color based on trade direction."""
    return "green" if action.lower() == "buy" else "red"


def pnl_style(value) -> str:
    return "green" if value is not None and value >= 0 else "red"


# =============================================================================
# Number Formatting
# =============================================================================


def fmt_money(value: Optional[Decimal]) -> str:
    if value is None:
        return MISSING
    return f"${value:,.2f}"


def fmt_pct(value: Optional[Decimal], digits: int = 1) -> str:
    if value is None:
        return MISSING
    return f"{value:.{digits}f}%"


def fmt_shares(value: Optional[Decimal]) -> str:
    if value is None:
        return MISSING
    return f"{value.normalize():f}" if isinstance(value, Decimal) else str(value)


# =============================================================================
# Helper Functions for Consistent Output
# =============================================================================


def print_json(console: Console, data: Any) -> None:
    """Print a JSON-safe rendering of dataclass dicts, Decimals, and dates."""
    console.print_json(json.dumps(jsonable(data)))


def print_empty_state(console: Console, entity: str, hint: str) -> None:
    """
    Print standardized empty state message.

    Args:
        console: Rich console instance
        entity: What's empty (e.g., "positions", "transactions")
        hint: Command to get started
    """
    console.print(f"[yellow]No {entity} found.[/yellow]")
    console.print(f"[dim]Get started: {hint}[/dim]")
