"""
Pytest configuration and shared fixtures for Folio tests.

This module provides common fixtures used across all test modules,
including transaction builders, database fixtures, and mock sources.
"""

from datetime import datetime
from pathlib import Path
from typing import Callable, Generator

import pytest

from folio.core.models import Transaction, TransactionType


# ==============================================================================
# Autouse Fixtures - Run automatically for all tests
# ==============================================================================


@pytest.fixture(autouse=True)
def set_test_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Set environment variables for testing."""
    monkeypatch.setenv("FOLIO_DB_PATH", ":memory:")
    monkeypatch.setenv("FOLIO_LOG_LEVEL", "WARNING")
    monkeypatch.delenv("FOLIO_USER", raising=False)


# ==============================================================================
# Transaction Fixtures
# ==============================================================================


def _txn(kind: TransactionType, ticker: str, when: str, qty, price=0, fees=0, **kwargs) -> Transaction:
    return Transaction(
        ticker=ticker,
        transaction_type=kind,
        date=datetime.strptime(when, "%Y-%m-%d"),
        shares_quantity=qty,
        share_price=price,
        fees=fees,
        **kwargs,
    )


@pytest.fixture
def buy() -> Callable[..., Transaction]:
    """Build a buy: buy("AAPL", "2024-01-01", 100, 150, fees=5)."""
    return lambda ticker, when, qty, price, fees=0: _txn(TransactionType.BUY, ticker, when, qty, price, fees)


@pytest.fixture
def sell() -> Callable[..., Transaction]:
    return lambda ticker, when, qty, price, fees=0: _txn(TransactionType.SELL, ticker, when, qty, price, fees)


@pytest.fixture
def split() -> Callable[..., Transaction]:
    return lambda ticker, when, ratio: _txn(TransactionType.SPLIT, ticker, when, ratio)


@pytest.fixture
def dividend() -> Callable[..., Transaction]:
    return lambda ticker, when, qty, per_share, name=None: _txn(
        TransactionType.DIVIDEND, ticker, when, qty, per_share, security_name=name
    )


@pytest.fixture
def scenario_a_transactions(buy, split) -> list[Transaction]:
    """
    Two buys, a 2-for-1 split, then a post-split buy.

    Expected: 320 shares, cost basis 24510, average 76.59375.
    """
    return [
        buy("AAPL", "2024-01-01", 100, 150, fees=5),
        buy("AAPL", "2024-02-01", 50, 160, fees=3),
        split("AAPL", "2024-03-01", 2),
        buy("AAPL", "2024-04-01", 20, 75, fees=2),
    ]


# ==============================================================================
# Database Fixtures
# ==============================================================================


@pytest.fixture
def tmp_db_path(tmp_path: Path) -> Path:
    """Provide a temporary database path."""
    return tmp_path / "test_folio.db"


@pytest.fixture
def tmp_db(tmp_db_path: Path, monkeypatch: pytest.MonkeyPatch) -> Generator[Path, None, None]:
    """
    Set up a temporary database for testing.

    Monkeypatches the database path and initializes the schema.
    """
    monkeypatch.setenv("FOLIO_DB_PATH", str(tmp_db_path))

    # CRITICAL: Also patch the config singleton directly since it reads env at import time
    from folio.config import config

    monkeypatch.setattr(config, "db_path", tmp_db_path)

    # Reset any existing engine to force creation with new path
    from folio.db.database import reset_engine

    reset_engine()

    from folio.db import init_db

    init_db()

    yield tmp_db_path

    # Cleanup
    reset_engine()
    if tmp_db_path.exists():
        tmp_db_path.unlink()


@pytest.fixture
def repository(tmp_db: Path):
    """PortfolioRepository on a fresh database with AAPL and MSFT catalogued."""
    from folio.db.repository import PortfolioRepository

    repo = PortfolioRepository()
    repo.add_security("AAPL", "Apple Inc.", sector="Technology")
    repo.add_security("MSFT", "Microsoft Corp", sector="Technology")
    return repo


# ==============================================================================
# CLI Fixtures
# ==============================================================================


@pytest.fixture
def cli_runner():
    """Create a Click CLI test runner."""
    from click.testing import CliRunner

    return CliRunner()
