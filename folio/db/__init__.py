"""
Database module for Folio.

Provides SQLModel definitions, connection management, and the repository
that implements the engine-facing transaction, target, cash, and security
sources.
"""

from folio.db.database import get_engine, get_session, init_db, reset_engine
from folio.db.models import AllocationTargetRecord, CashBalanceRecord, Security, TransactionRecord
from folio.db.repository import PortfolioRepository

__all__ = [
    # Models
    "Security",
    "TransactionRecord",
    "AllocationTargetRecord",
    "CashBalanceRecord",
    # Database
    "get_engine",
    "get_session",
    "init_db",
    "reset_engine",
    # Repository
    "PortfolioRepository",
]
