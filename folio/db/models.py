"""
SQLModel definitions for the Folio database.

Defines the schema for:
- Security: Ticker catalog with display name and optional sector
- TransactionRecord: Immutable buy/sell/dividend/split records
- AllocationTargetRecord: User-managed target weights
- CashBalanceRecord: Cash on hand, one row per user
"""

from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional

from sqlmodel import Field, Relationship, SQLModel, UniqueConstraint


class Security(SQLModel, table=True):
    """
    Security catalog table.

    Transactions and allocation targets may only reference tickers present
    here.
    """

    __tablename__ = "securities"

    id: Optional[int] = Field(default=None, primary_key=True)
    ticker: str = Field(index=True, unique=True, max_length=10)
    security_name: str = Field(max_length=255)
    sector: Optional[str] = Field(default=None, max_length=100)
    security_type: str = Field(default="stock", max_length=20)  # stock, etf, fund

    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    # Relationships
    transactions: list["TransactionRecord"] = Relationship(back_populates="security")
    allocation_targets: list["AllocationTargetRecord"] = Relationship(back_populates="security")


class TransactionRecord(SQLModel, table=True):
    """
    Immutable transaction record.

    Transactions are never modified once created; corrections are new rows.
    For splits, shares_quantity holds the ratio and share_price is zero.
    """

    __tablename__ = "transactions"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: Optional[str] = Field(default=None, index=True, max_length=64)
    security_id: int = Field(foreign_key="securities.id", index=True)

    transaction_type: str = Field(max_length=20)  # buy, sell, dividend, split
    date: datetime = Field(index=True)
    shares_quantity: Decimal = Field(default=Decimal("0"), max_digits=18, decimal_places=8)
    share_price: Decimal = Field(default=Decimal("0"), max_digits=18, decimal_places=6)
    fees: Decimal = Field(default=Decimal("0"), max_digits=14, decimal_places=4)
    tax: Decimal = Field(default=Decimal("0"), max_digits=14, decimal_places=4)
    total_amount: Optional[Decimal] = Field(default=None, max_digits=18, decimal_places=4)  # Net dividend

    # Audit timestamp (immutable)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    security: Optional[Security] = Relationship(back_populates="transactions")


class AllocationTargetRecord(SQLModel, table=True):
    """Target allocation percentage (0-100) for one security and user."""

    __tablename__ = "allocation_targets"
    __table_args__ = (UniqueConstraint("user_id", "security_id"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: Optional[str] = Field(default=None, index=True, max_length=64)
    security_id: int = Field(foreign_key="securities.id", index=True)
    target_percentage: Decimal = Field(max_digits=7, decimal_places=4)

    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    security: Optional[Security] = Relationship(back_populates="allocation_targets")


class CashBalanceRecord(SQLModel, table=True):
    """
    Uninvested cash for one user.

    A user without a row does not track cash. Recorded buys, sells, and
    dividends adjust the amount once a row exists.
    """

    __tablename__ = "cash_balances"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: Optional[str] = Field(default=None, index=True, unique=True, max_length=64)
    amount: Decimal = Field(default=Decimal("0"), max_digits=18, decimal_places=4)
    last_updated_source: str = Field(default="manual", max_length=20)  # manual, transaction

    last_updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
