"""
SQLite-backed sources for the engines.

PortfolioRepository implements the transaction, allocation target, cash
balance, and security catalog interfaces on top of the SQLModel tables. Writes are
validated before anything is persisted.
"""

import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import Dict, Iterable, List, Optional

from sqlalchemy import and_
from sqlmodel import select

from folio.core.exceptions import ValidationError
from folio.core.models import (
    AllocationTarget,
    CashBalance,
    CashUpdateSource,
    Number,
    Transaction,
    TransactionType,
    to_decimal,
)
from folio.core.portfolio.calculator import (
    apply_transaction_to_cash,
    calculate_gross_dividend_per_share,
)
from folio.core.portfolio.validators import (
    validate_securities_exist,
    validate_ticker,
    validate_transaction,
)
from folio.db.database import get_session
from folio.db.models import AllocationTargetRecord, CashBalanceRecord, Security, TransactionRecord

logger = logging.getLogger(__name__)


class PortfolioRepository:
    """Persistence adapter for securities, transactions, targets, and cash."""

    # ------------------------------------------------------------------
    # Securities
    # ------------------------------------------------------------------

    def add_security(
        self,
        ticker: str,
        name: str,
        sector: Optional[str] = None,
        security_type: str = "stock",
    ) -> Security:
        """
        Add a security to the catalog, or update name/sector if it exists.

        Returns:
            The detached Security row.
        """
        ticker = validate_ticker(ticker)
        with get_session() as session:
            security = session.exec(select(Security).where(Security.ticker == ticker)).first()
            if security is None:
                security = Security(
                    ticker=ticker,
                    security_name=name or ticker,
                    sector=sector,
                    security_type=security_type,
                )
                logger.info("Created new security: %s", ticker)
            else:
                security.security_name = name or security.security_name
                security.sector = sector if sector is not None else security.sector
            session.add(security)
            session.flush()
            session.refresh(security)
            # Expunge from session to prevent DetachedInstanceError
            session.expunge(security)
            return security

    def get_security(self, ticker: str) -> Optional[Security]:
        with get_session() as session:
            security = session.exec(
                select(Security).where(Security.ticker == ticker.strip().upper())
            ).first()
            if security is not None:
                session.expunge(security)
            return security

    def list_securities(self) -> List[Security]:
        with get_session() as session:
            rows = session.exec(select(Security).order_by(Security.ticker)).all()
            for row in rows:
                session.expunge(row)
            return list(rows)

    def get_securities(self, tickers: Iterable[str]) -> Dict[str, dict]:
        wanted = [t.upper() for t in tickers]
        if not wanted:
            return {}
        with get_session() as session:
            rows = session.exec(select(Security).where(Security.ticker.in_(wanted))).all()
            return {
                row.ticker: {"name": row.security_name, "sector": row.sector, "type": row.security_type}
                for row in rows
            }

    # ------------------------------------------------------------------
    # Transactions
    # ------------------------------------------------------------------

    def add_transaction(self, txn: Transaction, user_id: Optional[str] = None) -> Transaction:
        """
        Validate and store a transaction.

        Raises:
            ValidationError: If the transaction violates a precondition.
            NotFoundError: If the ticker is not in the security catalog.
        """
        validate_transaction(txn)
        with get_session() as session:
            security = self._require_security(session, txn.ticker)
            record = TransactionRecord(
                user_id=user_id,
                security_id=security.id,
                transaction_type=txn.transaction_type.value,
                date=txn.date,
                shares_quantity=txn.shares_quantity,
                share_price=txn.share_price,
                fees=txn.fees,
                tax=txn.tax,
                total_amount=txn.total_amount,
            )
            session.add(record)
            session.flush()
            self._settle_cash(session, txn, user_id)
            logger.info(
                "Recorded %s of %s %s for user %s",
                txn.transaction_type.value, txn.shares_quantity, txn.ticker, user_id or "-",
            )
            return self._to_transaction(record, security)

    def add_dividend(
        self,
        ticker: str,
        shares_quantity: Number,
        net_amount: Number,
        tax: Number = 0,
        date: Optional[datetime] = None,
        user_id: Optional[str] = None,
    ) -> Transaction:
        """Record a dividend from the net amount received, deriving gross per share."""
        gross = calculate_gross_dividend_per_share(net_amount, tax, shares_quantity)
        txn = Transaction(
            ticker=ticker,
            transaction_type=TransactionType.DIVIDEND,
            date=date or datetime.now(timezone.utc),
            shares_quantity=shares_quantity,
            share_price=gross,
            tax=tax,
            total_amount=net_amount,
        )
        return self.add_transaction(txn, user_id=user_id)

    def get_transactions(self, user_id: Optional[str] = None) -> List[Transaction]:
        with get_session() as session:
            statement = (
                select(TransactionRecord, Security)
                .join(Security, TransactionRecord.security_id == Security.id)
                .where(self._user_filter(TransactionRecord.user_id, user_id))
                .order_by(TransactionRecord.date, TransactionRecord.id)
            )
            return [self._to_transaction(rec, sec) for rec, sec in session.exec(statement).all()]

    # ------------------------------------------------------------------
    # Allocation targets
    # ------------------------------------------------------------------

    def set_allocation_target(
        self, ticker: str, target_percentage: Number, user_id: Optional[str] = None
    ) -> AllocationTarget:
        """
        Create or replace the target weight for a ticker.

        Raises:
            ValidationError: If the percentage is outside 0-100.
            NotFoundError: If the ticker is not in the security catalog.
        """
        ticker = validate_ticker(ticker)
        pct = to_decimal(target_percentage)
        if pct < 0 or pct > 100:
            logger.warning("Validation failed: target %s for %s out of range", pct, ticker)
            raise ValidationError("Target percentage must be between 0 and 100")

        with get_session() as session:
            security = self._require_security(session, ticker)
            record = session.exec(
                select(AllocationTargetRecord).where(
                    and_(
                        AllocationTargetRecord.security_id == security.id,
                        self._user_filter(AllocationTargetRecord.user_id, user_id),
                    )
                )
            ).first()
            if record is None:
                record = AllocationTargetRecord(user_id=user_id, security_id=security.id, target_percentage=pct)
            else:
                record.target_percentage = pct
                record.updated_at = datetime.now(timezone.utc)
            session.add(record)
            return AllocationTarget(ticker=ticker, target_percentage=pct)

    def get_allocation_targets(self, user_id: Optional[str] = None) -> List[AllocationTarget]:
        with get_session() as session:
            rows = session.exec(
                select(AllocationTargetRecord, Security)
                .join(Security, AllocationTargetRecord.security_id == Security.id)
                .where(self._user_filter(AllocationTargetRecord.user_id, user_id))
                .order_by(Security.ticker)
            ).all()
            return [
                AllocationTarget(ticker=sec.ticker, target_percentage=rec.target_percentage)
                for rec, sec in rows
            ]

    # ------------------------------------------------------------------
    # Cash
    # ------------------------------------------------------------------

    def get_cash_balance(self, user_id: Optional[str] = None) -> Optional[Decimal]:
        """Cash on hand, or None when the user does not track cash."""
        record = self.get_cash_record(user_id)
        return record.amount if record is not None else None

    def get_cash_record(self, user_id: Optional[str] = None) -> Optional[CashBalance]:
        with get_session() as session:
            row = self._cash_row(session, user_id)
            if row is None:
                return None
            return CashBalance(
                amount=to_decimal(row.amount),
                last_updated_at=row.last_updated_at,
                last_updated_source=CashUpdateSource(row.last_updated_source),
            )

    def set_cash_balance(self, amount: Number, user_id: Optional[str] = None) -> Decimal:
        """
        Overwrite the cash balance with a manually entered amount.

        Raises:
            ValidationError: If the amount is negative.
        """
        amount = to_decimal(amount)
        if amount < 0:
            logger.warning("Validation failed: negative cash balance %s", amount)
            raise ValidationError("Cash balance cannot be negative")
        with get_session() as session:
            self._write_cash(session, user_id, amount, CashUpdateSource.MANUAL)
        logger.info("Cash balance for user %s set to %s", user_id or "-", amount)
        return amount

    def _settle_cash(self, session, txn: Transaction, user_id: Optional[str]) -> None:
        row = self._cash_row(session, user_id)
        if row is None:
            return
        balance = apply_transaction_to_cash(row.amount, txn)
        if balance != row.amount:
            self._write_cash(session, user_id, balance, CashUpdateSource.TRANSACTION, row)

    def _cash_row(self, session, user_id: Optional[str]) -> Optional[CashBalanceRecord]:
        return session.exec(
            select(CashBalanceRecord).where(self._user_filter(CashBalanceRecord.user_id, user_id))
        ).first()

    def _write_cash(
        self,
        session,
        user_id: Optional[str],
        amount: Decimal,
        source: CashUpdateSource,
        row: Optional[CashBalanceRecord] = None,
    ) -> None:
        row = row or self._cash_row(session, user_id) or CashBalanceRecord(user_id=user_id)
        row.amount = amount
        row.last_updated_source = source.value
        row.last_updated_at = datetime.now(timezone.utc)
        session.add(row)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _user_filter(column, user_id: Optional[str]):
        return column.is_(None) if user_id is None else column == user_id

    @staticmethod
    def _require_security(session, ticker: str) -> Security:
        security = session.exec(select(Security).where(Security.ticker == ticker)).first()
        if security is None:
            validate_securities_exist([ticker], [])
        return security

    @staticmethod
    def _to_transaction(record: TransactionRecord, security: Security) -> Transaction:
        return Transaction(
            id=record.id,
            ticker=security.ticker,
            transaction_type=TransactionType(record.transaction_type),
            date=record.date,
            shares_quantity=record.shares_quantity,
            share_price=record.share_price,
            fees=record.fees,
            tax=record.tax,
            total_amount=record.total_amount,
            security_name=security.security_name,
        )
