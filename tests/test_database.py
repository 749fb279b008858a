"""Tests for engine and session handling."""

from datetime import datetime
from decimal import Decimal

import pytest
from sqlalchemy import inspect, text
from sqlalchemy.exc import IntegrityError

from folio.db.database import get_engine, get_session, reset_engine
from folio.db.models import Security, TransactionRecord


class TestEngine:
    def test_singleton(self, tmp_db):
        assert get_engine() is get_engine()

    def test_reset_creates_new_engine(self, tmp_db):
        first = get_engine()
        reset_engine()
        assert get_engine() is not first

    def test_tables_created(self, tmp_db):
        tables = set(inspect(get_engine()).get_table_names())
        assert {"securities", "transactions", "allocation_targets", "cash_balances"} <= tables

    def test_foreign_keys_enabled(self, tmp_db):
        with get_engine().connect() as conn:
            assert conn.execute(text("PRAGMA foreign_keys")).scalar() == 1


class TestSession:
    def test_commits_on_success(self, tmp_db):
        with get_session() as session:
            session.add(Security(ticker="VTI", security_name="Vanguard Total Market"))

        with get_session() as session:
            assert session.get(Security, 1).ticker == "VTI"

    def test_rolls_back_on_error(self, tmp_db):
        with pytest.raises(RuntimeError):
            with get_session() as session:
                session.add(Security(ticker="VTI", security_name="Vanguard Total Market"))
                session.flush()
                raise RuntimeError("boom")

        with get_session() as session:
            assert session.get(Security, 1) is None

    def test_orphan_transaction_rejected(self, tmp_db):
        with pytest.raises(IntegrityError):
            with get_session() as session:
                session.add(
                    TransactionRecord(
                        security_id=999,
                        transaction_type="buy",
                        date=datetime(2024, 1, 2),
                        shares_quantity=Decimal("1"),
                        share_price=Decimal("100"),
                    )
                )
