"""Tests for transaction validation."""

from datetime import datetime

import pytest

from folio.core.exceptions import NotFoundError, ValidationError
from folio.core.models import Transaction, TransactionType
from folio.core.portfolio.validators import (
    validate_securities_exist,
    validate_ticker,
    validate_transaction,
)


def make(kind, qty=10, price=100, fees=0, tax=0, ticker="AAPL"):
    return Transaction(
        ticker=ticker,
        transaction_type=kind,
        date=datetime(2024, 1, 1),
        shares_quantity=qty,
        share_price=price,
        fees=fees,
        tax=tax,
    )


class TestValidateTicker:
    def test_normalizes(self):
        assert validate_ticker(" brk.b ") == "BRK.B"

    def test_index_symbol_allowed(self):
        assert validate_ticker("^GSPC") == "^GSPC"

    @pytest.mark.parametrize("bad", ["", "   ", "TOO-LONG-TICKER", "AA PL", "A$"])
    def test_rejects_malformed(self, bad):
        with pytest.raises(ValidationError):
            validate_ticker(bad)


class TestValidateTransaction:
    def test_valid_buy_passes(self):
        txn = make(TransactionType.BUY)
        assert validate_transaction(txn) is txn

    def test_zero_quantity(self):
        with pytest.raises(ValidationError, match="SharesQuantity must be greater than zero"):
            validate_transaction(make(TransactionType.BUY, qty=0))

    def test_split_requires_zero_price(self):
        with pytest.raises(ValidationError, match="SharePrice must be zero for stock splits"):
            validate_transaction(make(TransactionType.SPLIT, qty=2, price=1))

    def test_split_with_zero_price_passes(self):
        validate_transaction(make(TransactionType.SPLIT, qty=2, price=0))

    def test_negative_dividend_price(self):
        with pytest.raises(ValidationError, match="negative for dividends"):
            validate_transaction(make(TransactionType.DIVIDEND, price=-1))

    def test_zero_dividend_price_passes(self):
        validate_transaction(make(TransactionType.DIVIDEND, price=0))

    @pytest.mark.parametrize("kind", [TransactionType.BUY, TransactionType.SELL])
    def test_trade_requires_positive_price(self, kind):
        with pytest.raises(ValidationError, match="SharePrice must be greater than zero"):
            validate_transaction(make(kind, price=0))

    def test_negative_fees(self):
        with pytest.raises(ValidationError):
            validate_transaction(make(TransactionType.BUY, fees=-1))

    def test_failure_is_logged(self, caplog):
        with caplog.at_level("WARNING"), pytest.raises(ValidationError):
            validate_transaction(make(TransactionType.BUY, qty=-5))
        assert "Validation failed" in caplog.text


class TestValidateSecuritiesExist:
    def test_all_known(self):
        validate_securities_exist(["aapl"], ["AAPL", "MSFT"])

    def test_missing_tickers_named(self):
        with pytest.raises(NotFoundError) as exc_info:
            validate_securities_exist(["AAPL", "ZZZ", "YYY"], ["AAPL"])
        assert exc_info.value.tickers == ["YYY", "ZZZ"]
        assert "Securities not found for tickers: YYY, ZZZ" in str(exc_info.value)
