"""Transaction validation run before anything is recorded or computed."""

import logging
import re
from typing import Iterable

from folio.core.exceptions import NotFoundError, ValidationError
from folio.core.models import Transaction, TransactionType

logger = logging.getLogger(__name__)

_TICKER_RE = re.compile(r"^[A-Z0-9.\-^]{1,10}$")


def validate_ticker(ticker: str) -> str:
    """Validate and normalize a ticker symbol.

    Accepts 1-10 uppercase alphanumeric characters, dots, hyphens, and a
    caret for indices. Raises ValidationError for malformed tickers.
    """
    if ticker is None or not ticker.strip():
        _fail("Ticker cannot be null or empty")
    ticker = ticker.strip().upper()
    if not _TICKER_RE.match(ticker):
        _fail(
            f"Invalid ticker symbol: {ticker!r}. "
            "Must be 1-10 characters: A-Z, 0-9, '.', '-', '^'"
        )
    return ticker


def validate_transaction(txn: Transaction) -> Transaction:
    """
    Check a transaction against its per-type preconditions.

    Returns:
        The transaction unchanged, for call chaining.

    Raises:
        ValidationError: On the first violated rule.
    """
    validate_ticker(txn.ticker)

    if txn.shares_quantity <= 0:
        _fail("SharesQuantity must be greater than zero")

    kind = txn.transaction_type
    if kind == TransactionType.SPLIT:
        if txn.share_price != 0:
            _fail("SharePrice must be zero for stock splits")
    elif kind == TransactionType.DIVIDEND:
        if txn.share_price < 0:
            _fail("SharePrice cannot be negative for dividends")
    elif txn.share_price <= 0:
        _fail("SharePrice must be greater than zero")

    if txn.fees < 0:
        _fail("Fees cannot be negative")
    if txn.tax < 0:
        _fail("Tax cannot be negative")

    return txn


def validate_securities_exist(tickers: Iterable[str], known_tickers: Iterable[str]) -> None:
    """
    Ensure every ticker exists in the security catalog.

    Raises:
        NotFoundError: Naming every missing ticker.
    """
    known = {t.upper() for t in known_tickers}
    missing = {t.upper() for t in tickers} - known
    if missing:
        error = NotFoundError(missing)
        logger.warning("Validation failed: %s", error)
        raise error


def _fail(message: str) -> None:
    logger.warning("Validation failed: %s", message)
    raise ValidationError(message)
