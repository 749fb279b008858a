"""
Interfaces consumed by the engines.

The engines never talk to a database or a quote provider directly. They
depend on these protocols, implemented by ``folio.db.repository`` and
``folio.data.market_data`` (and by in-memory fakes in tests).
"""

from datetime import date
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Protocol

from folio.core.models import AllocationTarget, Transaction


class TransactionSource(Protocol):
    def get_transactions(self, user_id: Optional[str] = None) -> List[Transaction]:
        """Return the user's transactions in any order."""
        ...


class AllocationTargetSource(Protocol):
    def get_allocation_targets(self, user_id: Optional[str] = None) -> List[AllocationTarget]:
        ...


class SecurityCatalog(Protocol):
    def get_securities(self, tickers: Iterable[str]) -> Dict[str, dict]:
        """Return {ticker: {"name": ..., "sector": ...}} for known tickers."""
        ...


class MarketPriceSource(Protocol):
    def get_current_prices(self, tickers: Iterable[str]) -> Dict[str, Decimal]:
        """Return latest prices; tickers without a quote are omitted."""
        ...

    def get_historical_prices(self, ticker: str, period: str = "1Y") -> Dict[date, Decimal]:
        """Return daily closes keyed by date; empty when unavailable."""
        ...


class CashBalanceSource(Protocol):
    def get_cash_balance(self, user_id: Optional[str] = None) -> Optional[Decimal]:
        """Return the user's cash on hand, or None when cash is not tracked."""
        ...
