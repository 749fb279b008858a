"""
Core data model for Folio.

Defines the value types passed between the engines:
- Transaction: immutable buy/sell/dividend/split record
- Position: per-ticker state derived from transactions
- Portfolio: positions plus totals for one user
- AllocationTarget: user-managed target weight
- CashBalance: uninvested cash held for a user
- Insight / VisualContext: analyzer output records
"""

from dataclasses import asdict, dataclass, field
from datetime import date, datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Optional, Union

Number = Union[int, float, str, Decimal]


def to_decimal(value: Number) -> Decimal:
    """Convert a numeric value to Decimal safely."""
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def to_naive_utc(value: Union[date, datetime]) -> datetime:
    """Convert a date or datetime to timezone-naive UTC.

    Plain dates are promoted to midnight. SQLite stores datetimes as naive
    strings (implicit UTC), so everything is compared naive.
    """
    if not isinstance(value, datetime):
        return datetime(value.year, value.month, value.day)
    if value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def jsonable(value: Any) -> Any:
    """Convert Decimals, dates, and enums into JSON-safe primitives."""
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, dict):
        return {str(k): jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [jsonable(v) for v in value]
    return value


class TransactionType(str, Enum):
    BUY = "buy"
    SELL = "sell"
    DIVIDEND = "dividend"
    SPLIT = "split"


class CashUpdateSource(str, Enum):
    MANUAL = "manual"
    TRANSACTION = "transaction"


class RebalancingStatus(str, Enum):
    BALANCED = "Balanced"
    OVERWEIGHT = "Overweight"
    UNDERWEIGHT = "Underweight"


class InsightCategory(str, Enum):
    RISK = "Risk"
    OPPORTUNITY = "Opportunity"
    TREND = "Trend"
    EFFICIENCY = "Efficiency"
    INCOME = "Income"


class InsightSeverity(str, Enum):
    """Insight severity, ordered Info < Warning < Critical."""

    INFO = "Info"
    WARNING = "Warning"
    CRITICAL = "Critical"

    @property
    def rank(self) -> int:
        return _SEVERITY_RANK[self]


_SEVERITY_RANK = {
    InsightSeverity.INFO: 0,
    InsightSeverity.WARNING: 1,
    InsightSeverity.CRITICAL: 2,
}


class VisualFormat(str, Enum):
    CURRENCY = "Currency"
    PERCENT = "Percent"


@dataclass(frozen=True)
class Transaction:
    """
    Immutable transaction record.

    Corrections are new transactions, never edits. ``shares_quantity`` is the
    split ratio for splits (2 for 2-for-1, 0.5 for 1-for-2) and
    ``share_price`` is the gross per-share amount for dividends.
    """

    ticker: str
    transaction_type: TransactionType
    date: datetime
    shares_quantity: Decimal
    share_price: Decimal = Decimal("0")
    fees: Decimal = Decimal("0")
    tax: Decimal = Decimal("0")
    total_amount: Optional[Decimal] = None  # Net dividend amount
    security_name: Optional[str] = None
    id: Optional[int] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "ticker", (self.ticker or "").strip().upper())
        object.__setattr__(self, "transaction_type", TransactionType(self.transaction_type))
        object.__setattr__(self, "date", to_naive_utc(self.date))
        object.__setattr__(self, "shares_quantity", to_decimal(self.shares_quantity))
        object.__setattr__(self, "share_price", to_decimal(self.share_price))
        object.__setattr__(self, "fees", to_decimal(self.fees))
        object.__setattr__(self, "tax", to_decimal(self.tax))
        if self.total_amount is not None:
            object.__setattr__(self, "total_amount", to_decimal(self.total_amount))

    @property
    def amount(self) -> Decimal:
        return self.shares_quantity * self.share_price

    @property
    def total_amount_with_fees(self) -> Decimal:
        return self.amount + self.fees

    def to_dict(self) -> Dict[str, Any]:
        return jsonable(asdict(self))


@dataclass(frozen=True)
class AllocationTarget:
    """User-managed target weight for a ticker (0-100)."""

    ticker: str
    target_percentage: Decimal

    def __post_init__(self) -> None:
        object.__setattr__(self, "ticker", self.ticker.strip().upper())
        object.__setattr__(self, "target_percentage", to_decimal(self.target_percentage))


@dataclass(frozen=True)
class CashBalance:
    """Cash on hand and what last changed it."""

    amount: Decimal
    last_updated_at: datetime
    last_updated_source: CashUpdateSource

    def to_dict(self) -> Dict[str, Any]:
        return jsonable(asdict(self))


@dataclass
class Position:
    """Per-ticker state derived from the full transaction history."""

    ticker: str
    total_shares: Decimal = Decimal("0")
    cost_basis: Decimal = Decimal("0")
    average_share_price: Decimal = Decimal("0")
    security_name: Optional[str] = None
    sector: Optional[str] = None
    first_purchase_date: Optional[datetime] = None
    # Market data (requires price feed)
    current_price: Optional[Decimal] = None
    current_market_value: Optional[Decimal] = None
    unrealized_pnl: Optional[Decimal] = None
    unrealized_pnl_percentage: Optional[Decimal] = None
    # Allocation
    current_allocation_percentage: Optional[Decimal] = None
    target_allocation_percentage: Optional[Decimal] = None
    allocation_deviation: Optional[Decimal] = None
    rebalancing_amount: Optional[Decimal] = None
    rebalancing_status: Optional[RebalancingStatus] = None

    @property
    def total_invested(self) -> Decimal:
        return self.cost_basis

    def to_dict(self) -> Dict[str, Any]:
        return jsonable(asdict(self))


@dataclass
class Portfolio:
    """Open positions and totals for one user."""

    positions: List[Position] = field(default_factory=list)
    total_invested: Decimal = Decimal("0")
    total_market_value: Optional[Decimal] = None  # None when no price was available
    cash_amount: Optional[Decimal] = None  # None when cash is not tracked
    missing_prices: List[str] = field(default_factory=list)
    user_id: Optional[str] = None

    @property
    def total_value(self) -> Decimal:
        """Market value when known, otherwise invested value."""
        if self.total_market_value is not None and self.total_market_value > 0:
            return self.total_market_value
        return self.total_invested

    def get_position(self, ticker: str) -> Optional[Position]:
        ticker = ticker.upper()
        for position in self.positions:
            if position.ticker == ticker:
                return position
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "user_id": self.user_id,
            "total_invested": jsonable(self.total_invested),
            "total_market_value": jsonable(self.total_market_value),
            "cash_amount": jsonable(self.cash_amount),
            "missing_prices": list(self.missing_prices),
            "positions": [p.to_dict() for p in self.positions],
        }


@dataclass
class VisualContext:
    current_value: Decimal
    target_value: Decimal
    format: VisualFormat
    projected_value: Optional[Decimal] = None


@dataclass
class Insight:
    """
    A single noteworthy observation about the portfolio.

    ``metadata`` is an open-ended string-keyed map. ``action_payload`` is an
    already-serialized JSON-compatible tree whose schema the engines never
    inspect.
    """

    category: InsightCategory
    title: str
    message: str
    severity: InsightSeverity
    related_ticker: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)
    visual_context: Optional[VisualContext] = None
    action_label: Optional[str] = None
    action_payload: Optional[Any] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "category": self.category.value,
            "title": self.title,
            "message": self.message,
            "related_ticker": self.related_ticker,
            "severity": self.severity.value,
            "metadata": jsonable(self.metadata),
            "visual_context": jsonable(asdict(self.visual_context)) if self.visual_context else None,
            "action_label": self.action_label,
            "action_payload": self.action_payload,
        }
