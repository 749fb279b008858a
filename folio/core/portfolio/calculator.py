"""
Weighted-average cost basis calculations.

Provides pure functions over transaction lists:
- Chronological cost basis fold (buy, sell, split, dividend)
- Position metrics (shares and average price)
- Allocation percentage, rebalancing amount, and balance status
- Gross dividend per share from net amount and withheld tax
- Cash balance movement caused by a transaction

All positions are recomputed from the full history on every call. Order of
application matters: splits and sells only touch shares held at that date.
"""

import logging
from decimal import Decimal
from typing import Iterable, List, Tuple

from folio.core.constants import BALANCED_THRESHOLD_PCT
from folio.core.exceptions import ValidationError
from folio.core.models import (
    Number,
    Position,
    RebalancingStatus,
    Transaction,
    TransactionType,
    to_decimal,
)

logger = logging.getLogger(__name__)

ZERO = Decimal("0")

# Same-day ordering: splits settle before trades, dividends last
_TYPE_ORDER = {
    TransactionType.SPLIT: 0,
    TransactionType.BUY: 1,
    TransactionType.SELL: 2,
    TransactionType.DIVIDEND: 3,
}


def _sort_key(txn: Transaction):
    return (
        txn.date,
        _TYPE_ORDER[txn.transaction_type],
        txn.shares_quantity,
        txn.share_price,
        txn.fees,
    )


def sort_transactions(transactions: Iterable[Transaction]) -> List[Transaction]:
    """Sort transactions chronologically with a deterministic same-day order."""
    return sorted(transactions, key=_sort_key)


def calculate_cost_basis(transactions: Iterable[Transaction]) -> Tuple[Decimal, Decimal]:
    """
    Fold a transaction list into (total_shares, cost_basis).

    Args:
        transactions: Transactions for a single ticker, in any order.

    Returns:
        Tuple of (total_shares, cost_basis). Both are always >= 0 and
        cost_basis is exactly 0 whenever total_shares is 0.
    """
    shares = ZERO
    cost_basis = ZERO

    for txn in sort_transactions(transactions):
        qty = txn.shares_quantity

        if txn.transaction_type == TransactionType.BUY:
            shares += qty
            cost_basis += qty * txn.share_price + txn.fees

        elif txn.transaction_type == TransactionType.SELL:
            if shares == 0:
                continue
            avg_cost = cost_basis / shares
            shares_to_sell = min(qty, shares)
            if qty > shares:
                logger.warning(
                    "Sell of %s %s on %s exceeds %s held; clamping to held shares",
                    qty, txn.ticker, txn.date.date(), shares,
                )
            cost_basis -= shares_to_sell * avg_cost
            shares -= shares_to_sell
            if shares == 0:
                cost_basis = ZERO

        elif txn.transaction_type == TransactionType.SPLIT:
            if shares == 0 or qty <= 0:
                continue
            shares *= qty

        # Dividends have no effect on shares or cost basis

    if cost_basis < 0:
        # Rounding residue from repeated partial sells
        cost_basis = ZERO

    return shares, cost_basis


def calculate_position_metrics(transactions: Iterable[Transaction]) -> Tuple[Decimal, Decimal]:
    """Return (total_shares, average_share_price); (0, 0) for no holdings."""
    shares, cost_basis = calculate_cost_basis(transactions)
    if shares == 0:
        return ZERO, ZERO
    return shares, cost_basis / shares


def build_position(ticker: str, transactions: Iterable[Transaction]) -> Position:
    """Build a Position for one ticker from its transactions."""
    txns = list(transactions)
    shares, cost_basis = calculate_cost_basis(txns)
    average = cost_basis / shares if shares > 0 else ZERO

    buys = [t.date for t in txns if t.transaction_type == TransactionType.BUY]
    names = [t.security_name for t in txns if t.security_name]

    return Position(
        ticker=ticker.upper(),
        total_shares=shares,
        cost_basis=cost_basis,
        average_share_price=average,
        security_name=names[0] if names else None,
        first_purchase_date=min(buys) if buys else None,
    )


def calculate_current_allocation_percentage(position_value: Number, total_value: Number) -> Decimal:
    """Position weight in percent; 0 when the portfolio has no value."""
    total_value = to_decimal(total_value)
    if total_value == 0:
        return ZERO
    return to_decimal(position_value) / total_value * 100


def calculate_rebalancing_amount(current_value: Number, target_pct: Number, total_value: Number) -> Decimal:
    """Signed amount to reach target: positive means buy, negative means sell."""
    return to_decimal(target_pct) / 100 * to_decimal(total_value) - to_decimal(current_value)


def determine_rebalancing_status(current_pct: Number, target_pct: Number) -> RebalancingStatus:
    """Classify a position against its target allocation."""
    deviation = to_decimal(current_pct) - to_decimal(target_pct)
    if abs(deviation) <= BALANCED_THRESHOLD_PCT:
        return RebalancingStatus.BALANCED
    if deviation > 0:
        return RebalancingStatus.OVERWEIGHT
    return RebalancingStatus.UNDERWEIGHT


def calculate_gross_dividend_per_share(net_amount: Number, tax: Number, shares_quantity: Number) -> Decimal:
    """
    Gross dividend per share from the net amount received and withheld tax.

    Raises:
        ValidationError: If shares_quantity is not positive.
    """
    shares = to_decimal(shares_quantity)
    if shares <= 0:
        raise ValidationError("SharesQuantity must be greater than zero")
    return (to_decimal(net_amount) + to_decimal(tax)) / shares


def apply_transaction_to_cash(balance: Number, txn: Transaction) -> Decimal:
    """
    Cash balance after a transaction settles.

    Buys spend price plus fees and never take the balance below zero.
    Sells add proceeds net of fees. Dividends add the net amount received.
    Splits leave cash untouched.
    """
    balance = to_decimal(balance)
    if txn.transaction_type == TransactionType.BUY:
        return max(ZERO, balance - txn.total_amount_with_fees)
    if txn.transaction_type == TransactionType.SELL:
        return balance + txn.amount - txn.fees
    if txn.transaction_type == TransactionType.DIVIDEND:
        net = txn.total_amount if txn.total_amount is not None else txn.amount - txn.tax
        return balance + net
    return balance
