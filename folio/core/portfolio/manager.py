"""
Portfolio assembly from transactions, targets, and prices.

Provides portfolio-level views built on the cost basis engine:
- Open positions with weighted average cost basis
- Market value with cost-basis fallback for missing quotes
- Cash on hand when the user tracks it
- Allocation, target deviation, and rebalancing status per position
- Diversification metrics (HHI, effective N, top-N concentration)
"""

import logging
from collections import defaultdict
from dataclasses import asdict, dataclass
from decimal import Decimal
from typing import Any, Dict, List, Optional

from folio.core.models import Portfolio, Position, Transaction, jsonable
from folio.core.portfolio.calculator import (
    build_position,
    calculate_current_allocation_percentage,
    calculate_rebalancing_amount,
    determine_rebalancing_status,
)
from folio.core.sources import (
    AllocationTargetSource,
    CashBalanceSource,
    MarketPriceSource,
    SecurityCatalog,
    TransactionSource,
)

logger = logging.getLogger(__name__)

ZERO = Decimal("0")


@dataclass
class DiversificationMetrics:
    """Concentration statistics over market-value weights."""

    hhi: Decimal
    effective_n: Decimal
    diversification_score: Decimal
    top3_concentration: Decimal
    top5_concentration: Decimal
    total_assets: int

    @classmethod
    def empty(cls) -> "DiversificationMetrics":
        return cls(ZERO, ZERO, ZERO, ZERO, ZERO, 0)

    def to_dict(self) -> Dict[str, Any]:
        return jsonable(asdict(self))


class PortfolioManager:
    """
    Builds Portfolio views for a user from the consumed interfaces.

    The user id is an explicit optional value passed through to every
    source. No fallback user is substituted here.
    """

    def __init__(
        self,
        transactions: TransactionSource,
        targets: AllocationTargetSource,
        prices: Optional[MarketPriceSource] = None,
        securities: Optional[SecurityCatalog] = None,
        cash: Optional[CashBalanceSource] = None,
    ):
        self.transactions = transactions
        self.targets = targets
        self.prices = prices
        self.securities = securities
        self.cash = cash

    def get_transactions(self, user_id: Optional[str] = None) -> List[Transaction]:
        return list(self.transactions.get_transactions(user_id))

    def get_portfolio(self, user_id: Optional[str] = None) -> Portfolio:
        """
        Build the user's portfolio with allocation and rebalancing fields.

        Args:
            user_id: Optional user identifier forwarded to every source.

        Returns:
            Portfolio with open positions ordered by cost basis descending.
        """
        by_ticker: Dict[str, List[Transaction]] = defaultdict(list)
        for txn in self.get_transactions(user_id):
            by_ticker[txn.ticker].append(txn)

        positions = [
            build_position(ticker, txns) for ticker, txns in by_ticker.items()
        ]
        positions = [p for p in positions if p.total_shares > 0]

        cash_amount = self.get_cash_balance(user_id)

        if not positions:
            return Portfolio(cash_amount=cash_amount, user_id=user_id)

        tickers = [p.ticker for p in positions]
        self._attach_security_info(positions, tickers)

        prices: Dict[str, Decimal] = {}
        if self.prices is not None:
            prices = self.prices.get_current_prices(tickers) or {}

        missing_prices: List[str] = []
        for position in positions:
            price = prices.get(position.ticker)
            if price is None or price <= 0:
                missing_prices.append(position.ticker)
                position.current_market_value = position.cost_basis
                continue
            position.current_price = price
            position.current_market_value = position.total_shares * price
            position.unrealized_pnl = position.current_market_value - position.cost_basis
            if position.cost_basis > 0:
                position.unrealized_pnl_percentage = (
                    position.unrealized_pnl / position.cost_basis * 100
                )

        if missing_prices:
            logger.warning(
                "No current price for %s; using cost basis as market value",
                ", ".join(missing_prices),
            )

        total_invested = sum((p.cost_basis for p in positions), ZERO)
        total_market_value = None
        if len(missing_prices) < len(positions):
            total_market_value = sum((p.current_market_value for p in positions), ZERO)
        total_value = total_market_value if total_market_value else total_invested

        targets = {
            t.ticker: t.target_percentage
            for t in self.targets.get_allocation_targets(user_id)
        }

        for position in positions:
            current_pct = calculate_current_allocation_percentage(
                position.current_market_value, total_value
            )
            target_pct = targets.get(position.ticker, ZERO)
            position.current_allocation_percentage = current_pct
            position.target_allocation_percentage = target_pct
            position.allocation_deviation = current_pct - target_pct
            position.rebalancing_amount = calculate_rebalancing_amount(
                position.current_market_value, target_pct, total_value
            )
            position.rebalancing_status = determine_rebalancing_status(current_pct, target_pct)

        positions.sort(key=lambda p: p.cost_basis, reverse=True)

        return Portfolio(
            positions=positions,
            total_invested=total_invested,
            total_market_value=total_market_value,
            cash_amount=cash_amount,
            missing_prices=missing_prices,
            user_id=user_id,
        )

    def get_cash_balance(self, user_id: Optional[str] = None) -> Optional[Decimal]:
        if self.cash is None:
            return None
        return self.cash.get_cash_balance(user_id)

    def get_diversification_metrics(self, user_id: Optional[str] = None) -> DiversificationMetrics:
        return calculate_diversification(self.get_portfolio(user_id))

    def _attach_security_info(self, positions: List[Position], tickers: List[str]) -> None:
        if self.securities is None:
            return
        info = self.securities.get_securities(tickers)
        for position in positions:
            details = info.get(position.ticker)
            if not details:
                continue
            position.security_name = details.get("name") or position.security_name
            position.sector = details.get("sector")


def calculate_diversification(portfolio: Portfolio) -> DiversificationMetrics:
    """
    Compute HHI-based diversification from position market values.

    Args:
        portfolio: Portfolio with market values (or cost basis fallbacks).

    Returns:
        DiversificationMetrics, or the empty value for an empty portfolio.
    """
    values = [
        p.current_market_value if p.current_market_value is not None else p.cost_basis
        for p in portfolio.positions
    ]
    values = [v for v in values if v > 0]
    total = sum(values, ZERO)
    if not values or total <= 0:
        return DiversificationMetrics.empty()

    weights = sorted((v / total for v in values), reverse=True)
    hhi = sum((w * w for w in weights), ZERO)
    effective_n = Decimal("1") / hhi if hhi > 0 else ZERO

    return DiversificationMetrics(
        hhi=round(hhi, 4),
        effective_n=round(effective_n, 2),
        diversification_score=round((1 - hhi) * 100, 2),
        top3_concentration=round(sum(weights[:3], ZERO) * 100, 2),
        top5_concentration=round(sum(weights[:5], ZERO) * 100, 2),
        total_assets=len(weights),
    )
