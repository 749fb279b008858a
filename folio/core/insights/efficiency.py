"""
Capital efficiency checks.

- Dead assets: positions held at least 180 days that are flat or losing
- Cash drag: uninvested cash above 10% of total capital

Both checks need data that is not always present (current prices, tracked
cash). Missing data yields no insight, never an error.
"""

import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import Callable, List, Sequence

from folio.core.constants import CASH_DRAG_PCT, DEAD_ASSET_MIN_DAYS
from folio.core.models import (
    Insight,
    InsightCategory,
    InsightSeverity,
    Portfolio,
    Transaction,
    VisualContext,
    VisualFormat,
)

logger = logging.getLogger(__name__)


def utc_now() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


class EfficiencyAnalyzer:
    def __init__(self, clock: Callable[[], datetime] = utc_now):
        self.clock = clock

    def analyze(self, portfolio: Portfolio, history: Sequence[Transaction]) -> List[Insight]:
        if not portfolio.positions:
            return []
        insights: List[Insight] = []
        insights.extend(self.check_dead_assets(portfolio))
        insights.extend(self.check_cash_drag(portfolio))
        return insights

    def check_dead_assets(self, portfolio: Portfolio) -> List[Insight]:
        now = self.clock()
        insights = []
        for position in portfolio.positions:
            if position.first_purchase_date is None or position.unrealized_pnl_percentage is None:
                continue
            days_held = (now - position.first_purchase_date).days
            if days_held < DEAD_ASSET_MIN_DAYS or position.unrealized_pnl_percentage > 0:
                continue
            name = position.security_name or position.ticker
            insights.append(
                Insight(
                    category=InsightCategory.EFFICIENCY,
                    title="Dead Asset",
                    message=(
                        f"{name} has returned {position.unrealized_pnl_percentage:.1f}% "
                        f"after {days_held} days. Consider redeploying the capital."
                    ),
                    related_ticker=position.ticker,
                    severity=InsightSeverity.INFO,
                    metadata={
                        "daysHeld": days_held,
                        "unrealizedPnlPercentage": position.unrealized_pnl_percentage,
                        "costBasis": position.cost_basis,
                    },
                    visual_context=VisualContext(
                        current_value=position.current_market_value,
                        target_value=position.cost_basis,
                        format=VisualFormat.CURRENCY,
                    ),
                )
            )
        return insights

    def check_cash_drag(self, portfolio: Portfolio) -> List[Insight]:
        cash = portfolio.cash_amount
        if cash is None or cash <= 0:
            return []
        total = portfolio.total_value + cash
        pct = cash / total * 100 if total > 0 else Decimal("0")
        if pct <= CASH_DRAG_PCT:
            return []
        return [
            Insight(
                category=InsightCategory.EFFICIENCY,
                title="Cash Drag",
                message=f"{pct:.1f}% of your capital is sitting in cash.",
                severity=InsightSeverity.INFO,
                metadata={"cashAmount": cash, "cashPercentage": pct},
                visual_context=VisualContext(
                    current_value=pct,
                    target_value=CASH_DRAG_PCT,
                    format=VisualFormat.PERCENT,
                ),
            )
        ]
