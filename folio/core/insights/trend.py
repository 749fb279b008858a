"""
Price trend checks against average acquisition cost.

Momentum winners land in the Trend category, drawdowns in Risk. Positions
without a price or with zero average cost are skipped.
"""

import logging
from decimal import Decimal
import threading
from typing import List, Optional, Sequence

from folio.core.constants import (
    DRAWDOWN_CRITICAL_PCT,
    DRAWDOWN_WARNING_PCT,
    MOMENTUM_INFO_PCT,
    MOMENTUM_WARNING_PCT,
)
from folio.core.models import (
    Insight,
    InsightCategory,
    InsightSeverity,
    Portfolio,
    Position,
    Transaction,
    VisualContext,
    VisualFormat,
)
from folio.core.sources import MarketPriceSource

logger = logging.getLogger(__name__)


class TrendAnalyzer:
    """Momentum and drawdown checks using current market prices."""

    # The engine passes its cancel event so a cancelled run skips the quote fetch
    supports_cancellation = True

    def __init__(self, prices: MarketPriceSource):
        self.prices = prices

    def analyze(
        self,
        portfolio: Portfolio,
        history: Sequence[Transaction],
        cancel_event: Optional[threading.Event] = None,
    ) -> List[Insight]:
        if not portfolio.positions or _cancelled(cancel_event):
            return []

        tickers = [p.ticker for p in portfolio.positions]
        current = self.prices.get_current_prices(tickers) or {}
        if _cancelled(cancel_event):
            logger.debug("Trend analysis cancelled after price fetch")
            return []

        insights: List[Insight] = []
        for position in portfolio.positions:
            price = current.get(position.ticker)
            avg = position.average_share_price
            if price is None or avg == 0:
                logger.debug("Skipping trend check for %s (price=%s, avg=%s)", position.ticker, price, avg)
                continue

            change_pct = (price - avg) / avg * 100
            insight = self._momentum(position, price, change_pct) or self._drawdown(position, price, change_pct)
            if insight is not None:
                insights.append(insight)
        return insights

    @staticmethod
    def _momentum(position: Position, price: Decimal, change_pct: Decimal):
        if change_pct <= MOMENTUM_INFO_PCT:
            return None
        name = position.security_name or position.ticker
        severity = InsightSeverity.WARNING if change_pct > MOMENTUM_WARNING_PCT else InsightSeverity.INFO
        return Insight(
            category=InsightCategory.TREND,
            title="Momentum Alert",
            message=(
                f"{name} is up {change_pct:.1f}% from your average cost. "
                "Consider taking profits or rebalancing."
            ),
            related_ticker=position.ticker,
            severity=severity,
            metadata={
                "percentageChange": change_pct,
                "averageCost": position.average_share_price,
                "currentPrice": price,
                "totalShares": position.total_shares,
                "unrealizedGain": (price - position.average_share_price) * position.total_shares,
            },
            visual_context=VisualContext(
                current_value=price,
                target_value=position.average_share_price,
                format=VisualFormat.CURRENCY,
            ),
        )

    @staticmethod
    def _drawdown(position: Position, price: Decimal, change_pct: Decimal):
        if change_pct >= DRAWDOWN_WARNING_PCT:
            return None
        name = position.security_name or position.ticker
        severity = InsightSeverity.CRITICAL if change_pct < DRAWDOWN_CRITICAL_PCT else InsightSeverity.WARNING
        return Insight(
            category=InsightCategory.RISK,
            title="Drawdown Alert",
            message=(
                f"{name} is down {abs(change_pct):.1f}% from your average cost. "
                "Review whether your thesis still holds."
            ),
            related_ticker=position.ticker,
            severity=severity,
            metadata={
                "percentageChange": change_pct,
                "averageCost": position.average_share_price,
                "currentPrice": price,
                "totalShares": position.total_shares,
                "unrealizedLoss": (position.average_share_price - price) * position.total_shares,
            },
            visual_context=VisualContext(
                current_value=price,
                target_value=position.average_share_price,
                format=VisualFormat.CURRENCY,
            ),
        )


def _cancelled(cancel_event: Optional[threading.Event]) -> bool:
    return cancel_event is not None and cancel_event.is_set()
