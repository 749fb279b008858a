"""
Dividend seasonality forecasting.

For each security that paid a dividend in the current calendar month of a
prior year, projects this year's payment and emits an Info insight when the
expected date is within 30 days of now.
"""

import calendar
import logging
from collections import defaultdict
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Callable, Dict, List, Optional, Sequence

from folio.core.constants import DIVIDEND_WINDOW_DAYS
from folio.core.models import (
    Insight,
    InsightCategory,
    InsightSeverity,
    Portfolio,
    Transaction,
    TransactionType,
    VisualContext,
    VisualFormat,
)

logger = logging.getLogger(__name__)


def utc_now() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


class IncomeAnalyzer:
    """Forecasts dividends from historical payment months."""

    def __init__(self, clock: Callable[[], datetime] = utc_now):
        self.clock = clock

    def analyze(self, portfolio: Portfolio, history: Sequence[Transaction]) -> List[Insight]:
        if not portfolio.positions:
            return []

        dividends: Dict[str, List[Transaction]] = defaultdict(list)
        for txn in history:
            if txn.transaction_type == TransactionType.DIVIDEND:
                dividends[txn.ticker].append(txn)

        if not dividends:
            return []

        now = self.clock()
        names = {p.ticker: p.security_name for p in portfolio.positions}

        insights = []
        for ticker in sorted(dividends):
            insight = self._forecast(ticker, dividends[ticker], now, names.get(ticker))
            if insight is not None:
                insights.append(insight)
        return insights

    def _forecast(
        self, ticker: str, group: List[Transaction], now: datetime, name: Optional[str]
    ) -> Optional[Insight]:
        in_month = sorted(
            (t for t in group if t.date.month == now.month and t.date.year < now.year),
            key=lambda t: t.date,
            reverse=True,
        )
        if not in_month:
            return None

        most_recent = in_month[0]
        last_day = calendar.monthrange(now.year, now.month)[1]
        expected = date(now.year, now.month, min(most_recent.date.day, last_day))
        days_until = (expected - now.date()).days
        if abs(days_until) > DIVIDEND_WINDOW_DAYS:
            logger.debug("Dividend for %s expected %s days away; skipping", ticker, days_until)
            return None

        avg_per_share = sum((t.share_price for t in group), Decimal("0")) / len(group)
        avg_shares = sum((t.shares_quantity for t in group), Decimal("0")) / len(group)
        estimated = avg_per_share * avg_shares

        display = name or most_recent.security_name or ticker
        month_name = calendar.month_name[now.month]
        expected_iso = expected.isoformat()

        return Insight(
            category=InsightCategory.INCOME,
            title="Dividend Season",
            message=f"{display} usually pays dividends in {month_name}. Est: {estimated:.2f}.",
            related_ticker=ticker,
            severity=InsightSeverity.INFO,
            metadata={
                "expectedDate": expected_iso,
                "estimatedAmount": estimated,
                "dividendPerShare": avg_per_share,
                "historicalCount": len(in_month),
            },
            visual_context=VisualContext(
                current_value=estimated,
                target_value=estimated,
                format=VisualFormat.CURRENCY,
            ),
            action_label="Log Receipt",
            action_payload={"ticker": ticker, "type": "dividend", "expectedDate": expected_iso},
        )
