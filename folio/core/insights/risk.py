"""
Structural risk checks.

Flags single-position concentration, low asset count, and sector
over-exposure (when sector metadata is available).
"""

import logging
from collections import defaultdict
from decimal import Decimal
from typing import Dict, List, Sequence

from folio.core.constants import (
    CONCENTRATION_CRITICAL_PCT,
    CONCENTRATION_WARNING_PCT,
    MIN_ASSETS_INFO,
    MIN_ASSETS_WARNING,
    SECTOR_EXPOSURE_WARNING_PCT,
)
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


class RiskAnalyzer:
    """Concentration, diversification, and sector exposure checks."""

    def analyze(self, portfolio: Portfolio, history: Sequence[Transaction]) -> List[Insight]:
        if not portfolio.positions or portfolio.total_invested == 0:
            return []

        insights: List[Insight] = []
        insights.extend(self.check_concentration(portfolio))
        insights.extend(self.check_diversification(portfolio))
        insights.extend(self.check_sector_exposure(portfolio))
        return insights

    def check_concentration(self, portfolio: Portfolio) -> List[Insight]:
        """Flag positions above 20% of invested value (Critical above 40%)."""
        insights = []
        total = portfolio.total_invested
        for position in portfolio.positions:
            pct = position.total_invested / total * 100 if total > 0 else Decimal("0")
            if pct <= CONCENTRATION_WARNING_PCT:
                continue
            severity = (
                InsightSeverity.CRITICAL if pct > CONCENTRATION_CRITICAL_PCT else InsightSeverity.WARNING
            )
            name = position.security_name or position.ticker
            insights.append(
                Insight(
                    category=InsightCategory.RISK,
                    title="Concentration Risk",
                    message=f"{name} makes up {pct:.1f}% of your portfolio.",
                    related_ticker=position.ticker,
                    severity=severity,
                    metadata={
                        "allocationPercentage": pct,
                        "totalInvested": position.total_invested,
                        "ticker": position.ticker,
                    },
                    visual_context=VisualContext(
                        current_value=pct,
                        target_value=CONCENTRATION_WARNING_PCT,
                        format=VisualFormat.PERCENT,
                    ),
                )
            )
        return insights

    def check_diversification(self, portfolio: Portfolio) -> List[Insight]:
        count = len(portfolio.positions)
        if count >= MIN_ASSETS_INFO:
            return []
        plural = "" if count == 1 else "s"
        return [
            Insight(
                category=InsightCategory.RISK,
                title="Low Diversification",
                message=(
                    f"Your portfolio contains only {count} asset{plural}. "
                    "Consider diversifying across more holdings."
                ),
                severity=InsightSeverity.WARNING if count < MIN_ASSETS_WARNING else InsightSeverity.INFO,
                metadata={"assetCount": count, "recommendedMinimum": MIN_ASSETS_INFO},
            )
        ]

    def check_sector_exposure(self, portfolio: Portfolio) -> List[Insight]:
        """Flag any sector above 50% of invested value; silent without sector data."""
        by_sector: Dict[str, Decimal] = defaultdict(Decimal)
        for position in portfolio.positions:
            if position.sector:
                by_sector[position.sector] += position.total_invested

        if not by_sector:
            return []

        insights = []
        total = portfolio.total_invested
        for sector, invested in sorted(by_sector.items()):
            pct = invested / total * 100
            if pct <= SECTOR_EXPOSURE_WARNING_PCT:
                continue
            insights.append(
                Insight(
                    category=InsightCategory.RISK,
                    title="Sector Exposure",
                    message=f"{sector} accounts for {pct:.1f}% of your portfolio.",
                    severity=InsightSeverity.WARNING,
                    metadata={"sector": sector, "allocationPercentage": pct, "totalInvested": invested},
                    visual_context=VisualContext(
                        current_value=pct,
                        target_value=SECTOR_EXPOSURE_WARNING_PCT,
                        format=VisualFormat.PERCENT,
                    ),
                )
            )
        return insights
