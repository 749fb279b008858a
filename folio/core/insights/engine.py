"""
Insight aggregation across analyzers.

Runs every registered analyzer concurrently and concatenates the results
in registration order. A failing analyzer is logged and contributes
nothing. Cancellation is all-or-nothing: a cancelled run raises instead of
returning a partial list.
"""

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from typing import List, Optional, Sequence

from folio.core.exceptions import AnalysisCancelledError
from folio.core.insights.base import PortfolioAnalyzer
from folio.core.insights.efficiency import EfficiencyAnalyzer
from folio.core.insights.income import IncomeAnalyzer
from folio.core.insights.risk import RiskAnalyzer
from folio.core.insights.trend import TrendAnalyzer
from folio.core.models import Insight, Portfolio, Transaction
from folio.core.sources import MarketPriceSource

logger = logging.getLogger(__name__)


def default_analyzers(prices: MarketPriceSource) -> List[PortfolioAnalyzer]:
    """Risk, Trend, Income, Efficiency."""
    return [
        RiskAnalyzer(),
        TrendAnalyzer(prices),
        IncomeAnalyzer(),
        EfficiencyAnalyzer(),
    ]


def rank_insights(insights: Sequence[Insight], count: Optional[int] = None) -> List[Insight]:
    """Order by severity (Critical first), keeping analyzer order within a level."""
    ranked = sorted(insights, key=lambda i: i.severity.rank, reverse=True)
    if count is not None:
        ranked = ranked[:count]
    return ranked


class InsightEngine:
    """Runs analyzers and merges their insights."""

    def __init__(self, analyzers: Sequence[PortfolioAnalyzer], max_workers: int = 4):
        self.analyzers = list(analyzers)
        self.max_workers = max(1, max_workers)

    def generate(
        self,
        portfolio: Portfolio,
        history: Sequence[Transaction],
        cancel_event: Optional[threading.Event] = None,
    ) -> List[Insight]:
        """
        Run all analyzers and concatenate their insights.

        Args:
            portfolio: Portfolio to analyze.
            history: Full transaction history for the same user.
            cancel_event: Optional event; once set, the run is abandoned.

        Returns:
            Insights from every analyzer that succeeded.

        Raises:
            AnalysisCancelledError: If cancel_event was set before completion.
        """
        if not self.analyzers:
            return []

        history = list(history)
        self._check_cancelled(cancel_event)

        with ThreadPoolExecutor(max_workers=self.max_workers, thread_name_prefix="insight") as pool:
            futures = [
                pool.submit(self._run_one, analyzer, portfolio, history, cancel_event)
                for analyzer in self.analyzers
            ]
            results = [future.result() for future in futures]

        self._check_cancelled(cancel_event)

        insights: List[Insight] = []
        for batch in results:
            insights.extend(batch)
        logger.debug("Generated %d insights from %d analyzers", len(insights), len(self.analyzers))
        return insights

    def top_insights(
        self,
        portfolio: Portfolio,
        history: Sequence[Transaction],
        count: int,
        cancel_event: Optional[threading.Event] = None,
    ) -> List[Insight]:
        return rank_insights(self.generate(portfolio, history, cancel_event), count)

    @staticmethod
    def _run_one(analyzer, portfolio, history, cancel_event) -> List[Insight]:
        if cancel_event is not None and cancel_event.is_set():
            return []
        name = type(analyzer).__name__
        try:
            if getattr(analyzer, "supports_cancellation", False):
                return list(analyzer.analyze(portfolio, history, cancel_event=cancel_event) or [])
            return list(analyzer.analyze(portfolio, history) or [])
        except Exception:
            logger.exception("Analyzer %s failed; skipping its insights", name)
            return []

    @staticmethod
    def _check_cancelled(cancel_event: Optional[threading.Event]) -> None:
        if cancel_event is not None and cancel_event.is_set():
            logger.info("Insight analysis cancelled")
            raise AnalysisCancelledError()
