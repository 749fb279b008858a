"""
Insight pipeline.

Independent analyzers scan portfolio state and transaction history; the
InsightEngine runs them and concatenates their output.
"""

from folio.core.insights.base import PortfolioAnalyzer
from folio.core.insights.efficiency import EfficiencyAnalyzer
from folio.core.insights.engine import InsightEngine, default_analyzers, rank_insights
from folio.core.insights.income import IncomeAnalyzer
from folio.core.insights.risk import RiskAnalyzer
from folio.core.insights.trend import TrendAnalyzer

__all__ = [
    "EfficiencyAnalyzer",
    "IncomeAnalyzer",
    "InsightEngine",
    "PortfolioAnalyzer",
    "RiskAnalyzer",
    "TrendAnalyzer",
    "default_analyzers",
    "rank_insights",
]
