"""Factories wiring the engines to the SQLite repository and Yahoo prices.

Commands build their collaborators through these functions so tests can
patch a single seam.
"""

from folio.config import config
from folio.core.analytics.risk_metrics import RiskMetricsCalculator
from folio.core.insights import InsightEngine, default_analyzers
from folio.core.portfolio.manager import PortfolioManager
from folio.core.rebalancing import RebalancingEngine, TimedRebalancingService
from folio.data.market_data import YahooMarketData
from folio.db.repository import PortfolioRepository


def get_repository() -> PortfolioRepository:
    return PortfolioRepository()


def get_market_data() -> YahooMarketData:
    return YahooMarketData(timeout=config.price_timeout)


def get_manager(repository=None, prices=None) -> PortfolioManager:
    repository = repository or get_repository()
    return PortfolioManager(
        transactions=repository,
        targets=repository,
        prices=prices if prices is not None else get_market_data(),
        securities=repository,
        cash=repository,
    )


def get_rebalancing_engine() -> RebalancingEngine:
    return RebalancingEngine(noise_threshold=config.rebalance_noise_threshold)


def get_timed_service(prices) -> TimedRebalancingService:
    return TimedRebalancingService(prices)


def get_risk_calculator(prices) -> RiskMetricsCalculator:
    return RiskMetricsCalculator(
        prices,
        benchmark_ticker=config.benchmark_ticker,
        risk_free_rate=config.risk_free_rate,
        trading_days=config.trading_days,
    )


def get_insight_engine(prices) -> InsightEngine:
    return InsightEngine(default_analyzers(prices), max_workers=config.insight_workers)
