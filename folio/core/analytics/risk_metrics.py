"""
Portfolio risk metrics from historical prices.

Builds a daily portfolio value series from current share counts and
historical closes, then derives annualized volatility, annualized return,
beta against a benchmark, and the Sharpe ratio.
"""

import logging
from dataclasses import asdict, dataclass
from datetime import date
from decimal import Decimal
from typing import Any, Dict, Optional

from folio.core.analytics import statistics
from folio.core.constants import (
    DEFAULT_BENCHMARK_TICKER,
    DEFAULT_RISK_FREE_RATE,
    MIN_DATA_POINTS,
    SUPPORTED_PERIODS,
    TRADING_DAYS_PER_YEAR,
)
from folio.core.exceptions import InsufficientDataError, ValidationError
from folio.core.models import Number, Portfolio, jsonable, to_decimal
from folio.core.sources import MarketPriceSource

logger = logging.getLogger(__name__)

ZERO = Decimal("0")


@dataclass
class RiskMetrics:
    """Risk statistics for one period. Volatility and return are fractions."""

    annualized_volatility: Decimal
    beta: Decimal
    sharpe_ratio: Decimal
    annualized_return: Decimal
    period: str
    benchmark_ticker: str

    @classmethod
    def empty(cls, period: str = "1Y", benchmark_ticker: str = DEFAULT_BENCHMARK_TICKER) -> "RiskMetrics":
        return cls(ZERO, ZERO, ZERO, ZERO, period, benchmark_ticker)

    def to_dict(self) -> Dict[str, Any]:
        return jsonable(asdict(self))


class RiskMetricsCalculator:
    """Computes RiskMetrics for a portfolio against a benchmark."""

    def __init__(
        self,
        prices: MarketPriceSource,
        benchmark_ticker: str = DEFAULT_BENCHMARK_TICKER,
        risk_free_rate: Number = DEFAULT_RISK_FREE_RATE,
        trading_days: int = TRADING_DAYS_PER_YEAR,
    ):
        self.prices = prices
        self.benchmark_ticker = benchmark_ticker
        self.risk_free_rate = to_decimal(risk_free_rate)
        self.trading_days = trading_days

    def calculate(self, portfolio: Portfolio, period: str = "1Y") -> RiskMetrics:
        """
        Calculate risk metrics for the given period.

        Args:
            portfolio: Portfolio with open positions.
            period: One of "1Y", "6M", "3M".

        Returns:
            RiskMetrics rounded to 4 decimals, or the empty value when the
            portfolio holds nothing.

        Raises:
            ValidationError: If the period is not supported.
            InsufficientDataError: If fewer than two aligned returns exist.
        """
        period = (period or "").upper()
        if period not in SUPPORTED_PERIODS:
            raise ValidationError(
                f"Unsupported period {period!r}. Use one of: {', '.join(SUPPORTED_PERIODS)}"
            )

        holdings = {p.ticker: p.total_shares for p in portfolio.positions if p.total_shares > 0}
        if not holdings:
            return RiskMetrics.empty(period, self.benchmark_ticker)

        value_series = self._portfolio_value_series(holdings, period)
        portfolio_returns = statistics.log_returns(value_series)
        benchmark_returns = statistics.log_returns(
            self.prices.get_historical_prices(self.benchmark_ticker, period) or {}
        )

        asset, benchmark = statistics.align_returns(portfolio_returns, benchmark_returns)
        if len(asset) < MIN_DATA_POINTS:
            raise InsufficientDataError(
                f"Need at least {MIN_DATA_POINTS} aligned daily returns for {period}, "
                f"got {len(asset)}",
                data_points=len(asset),
            )

        daily_vol = statistics.standard_deviation(asset)
        annual_vol = statistics.annualize_volatility(daily_vol, self.trading_days)
        annual_return = statistics.mean(asset) * self.trading_days
        beta = statistics.beta(asset, benchmark)
        sharpe = statistics.sharpe_ratio(annual_return, self.risk_free_rate, annual_vol)

        logger.debug(
            "Risk metrics for %d positions over %s: %d observations",
            len(holdings), period, len(asset),
        )

        return RiskMetrics(
            annualized_volatility=round(annual_vol, 4),
            beta=round(beta, 4),
            sharpe_ratio=round(sharpe, 4),
            annualized_return=round(annual_return, 4),
            period=period,
            benchmark_ticker=self.benchmark_ticker,
        )

    def _portfolio_value_series(self, holdings: Dict[str, Decimal], period: str) -> Dict[date, Decimal]:
        """Sum shares * close on dates where every holding has a close."""
        histories = {}
        for ticker in holdings:
            history = self.prices.get_historical_prices(ticker, period) or {}
            if not history:
                logger.warning("No price history for %s over %s", ticker, period)
            histories[ticker] = history

        common: Optional[set] = None
        for history in histories.values():
            common = set(history) if common is None else common & set(history)

        series: Dict[date, Decimal] = {}
        for day in sorted(common or ()):
            series[day] = sum(
                (holdings[t] * to_decimal(histories[t][day]) for t in holdings),
                ZERO,
            )
        return series
