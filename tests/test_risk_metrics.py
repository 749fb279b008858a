"""Tests for RiskMetricsCalculator."""

import math
from datetime import date
from decimal import Decimal

import pytest

from folio.core.analytics.risk_metrics import RiskMetrics, RiskMetricsCalculator
from folio.core.exceptions import InsufficientDataError, ValidationError
from folio.core.models import Portfolio, Position
from mocks import MockPriceSource, price_series

START = date(2024, 1, 1)
CLOSES = [100, 102, 101, 105, 107, 104, 108]


def _portfolio(**shares) -> Portfolio:
    positions = [
        Position(ticker=t, total_shares=Decimal(q), cost_basis=Decimal(q) * 100)
        for t, q in shares.items()
    ]
    return Portfolio(positions=positions, total_invested=sum(p.cost_basis for p in positions))


@pytest.fixture
def prices():
    return MockPriceSource(
        history={
            "AAPL": price_series(START, CLOSES),
            "^GSPC": price_series(START, CLOSES),
        }
    )


class TestRiskMetricsCalculator:
    def test_empty_portfolio_returns_empty_metrics(self, prices):
        metrics = RiskMetricsCalculator(prices).calculate(Portfolio(), "6M")
        assert metrics == RiskMetrics.empty("6M", "^GSPC")
        assert prices.history_requests == []

    def test_unsupported_period(self, prices):
        with pytest.raises(ValidationError, match="Unsupported period"):
            RiskMetricsCalculator(prices).calculate(_portfolio(AAPL=10), "5Y")

    def test_period_is_case_insensitive(self, prices):
        metrics = RiskMetricsCalculator(prices).calculate(_portfolio(AAPL=10), "3m")
        assert metrics.period == "3M"
        assert ("AAPL", "3M") in prices.history_requests

    def test_benchmark_identical_to_portfolio_has_beta_one(self, prices):
        metrics = RiskMetricsCalculator(prices).calculate(_portfolio(AAPL=10))
        assert metrics.beta == Decimal("1.0000")
        assert metrics.benchmark_ticker == "^GSPC"

    def test_volatility_and_return_annualized(self, prices):
        metrics = RiskMetricsCalculator(prices, risk_free_rate="0.03").calculate(_portfolio(AAPL=10))

        returns = [math.log(b / a) for a, b in zip(CLOSES, CLOSES[1:])]
        mean = sum(returns) / len(returns)
        std = math.sqrt(sum((r - mean) ** 2 for r in returns) / len(returns))
        annual_vol = std * math.sqrt(252)
        annual_return = mean * 252

        assert float(metrics.annualized_volatility) == pytest.approx(annual_vol, abs=1e-4)
        assert float(metrics.annualized_return) == pytest.approx(annual_return, abs=1e-4)
        assert float(metrics.sharpe_ratio) == pytest.approx((annual_return - 0.03) / annual_vol, abs=1e-3)

    def test_insufficient_history_raises(self):
        prices = MockPriceSource(
            history={
                "AAPL": price_series(START, [100, 101]),
                "^GSPC": price_series(START, [100, 101]),
            }
        )
        with pytest.raises(InsufficientDataError) as exc_info:
            RiskMetricsCalculator(prices).calculate(_portfolio(AAPL=10))
        assert exc_info.value.data_points == 1

    def test_missing_benchmark_raises(self):
        prices = MockPriceSource(history={"AAPL": price_series(START, CLOSES)})
        with pytest.raises(InsufficientDataError):
            RiskMetricsCalculator(prices).calculate(_portfolio(AAPL=10))

    def test_value_series_uses_common_dates(self):
        msft = price_series(START, [50, 51, 52, 53])
        del msft[date(2024, 1, 2)]
        prices = MockPriceSource(history={"AAPL": price_series(START, [100, 101, 102, 103]), "MSFT": msft})
        calc = RiskMetricsCalculator(prices)

        series = calc._portfolio_value_series({"AAPL": Decimal("1"), "MSFT": Decimal("2")}, "1Y")

        assert list(series) == [date(2024, 1, 1), date(2024, 1, 3), date(2024, 1, 4)]
        assert series[date(2024, 1, 1)] == Decimal("200")
        assert series[date(2024, 1, 4)] == Decimal("209")

    def test_to_dict(self):
        data = RiskMetrics.empty().to_dict()
        assert data["period"] == "1Y"
        assert data["beta"] == 0.0
