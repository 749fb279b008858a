"""Tests for the pure statistics functions."""

import math
from datetime import date
from decimal import Decimal

import pytest

from folio.core.analytics import statistics as stats


def _float_beta(asset, bench):
    n = len(asset)
    ma = sum(asset) / n
    mb = sum(bench) / n
    cov = sum((a - ma) * (b - mb) for a, b in zip(asset, bench)) / n
    var = sum((b - mb) ** 2 for b in bench) / n
    return cov / var


class TestLogReturns:
    def test_consecutive_dates(self):
        prices = {date(2024, 1, 1): 100, date(2024, 1, 2): 110, date(2024, 1, 3): 121}
        returns = stats.log_returns(prices)
        assert list(returns) == [date(2024, 1, 2), date(2024, 1, 3)]
        for value in returns.values():
            assert float(value) == pytest.approx(math.log(1.1))

    def test_unsorted_input(self):
        prices = {date(2024, 1, 3): 121, date(2024, 1, 1): 100, date(2024, 1, 2): 110}
        assert list(stats.log_returns(prices)) == [date(2024, 1, 2), date(2024, 1, 3)]

    def test_skips_non_positive_previous_price(self):
        prices = {date(2024, 1, 1): 0, date(2024, 1, 2): 100, date(2024, 1, 3): 110}
        returns = stats.log_returns(prices)
        assert list(returns) == [date(2024, 1, 3)]

    def test_returns_are_decimal(self):
        returns = stats.log_returns({date(2024, 1, 1): 1, date(2024, 1, 2): 2})
        assert all(isinstance(v, Decimal) for v in returns.values())

    def test_too_short(self):
        assert stats.log_returns({date(2024, 1, 1): 100}) == {}


class TestMoments:
    def test_population_variance(self):
        assert stats.variance([1, 2, 3, 4]) == Decimal("1.25")

    def test_population_std(self):
        assert float(stats.standard_deviation([1, 2, 3, 4])) == pytest.approx(math.sqrt(1.25))

    def test_empty(self):
        assert stats.variance([]) == 0
        assert stats.standard_deviation([]) == 0
        assert stats.mean([]) == 0

    def test_covariance(self):
        # cov([1,2,3],[2,4,6]) = 2 * var([1,2,3]) = 2 * 2/3
        assert float(stats.covariance([1, 2, 3], [2, 4, 6])) == pytest.approx(4 / 3)

    def test_covariance_length_mismatch(self):
        assert stats.covariance([1, 2, 3], [1, 2]) == 0

    def test_covariance_empty(self):
        assert stats.covariance([], []) == 0


class TestRiskRatios:
    def test_beta_matches_independent_calculation(self):
        asset = [0.01, 0.02, -0.01]
        bench = [0.008, 0.015, -0.012]
        result = stats.beta([Decimal(str(a)) for a in asset], [Decimal(str(b)) for b in bench])
        assert float(result) == pytest.approx(_float_beta(asset, bench), abs=1e-6)

    def test_beta_zero_benchmark_variance(self):
        assert stats.beta([0.01, 0.02], [0.01, 0.01]) == 0

    def test_annualize_volatility(self):
        assert float(stats.annualize_volatility("0.01")) == pytest.approx(0.01 * math.sqrt(252))

    def test_annualize_custom_days(self):
        assert float(stats.annualize_volatility("0.01", trading_days=365)) == pytest.approx(0.01 * math.sqrt(365))

    def test_sharpe(self):
        assert stats.sharpe_ratio("0.12", "0.03", "0.18") == Decimal("0.5")

    def test_sharpe_zero_volatility(self):
        assert stats.sharpe_ratio("0.12", "0.03", 0) == 0


class TestAlignReturns:
    def test_intersects_dates(self):
        a = {date(2024, 1, 2): Decimal("0.1"), date(2024, 1, 3): Decimal("0.2")}
        b = {date(2024, 1, 3): Decimal("0.3"), date(2024, 1, 4): Decimal("0.4")}
        assert stats.align_returns(a, b) == ([Decimal("0.2")], [Decimal("0.3")])
