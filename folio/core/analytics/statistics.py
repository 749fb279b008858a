"""
Pure statistics over price and return series.

All functions are stateless and deterministic. Inputs and outputs are
Decimal; logarithms and square roots run in float and are converted back
through str() so results stay fixed-point.

Variance, standard deviation, and covariance use population formulas
(divide by N, not N-1).
"""

import math
from datetime import date
from decimal import Decimal
from typing import Dict, List, Mapping, Sequence, Tuple

from folio.core.constants import TRADING_DAYS_PER_YEAR
from folio.core.models import Number, to_decimal

ZERO = Decimal("0")


def _from_float(value: float) -> Decimal:
    return Decimal(str(value))


def log_returns(prices: Mapping[date, Number]) -> Dict[date, Decimal]:
    """
    Daily log returns r_t = ln(P_t / P_{t-1}) over consecutive dates.

    A return is skipped when the previous price is not positive. Returns
    are keyed by the later date of each pair.
    """
    ordered = sorted(prices.items())
    returns: Dict[date, Decimal] = {}
    for (_, prev), (day, price) in zip(ordered, ordered[1:]):
        prev = to_decimal(prev)
        price = to_decimal(price)
        if prev <= 0 or price <= 0:
            continue
        returns[day] = _from_float(math.log(float(price / prev)))
    return returns


def mean(values: Sequence[Number]) -> Decimal:
    if not values:
        return ZERO
    return sum((to_decimal(v) for v in values), ZERO) / len(values)


def variance(values: Sequence[Number]) -> Decimal:
    """Population variance; 0 for an empty series."""
    if not values:
        return ZERO
    avg = mean(values)
    return sum(((to_decimal(v) - avg) ** 2 for v in values), ZERO) / len(values)


def standard_deviation(values: Sequence[Number]) -> Decimal:
    """Population standard deviation; 0 for an empty series."""
    var = variance(values)
    if var <= 0:
        return ZERO
    return _from_float(math.sqrt(float(var)))


def covariance(x: Sequence[Number], y: Sequence[Number]) -> Decimal:
    """Population covariance; 0 when lengths differ or series are empty."""
    if not x or len(x) != len(y):
        return ZERO
    mean_x = mean(x)
    mean_y = mean(y)
    total = sum(
        ((to_decimal(a) - mean_x) * (to_decimal(b) - mean_y) for a, b in zip(x, y)),
        ZERO,
    )
    return total / len(x)


def annualize_volatility(daily_volatility: Number, trading_days: int = TRADING_DAYS_PER_YEAR) -> Decimal:
    return to_decimal(daily_volatility) * _from_float(math.sqrt(trading_days))


def beta(asset_returns: Sequence[Number], benchmark_returns: Sequence[Number]) -> Decimal:
    """cov(asset, benchmark) / var(benchmark); 0 when benchmark variance is 0."""
    benchmark_var = variance(benchmark_returns)
    if benchmark_var <= 0:
        return ZERO
    return covariance(asset_returns, benchmark_returns) / benchmark_var


def sharpe_ratio(annualized_return: Number, risk_free_rate: Number, annualized_volatility: Number) -> Decimal:
    """Excess return per unit of volatility; 0 when volatility is 0."""
    vol = to_decimal(annualized_volatility)
    if vol <= 0:
        return ZERO
    return (to_decimal(annualized_return) - to_decimal(risk_free_rate)) / vol


def align_returns(
    first: Mapping[date, Decimal], second: Mapping[date, Decimal]
) -> Tuple[List[Decimal], List[Decimal]]:
    """Intersect two date-keyed series into equal-length value lists."""
    common = sorted(set(first) & set(second))
    return [first[d] for d in common], [second[d] for d in common]
