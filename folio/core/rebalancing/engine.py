"""
Standard and smart rebalancing.

Provides:
- Standard rebalancing: buy/sell amounts that move every holding to its
  target weight, with totals and net cash flow
- Smart rebalancing: distributes new money across underweight holdings in
  proportion to their allocation gap
"""

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, List, Optional

from folio.core.constants import REBALANCE_NOISE_THRESHOLD
from folio.core.exceptions import ValidationError
from folio.core.models import Number, Portfolio, Position, jsonable, to_decimal
from folio.core.portfolio.calculator import calculate_current_allocation_percentage

logger = logging.getLogger(__name__)

ZERO = Decimal("0")
CENTS = Decimal("0.01")


def _money(value: Decimal) -> Decimal:
    return value.quantize(CENTS)


@dataclass
class RebalancingAction:
    ticker: str
    security_name: Optional[str]
    current_allocation_percentage: Decimal
    target_allocation_percentage: Decimal
    difference_value: Decimal  # positive = buy, negative = sell

    @property
    def action_type(self) -> str:
        return "buy" if self.difference_value > 0 else "sell"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "ticker": self.ticker,
            "security_name": self.security_name,
            "action_type": self.action_type,
            "current_allocation_percentage": jsonable(self.current_allocation_percentage),
            "target_allocation_percentage": jsonable(self.target_allocation_percentage),
            "difference_value": jsonable(self.difference_value),
        }


@dataclass
class RebalancingActions:
    actions: List[RebalancingAction] = field(default_factory=list)
    total_portfolio_value: Decimal = ZERO
    total_buy_amount: Decimal = ZERO
    total_sell_amount: Decimal = ZERO
    net_cash_flow: Decimal = ZERO

    @classmethod
    def empty(cls) -> "RebalancingActions":
        return cls()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "actions": [a.to_dict() for a in self.actions],
            "total_portfolio_value": jsonable(self.total_portfolio_value),
            "total_buy_amount": jsonable(self.total_buy_amount),
            "total_sell_amount": jsonable(self.total_sell_amount),
            "net_cash_flow": jsonable(self.net_cash_flow),
        }


@dataclass
class SmartRebalancingRequest:
    investment_amount: Decimal
    max_securities: Optional[int] = None
    only_buy_underweight: bool = True

    def __post_init__(self) -> None:
        self.investment_amount = to_decimal(self.investment_amount)


@dataclass
class SmartRecommendation:
    ticker: str
    security_name: Optional[str]
    current_allocation_percentage: Decimal
    target_allocation_percentage: Decimal
    gap_score: Decimal
    recommended_buy_amount: Decimal

    def to_dict(self) -> Dict[str, Any]:
        return jsonable(self.__dict__)


@dataclass
class SmartRebalancingResponse:
    recommendations: List[SmartRecommendation] = field(default_factory=list)
    total_investment_amount: Decimal = ZERO
    securities_count: int = 0

    @classmethod
    def empty(cls, investment_amount: Number = ZERO) -> "SmartRebalancingResponse":
        return cls(total_investment_amount=to_decimal(investment_amount))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "recommendations": [r.to_dict() for r in self.recommendations],
            "total_investment_amount": jsonable(self.total_investment_amount),
            "securities_count": self.securities_count,
        }


def position_allocation(position: Position, total_value: Decimal) -> Decimal:
    """Current weight of a position, reusing the precomputed value when present."""
    if position.current_allocation_percentage is not None:
        return position.current_allocation_percentage
    value = position.current_market_value
    if value is None:
        value = position.cost_basis
    return calculate_current_allocation_percentage(value, total_value)


class RebalancingEngine:
    """Compares current against target allocation and proposes trades."""

    def __init__(self, noise_threshold: Number = REBALANCE_NOISE_THRESHOLD):
        self.noise_threshold = to_decimal(noise_threshold)

    def get_rebalancing_actions(self, portfolio: Portfolio) -> RebalancingActions:
        """
        Buy/sell amounts to move each holding to its target weight.

        Missing targets count as 0%, so untargeted holdings are sold.
        Actions smaller than the noise threshold are dropped.

        Returns:
            RebalancingActions ordered by absolute amount, largest first.
        """
        total_value = portfolio.total_value
        if not portfolio.positions or total_value <= 0:
            return RebalancingActions.empty()

        actions: List[RebalancingAction] = []
        for position in portfolio.positions:
            current_pct = position_allocation(position, total_value)
            target_pct = position.target_allocation_percentage or ZERO
            difference = (target_pct - current_pct) / 100 * total_value
            if abs(difference) < self.noise_threshold:
                continue
            actions.append(
                RebalancingAction(
                    ticker=position.ticker,
                    security_name=position.security_name,
                    current_allocation_percentage=round(current_pct, 2),
                    target_allocation_percentage=round(target_pct, 2),
                    difference_value=_money(difference),
                )
            )

        actions.sort(key=lambda a: abs(a.difference_value), reverse=True)

        total_buy = sum((a.difference_value for a in actions if a.difference_value > 0), ZERO)
        total_sell = sum((-a.difference_value for a in actions if a.difference_value < 0), ZERO)

        return RebalancingActions(
            actions=actions,
            total_portfolio_value=_money(total_value),
            total_buy_amount=_money(total_buy),
            total_sell_amount=_money(total_sell),
            net_cash_flow=_money(total_buy - total_sell),
        )

    def get_smart_recommendations(
        self, portfolio: Portfolio, request: SmartRebalancingRequest
    ) -> SmartRebalancingResponse:
        """
        Distribute new money across holdings by allocation gap.

        Each candidate receives ``investment * gap_i / sum(positive gaps)``.

        Raises:
            ValidationError: If the amount or max_securities is not positive.
        """
        if request.investment_amount <= 0:
            raise ValidationError("Investment amount must be greater than zero")
        if request.max_securities is not None and request.max_securities <= 0:
            raise ValidationError("Max securities must be greater than zero")

        total_value = portfolio.total_value
        candidates = []
        for position in portfolio.positions:
            if position.target_allocation_percentage is None:
                continue
            current_pct = position_allocation(position, total_value)
            gap = position.target_allocation_percentage - current_pct
            if request.only_buy_underweight and gap <= 0:
                continue
            candidates.append((position, current_pct, gap))

        candidates.sort(key=lambda c: c[2], reverse=True)
        if request.max_securities is not None:
            candidates = candidates[: request.max_securities]

        total_gap = sum((gap for _, _, gap in candidates if gap > 0), ZERO)
        if not candidates or total_gap <= 0:
            logger.info("No underweight holdings to receive new investment")
            return SmartRebalancingResponse.empty(request.investment_amount)

        recommendations = []
        for position, current_pct, gap in candidates:
            amount = request.investment_amount * gap / total_gap if gap > 0 else ZERO
            recommendations.append(
                SmartRecommendation(
                    ticker=position.ticker,
                    security_name=position.security_name,
                    current_allocation_percentage=round(current_pct, 2),
                    target_allocation_percentage=round(position.target_allocation_percentage, 2),
                    gap_score=round(gap, 2),
                    recommended_buy_amount=_money(amount),
                )
            )

        return SmartRebalancingResponse(
            recommendations=recommendations,
            total_investment_amount=_money(request.investment_amount),
            securities_count=len(recommendations),
        )
