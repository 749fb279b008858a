"""
Timed rebalancing gated by 1-year price percentiles.

Sells are emphasized when a holding trades near the top of its 1-year range,
buys when it trades near the bottom. Buys are funded from cash plus sell
proceeds and scaled down when demand exceeds funds. An optional optimizer
may re-rank the final actions; any optimizer failure keeps the
deterministic result.
"""

import logging
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, List, Optional, Protocol

from folio.config import config
from folio.core.constants import (
    CONFIDENCE_DEGENERATE,
    CONFIDENCE_MAX,
    CONFIDENCE_MIN,
    CONFIDENCE_NO_TIMING,
)
from folio.core.models import Number, Portfolio, Position, jsonable, to_decimal
from folio.core.rebalancing.engine import position_allocation
from folio.core.sources import MarketPriceSource

logger = logging.getLogger(__name__)

ZERO = Decimal("0")
HUNDRED = Decimal("100")
CENTS = Decimal("0.01")


@dataclass
class TimedRebalancingOptions:
    buy_percentile_threshold: Decimal = field(
        default_factory=lambda: to_decimal(config.timed_buy_percentile)
    )
    sell_percentile_threshold: Decimal = field(
        default_factory=lambda: to_decimal(config.timed_sell_percentile)
    )
    noise_threshold: Decimal = field(
        default_factory=lambda: to_decimal(config.rebalance_noise_threshold)
    )
    max_tickers_for_timing: int = field(default_factory=lambda: config.timed_max_tickers)
    default_max_actions: int = field(default_factory=lambda: config.timed_max_actions)


@dataclass
class TimedAction:
    ticker: str
    security_name: Optional[str]
    action_type: str  # "buy" or "sell"
    amount: Decimal  # always positive
    current_allocation_percentage: Decimal
    target_allocation_percentage: Decimal
    percentile_1y: Optional[Decimal]
    current_price: Optional[Decimal]
    confidence: Decimal
    reason: str
    priority: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return jsonable(asdict(self))


@dataclass
class TimedRebalancingActionsResponse:
    total_portfolio_value: Decimal
    cash_available: Decimal
    total_buy_amount: Decimal
    total_sell_amount: Decimal
    net_cash_flow: Decimal
    buy_percentile_threshold: Decimal
    sell_percentile_threshold: Decimal
    generated_at_utc: datetime
    sells: List[TimedAction] = field(default_factory=list)
    buys: List[TimedAction] = field(default_factory=list)
    optimizer_applied: bool = False
    optimizer_summary: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return jsonable(asdict(self))


# ============================================================================
# Optimizer contract
# ============================================================================


@dataclass
class OptimizerCandidate:
    ticker: str
    amount: Decimal
    percentile_1y: Optional[Decimal]
    gap_percentage: Decimal


@dataclass
class OptimizerRequest:
    total_portfolio_value: Decimal
    cash_available: Decimal
    max_actions: int
    buy_percentile_threshold: Decimal
    sell_percentile_threshold: Decimal
    securities: List[Dict[str, Any]]
    sell_candidates: List[OptimizerCandidate]
    buy_candidates: List[OptimizerCandidate]


@dataclass
class OptimizerAction:
    action_type: str
    ticker: str
    amount: Decimal
    reason: str
    confidence: Decimal


@dataclass
class OptimizerResponse:
    success: bool
    actions: List[OptimizerAction] = field(default_factory=list)
    summary: Optional[str] = None
    error: Optional[str] = None


class RebalancingOptimizer(Protocol):
    """External prioritization step; returns a ranked subset of actions."""

    @property
    def is_enabled(self) -> bool:
        ...

    def optimize(self, request: OptimizerRequest) -> OptimizerResponse:
        ...


class NullRebalancingOptimizer:
    """Disabled optimizer used when none is configured."""

    is_enabled = False

    def optimize(self, request: OptimizerRequest) -> OptimizerResponse:
        return OptimizerResponse(success=False, error="Optimizer not configured")


# ============================================================================
# Service
# ============================================================================


@dataclass
class _Candidate:
    position: Position
    current_pct: Decimal
    target_pct: Decimal
    amount: Decimal  # signed
    percentile: Optional[Decimal] = None
    current_price: Optional[Decimal] = None

    @property
    def gap(self) -> Decimal:
        return abs(self.target_pct - self.current_pct)


def calculate_percentile(closes: List[Decimal], current_price: Decimal) -> Optional[Decimal]:
    """Share of positive closes at or below the current price, in percent."""
    valid = [c for c in closes if c > 0]
    if not valid or current_price is None or current_price <= 0:
        return None
    below = sum(1 for c in valid if c <= current_price)
    return round(Decimal(below) / Decimal(len(valid)) * HUNDRED, 2)


def sell_confidence(percentile: Optional[Decimal], threshold: Decimal) -> Decimal:
    if percentile is None:
        return CONFIDENCE_NO_TIMING
    if percentile < threshold:
        return CONFIDENCE_MIN
    denominator = HUNDRED - threshold
    if denominator <= 0:
        return CONFIDENCE_DEGENERATE
    return _clamp((percentile - threshold) / denominator)


def buy_confidence(percentile: Optional[Decimal], threshold: Decimal) -> Decimal:
    if percentile is None:
        return CONFIDENCE_NO_TIMING
    if percentile > threshold:
        return CONFIDENCE_MIN
    if threshold <= 0:
        return CONFIDENCE_DEGENERATE
    return _clamp((threshold - percentile) / threshold)


def _clamp(value: Decimal) -> Decimal:
    return round(max(CONFIDENCE_MIN, min(CONFIDENCE_MAX, value)), 2)


class TimedRebalancingService:
    """Produces percentile-gated, cash-funded rebalancing actions."""

    def __init__(
        self,
        prices: MarketPriceSource,
        optimizer: Optional[RebalancingOptimizer] = None,
        options: Optional[TimedRebalancingOptions] = None,
    ):
        self.prices = prices
        self.optimizer = optimizer or NullRebalancingOptimizer()
        self.options = options or TimedRebalancingOptions()

    def get_timed_actions(
        self,
        portfolio: Portfolio,
        investment_amount: Optional[Number] = None,
        max_actions: Optional[int] = None,
        use_optimizer: bool = False,
    ) -> TimedRebalancingActionsResponse:
        """
        Build timed sell/buy actions for the portfolio.

        Args:
            portfolio: Portfolio with allocation fields populated.
            investment_amount: New money added to available cash.
            max_actions: Cap per side; defaults to the configured limit.
            use_optimizer: Let the optimizer re-rank actions when enabled.

        Returns:
            TimedRebalancingActionsResponse with funded buys and all sells.
        """
        opts = self.options
        if not max_actions or max_actions <= 0:
            max_actions = opts.default_max_actions
        total_value = portfolio.total_value
        if total_value <= 0 or not portfolio.positions:
            return self._empty_response()
        cash = (portfolio.cash_amount or ZERO) + to_decimal(investment_amount or 0)

        candidates = self._raw_candidates(portfolio, total_value)
        self._attach_timing(candidates)

        sells = self._select(
            [c for c in candidates if c.amount < 0],
            lambda c: c.percentile is not None and c.percentile >= opts.sell_percentile_threshold,
            max_actions,
        )
        buys = self._select(
            [c for c in candidates if c.amount > 0],
            lambda c: c.percentile is not None and c.percentile <= opts.buy_percentile_threshold,
            max_actions,
        )

        sell_actions = [self._to_action(c, "sell") for c in sells]
        buy_actions = self._fund_buys([self._to_action(c, "buy") for c in buys], sell_actions, cash)

        response = TimedRebalancingActionsResponse(
            total_portfolio_value=total_value.quantize(CENTS),
            cash_available=cash.quantize(CENTS),
            total_buy_amount=ZERO,
            total_sell_amount=ZERO,
            net_cash_flow=ZERO,
            buy_percentile_threshold=opts.buy_percentile_threshold,
            sell_percentile_threshold=opts.sell_percentile_threshold,
            generated_at_utc=datetime.now(timezone.utc).replace(tzinfo=None),
            sells=sell_actions,
            buys=buy_actions,
        )

        if use_optimizer and self.optimizer.is_enabled:
            self._apply_optimizer(response, candidates, max_actions)

        self._update_totals(response)
        return response

    # ------------------------------------------------------------------

    def _empty_response(self) -> TimedRebalancingActionsResponse:
        return TimedRebalancingActionsResponse(
            total_portfolio_value=ZERO.quantize(CENTS),
            cash_available=ZERO.quantize(CENTS),
            total_buy_amount=ZERO.quantize(CENTS),
            total_sell_amount=ZERO.quantize(CENTS),
            net_cash_flow=ZERO.quantize(CENTS),
            buy_percentile_threshold=self.options.buy_percentile_threshold,
            sell_percentile_threshold=self.options.sell_percentile_threshold,
            generated_at_utc=datetime.now(timezone.utc).replace(tzinfo=None),
        )

    def _raw_candidates(self, portfolio: Portfolio, total_value: Decimal) -> List[_Candidate]:
        if total_value <= 0:
            return []
        candidates = []
        for position in portfolio.positions:
            if position.target_allocation_percentage is None:
                continue
            current_pct = position_allocation(position, total_value)
            target_pct = position.target_allocation_percentage
            amount = (target_pct - current_pct) / 100 * total_value
            if abs(amount) < self.options.noise_threshold:
                continue
            candidates.append(_Candidate(position, current_pct, target_pct, amount))
        return candidates

    def _attach_timing(self, candidates: List[_Candidate]) -> None:
        ranked = sorted(candidates, key=lambda c: abs(c.amount), reverse=True)
        timed = ranked[: self.options.max_tickers_for_timing]
        if not timed:
            return

        tickers = [c.position.ticker for c in timed]
        current = self.prices.get_current_prices(tickers) or {}

        for candidate in timed:
            position = candidate.position
            price = current.get(position.ticker) or position.current_price
            if (price is None or price <= 0) and position.total_shares > 0 and position.current_market_value:
                price = position.current_market_value / position.total_shares
            candidate.current_price = price

            history = self.prices.get_historical_prices(position.ticker, "1Y") or {}
            candidate.percentile = calculate_percentile(
                [to_decimal(v) for v in history.values()], price
            )
            if candidate.percentile is None:
                logger.info("Timing unavailable for %s", position.ticker)

    @staticmethod
    def _select(candidates: List[_Candidate], accept, max_actions: int) -> List[_Candidate]:
        selected = [c for c in candidates if accept(c)]
        if not selected:
            # Nothing passes the timing filter: fall back to the largest gaps
            selected = list(candidates)
        selected.sort(key=lambda c: c.gap, reverse=True)
        return selected[:max_actions]

    def _to_action(self, candidate: _Candidate, action_type: str) -> TimedAction:
        opts = self.options
        pctl = candidate.percentile
        if action_type == "sell":
            confidence = sell_confidence(pctl, opts.sell_percentile_threshold)
            if pctl is None:
                reason = "Overweight vs target; timing unavailable."
            elif pctl >= opts.sell_percentile_threshold:
                reason = f"Overweight vs target and expensive vs 1Y history (pctl={pctl:.0f})."
            else:
                reason = f"Overweight vs target; largest gap (pctl={pctl:.0f})."
        else:
            confidence = buy_confidence(pctl, opts.buy_percentile_threshold)
            if pctl is None:
                reason = "Underweight vs target; timing unavailable."
            elif pctl <= opts.buy_percentile_threshold:
                reason = f"Underweight vs target and cheap vs 1Y history (pctl={pctl:.0f})."
            else:
                reason = f"Underweight vs target; largest gap (pctl={pctl:.0f})."

        return TimedAction(
            ticker=candidate.position.ticker,
            security_name=candidate.position.security_name,
            action_type=action_type,
            amount=abs(candidate.amount).quantize(CENTS),
            current_allocation_percentage=round(candidate.current_pct, 2),
            target_allocation_percentage=round(candidate.target_pct, 2),
            percentile_1y=pctl,
            current_price=candidate.current_price,
            confidence=confidence,
            reason=reason,
        )

    def _fund_buys(self, buys: List[TimedAction], sells: List[TimedAction], cash: Decimal) -> List[TimedAction]:
        """Cap buys to cash plus sell proceeds, scaling proportionally."""
        available = cash + sum((s.amount for s in sells), ZERO)
        demand = sum((b.amount for b in buys), ZERO)
        if not buys or available <= 0:
            return []
        if demand <= available:
            return buys

        scale = available / demand
        logger.info("Scaling buys by %.4f to fit %s available", scale, available)
        funded = []
        for action in buys:
            scaled = (action.amount * scale).quantize(CENTS)
            if scaled < self.options.noise_threshold:
                continue
            action.amount = scaled
            funded.append(action)
        return funded

    def _apply_optimizer(
        self, response: TimedRebalancingActionsResponse, candidates: List[_Candidate], max_actions: int
    ) -> None:
        request = OptimizerRequest(
            total_portfolio_value=response.total_portfolio_value,
            cash_available=response.cash_available,
            max_actions=max_actions,
            buy_percentile_threshold=response.buy_percentile_threshold,
            sell_percentile_threshold=response.sell_percentile_threshold,
            securities=[
                {
                    "ticker": c.position.ticker,
                    "name": c.position.security_name,
                    "current_pct": c.current_pct,
                    "target_pct": c.target_pct,
                    "percentile_1y": c.percentile,
                }
                for c in candidates
            ],
            sell_candidates=[_candidate_of(a) for a in response.sells],
            buy_candidates=[_candidate_of(a) for a in response.buys],
        )

        try:
            result = self.optimizer.optimize(request)
        except Exception:
            logger.exception("Rebalancing optimizer failed; keeping deterministic actions")
            return

        if not result.success or not result.actions:
            logger.warning("Optimizer returned no usable actions: %s", result.error)
            return

        known = {(a.action_type, a.ticker): a for a in response.sells + response.buys}
        sells: List[TimedAction] = []
        buys: List[TimedAction] = []
        for priority, item in enumerate(result.actions, start=1):
            base = known.get((item.action_type.lower(), item.ticker.upper()))
            if base is None:
                logger.debug("Ignoring optimizer action for unknown %s %s", item.action_type, item.ticker)
                continue
            action = TimedAction(
                ticker=base.ticker,
                security_name=base.security_name,
                action_type=base.action_type,
                amount=to_decimal(item.amount).quantize(CENTS),
                current_allocation_percentage=base.current_allocation_percentage,
                target_allocation_percentage=base.target_allocation_percentage,
                percentile_1y=base.percentile_1y,
                current_price=base.current_price,
                confidence=to_decimal(item.confidence),
                reason=item.reason or base.reason,
                priority=priority,
            )
            (sells if action.action_type == "sell" else buys).append(action)

        response.sells = sells
        response.buys = buys
        response.optimizer_applied = True
        response.optimizer_summary = result.summary

    @staticmethod
    def _update_totals(response: TimedRebalancingActionsResponse) -> None:
        total_buy = sum((b.amount for b in response.buys), ZERO)
        total_sell = sum((s.amount for s in response.sells), ZERO)
        response.total_buy_amount = total_buy.quantize(CENTS)
        response.total_sell_amount = total_sell.quantize(CENTS)
        response.net_cash_flow = (total_buy - total_sell).quantize(CENTS)


def _candidate_of(action: TimedAction) -> OptimizerCandidate:
    return OptimizerCandidate(
        ticker=action.ticker,
        amount=action.amount,
        percentile_1y=action.percentile_1y,
        gap_percentage=abs(action.target_allocation_percentage - action.current_allocation_percentage),
    )
