"""Rebalancing engines: standard, smart (new money), and timed."""

from folio.core.rebalancing.engine import (
    RebalancingAction,
    RebalancingActions,
    RebalancingEngine,
    SmartRebalancingRequest,
    SmartRebalancingResponse,
    SmartRecommendation,
)
from folio.core.rebalancing.timed import (
    NullRebalancingOptimizer,
    OptimizerAction,
    OptimizerRequest,
    OptimizerResponse,
    RebalancingOptimizer,
    TimedAction,
    TimedRebalancingActionsResponse,
    TimedRebalancingOptions,
    TimedRebalancingService,
)

__all__ = [
    "NullRebalancingOptimizer",
    "OptimizerAction",
    "OptimizerRequest",
    "OptimizerResponse",
    "RebalancingAction",
    "RebalancingActions",
    "RebalancingEngine",
    "RebalancingOptimizer",
    "SmartRebalancingRequest",
    "SmartRebalancingResponse",
    "SmartRecommendation",
    "TimedAction",
    "TimedRebalancingActionsResponse",
    "TimedRebalancingOptions",
    "TimedRebalancingService",
]
