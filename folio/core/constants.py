"""
Central portfolio threshold constants.

All analyzer thresholds, statistics defaults, and rebalancing limits are
defined here as the single source of truth. Import from this module instead
of hardcoding values.
"""

from decimal import Decimal

# --- Cost Basis / Allocation ---
BALANCED_THRESHOLD_PCT = Decimal("0.5")  # |current - target| <= 0.5 pts: Balanced

# --- Risk Metrics ---
DEFAULT_BENCHMARK_TICKER = "^GSPC"
DEFAULT_RISK_FREE_RATE = Decimal("0.03")
TRADING_DAYS_PER_YEAR = 252
MIN_DATA_POINTS = 2
SUPPORTED_PERIODS = ("1Y", "6M", "3M")
PERIOD_DAYS = {"1Y": 365, "6M": 182, "3M": 91}

# --- Risk Analyzer ---
CONCENTRATION_WARNING_PCT = Decimal("20")   # > 20%: Warning
CONCENTRATION_CRITICAL_PCT = Decimal("40")  # > 40%: Critical
MIN_ASSETS_INFO = 5      # < 5 positions: Info
MIN_ASSETS_WARNING = 3   # < 3 positions: Warning
SECTOR_EXPOSURE_WARNING_PCT = Decimal("50")

# --- Trend Analyzer ---
MOMENTUM_INFO_PCT = Decimal("20")
MOMENTUM_WARNING_PCT = Decimal("50")
DRAWDOWN_WARNING_PCT = Decimal("-15")
DRAWDOWN_CRITICAL_PCT = Decimal("-30")

# --- Income Analyzer ---
DIVIDEND_WINDOW_DAYS = 30

# --- Efficiency Analyzer ---
DEAD_ASSET_MIN_DAYS = 180
CASH_DRAG_PCT = Decimal("10")

# --- Rebalancing ---
REBALANCE_NOISE_THRESHOLD = Decimal("10")
TIMED_BUY_PERCENTILE = Decimal("20")
TIMED_SELL_PERCENTILE = Decimal("80")
TIMED_MAX_TICKERS = 15
TIMED_MAX_ACTIONS = 10

# Confidence bounds for timed actions
CONFIDENCE_MIN = Decimal("0.3")
CONFIDENCE_MAX = Decimal("0.95")
CONFIDENCE_DEGENERATE = Decimal("0.8")  # threshold at 0 or 100
CONFIDENCE_NO_TIMING = Decimal("0.2")
