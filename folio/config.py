"""
Configuration management for Folio.

Centralizes all configuration from environment variables with sensible defaults.
This is the SINGLE SOURCE OF TRUTH for all application configuration.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

# Load .env file if present
load_dotenv()


@dataclass
class Config:
    """
    Application configuration loaded from environment variables.

    Optional:
        FOLIO_DB_PATH: Path to SQLite database
        FOLIO_BENCHMARK_TICKER: Benchmark used for beta (default ^GSPC)
        FOLIO_RISK_FREE_RATE: Annual risk-free rate as a fraction
        FOLIO_TRADING_DAYS: Trading days per year for annualization
        FOLIO_REBALANCE_NOISE_THRESHOLD: Minimum rebalancing action amount
        FOLIO_TIMED_*: Timed rebalancing percentile thresholds and limits
        FOLIO_PRICE_TIMEOUT: Market data request timeout in seconds
        FOLIO_INSIGHT_WORKERS: Thread pool size for insight analyzers
        FOLIO_LOG_LEVEL: Root log level for the CLI
    """

    # Storage paths
    db_path: Path = field(
        default_factory=lambda: Path(
            os.getenv("FOLIO_DB_PATH", "./data/folio.db")
        )
    )

    # ========================================================================
    # Risk Metrics
    # ========================================================================
    benchmark_ticker: str = field(
        default_factory=lambda: os.getenv("FOLIO_BENCHMARK_TICKER", "^GSPC")
    )
    risk_free_rate: float = field(
        default_factory=lambda: float(
            os.getenv("FOLIO_RISK_FREE_RATE", "0.03")
        )
    )
    trading_days: int = field(
        default_factory=lambda: int(
            os.getenv("FOLIO_TRADING_DAYS", "252")
        )
    )

    # ========================================================================
    # Rebalancing
    # Amounts are in portfolio currency, percentiles are 0-100
    # ========================================================================
    rebalance_noise_threshold: float = field(
        default_factory=lambda: float(
            os.getenv("FOLIO_REBALANCE_NOISE_THRESHOLD", "10")
        )
    )
    timed_buy_percentile: float = field(
        default_factory=lambda: float(
            os.getenv("FOLIO_TIMED_BUY_PERCENTILE", "20")
        )
    )
    timed_sell_percentile: float = field(
        default_factory=lambda: float(
            os.getenv("FOLIO_TIMED_SELL_PERCENTILE", "80")
        )
    )
    timed_max_tickers: int = field(
        default_factory=lambda: int(
            os.getenv("FOLIO_TIMED_MAX_TICKERS", "15")
        )
    )
    timed_max_actions: int = field(
        default_factory=lambda: int(
            os.getenv("FOLIO_TIMED_MAX_ACTIONS", "10")
        )
    )

    # ========================================================================
    # Market Data & Insights
    # ========================================================================
    price_timeout: int = field(
        default_factory=lambda: int(
            os.getenv("FOLIO_PRICE_TIMEOUT", "10")
        )
    )
    insight_workers: int = field(
        default_factory=lambda: int(
            os.getenv("FOLIO_INSIGHT_WORKERS", "4")
        )
    )

    log_level: str = field(
        default_factory=lambda: os.getenv("FOLIO_LOG_LEVEL", "WARNING").upper()
    )

    def __post_init__(self) -> None:
        """Convert string paths to Path objects if needed."""
        if isinstance(self.db_path, str):
            self.db_path = Path(self.db_path)

    def validate(self) -> None:
        """
        Validate configuration ranges.

        Raises:
            ValidationError: If a threshold or limit is out of range.
        """
        from folio.core.exceptions import ValidationError

        for name in ("timed_buy_percentile", "timed_sell_percentile"):
            value = getattr(self, name)
            if not 0 <= value <= 100:
                raise ValidationError(f"{name} must be between 0 and 100, got {value}")

        if self.timed_buy_percentile > self.timed_sell_percentile:
            raise ValidationError(
                "timed_buy_percentile cannot exceed timed_sell_percentile "
                f"({self.timed_buy_percentile} > {self.timed_sell_percentile})"
            )

        if self.rebalance_noise_threshold < 0:
            raise ValidationError("rebalance_noise_threshold cannot be negative")

        for name in ("trading_days", "insight_workers", "timed_max_tickers", "timed_max_actions"):
            if getattr(self, name) <= 0:
                raise ValidationError(f"{name} must be greater than zero")

    def ensure_directories(self) -> None:
        """Create data directories if they don't exist."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)


# Global configuration instance
config = Config()
