"""Price data fetching via Yahoo Finance.

Implements the market price source used by the portfolio manager, the
trend analyzer, timed rebalancing, and risk metrics. Tickers without data
are logged and omitted; no retries are attempted here.
"""

import logging
from datetime import date
from decimal import Decimal
from typing import Dict, Iterable, Optional

import pandas as pd
import yfinance as yf

from folio.config import config
from folio.core.exceptions import MarketDataError

logger = logging.getLogger(__name__)

# Engine periods to yfinance period strings
PERIOD_MAP = {"1Y": "1y", "6M": "6mo", "3M": "3mo"}

# Short window so weekends and holidays still return a last close
CURRENT_PRICE_PERIOD = "5d"


def _close_series(hist: Optional[pd.DataFrame]) -> pd.Series:
    if hist is None or hist.empty or "Close" not in hist:
        return pd.Series(dtype="float64")
    return hist["Close"].dropna()


class YahooMarketData:
    """yfinance-backed current and historical closes."""

    def __init__(self, timeout: Optional[int] = None):
        self.timeout = timeout or config.price_timeout

    def _history(self, ticker: str, period: str) -> pd.DataFrame:
        return yf.Ticker(ticker).history(period=period, timeout=self.timeout)

    def get_current_prices(self, tickers: Iterable[str]) -> Dict[str, Decimal]:
        """
        Fetch the latest close for each ticker.

        Args:
            tickers: Ticker symbols.

        Returns:
            {ticker: price} for tickers with data.

        Raises:
            MarketDataError: If every requested ticker failed with an error.
        """
        tickers = [t.upper() for t in tickers]
        prices: Dict[str, Decimal] = {}
        errors = 0
        for ticker in tickers:
            try:
                closes = _close_series(self._history(ticker, CURRENT_PRICE_PERIOD))
            except Exception as e:
                errors += 1
                logger.warning("Price fetch failed for %s: %s", ticker, e)
                continue
            if closes.empty:
                logger.warning("No price data found for %s", ticker)
                continue
            prices[ticker] = Decimal(str(round(float(closes.iloc[-1]), 6)))

        if tickers and errors == len(tickers):
            raise MarketDataError(f"Price fetch failed for all tickers: {', '.join(tickers)}")
        return prices

    def get_historical_prices(self, ticker: str, period: str = "1Y") -> Dict[date, Decimal]:
        """
        Fetch daily closes for a period.

        Args:
            ticker: Ticker symbol.
            period: "1Y", "6M", or "3M".

        Returns:
            {date: close}; empty when the provider has no data or fails.
        """
        yf_period = PERIOD_MAP.get(period.upper(), "1y")
        try:
            closes = _close_series(self._history(ticker.upper(), yf_period))
        except Exception as e:
            logger.warning("History fetch failed for %s (%s): %s", ticker, period, e)
            return {}

        if closes.empty:
            logger.warning("No history found for %s (%s)", ticker, period)
            return {}

        return {
            ts.date(): Decimal(str(round(float(value), 6)))
            for ts, value in closes.items()
        }
