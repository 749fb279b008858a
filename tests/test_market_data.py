"""
Test the yfinance market data adapter.

yfinance is patched throughout; no network access is needed.
"""

from datetime import date
from decimal import Decimal
from unittest.mock import MagicMock, patch

import pandas as pd
import pytest

from folio.core.exceptions import MarketDataError
from folio.data.market_data import YahooMarketData


def frame(closes, start="2024-01-02"):
    index = pd.date_range(start, periods=len(closes), freq="D")
    return pd.DataFrame({"Close": closes}, index=index)


def ticker_factory(histories):
    """Build a yf.Ticker replacement returning per-symbol frames or raising."""

    def make(symbol):
        mock = MagicMock()
        result = histories.get(symbol, pd.DataFrame())
        if isinstance(result, Exception):
            mock.history.side_effect = result
        else:
            mock.history.return_value = result
        return mock

    return make


@pytest.fixture
def market():
    return YahooMarketData(timeout=5)


class TestCurrentPrices:
    def test_latest_close(self, market):
        histories = {"AAPL": frame([180.0, 181.5, 182.25]), "MSFT": frame([400.0])}
        with patch("folio.data.market_data.yf.Ticker", side_effect=ticker_factory(histories)):
            prices = market.get_current_prices(["aapl", "MSFT"])
        assert prices == {"AAPL": Decimal("182.25"), "MSFT": Decimal("400.0")}

    def test_missing_ticker_omitted(self, market, caplog):
        histories = {"AAPL": frame([180.0])}
        with patch("folio.data.market_data.yf.Ticker", side_effect=ticker_factory(histories)):
            prices = market.get_current_prices(["AAPL", "ZZZZ"])
        assert prices == {"AAPL": Decimal("180.0")}
        assert "No price data found for ZZZZ" in caplog.text

    def test_partial_failure_tolerated(self, market):
        histories = {"AAPL": frame([180.0]), "MSFT": RuntimeError("rate limited")}
        with patch("folio.data.market_data.yf.Ticker", side_effect=ticker_factory(histories)):
            assert market.get_current_prices(["AAPL", "MSFT"]) == {"AAPL": Decimal("180.0")}

    def test_total_failure_raises(self, market):
        histories = {"AAPL": RuntimeError("offline"), "MSFT": RuntimeError("offline")}
        with patch("folio.data.market_data.yf.Ticker", side_effect=ticker_factory(histories)):
            with pytest.raises(MarketDataError, match="all tickers"):
                market.get_current_prices(["AAPL", "MSFT"])

    def test_nan_closes_dropped(self, market):
        histories = {"AAPL": frame([180.0, float("nan")])}
        with patch("folio.data.market_data.yf.Ticker", side_effect=ticker_factory(histories)):
            assert market.get_current_prices(["AAPL"]) == {"AAPL": Decimal("180.0")}

    def test_timeout_forwarded(self, market):
        mock_ticker = MagicMock()
        mock_ticker.history.return_value = frame([1.0])
        with patch("folio.data.market_data.yf.Ticker", return_value=mock_ticker):
            market.get_current_prices(["AAPL"])
        mock_ticker.history.assert_called_once_with(period="5d", timeout=5)


class TestHistoricalPrices:
    def test_keyed_by_date(self, market):
        histories = {"AAPL": frame([100.0, 101.0, 102.0])}
        with patch("folio.data.market_data.yf.Ticker", side_effect=ticker_factory(histories)):
            history = market.get_historical_prices("AAPL", "6M")
        assert history == {
            date(2024, 1, 2): Decimal("100.0"),
            date(2024, 1, 3): Decimal("101.0"),
            date(2024, 1, 4): Decimal("102.0"),
        }

    @pytest.mark.parametrize("period,expected", [("1Y", "1y"), ("6m", "6mo"), ("3M", "3mo")])
    def test_period_mapping(self, market, period, expected):
        mock_ticker = MagicMock()
        mock_ticker.history.return_value = frame([1.0])
        with patch("folio.data.market_data.yf.Ticker", return_value=mock_ticker):
            market.get_historical_prices("AAPL", period)
        mock_ticker.history.assert_called_once_with(period=expected, timeout=5)

    def test_failure_returns_empty(self, market):
        histories = {"AAPL": RuntimeError("offline")}
        with patch("folio.data.market_data.yf.Ticker", side_effect=ticker_factory(histories)):
            assert market.get_historical_prices("AAPL") == {}

    def test_no_data_returns_empty(self, market):
        with patch("folio.data.market_data.yf.Ticker", side_effect=ticker_factory({})):
            assert market.get_historical_prices("AAPL") == {}
