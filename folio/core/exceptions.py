"""
Custom exceptions for Folio.

Provides a hierarchy of exceptions shared by the engines, the persistence
adapter, and the market data adapter.
"""

from typing import Iterable


class FolioError(Exception):
    """Base exception for all Folio errors."""

    pass


class ValidationError(FolioError, ValueError):
    """
    Raised when caller-supplied data violates a precondition.

    Examples: non-positive share quantity, non-zero split price,
    negative dividend price. Raised before any derived state is touched.
    """

    pass


class NotFoundError(FolioError, LookupError):
    """Raised when referenced securities are absent from the catalog."""

    def __init__(self, tickers: Iterable[str], message: str = None):
        self.tickers = sorted(set(tickers))
        if message is None:
            message = f"Securities not found for tickers: {', '.join(self.tickers)}"
        super().__init__(message)


class InsufficientDataError(FolioError):
    """
    Raised when a price series is too short for statistics.

    At least two aligned return observations are required.
    """

    def __init__(self, message: str, data_points: int = 0):
        self.data_points = data_points
        super().__init__(message)


class MarketDataError(FolioError):
    """Raised when the market data provider fails for every requested ticker."""

    pass


class AnalysisCancelledError(FolioError):
    """Raised when insight generation is cancelled before completion."""

    def __init__(self, message: str = "Insight analysis was cancelled"):
        super().__init__(message)
