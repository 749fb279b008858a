"""Mock helpers for Folio tests."""

from .mock_sources import (
    MockCashSource,
    MockPriceSource,
    MockSecurityCatalog,
    MockTargetSource,
    MockTransactionSource,
    price_series,
)

__all__ = [
    "MockCashSource",
    "MockPriceSource",
    "MockSecurityCatalog",
    "MockTargetSource",
    "MockTransactionSource",
    "price_series",
]
