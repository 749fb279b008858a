"""Tests for EfficiencyAnalyzer dead-asset and cash-drag checks."""

from datetime import datetime
from decimal import Decimal

import pytest

from folio.core.insights import EfficiencyAnalyzer
from folio.core.models import InsightCategory, InsightSeverity, Portfolio, Position

NOW = datetime(2025, 1, 1)


def position(ticker, bought, pnl_pct, cost=1000):
    cost = Decimal(cost)
    pnl_pct = Decimal(str(pnl_pct)) if pnl_pct is not None else None
    return Position(
        ticker=ticker,
        total_shares=Decimal("10"),
        cost_basis=cost,
        first_purchase_date=bought,
        current_market_value=cost * (1 + pnl_pct / 100) if pnl_pct is not None else None,
        unrealized_pnl_percentage=pnl_pct,
    )


@pytest.fixture
def analyzer():
    return EfficiencyAnalyzer(clock=lambda: NOW)


class TestDeadAssets:
    def test_long_held_loser_flagged(self, analyzer):
        portfolio = Portfolio(positions=[position("INTC", datetime(2024, 1, 1), -5)])
        insights = analyzer.check_dead_assets(portfolio)

        assert len(insights) == 1
        assert insights[0].title == "Dead Asset"
        assert insights[0].category == InsightCategory.EFFICIENCY
        assert insights[0].severity == InsightSeverity.INFO
        assert insights[0].metadata["daysHeld"] == 366

    def test_flat_position_counts(self, analyzer):
        portfolio = Portfolio(positions=[position("INTC", datetime(2024, 1, 1), 0)])
        assert len(analyzer.check_dead_assets(portfolio)) == 1

    @pytest.mark.parametrize(
        "bought,pnl",
        [
            (datetime(2024, 1, 1), 3),  # profitable
            (datetime(2024, 10, 1), -5),  # held too briefly
            (datetime(2024, 1, 1), None),  # no price
            (None, -5),
        ],
    )
    def test_not_flagged(self, analyzer, bought, pnl):
        portfolio = Portfolio(positions=[position("INTC", bought, pnl)])
        assert analyzer.check_dead_assets(portfolio) == []


class TestCashDrag:
    def _portfolio(self, cash):
        return Portfolio(
            positions=[position("AAPL", datetime(2024, 12, 1), 0, cost=800)],
            total_invested=Decimal("800"),
            total_market_value=Decimal("800"),
            cash_amount=Decimal(cash) if cash is not None else None,
        )

    def test_large_cash_share_flagged(self, analyzer):
        insights = analyzer.check_cash_drag(self._portfolio(200))
        assert [i.title for i in insights] == ["Cash Drag"]
        assert insights[0].metadata["cashPercentage"] == Decimal("20")
        assert "20.0%" in insights[0].message

    @pytest.mark.parametrize("cash", [None, 0, 50])
    def test_quiet_when_small_or_untracked(self, analyzer, cash):
        assert analyzer.check_cash_drag(self._portfolio(cash)) == []


def test_analyze_combines_checks(analyzer):
    portfolio = Portfolio(
        positions=[position("INTC", datetime(2024, 1, 1), -5)],
        total_invested=Decimal("1000"),
        total_market_value=Decimal("950"),
        cash_amount=Decimal("500"),
    )
    assert [i.title for i in analyzer.analyze(portfolio, [])] == ["Dead Asset", "Cash Drag"]


def test_empty_portfolio(analyzer):
    assert analyzer.analyze(Portfolio(cash_amount=Decimal("1000")), []) == []
