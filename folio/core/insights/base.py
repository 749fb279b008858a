"""Analyzer capability shared by every insight producer."""

from typing import List, Protocol, Sequence

from folio.core.models import Insight, Portfolio, Transaction


class PortfolioAnalyzer(Protocol):
    """
    Anything with ``analyze(portfolio, history) -> list[Insight]``.

    Analyzers must return an empty list, not raise, when the portfolio has
    no positions or the history lacks the data they need.
    """

    def analyze(self, portfolio: Portfolio, history: Sequence[Transaction]) -> List[Insight]:
        ...
