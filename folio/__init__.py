"""
Folio - portfolio accounting and analytics workstation.

Turns a stream of buy/sell/split/dividend transactions into positions,
rebalancing recommendations, risk statistics, and portfolio insights.
"""

__version__ = "0.1.0"
