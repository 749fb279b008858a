"""Core engines: cost basis, rebalancing, statistics, and insights."""
