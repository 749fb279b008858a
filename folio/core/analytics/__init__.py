"""Return statistics and portfolio risk metrics."""
