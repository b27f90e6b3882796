"""
Volatility Indicator - Realized volatility from log returns.

Measures the dispersion of bar-to-bar log returns and annualizes it,
so volatility is comparable across timeframes.
"""

import math
from collections.abc import Sequence


def log_returns(prices: Sequence[float]) -> list[float]:
    """Bar-to-bar log returns (length = len(prices) - 1)."""
    return [math.log(prices[i] / prices[i - 1]) for i in range(1, len(prices))]


def realized_volatility(prices: Sequence[float], periods_per_year: float) -> float | None:
    """
    Calculate annualized realized volatility.

    Uses the population standard deviation of log returns,
    scaled by sqrt(periods_per_year).

    Args:
        prices: List of prices (most recent last), all positive
        periods_per_year: Number of bars per year for the price timeframe

    Returns:
        Annualized volatility as a fraction (0.5 = 50%), or None if insufficient data

    Raises:
        ValueError: If a price is not positive
    """
    if len(prices) < 2:
        return None

    returns = log_returns(prices)
    mean = sum(returns) / len(returns)
    variance = sum((r - mean) ** 2 for r in returns) / len(returns)

    return math.sqrt(variance) * math.sqrt(periods_per_year)
