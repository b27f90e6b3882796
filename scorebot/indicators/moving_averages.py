"""
Moving Average Indicators - SMA and EMA calculations.

Pure math functions for calculating simple and exponential moving averages.
"""

from collections.abc import Sequence


def sma(values: Sequence[float], period: int) -> float | None:
    """
    Calculate Simple Moving Average.

    Args:
        values: List of values (most recent last)
        period: Number of periods to average

    Returns:
        SMA value or None if insufficient data
    """
    if len(values) < period or period <= 0:
        return None

    return sum(values[-period:]) / period


def sma_series(values: Sequence[float], period: int) -> list[float]:
    """
    Calculate a rolling SMA for every complete window.

    Returns:
        List of SMA values (length = len(values) - period + 1)
    """
    if len(values) < period or period <= 0:
        return []

    return [sum(values[i - period + 1 : i + 1]) / period for i in range(period - 1, len(values))]


def ema_series(prices: Sequence[float], period: int) -> list[float]:
    """
    Calculate EMA series for all available data points.

    Seeded with the first price:
        ema[0] = price[0]
        ema[i] = price[i] * alpha + ema[i-1] * (1 - alpha),  alpha = 2 / (period + 1)

    Args:
        prices: List of prices (most recent last)
        period: Number of periods for EMA calculation

    Returns:
        List of EMA values (same length as prices)
    """
    if not prices or period <= 0:
        return []

    alpha = 2 / (period + 1)
    result: list[float] = [prices[0]]

    for price in prices[1:]:
        result.append(price * alpha + result[-1] * (1 - alpha))

    return result


def ema(prices: Sequence[float], period: int) -> float | None:
    """
    Calculate the current Exponential Moving Average.

    Args:
        prices: List of prices (most recent last)
        period: Number of periods for EMA calculation

    Returns:
        Current EMA value or None if insufficient data
    """
    if len(prices) < period or period <= 0:
        return None

    return ema_series(prices, period)[-1]
