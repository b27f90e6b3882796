"""
RSI Indicator - Relative Strength Index calculation.

Measures the speed and magnitude of recent price changes
to evaluate overbought or oversold conditions.
"""

from collections.abc import Sequence


def _rsi_from_averages(avg_gain: float, avg_loss: float) -> float:
    """RSI = 100 - (100 / (1 + RS)); 100 whenever there are no losses."""
    if avg_loss == 0:
        return 100.0

    rs = avg_gain / avg_loss
    return 100 - (100 / (1 + rs))


def rsi_series(prices: Sequence[float], period: int = 14) -> list[float]:
    """
    Calculate RSI series using Wilder's smoothing method.

    The first value uses the simple average gain/loss of the first
    'period' changes; every later value applies Wilder's smoothing:
        avg = (prev_avg * (period - 1) + current) / period

    Args:
        prices: List of prices (most recent last)
        period: Lookback period (default 14)

    Returns:
        List of RSI values (length = len(prices) - period), empty if insufficient data
    """
    if len(prices) < period + 1 or period <= 0:
        return []

    changes = [prices[i] - prices[i - 1] for i in range(1, len(prices))]
    gains = [c if c > 0 else 0.0 for c in changes]
    losses = [-c if c < 0 else 0.0 for c in changes]

    avg_gain = sum(gains[:period]) / period
    avg_loss = sum(losses[:period]) / period
    result = [_rsi_from_averages(avg_gain, avg_loss)]

    for gain, loss in zip(gains[period:], losses[period:]):
        avg_gain = (avg_gain * (period - 1) + gain) / period
        avg_loss = (avg_loss * (period - 1) + loss) / period
        result.append(_rsi_from_averages(avg_gain, avg_loss))

    return result


def rsi(prices: Sequence[float], period: int = 14) -> float | None:
    """
    Calculate the current Relative Strength Index.

    Args:
        prices: List of prices (most recent last), needs period + 1 prices minimum
        period: Lookback period (default 14)

    Returns:
        RSI value (0-100) or None if insufficient data
    """
    series = rsi_series(prices, period)
    return series[-1] if series else None
