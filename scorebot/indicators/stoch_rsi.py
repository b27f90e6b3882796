"""
StochRSI Indicator - Stochastic oscillator applied to the RSI series.

%K normalizes RSI against its own trailing min/max range,
%D is a short simple moving average of %K.
"""

from collections.abc import Sequence
from dataclasses import dataclass

from .moving_averages import sma_series
from .rsi import rsi_series


@dataclass(frozen=True)
class StochRSIResult:
    """StochRSI %K and %D series (most recent last)."""

    k: list[float]
    d: list[float]

    @property
    def current_k(self) -> float | None:
        return self.k[-1] if self.k else None

    @property
    def current_d(self) -> float | None:
        return self.d[-1] if self.d else None


def stoch_rsi(rsi_values: Sequence[float], period: int = 14, smooth_d: int = 3) -> StochRSIResult:
    """
    Calculate StochRSI from an RSI series.

    %K = (RSI - min(RSI, period)) / (max(RSI, period) - min(RSI, period)) * 100
    A flat window (max == min) yields %K = 50.

    Args:
        rsi_values: RSI series (most recent last)
        period: Stochastic lookback over the RSI series
        smooth_d: %D smoothing period

    Returns:
        StochRSIResult with empty lists if insufficient data
    """
    if len(rsi_values) < period or period <= 0:
        return StochRSIResult(k=[], d=[])

    k: list[float] = []
    for i in range(period - 1, len(rsi_values)):
        window = rsi_values[i - period + 1 : i + 1]
        lowest = min(window)
        highest = max(window)
        if highest == lowest:
            k.append(50.0)
        else:
            k.append((rsi_values[i] - lowest) / (highest - lowest) * 100)

    return StochRSIResult(k=k, d=sma_series(k, smooth_d))


def stoch_rsi_from_prices(
    prices: Sequence[float],
    rsi_period: int = 14,
    stoch_period: int = 14,
    smooth_d: int = 3,
) -> StochRSIResult:
    """Convenience wrapper: RSI series → StochRSI."""
    return stoch_rsi(rsi_series(prices, rsi_period), stoch_period, smooth_d)
