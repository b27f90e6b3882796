"""
Volume Indicators - Volume spikes and PVSRA burst classification.

A burst is a volume-spike-confirmed price move: the bar's volume
clears a multiple of its recent average and the close direction
decides whether the burst is bullish or bearish.
"""

from collections.abc import Sequence
from enum import Enum

from .moving_averages import sma

VOLUME_MA_PERIOD = 20
SPIKE_MULTIPLIER = 1.8


class BurstSignal(Enum):
    """PVSRA burst classification."""

    BULL = "bull"
    BEAR = "bear"
    NEUTRAL = "neutral"


def is_volume_spike(
    volumes: Sequence[float],
    period: int = VOLUME_MA_PERIOD,
    multiplier: float = SPIKE_MULTIPLIER,
) -> bool:
    """
    Check if the latest volume exceeds multiplier x its trailing SMA.

    The trailing SMA includes the latest bar.

    Args:
        volumes: Volume series (most recent last)
        period: SMA lookback
        multiplier: Spike threshold as a multiple of the SMA

    Returns:
        True on a spike, False otherwise (including insufficient data)
    """
    volume_ma = sma(volumes, period)
    if volume_ma is None:
        return False
    return volumes[-1] > volume_ma * multiplier


def classify_burst(
    prices: Sequence[float],
    volumes: Sequence[float],
    period: int = VOLUME_MA_PERIOD,
    multiplier: float = SPIKE_MULTIPLIER,
) -> BurstSignal:
    """
    Classify the latest bar as a bull/bear burst or neutral.

    Args:
        prices: Close prices (most recent last)
        volumes: Volumes aligned with prices

    Returns:
        BULL if spiking with close > previous close, BEAR if spiking otherwise,
        NEUTRAL without a spike
    """
    if len(prices) < 2 or not is_volume_spike(volumes, period, multiplier):
        return BurstSignal.NEUTRAL

    return BurstSignal.BULL if prices[-1] > prices[-2] else BurstSignal.BEAR
