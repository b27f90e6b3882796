"""
Indicator Calculator - Builds the per-window IndicatorSet.

Recomputed from the trailing window on every step; the calculator
carries no state between calls.
"""

from collections.abc import Sequence
from dataclasses import asdict, dataclass

from scorebot.core.config import INDICATOR_LOOKBACK
from scorebot.core.errors import InsufficientDataError

from .moving_averages import ema, sma
from .rsi import rsi_series
from .stoch_rsi import stoch_rsi
from .volume import VOLUME_MA_PERIOD, BurstSignal, classify_burst, is_volume_spike

INDICATOR_SET_VERSION = 1

EMA_FAST_PERIOD = 50
EMA_SLOW_PERIOD = 200
RSI_PERIOD = 14
STOCH_PERIOD = 14
STOCH_SMOOTH_D = 3


@dataclass(frozen=True)
class IndicatorSet:
    """Snapshot of every indicator the confidence scorer reads."""

    ema_fast: float
    ema_slow: float
    rsi: float
    stoch_rsi_k: float
    stoch_rsi_d: float
    volume_ma: float
    volume_spike: bool
    burst_signal: BurstSignal
    version: int = INDICATOR_SET_VERSION

    @property
    def is_uptrend(self) -> bool:
        """Fast EMA above slow EMA."""
        return self.ema_fast > self.ema_slow

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        data = asdict(self)
        data["burst_signal"] = self.burst_signal.value
        return data


class IndicatorCalculator:
    """
    Computes an IndicatorSet from aligned price and volume series.

    Usage:
        calculator = IndicatorCalculator()
        indicators = calculator.calculate(closes, volumes)
    """

    def __init__(self, min_prices: int = INDICATOR_LOOKBACK) -> None:
        if min_prices < EMA_SLOW_PERIOD:
            raise ValueError(f"min_prices must be at least {EMA_SLOW_PERIOD}")
        self.min_prices = min_prices

    def calculate(self, prices: Sequence[float], volumes: Sequence[float]) -> IndicatorSet:
        """
        Calculate all indicators for the latest bar.

        Args:
            prices: Close prices (most recent last), at least min_prices long
            volumes: Volumes aligned with prices

        Returns:
            IndicatorSet for the latest bar

        Raises:
            InsufficientDataError: If fewer than min_prices prices are supplied
            ValueError: If prices and volumes differ in length
        """
        if len(prices) < self.min_prices:
            raise InsufficientDataError(
                required=self.min_prices,
                available=len(prices),
                context="technical indicators",
            )
        if len(volumes) != len(prices):
            raise ValueError(
                f"prices and volumes must be the same length ({len(prices)} != {len(volumes)})"
            )

        rsis = rsi_series(prices, RSI_PERIOD)
        stoch = stoch_rsi(rsis, STOCH_PERIOD, STOCH_SMOOTH_D)

        ema_fast = ema(prices, EMA_FAST_PERIOD)
        ema_slow = ema(prices, EMA_SLOW_PERIOD)
        volume_ma = sma(volumes, VOLUME_MA_PERIOD)

        # Guaranteed by the length check above
        assert ema_fast is not None and ema_slow is not None and volume_ma is not None
        assert stoch.current_k is not None and stoch.current_d is not None

        return IndicatorSet(
            ema_fast=ema_fast,
            ema_slow=ema_slow,
            rsi=rsis[-1],
            stoch_rsi_k=stoch.current_k,
            stoch_rsi_d=stoch.current_d,
            volume_ma=volume_ma,
            volume_spike=is_volume_spike(volumes),
            burst_signal=classify_burst(prices, volumes),
        )
