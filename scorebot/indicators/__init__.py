"""
Technical Indicators Module - Pure math functions for market analysis.

Layer 1 of the scoring pipeline.
All functions are stateless and operate on price/volume series.
"""

from .calculator import INDICATOR_SET_VERSION, IndicatorCalculator, IndicatorSet
from .moving_averages import ema, ema_series, sma, sma_series
from .rsi import rsi, rsi_series
from .stoch_rsi import StochRSIResult, stoch_rsi, stoch_rsi_from_prices
from .volatility import log_returns, realized_volatility
from .volume import BurstSignal, classify_burst, is_volume_spike

__all__ = [
    # Moving Averages
    "sma",
    "sma_series",
    "ema",
    "ema_series",
    # RSI
    "rsi",
    "rsi_series",
    # StochRSI
    "stoch_rsi",
    "stoch_rsi_from_prices",
    "StochRSIResult",
    # Volume
    "BurstSignal",
    "classify_burst",
    "is_volume_spike",
    # Volatility
    "log_returns",
    "realized_volatility",
    # Calculator
    "IndicatorCalculator",
    "IndicatorSet",
    "INDICATOR_SET_VERSION",
]
