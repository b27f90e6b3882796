"""
Core types for the scoring engine.

Modules:
- candle: Immutable OHLCV candle and sequence validation
- config: Run configuration, strategy weights, timeframes
- errors: Error types raised by the core
"""

from scorebot.core.candle import Candle, validate_sequence
from scorebot.core.config import (
    INDICATOR_LOOKBACK,
    RiskParams,
    RunConfig,
    StrategyWeights,
    periods_per_year,
    timeframe_to_interval,
)
from scorebot.core.errors import (
    BacktestError,
    CandleSequenceError,
    InsufficientDataError,
    InvalidConfigurationError,
)

__all__ = [
    "BacktestError",
    "Candle",
    "CandleSequenceError",
    "INDICATOR_LOOKBACK",
    "InsufficientDataError",
    "InvalidConfigurationError",
    "RiskParams",
    "RunConfig",
    "StrategyWeights",
    "periods_per_year",
    "timeframe_to_interval",
    "validate_sequence",
]
