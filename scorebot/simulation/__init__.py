"""Simulation Module - Candle sources for the backtest engine."""

from .historical_source import HistoricalDataSource, parse_timestamp, write_candles_csv
from .synthetic import SyntheticDataGenerator

__all__ = [
    "HistoricalDataSource",
    "SyntheticDataGenerator",
    "parse_timestamp",
    "write_candles_csv",
]
