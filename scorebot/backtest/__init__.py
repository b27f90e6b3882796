"""
Backtest Module - Candle-by-candle simulation of the scoring pipeline.

Components:
- BacktestEngine: Orchestrates exits, scoring, entries and equity sampling
- PositionSimulator: Open-position state machine with risk-based sizing
- aggregate_stats: Reduces trades and equity into BacktestStats
"""

from .engine import BacktestEngine, run_backtest, run_backtests
from .models import BacktestResult, BacktestStats, ClosedTrade, EquitySample, ExitReason
from .position_manager import (
    PositionSimulator,
    SimulatedPosition,
    calculate_position_size,
    check_exit,
    position_pnl,
)
from .stats import aggregate_stats

__all__ = [
    "BacktestEngine",
    "BacktestResult",
    "BacktestStats",
    "ClosedTrade",
    "EquitySample",
    "ExitReason",
    "PositionSimulator",
    "SimulatedPosition",
    "aggregate_stats",
    "calculate_position_size",
    "check_exit",
    "position_pnl",
    "run_backtest",
    "run_backtests",
]
