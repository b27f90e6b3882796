"""
Stats Aggregator - Reduces closed trades and the equity curve to BacktestStats.

All degenerate inputs (no trades, flat equity, a single sample) produce
zeros rather than NaN or infinity.
"""

import math
import statistics
from collections.abc import Sequence

from .models import BacktestStats, ClosedTrade, EquitySample

# Daily samples of an hourly run (24-bar sample interval)
DEFAULT_PERIODS_PER_YEAR = 365.0


def sample_returns(equity_curve: Sequence[EquitySample]) -> list[float]:
    """Per-sample simple returns of the equity curve."""
    returns: list[float] = []
    for previous, current in zip(equity_curve, equity_curve[1:]):
        if previous.equity == 0:
            continue
        returns.append((current.equity - previous.equity) / previous.equity)
    return returns


def sharpe_ratio(returns: Sequence[float], periods_per_year: float) -> float:
    """
    Annualized Sharpe ratio (zero risk-free rate).

    mean(returns) / pstdev(returns) * sqrt(periods_per_year), 0 if the
    deviation is 0 or there are no returns.
    """
    if not returns:
        return 0.0
    deviation = statistics.pstdev(returns)
    if deviation == 0:
        return 0.0
    return statistics.fmean(returns) / deviation * math.sqrt(periods_per_year)


def drawdown_profile(
    equity_curve: Sequence[EquitySample],
    initial_capital: float,
) -> tuple[float, float]:
    """
    Maximum drawdown and its longest duration.

    The peak starts at initial_capital and only ever rises.

    Returns:
        (max_drawdown_percent, max_drawdown_duration_hours)
    """
    if not equity_curve:
        return 0.0, 0.0

    peak = initial_capital
    peak_time = equity_curve[0].time
    max_drawdown = 0.0
    longest_hours = 0.0

    for sample in equity_curve:
        if sample.equity >= peak:
            peak = sample.equity
            peak_time = sample.time
            continue
        max_drawdown = max(max_drawdown, (peak - sample.equity) / peak)
        underwater_hours = (sample.time - peak_time).total_seconds() / 3600
        longest_hours = max(longest_hours, underwater_hours)

    return max_drawdown * 100, longest_hours


def aggregate_stats(
    closed_trades: Sequence[ClosedTrade],
    initial_capital: float,
    final_capital: float,
    equity_curve: Sequence[EquitySample],
    periods_per_year: float = DEFAULT_PERIODS_PER_YEAR,
    bar_max_drawdown: float | None = None,
) -> BacktestStats:
    """
    Calculate performance statistics for a run.

    Args:
        closed_trades: Every trade closed during the run
        initial_capital: Starting capital
        final_capital: Realized capital after the final force-close
        equity_curve: Sampled equity points, ascending in time
        periods_per_year: Equity samples per year (annualizes Sharpe)
        bar_max_drawdown: Largest drawdown fraction seen on any bar, when the
            caller tracked equity between samples

    Returns:
        BacktestStats (the all-zero record when there are no trades)
    """
    if not closed_trades:
        return BacktestStats.zero()

    wins = [t.pnl for t in closed_trades if t.pnl > 0]
    losses = [t.pnl for t in closed_trades if t.pnl < 0]

    total_win = sum(wins)
    total_loss = abs(sum(losses))
    total_trades = len(closed_trades)

    total_return = (final_capital - initial_capital) / initial_capital * 100
    max_drawdown, drawdown_hours = drawdown_profile(equity_curve, initial_capital)
    if bar_max_drawdown is not None:
        # Troughs between samples are only visible per bar
        max_drawdown = max(max_drawdown, bar_max_drawdown * 100)

    return BacktestStats(
        total_trades=total_trades,
        winning_trades=len(wins),
        losing_trades=len(losses),
        win_rate=len(wins) / total_trades * 100,
        avg_win=total_win / len(wins) if wins else 0.0,
        avg_loss=total_loss / len(losses) if losses else 0.0,
        profit_factor=total_win / total_loss if total_loss > 0 else 0.0,
        sharpe_ratio=sharpe_ratio(sample_returns(equity_curve), periods_per_year),
        max_drawdown=max_drawdown,
        max_drawdown_duration_hours=drawdown_hours,
        total_return=total_return,
        calmar_ratio=total_return / max_drawdown if max_drawdown > 0 else 0.0,
        avg_holding_hours=statistics.fmean(t.holding_hours for t in closed_trades),
    )
