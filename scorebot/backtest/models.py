"""
Data models for backtest results.

Everything here is immutable once produced: trades are appended by the
position simulator and never edited, equity samples are append-only,
and the final BacktestResult is frozen.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from scorebot.core.config import RunConfig
from scorebot.signals.generator import Side


class ExitReason(Enum):
    """Why a position was closed."""

    TAKE_PROFIT = "TAKE_PROFIT"
    STOP_LOSS = "STOP_LOSS"
    END_OF_DATA = "END_OF_DATA"


@dataclass(frozen=True)
class ClosedTrade:
    """A completed round-trip trade."""

    entry_time: datetime
    exit_time: datetime
    entry_price: float
    exit_price: float
    side: Side
    quantity: float
    pnl: float
    pnl_percent: float  # pnl relative to entry notional, in %
    exit_reason: ExitReason

    @property
    def is_win(self) -> bool:
        return self.pnl > 0

    @property
    def holding_hours(self) -> float:
        return (self.exit_time - self.entry_time).total_seconds() / 3600

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "entry_time": self.entry_time.isoformat(),
            "exit_time": self.exit_time.isoformat(),
            "entry_price": self.entry_price,
            "exit_price": self.exit_price,
            "side": self.side.value,
            "quantity": self.quantity,
            "pnl": self.pnl,
            "pnl_percent": self.pnl_percent,
            "exit_reason": self.exit_reason.value,
        }


@dataclass(frozen=True)
class EquitySample:
    """
    A single point in the equity curve.

    equity == realized_capital + unrealized_pnl
    """

    time: datetime
    equity: float
    drawdown_fraction: float  # (peak - equity) / peak, never negative
    realized_capital: float
    unrealized_pnl: float
    open_positions: int = 0

    def to_dict(self) -> dict:
        return {
            "time": self.time.isoformat(),
            "equity": self.equity,
            "drawdown_fraction": self.drawdown_fraction,
            "realized_capital": self.realized_capital,
            "unrealized_pnl": self.unrealized_pnl,
            "open_positions": self.open_positions,
        }


@dataclass(frozen=True)
class BacktestStats:
    """
    Aggregate performance statistics.

    Percent fields (win_rate, max_drawdown, total_return) are in %.
    avg_loss is a positive magnitude.
    """

    total_trades: int
    winning_trades: int
    losing_trades: int
    win_rate: float
    avg_win: float
    avg_loss: float
    profit_factor: float
    sharpe_ratio: float
    max_drawdown: float
    max_drawdown_duration_hours: float
    total_return: float
    calmar_ratio: float
    avg_holding_hours: float

    @classmethod
    def zero(cls) -> "BacktestStats":
        """The all-zero record used when no trades were made."""
        return cls(
            total_trades=0,
            winning_trades=0,
            losing_trades=0,
            win_rate=0.0,
            avg_win=0.0,
            avg_loss=0.0,
            profit_factor=0.0,
            sharpe_ratio=0.0,
            max_drawdown=0.0,
            max_drawdown_duration_hours=0.0,
            total_return=0.0,
            calmar_ratio=0.0,
            avg_holding_hours=0.0,
        )

    def to_dict(self) -> dict:
        return {
            "total_trades": self.total_trades,
            "winning_trades": self.winning_trades,
            "losing_trades": self.losing_trades,
            "win_rate": self.win_rate,
            "avg_win": self.avg_win,
            "avg_loss": self.avg_loss,
            "profit_factor": self.profit_factor,
            "sharpe_ratio": self.sharpe_ratio,
            "max_drawdown": self.max_drawdown,
            "max_drawdown_duration_hours": self.max_drawdown_duration_hours,
            "total_return": self.total_return,
            "calmar_ratio": self.calmar_ratio,
            "avg_holding_hours": self.avg_holding_hours,
        }


@dataclass(frozen=True)
class BacktestResult:
    """
    Results from a completed backtest run.

    Contains the echoed configuration, performance statistics, trade
    history, equity curve and execution statistics.
    """

    config: RunConfig
    stats: BacktestStats
    trades: tuple[ClosedTrade, ...]
    equity_curve: tuple[EquitySample, ...]
    final_capital: float
    candles_processed: int
    steps_skipped: int = 0
    signals_generated: int = 0
    execution_time_seconds: float = 0.0

    @property
    def pnl(self) -> float:
        return self.final_capital - self.config.initial_capital

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "config": self.config.to_dict(),
            "stats": self.stats.to_dict(),
            "trades": [t.to_dict() for t in self.trades],
            "equity_curve": [s.to_dict() for s in self.equity_curve],
            "execution": {
                "final_capital": self.final_capital,
                "candles_processed": self.candles_processed,
                "steps_skipped": self.steps_skipped,
                "signals_generated": self.signals_generated,
                "execution_time_seconds": self.execution_time_seconds,
            },
        }

    def print_summary(self) -> None:
        """Print a summary of backtest results."""
        stats = self.stats
        config = self.config

        print("\n" + "=" * 60)
        print("📊 BACKTEST RESULTS")
        print("=" * 60)

        print(
            f"\n📅 Period: {config.start.strftime('%Y-%m-%d %H:%M')} to "
            f"{config.end.strftime('%Y-%m-%d %H:%M')} ({config.symbol} {config.timeframe})"
        )
        print(f"📈 Candles: {self.candles_processed}")

        print("\n💰 PERFORMANCE")
        print("-" * 40)
        print(f"  Initial Capital: ${config.initial_capital:,.2f}")
        print(f"  Final Capital:   ${self.final_capital:,.2f}")
        print(f"  Total P&L:       ${self.pnl:+,.2f} ({stats.total_return:+.2f}%)")

        print("\n📊 RISK METRICS")
        print("-" * 40)
        print(f"  Win Rate:        {stats.win_rate:.1f}%")
        print(f"  Max Drawdown:    {stats.max_drawdown:.2f}% ({stats.max_drawdown_duration_hours:.0f}h)")
        print(f"  Sharpe Ratio:    {stats.sharpe_ratio:.2f}")
        print(f"  Calmar Ratio:    {stats.calmar_ratio:.2f}")
        print(f"  Profit Factor:   {stats.profit_factor:.2f}")

        print("\n🔄 TRADE STATISTICS")
        print("-" * 40)
        print(f"  Total Trades:    {stats.total_trades}")
        print(f"  Winning:         {stats.winning_trades}")
        print(f"  Losing:          {stats.losing_trades}")
        print(f"  Avg Win:         ${stats.avg_win:,.2f}")
        print(f"  Avg Loss:        ${stats.avg_loss:,.2f}")
        print(f"  Avg Holding:     {stats.avg_holding_hours:.1f}h")

        print("\n⚙️  EXECUTION")
        print("-" * 40)
        print(f"  Signals:         {self.signals_generated}")
        print(f"  Skipped Steps:   {self.steps_skipped}")
        print(f"  Runtime:         {self.execution_time_seconds:.1f}s")

        print("=" * 60 + "\n")
