"""
Position Manager - Handles the simulated position lifecycle.

Each position moves through exactly one transition:
    Open → Closed(TAKE_PROFIT) | Closed(STOP_LOSS) | Closed(END_OF_DATA)

Exits are checked against the bar's close and fill at the protective
level, not at the close. When a single close satisfies both the stop
and the target, the stop-loss wins: OHLC bars do not reveal intrabar
order, so the simulator assumes the worse fill.
"""

import logging
from dataclasses import dataclass
from datetime import datetime

from scorebot.core.candle import Candle
from scorebot.signals.generator import Side, Signal

from .models import ClosedTrade, ExitReason

logger = logging.getLogger(__name__)


@dataclass
class SimulatedPosition:
    """An open position owned by the PositionSimulator."""

    entry_time: datetime
    entry_price: float
    side: Side
    quantity: float
    stop_loss: float
    take_profit: float

    def __post_init__(self) -> None:
        # Violations are programming errors, not bad market data
        assert self.quantity > 0, f"quantity must be positive, got {self.quantity}"
        assert self.stop_loss != self.entry_price, "stop_loss must differ from entry_price"

    @property
    def is_long(self) -> bool:
        return self.side == Side.LONG

    @property
    def notional(self) -> float:
        """Entry value of the position."""
        return self.entry_price * self.quantity

    def unrealized_pnl(self, current_price: float) -> float:
        return position_pnl(self.side, self.entry_price, current_price, self.quantity)


def position_pnl(side: Side, entry_price: float, exit_price: float, quantity: float) -> float:
    """
    PnL of a position, used for both realized and unrealized values.

    Long:  (exit - entry) * quantity
    Short: (entry - exit) * quantity
    """
    if side == Side.LONG:
        return (exit_price - entry_price) * quantity
    return (entry_price - exit_price) * quantity


def calculate_position_size(
    capital: float,
    risk_fraction: float,
    entry_price: float,
    stop_loss: float,
    min_position_value: float = 10.0,
) -> float:
    """
    Size a position so that hitting the stop loses capital * risk_fraction.

    The size never falls below min_position_value of notional.

    Args:
        capital: Realized capital available
        risk_fraction: Fraction of capital to risk (0.01 = 1%)
        entry_price: Entry price
        stop_loss: Stop-loss price
        min_position_value: Minimum notional value

    Returns:
        Quantity in units of the traded asset (0 if capital is exhausted)
    """
    stop_distance = abs(entry_price - stop_loss)
    if capital <= 0 or stop_distance == 0:
        return 0.0

    quantity = (capital * risk_fraction) / stop_distance
    min_quantity = min_position_value / entry_price
    return max(quantity, min_quantity)


def check_exit(position: SimulatedPosition, close: float) -> tuple[ExitReason, float] | None:
    """
    Check whether a close triggers an exit.

    The stop-loss is evaluated first (same-bar tie-break policy).

    Returns:
        (reason, fill_price) if the position should close, None otherwise
    """
    if position.is_long:
        if close <= position.stop_loss:
            return ExitReason.STOP_LOSS, position.stop_loss
        if close >= position.take_profit:
            return ExitReason.TAKE_PROFIT, position.take_profit
    else:
        # Short position - reversed logic
        if close >= position.stop_loss:
            return ExitReason.STOP_LOSS, position.stop_loss
        if close <= position.take_profit:
            return ExitReason.TAKE_PROFIT, position.take_profit

    return None


class PositionSimulator:
    """
    Owns the open positions of a single backtest run.

    Usage:
        simulator = PositionSimulator(max_positions=2)
        simulator.process_exits(candle)          # always first
        simulator.open_position(signal, capital, 0.01, candle.timestamp)
    """

    def __init__(self, max_positions: int = 1, min_position_value: float = 10.0) -> None:
        if max_positions < 1:
            raise ValueError("max_positions must be at least 1")
        self.max_positions = max_positions
        self.min_position_value = min_position_value
        self._positions: list[SimulatedPosition] = []

    @property
    def positions(self) -> tuple[SimulatedPosition, ...]:
        return tuple(self._positions)

    @property
    def open_count(self) -> int:
        return len(self._positions)

    @property
    def has_capacity(self) -> bool:
        return len(self._positions) < self.max_positions

    def open_position(
        self,
        signal: Signal,
        capital: float,
        risk_fraction: float,
        timestamp: datetime,
    ) -> SimulatedPosition | None:
        """
        Open a new position from a Signal.

        Returns:
            The new position, or None if every slot is taken or the
            position cannot be sized
        """
        if not self.has_capacity:
            logger.debug(f"Entry rejected at {timestamp}: {self.open_count}/{self.max_positions} slots used")
            return None

        quantity = calculate_position_size(
            capital,
            risk_fraction,
            signal.entry_price,
            signal.stop_loss,
            self.min_position_value,
        )
        if quantity <= 0:
            return None

        position = SimulatedPosition(
            entry_time=timestamp,
            entry_price=signal.entry_price,
            side=signal.side,
            quantity=quantity,
            stop_loss=signal.stop_loss,
            take_profit=signal.take_profit,
        )
        self._positions.append(position)

        logger.debug(
            f"Opened {position.side.name} {quantity:.6f} @ {position.entry_price:.2f} "
            f"(SL {position.stop_loss:.2f}, TP {position.take_profit:.2f})"
        )
        return position

    def process_exits(self, candle: Candle) -> list[ClosedTrade]:
        """
        Close every position whose stop or target is hit by this candle's close.

        Returns:
            Trades closed on this candle, in position-open order
        """
        closed: list[ClosedTrade] = []
        remaining: list[SimulatedPosition] = []

        for position in self._positions:
            exit_result = check_exit(position, candle.close)
            if exit_result is None:
                remaining.append(position)
                continue
            reason, fill_price = exit_result
            closed.append(self._close(position, fill_price, candle.timestamp, reason))

        self._positions = remaining
        return closed

    def close_all(self, candle: Candle) -> list[ClosedTrade]:
        """Force-close every open position at the candle's close (END_OF_DATA)."""
        closed = [
            self._close(position, candle.close, candle.timestamp, ExitReason.END_OF_DATA)
            for position in self._positions
        ]
        self._positions = []
        return closed

    def unrealized_pnl(self, current_price: float) -> float:
        """Total unrealized PnL of open positions at current_price."""
        return sum(position.unrealized_pnl(current_price) for position in self._positions)

    def _close(
        self,
        position: SimulatedPosition,
        exit_price: float,
        exit_time: datetime,
        reason: ExitReason,
    ) -> ClosedTrade:
        pnl = position_pnl(position.side, position.entry_price, exit_price, position.quantity)
        trade = ClosedTrade(
            entry_time=position.entry_time,
            exit_time=exit_time,
            entry_price=position.entry_price,
            exit_price=exit_price,
            side=position.side,
            quantity=position.quantity,
            pnl=pnl,
            pnl_percent=pnl / position.notional * 100,
            exit_reason=reason,
        )
        logger.debug(
            f"Closed {position.side.name} @ {exit_price:.2f} ({reason.value}): PnL ${pnl:+,.2f}"
        )
        return trade
