#!/usr/bin/env python3
"""
Unit tests for the position simulator.

Run with:
    python -m pytest tests/test_positions.py -v
"""

import sys
from datetime import datetime, timedelta
from pathlib import Path

import pytest

# Add project root to path for standalone execution
sys.path.insert(0, str(Path(__file__).parent.parent))

# ruff: noqa: E402
from scorebot.backtest import (
    ExitReason,
    PositionSimulator,
    SimulatedPosition,
    calculate_position_size,
    check_exit,
    position_pnl,
)
from scorebot.core.candle import Candle
from scorebot.signals import Side, Signal

T0 = datetime(2024, 1, 1)


def make_candle(close: float, hours: int = 1) -> Candle:
    """Helper to create a candle closing at a price."""
    return Candle(
        timestamp=T0 + timedelta(hours=hours),
        open=close,
        high=close * 1.001,
        low=close * 0.999,
        close=close,
        volume=1000.0,
    )


def make_signal(
    side: Side = Side.LONG,
    entry: float = 100.0,
    stop: float = 98.0,
    target: float = 106.0,
) -> Signal:
    return Signal(
        side=side,
        confidence=70.0,
        entry_price=entry,
        stop_loss=stop,
        take_profit=target,
        reasoning="test",
    )


def make_position(
    side: Side = Side.LONG,
    entry: float = 100.0,
    stop: float = 98.0,
    target: float = 106.0,
    quantity: float = 2.0,
) -> SimulatedPosition:
    return SimulatedPosition(
        entry_time=T0,
        entry_price=entry,
        side=side,
        quantity=quantity,
        stop_loss=stop,
        take_profit=target,
    )


class TestPositionSizing:
    """Tests for risk-based sizing."""

    def test_risk_sizing(self):
        """Test quantity = risk amount / stop distance."""
        # 1% of 10000 = 100 risked over a 2.0 stop distance
        assert calculate_position_size(10000.0, 0.01, 100.0, 98.0) == pytest.approx(50.0)

    def test_short_sizing_uses_distance(self):
        """Test the stop distance is absolute for shorts."""
        assert calculate_position_size(10000.0, 0.01, 100.0, 102.0) == pytest.approx(50.0)

    def test_minimum_notional_floor(self):
        """Test tiny positions are raised to the minimum notional."""
        # 0.1 risked / 2.0 distance = 0.05 units = $5 notional < $10
        quantity = calculate_position_size(100.0, 0.001, 100.0, 98.0, min_position_value=10.0)
        assert quantity == pytest.approx(0.1)

    def test_no_capital(self):
        """Test exhausted capital cannot size a position."""
        assert calculate_position_size(0.0, 0.01, 100.0, 98.0) == 0.0
        assert calculate_position_size(-50.0, 0.01, 100.0, 98.0) == 0.0


class TestExitRules:
    """Tests for stop-loss / take-profit checks."""

    def test_take_profit_fills_at_level(self):
        """Test a close through the target fills at the target, not the close."""
        # Long at 100, SL 98, TP 106, close 107
        assert check_exit(make_position(), 107.0) == (ExitReason.TAKE_PROFIT, 106.0)

    def test_stop_loss_fills_at_level(self):
        """Test a close through the stop fills at the stop."""
        assert check_exit(make_position(), 97.0) == (ExitReason.STOP_LOSS, 98.0)

    def test_boundaries_inclusive(self):
        """Test touching a level exactly triggers the exit."""
        assert check_exit(make_position(), 98.0) == (ExitReason.STOP_LOSS, 98.0)
        assert check_exit(make_position(), 106.0) == (ExitReason.TAKE_PROFIT, 106.0)

    def test_no_exit_between_levels(self):
        """Test no exit while price stays inside the bracket."""
        assert check_exit(make_position(), 103.0) is None

    def test_short_mirrored(self):
        """Test short positions use reversed inequalities."""
        short = make_position(side=Side.SHORT, stop=102.0, target=94.0)
        assert check_exit(short, 103.0) == (ExitReason.STOP_LOSS, 102.0)
        assert check_exit(short, 93.0) == (ExitReason.TAKE_PROFIT, 94.0)
        assert check_exit(short, 99.0) is None

    def test_stop_loss_wins_same_bar_tie(self):
        """Test the stop is checked first when both conditions hold."""
        # Degenerate bracket so one close satisfies both: tp <= close <= stop
        position = make_position(stop=102.0, target=101.0)
        assert check_exit(position, 101.5) == (ExitReason.STOP_LOSS, 102.0)

        short = make_position(side=Side.SHORT, stop=98.0, target=99.0)
        assert check_exit(short, 98.5) == (ExitReason.STOP_LOSS, 98.0)


class TestSimulatedPosition:
    """Tests for position invariants."""

    def test_rejects_zero_quantity(self):
        """Test a non-positive quantity is a programming error."""
        with pytest.raises(AssertionError):
            make_position(quantity=0.0)

    def test_rejects_stop_at_entry(self):
        """Test stop-loss equal to entry is a programming error."""
        with pytest.raises(AssertionError):
            make_position(stop=100.0)

    def test_pnl_formula(self):
        """Test long and short PnL."""
        assert position_pnl(Side.LONG, 100.0, 106.0, 2.0) == pytest.approx(12.0)
        assert position_pnl(Side.SHORT, 100.0, 94.0, 2.0) == pytest.approx(12.0)
        assert position_pnl(Side.SHORT, 100.0, 103.0, 2.0) == pytest.approx(-6.0)

    def test_unrealized_uses_same_formula(self):
        """Test unrealized PnL matches the realized formula."""
        position = make_position()
        assert position.unrealized_pnl(103.0) == position_pnl(Side.LONG, 100.0, 103.0, 2.0)


class TestPositionSimulator:
    """Tests for the open-position state machine."""

    def test_take_profit_scenario(self):
        """Test long 100 / SL 98 / TP 106 closes at exactly 106 on a 107 close."""
        simulator = PositionSimulator(max_positions=1)
        position = simulator.open_position(make_signal(), 10000.0, 0.01, T0)
        assert position is not None
        quantity = position.quantity

        trades = simulator.process_exits(make_candle(107.0, hours=3))

        assert len(trades) == 1
        trade = trades[0]
        assert trade.exit_reason == ExitReason.TAKE_PROFIT
        assert trade.exit_price == 106.0
        assert trade.pnl == pytest.approx((106.0 - 100.0) * quantity)
        assert trade.pnl_percent == pytest.approx(6.0)
        assert trade.holding_hours == pytest.approx(3.0)
        assert simulator.open_count == 0

        record = trade.to_dict()
        assert record["side"] == "LONG"
        assert record["exit_reason"] == "TAKE_PROFIT"

    def test_slots_enforced(self):
        """Test a third entry is rejected while two positions are open."""
        simulator = PositionSimulator(max_positions=2)
        assert simulator.open_position(make_signal(), 10000.0, 0.01, T0) is not None
        assert simulator.open_position(make_signal(), 10000.0, 0.01, T0) is not None

        assert not simulator.has_capacity
        assert simulator.open_position(make_signal(), 10000.0, 0.01, T0) is None
        assert simulator.open_count == 2

    def test_exit_frees_slot(self):
        """Test a slot freed by an exit is usable on the same step."""
        simulator = PositionSimulator(max_positions=2)
        simulator.open_position(make_signal(), 10000.0, 0.01, T0)
        simulator.open_position(make_signal(target=120.0), 10000.0, 0.01, T0)

        closed = simulator.process_exits(make_candle(107.0))
        assert len(closed) == 1
        assert simulator.has_capacity
        assert simulator.open_position(make_signal(entry=107.0, stop=105.0, target=112.0), 10000.0, 0.01, T0) is not None
        assert simulator.open_count == 2

    def test_close_all_end_of_data(self):
        """Test remaining positions close at the final close."""
        simulator = PositionSimulator(max_positions=3)
        simulator.open_position(make_signal(), 10000.0, 0.01, T0)
        simulator.open_position(
            make_signal(side=Side.SHORT, stop=102.0, target=94.0), 10000.0, 0.01, T0
        )

        trades = simulator.close_all(make_candle(101.0, hours=5))

        assert len(trades) == 2
        assert all(t.exit_reason == ExitReason.END_OF_DATA for t in trades)
        assert all(t.exit_price == 101.0 for t in trades)
        assert simulator.open_count == 0

    def test_unrealized_pnl(self):
        """Test unrealized PnL sums across open positions."""
        simulator = PositionSimulator(max_positions=2)
        long = simulator.open_position(make_signal(), 10000.0, 0.01, T0)
        short = simulator.open_position(
            make_signal(side=Side.SHORT, stop=102.0, target=94.0), 10000.0, 0.01, T0
        )
        expected = (103.0 - 100.0) * long.quantity + (100.0 - 103.0) * short.quantity
        assert simulator.unrealized_pnl(103.0) == pytest.approx(expected)

    def test_positions_are_read_only_view(self):
        """Test callers get a snapshot, not the internal list."""
        simulator = PositionSimulator()
        simulator.open_position(make_signal(), 10000.0, 0.01, T0)
        assert isinstance(simulator.positions, tuple)

    def test_invalid_max_positions(self):
        with pytest.raises(ValueError):
            PositionSimulator(max_positions=0)


if __name__ == "__main__":
    sys.exit(pytest.main([__file__, "-v"]))
