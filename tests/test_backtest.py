#!/usr/bin/env python3
"""
Integration tests for the backtest engine.

Run with:
    python -m pytest tests/test_backtest.py -v

Or standalone:
    python tests/test_backtest.py
"""

import asyncio
import sys
from datetime import datetime, timedelta
from pathlib import Path

import pytest

# Add project root to path for standalone execution
sys.path.insert(0, str(Path(__file__).parent.parent))

# ruff: noqa: E402
from scorebot.backtest import (
    BacktestEngine,
    BacktestStats,
    ExitReason,
    run_backtest,
    run_backtests,
)
from scorebot.core.candle import Candle
from scorebot.core.config import RunConfig
from scorebot.core.errors import CandleSequenceError, InsufficientDataError
from scorebot.signals import MathematicalAdjuster, NoOpEnhancer, Side
from scorebot.simulation import SyntheticDataGenerator

T0 = datetime(2024, 1, 1)


def make_candles(closes: list[float], volumes: list[float]) -> list[Candle]:
    """Helper to build hourly candles from closes and volumes."""
    return [
        Candle(
            timestamp=T0 + timedelta(hours=i),
            open=close,
            high=close * 1.001,
            low=close * 0.999,
            close=close,
            volume=volume,
        )
        for i, (close, volume) in enumerate(zip(closes, volumes))
    ]


def trending_candles(count: int = 400) -> list[Candle]:
    """
    Steady 1% uptrend with a volume spike every tenth bar.

    Every spike bar scores long confidence 65.4 without adjustment:
    momentum 0.2 (RSI pinned at 100), volume 0.9, trend 0.8, volatility 1.0.
    """
    closes = [100.0 * 1.01**i for i in range(count)]
    volumes = [5000.0 if i % 10 == 5 else 1000.0 for i in range(count)]
    return make_candles(closes, volumes)


def flat_candles(count: int = 400) -> list[Candle]:
    return make_candles([100.0] * count, [1000.0] * count)


def make_config(candles: list[Candle], **overrides) -> RunConfig:
    """Config whose trading period starts right after the lookback."""
    params = {
        "symbol": "TEST",
        "timeframe": "1h",
        "start": candles[200].timestamp,
        "end": candles[-1].timestamp,
    }
    params.update(overrides)
    return RunConfig(**params)


class FailingEnhancer:
    """Enhancer raising a chosen exception on every call."""

    def __init__(self, error: Exception):
        self.error = error
        self.calls = 0

    async def enhance(self, score, analysis):
        self.calls += 1
        raise self.error


class TestBacktestRun:
    """Tests for a complete run over crafted data."""

    def test_take_profit_trades(self):
        """Test spike bars open longs that exit at exactly the target."""
        candles = trending_candles()
        result = asyncio.run(run_backtest(make_config(candles), candles, enhancer=NoOpEnhancer()))

        # Spikes at 205, 215, ..., 395; each closes 5 bars later
        assert result.stats.total_trades == 20
        assert result.signals_generated == 20

        take_profits = [t for t in result.trades if t.exit_reason == ExitReason.TAKE_PROFIT]
        assert len(take_profits) == 19
        for trade in take_profits:
            assert trade.side == Side.LONG
            assert trade.exit_price == pytest.approx(trade.entry_price * 1.045)
            assert trade.holding_hours == pytest.approx(5.0)
            assert trade.pnl > 0

        last = result.trades[-1]
        assert last.exit_reason == ExitReason.END_OF_DATA
        assert last.exit_time == candles[-1].timestamp
        assert last.exit_price == candles[-1].close

        assert result.stats.win_rate == 100.0
        assert result.stats.profit_factor == 0.0
        assert result.final_capital > result.config.initial_capital
        assert result.pnl == pytest.approx(sum(t.pnl for t in result.trades))

    def test_candles_processed(self):
        """Test every candle from start to end is stepped."""
        candles = trending_candles()
        result = asyncio.run(run_backtest(make_config(candles), candles, enhancer=NoOpEnhancer()))
        assert result.candles_processed == 200
        assert result.steps_skipped == 0

    def test_zero_trades(self):
        """Test a run without signals reports the all-zero record."""
        candles = flat_candles()
        result = asyncio.run(run_backtest(make_config(candles), candles, enhancer=NoOpEnhancer()))

        assert result.trades == ()
        assert result.stats == BacktestStats.zero()
        assert result.final_capital == result.config.initial_capital

    def test_default_enhancer_is_mathematical(self):
        """Test runs adjust confidence mathematically unless told otherwise."""
        candles = flat_candles()
        engine = BacktestEngine(make_config(candles))
        assert isinstance(engine.enhancer, MathematicalAdjuster)

        # Zero forecast volatility lowers long by 5, pushing short to 68.4
        result = asyncio.run(engine.run(candles))
        assert len(result.trades) == 1
        assert result.trades[0].side == Side.SHORT
        assert result.trades[0].exit_reason == ExitReason.END_OF_DATA
        assert result.trades[0].pnl == pytest.approx(0.0)

    def test_result_echoes_config(self):
        candles = flat_candles()
        config = make_config(candles, initial_capital=5000.0)
        result = asyncio.run(run_backtest(config, candles, enhancer=NoOpEnhancer()))
        assert result.config is config
        assert result.to_dict()["config"]["initial_capital"] == 5000.0


class TestEquityCurve:
    """Tests for equity sampling."""

    def test_sampling_interval(self):
        """Test samples every N bars plus the last bar."""
        candles = trending_candles()
        config = make_config(candles, equity_sample_interval=24)
        result = asyncio.run(run_backtest(config, candles, enhancer=NoOpEnhancer()))

        # Steps 0, 24, ..., 192 plus step 199
        assert len(result.equity_curve) == 10
        assert result.equity_curve[0].time == candles[200].timestamp
        assert result.equity_curve[-1].time == candles[-1].timestamp

    def test_equity_reproducible_from_trades(self):
        """Test each sample equals realized capital plus open-position PnL."""
        candles = trending_candles()
        config = make_config(candles, equity_sample_interval=5)
        result = asyncio.run(run_backtest(config, candles, enhancer=NoOpEnhancer()))
        closes = {c.timestamp: c.close for c in candles}

        for sample in result.equity_curve:
            t = sample.time
            realized = config.initial_capital + sum(
                trade.pnl
                for trade in result.trades
                if trade.exit_time <= t and trade.exit_reason != ExitReason.END_OF_DATA
            )
            unrealized = 0.0
            for trade in result.trades:
                still_open = trade.exit_time > t or trade.exit_reason == ExitReason.END_OF_DATA
                if trade.entry_time <= t and still_open:
                    direction = 1 if trade.side == Side.LONG else -1
                    unrealized += (closes[t] - trade.entry_price) * trade.quantity * direction

            assert sample.realized_capital == pytest.approx(realized)
            assert sample.unrealized_pnl == pytest.approx(unrealized)
            assert sample.equity == pytest.approx(realized + unrealized)

        assert result.equity_curve[-1].equity == pytest.approx(result.final_capital)

    def test_drawdown_bounds(self):
        """Test drawdown is a fraction in [0, 1) on every sample."""
        candles = SyntheticDataGenerator(seed=7).generate(
            "1h", datetime(2024, 1, 1), datetime(2024, 1, 15)
        )
        config = RunConfig(
            symbol="BTCUSDT",
            timeframe="1h",
            start=datetime(2024, 1, 1),
            end=datetime(2024, 1, 15),
        )
        result = asyncio.run(run_backtest(config, candles))

        assert result.stats.max_drawdown >= 0
        for sample in result.equity_curve:
            assert 0 <= sample.drawdown_fraction < 1


    def test_max_drawdown_covers_every_bar(self):
        """Test the reported drawdown is at least any sampled drawdown."""
        start, end = datetime(2024, 1, 1), datetime(2024, 1, 15)
        config = RunConfig(
            symbol="BTCUSDT",
            timeframe="1h",
            start=start,
            end=end,
            max_positions=3,
            risk_per_trade=5.0,
        )
        for seed in (3, 7, 10):
            candles = SyntheticDataGenerator(seed=seed).generate("1h", start, end)
            result = asyncio.run(run_backtest(config, candles))

            sampled = max(s.drawdown_fraction for s in result.equity_curve) * 100
            if result.stats.total_trades:
                assert result.stats.max_drawdown >= sampled - 1e-9
            else:
                assert sampled == 0.0


class TestRunValidation:
    """Tests for input validation and step error handling."""

    def test_insufficient_data(self):
        """Test too few candles for lookback plus period is rejected."""
        candles = trending_candles()
        config = make_config(candles)

        with pytest.raises(InsufficientDataError) as exc_info:
            asyncio.run(run_backtest(config, candles[2:]))

        assert exc_info.value.required == 399
        assert exc_info.value.available == 398

    def test_no_candles_in_trading_period(self):
        """Test history that ends before start is rejected, not run empty."""
        candles = trending_candles()
        start = candles[-1].timestamp + timedelta(days=30)
        config = RunConfig(
            symbol="TEST", timeframe="1h", start=start, end=start + timedelta(hours=10)
        )

        with pytest.raises(InsufficientDataError) as exc_info:
            asyncio.run(run_backtest(config, candles))

        assert exc_info.value.required == 10
        assert exc_info.value.available == 0

    def test_short_lookback_before_start(self):
        """Test fewer than 200 candles before start is rejected."""
        candles = trending_candles()
        # 4h bars: the period needs only 75 candles, so the total count passes
        config = make_config(candles, timeframe="4h", start=candles[100].timestamp)

        with pytest.raises(InsufficientDataError) as exc_info:
            asyncio.run(run_backtest(config, candles))

        assert exc_info.value.required == 200
        assert exc_info.value.available == 100

    def test_candles_after_end_ignored(self):
        """Test candles past config.end do not count or trade."""
        candles = trending_candles()
        config = make_config(candles[:300])
        result = asyncio.run(run_backtest(config, candles, enhancer=NoOpEnhancer()))

        assert result.candles_processed == 100
        assert all(t.exit_time <= candles[299].timestamp for t in result.trades)

    def test_unordered_candles(self):
        """Test out-of-order candles are rejected before simulating."""
        candles = trending_candles()
        config = make_config(candles)
        candles[250], candles[251] = candles[251], candles[250]

        with pytest.raises(CandleSequenceError):
            asyncio.run(run_backtest(config, candles))

    def test_duplicate_candles(self):
        candles = trending_candles()
        config = make_config(candles)
        candles[260] = candles[259]

        with pytest.raises(CandleSequenceError):
            asyncio.run(run_backtest(config, candles))

    def test_step_errors_are_skipped(self):
        """Test a failing evaluation skips the step and the run continues."""
        candles = flat_candles()
        enhancer = FailingEnhancer(ValueError("bad analysis"))
        result = asyncio.run(run_backtest(make_config(candles), candles, enhancer=enhancer))

        assert enhancer.calls == result.candles_processed
        assert result.steps_skipped == result.candles_processed
        assert result.trades == ()
        assert len(result.equity_curve) > 0

    def test_assertion_errors_propagate(self):
        """Test broken invariants abort the run."""
        candles = flat_candles()
        enhancer = FailingEnhancer(AssertionError("invariant broken"))

        with pytest.raises(AssertionError):
            asyncio.run(run_backtest(make_config(candles), candles, enhancer=enhancer))


class TestRepeatability:
    """Tests for isolated, reproducible runs."""

    def test_engine_rerun_is_identical(self):
        """Test one engine produces identical results when run twice."""
        candles = trending_candles()
        engine = BacktestEngine(make_config(candles), enhancer=NoOpEnhancer())

        first = asyncio.run(engine.run(candles))
        second = asyncio.run(engine.run(candles))

        assert first.trades == second.trades
        assert first.stats == second.stats
        assert first.equity_curve == second.equity_curve
        assert first.final_capital == second.final_capital

    def test_concurrent_runs_match_sequential(self):
        """Test parallel parameter sets do not share state."""
        candles = trending_candles()
        configs = [
            make_config(candles),
            make_config(candles, take_profit_percent=3.0, max_positions=2),
            make_config(candles, risk_per_trade=2.0),
        ]

        results = asyncio.run(run_backtests(configs, candles, enhancer_factory=NoOpEnhancer))

        assert [r.config for r in results] == configs
        for config, result in zip(configs, results):
            single = asyncio.run(run_backtest(config, candles, enhancer=NoOpEnhancer()))
            assert result.trades == single.trades
            assert result.stats == single.stats
            assert result.final_capital == single.final_capital

    def test_synthetic_data_is_reproducible(self):
        """Test a seeded synthetic run is identical across invocations."""
        start, end = datetime(2024, 1, 1), datetime(2024, 1, 15)
        config = RunConfig(symbol="BTCUSDT", timeframe="1h", start=start, end=end)

        first = asyncio.run(
            run_backtest(config, SyntheticDataGenerator(seed=7).generate("1h", start, end))
        )
        second = asyncio.run(
            run_backtest(config, SyntheticDataGenerator(seed=7).generate("1h", start, end))
        )

        assert first.trades == second.trades
        assert first.stats == second.stats


if __name__ == "__main__":
    sys.exit(pytest.main([__file__, "-v"]))
