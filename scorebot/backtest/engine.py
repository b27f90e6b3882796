"""
Backtest Engine - Replays the scoring pipeline candle by candle.

Flow per step:
    exits → indicators → confidence → enhancement → signal → entry → equity

The engine owns all mutable simulation state for the duration of one
run (open positions, realized capital, equity peak). Nothing survives
between runs except the returned BacktestResult, so one engine can be
run repeatedly and several engines can run side by side.
"""

import asyncio
import logging
import time
from collections.abc import Callable, Sequence

from scorebot.core.candle import Candle, validate_sequence
from scorebot.core.config import INDICATOR_LOOKBACK, RunConfig
from scorebot.core.errors import InsufficientDataError
from scorebot.indicators import IndicatorCalculator
from scorebot.signals import (
    ConfidenceEnhancer,
    ConfidenceScorer,
    MathematicalAdjuster,
    Signal,
    SignalGenerator,
    analyze_market,
)

from .models import BacktestResult, ClosedTrade, EquitySample
from .position_manager import PositionSimulator
from .stats import aggregate_stats

logger = logging.getLogger(__name__)

# Indicator window: the current candle plus the full lookback
WINDOW_SIZE = INDICATOR_LOOKBACK + 1


class BacktestEngine:
    """
    Runs one RunConfig against a fully materialized candle sequence.

    Usage:
        engine = BacktestEngine(config)
        result = await engine.run(candles)
        result.print_summary()
    """

    def __init__(
        self,
        config: RunConfig,
        enhancer: ConfidenceEnhancer | None = None,
    ) -> None:
        """
        Initialize the backtest engine.

        Args:
            config: Run configuration (echoed in the result)
            enhancer: Confidence enhancer; defaults to the MathematicalAdjuster
        """
        self.config = config
        self.enhancer = enhancer if enhancer is not None else MathematicalAdjuster()

        # Stateless components
        self.calculator = IndicatorCalculator()
        self.scorer = ConfidenceScorer()
        self.generator = SignalGenerator()

    def _trading_window(self, candles: Sequence[Candle]) -> tuple[list[Candle], int]:
        """
        Select the candles of this run and the index of the first trading step.

        Candles after config.end are ignored. Trading starts at the first
        candle at or after config.start, which needs the full lookback
        before it.

        Raises:
            InsufficientDataError: If the lookback before start or the
                requested period is not covered
        """
        config = self.config
        context = f"backtest {config.symbol} {config.timeframe}"
        in_range = [c for c in candles if c.timestamp <= config.end]
        required = config.required_candles

        if len(in_range) < required:
            raise InsufficientDataError(required=required, available=len(in_range), context=context)

        start_index = next(
            (i for i, c in enumerate(in_range) if c.timestamp >= config.start),
            len(in_range),
        )
        if start_index < INDICATOR_LOOKBACK:
            raise InsufficientDataError(
                required=INDICATOR_LOOKBACK,
                available=start_index,
                context=f"{context}, lookback before {config.start}",
            )

        period_candles = len(in_range) - start_index
        if period_candles < config.trading_bars:
            raise InsufficientDataError(
                required=config.trading_bars,
                available=period_candles,
                context=f"{context}, candles in {config.start} → {config.end}",
            )

        return in_range, start_index

    async def _evaluate_entry(self, window: Sequence[Candle]) -> Signal | None:
        """Score the trailing window and return a signal if one qualifies."""
        prices = [c.close for c in window]
        volumes = [c.volume for c in window]
        current_price = prices[-1]

        indicators = self.calculator.calculate(prices, volumes)
        confidence = self.scorer.score(
            indicators,
            prices,
            volumes,
            self.config.weights,
            periods_per_year=self.config.bars_per_year,
        )

        analysis = analyze_market(prices, volumes, current_price)
        confidence = await self.enhancer.enhance(confidence, analysis)

        return self.generator.generate(confidence, current_price, self.config.risk_params)

    async def run(self, candles: Sequence[Candle]) -> BacktestResult:
        """
        Run the backtest.

        Args:
            candles: Ascending candles covering the lookback and the run period

        Returns:
            BacktestResult with statistics, trades and the equity curve

        Raises:
            CandleSequenceError: If candles are unordered or duplicated
            InsufficientDataError: If there are not enough candles
        """
        start_time = time.time()
        config = self.config

        validate_sequence(candles)
        run_candles, start_index = self._trading_window(candles)

        logger.info(
            f"Starting backtest: {config.symbol} {config.timeframe} "
            f"{config.start:%Y-%m-%d} → {config.end:%Y-%m-%d}, "
            f"{len(run_candles) - start_index} steps"
        )

        # Fresh per-run state
        simulator = PositionSimulator(config.max_positions, config.min_position_value)
        capital = config.initial_capital
        peak = config.initial_capital
        max_drawdown = 0.0
        trades: list[ClosedTrade] = []
        equity_curve: list[EquitySample] = []
        signals_generated = 0
        steps_skipped = 0

        last_index = len(run_candles) - 1
        for i in range(start_index, last_index + 1):
            candle = run_candles[i]
            step = i - start_index

            # Exits first so a freed slot is available to this step's entry
            for trade in simulator.process_exits(candle):
                capital += trade.pnl
                trades.append(trade)

            if simulator.has_capacity:
                window = run_candles[i - INDICATOR_LOOKBACK : i + 1]
                try:
                    signal = await self._evaluate_entry(window)
                except (ArithmeticError, ValueError) as e:
                    steps_skipped += 1
                    logger.warning(f"Skipping entry evaluation at {candle.timestamp}: {e}")
                    signal = None

                if signal is not None:
                    signals_generated += 1
                    simulator.open_position(signal, capital, config.risk_fraction, candle.timestamp)

            # Equity and drawdown
            unrealized = simulator.unrealized_pnl(candle.close)
            equity = capital + unrealized
            peak = max(peak, equity)
            drawdown = (peak - equity) / peak if peak > 0 else 0.0
            max_drawdown = max(max_drawdown, drawdown)

            if step % config.equity_sample_interval == 0 or i == last_index:
                equity_curve.append(
                    EquitySample(
                        time=candle.timestamp,
                        equity=equity,
                        drawdown_fraction=drawdown,
                        realized_capital=capital,
                        unrealized_pnl=unrealized,
                        open_positions=simulator.open_count,
                    )
                )

        # Close any remaining positions
        for trade in simulator.close_all(run_candles[-1]):
            capital += trade.pnl
            trades.append(trade)

        stats = aggregate_stats(
            trades,
            config.initial_capital,
            capital,
            equity_curve,
            periods_per_year=config.bars_per_year / config.equity_sample_interval,
            bar_max_drawdown=max_drawdown,
        )

        execution_time = time.time() - start_time
        logger.info(
            f"Backtest complete: {stats.total_trades} trades, "
            f"{stats.win_rate:.2f}% win rate, {stats.total_return:+.2f}% return, "
            f"Runtime: {execution_time:.1f}s"
        )
        if steps_skipped:
            logger.warning(f"{steps_skipped} steps skipped during entry evaluation")

        return BacktestResult(
            config=config,
            stats=stats,
            trades=tuple(trades),
            equity_curve=tuple(equity_curve),
            final_capital=capital,
            candles_processed=last_index - start_index + 1,
            steps_skipped=steps_skipped,
            signals_generated=signals_generated,
            execution_time_seconds=execution_time,
        )


async def run_backtest(
    config: RunConfig,
    candles: Sequence[Candle],
    enhancer: ConfidenceEnhancer | None = None,
) -> BacktestResult:
    """
    Convenience function to run a single backtest.

    Example:
        result = await run_backtest(config, candles)
    """
    engine = BacktestEngine(config, enhancer=enhancer)
    return await engine.run(candles)


async def run_backtests(
    configs: Sequence[RunConfig],
    candles: Sequence[Candle],
    enhancer_factory: Callable[[], ConfidenceEnhancer] | None = None,
) -> list[BacktestResult]:
    """
    Run several parameter sets over the same candles.

    Each run gets its own engine (and enhancer, when a factory is given),
    so no position or equity state is shared between runs.

    Returns:
        Results in the same order as configs
    """
    engines = [
        BacktestEngine(config, enhancer=enhancer_factory() if enhancer_factory else None)
        for config in configs
    ]
    return list(await asyncio.gather(*(engine.run(candles) for engine in engines)))
