"""
Synthetic Data Generator - Random-walk demo candles.

DEMO DATA ONLY. The backtest engine never falls back to this generator;
callers must choose it explicitly (e.g. `run_backtest.py --synthetic`).
"""

import logging
import random
from datetime import datetime

from scorebot.core.candle import Candle
from scorebot.core.config import timeframe_to_interval

logger = logging.getLogger(__name__)

PRE_ROLL_BARS = 300
START_PRICE = 40000.0

BAR_VOLATILITY = 0.015  # 1.5% range of the per-bar move
BAR_DRIFT = 0.00005  # Slight upward trend
MAX_WICK = 0.008
MIN_VOLUME = 800_000.0
VOLUME_RANGE = 1_600_000.0


class SyntheticDataGenerator:
    """
    Generates reproducible random-walk candles.

    Usage:
        generator = SyntheticDataGenerator(seed=42)
        candles = generator.generate("1h", start, end)
    """

    def __init__(self, seed: int | None = None, start_price: float = START_PRICE):
        self.seed = seed
        self.start_price = start_price

    def generate(
        self,
        timeframe: str,
        start: datetime,
        end: datetime,
        pre_roll: int = PRE_ROLL_BARS,
    ) -> list[Candle]:
        """
        Generate candles from `pre_roll` bars before start through end.

        The same seed and arguments always produce the same candles.
        """
        rng = random.Random(self.seed)
        interval = timeframe_to_interval(timeframe)

        current_time = start - interval * pre_roll
        price = self.start_price
        candles: list[Candle] = []

        while current_time <= end:
            move = (BAR_DRIFT + (rng.random() - 0.5) * BAR_VOLATILITY) * price
            open_price = price
            close = price + move
            high = max(open_price, close) * (1 + rng.random() * MAX_WICK)
            low = min(open_price, close) * (1 - rng.random() * MAX_WICK)
            volume = MIN_VOLUME + rng.random() * VOLUME_RANGE

            candles.append(
                Candle(
                    timestamp=current_time,
                    open=open_price,
                    high=high,
                    low=low,
                    close=close,
                    volume=volume,
                )
            )
            price = close
            current_time += interval

        logger.info(
            f"Generated {len(candles)} synthetic {timeframe} candles "
            f"({pre_roll} pre-roll bars, seed={self.seed})"
        )
        return candles
