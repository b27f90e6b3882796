"""
Candle - A single immutable OHLCV bar.
"""

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime

from scorebot.core.errors import CandleSequenceError


@dataclass(frozen=True)
class Candle:
    """A single OHLCV candlestick."""

    timestamp: datetime  # Start of the bar
    open: float
    high: float
    low: float
    close: float
    volume: float = 0.0

    @property
    def is_bullish(self) -> bool:
        """Returns True if close >= open (green candle)."""
        return self.close >= self.open

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "timestamp": self.timestamp.isoformat(),
            "open": self.open,
            "high": self.high,
            "low": self.low,
            "close": self.close,
            "volume": self.volume,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Candle":
        """Create a candle from a dict (e.g. a CSV row)."""
        timestamp = data["timestamp"]
        if not isinstance(timestamp, datetime):
            timestamp = datetime.fromisoformat(str(timestamp))
        return cls(
            timestamp=timestamp,
            open=float(data["open"]),
            high=float(data["high"]),
            low=float(data["low"]),
            close=float(data["close"]),
            volume=float(data.get("volume", 0.0)),
        )


def validate_sequence(candles: Sequence[Candle]) -> None:
    """
    Ensure candles are strictly ascending by timestamp.

    Raises:
        CandleSequenceError: On out-of-order or duplicate timestamps
    """
    for i in range(1, len(candles)):
        previous = candles[i - 1].timestamp
        current = candles[i].timestamp
        if current == previous:
            raise CandleSequenceError(f"Duplicate candle timestamp at index {i}: {current}")
        if current < previous:
            raise CandleSequenceError(
                f"Candles out of order at index {i}: {current} comes after {previous}"
            )
