"""
Historical Data Source - Loads OHLCV candles from CSV.

Expected columns: timestamp,open,high,low,close,volume
Timestamps may be ISO-8601 strings or epoch milliseconds.
"""

import csv
import logging
from collections.abc import Iterator
from datetime import datetime, timezone
from pathlib import Path

from scorebot.core.candle import Candle, validate_sequence

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = ("timestamp", "open", "high", "low", "close", "volume")


def parse_timestamp(value: str) -> datetime:
    """Parse an ISO-8601 string or epoch milliseconds into a naive UTC datetime."""
    value = value.strip()
    if value.isdigit():
        return datetime.fromtimestamp(int(value) / 1000, tz=timezone.utc).replace(tzinfo=None)
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


class HistoricalDataSource:
    """
    Reads a historical CSV file into Candle objects.

    Usage:
        source = HistoricalDataSource("data/historical/BTCUSDT_1h_2024.csv")
        candles = source.candles
    """

    def __init__(self, filepath: str | Path):
        """
        Initialize with path to CSV file.

        Raises:
            FileNotFoundError: If the file does not exist
            ValueError: If the file is empty or misses required columns
        """
        self.filepath = Path(filepath)
        if not self.filepath.exists():
            raise FileNotFoundError(f"Historical data file not found: {filepath}")

        # Symbol from filename (e.g., "BTCUSDT_1h_..." -> "BTCUSDT")
        self.symbol = self.filepath.name.split("_")[0]

        self._candles: list[Candle] = []
        self._load_data()

    def _load_data(self) -> None:
        """Load CSV data into memory."""
        with self.filepath.open(newline="") as f:
            reader = csv.DictReader(f)
            missing = [c for c in REQUIRED_COLUMNS if c not in (reader.fieldnames or [])]
            if missing:
                raise ValueError(f"{self.filepath} is missing columns: {', '.join(missing)}")

            for row in reader:
                self._candles.append(
                    Candle(
                        timestamp=parse_timestamp(row["timestamp"]),
                        open=float(row["open"]),
                        high=float(row["high"]),
                        low=float(row["low"]),
                        close=float(row["close"]),
                        volume=float(row["volume"]),
                    )
                )

        if not self._candles:
            raise ValueError(f"No data found in {self.filepath}")

        self._candles.sort(key=lambda c: c.timestamp)
        validate_sequence(self._candles)
        logger.info(f"Loaded {len(self._candles)} candles from {self.filepath.name}")

    @property
    def candles(self) -> list[Candle]:
        return list(self._candles)

    @property
    def start_time(self) -> datetime:
        return self._candles[0].timestamp

    @property
    def end_time(self) -> datetime:
        return self._candles[-1].timestamp

    @property
    def candle_count(self) -> int:
        return len(self._candles)

    def stream(self) -> Iterator[Candle]:
        """Yield candles in chronological order."""
        yield from self._candles

    def __repr__(self) -> str:
        return (
            f"HistoricalDataSource({self.symbol}, "
            f"{self.candle_count} candles, "
            f"{self.start_time.strftime('%Y-%m-%d %H:%M')} to "
            f"{self.end_time.strftime('%Y-%m-%d %H:%M')})"
        )


def write_candles_csv(candles: list[Candle], filepath: str | Path) -> Path:
    """Write candles in the format HistoricalDataSource reads."""
    path = Path(filepath)
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", newline="") as f:
        writer = csv.DictWriter(f, fieldnames=list(REQUIRED_COLUMNS))
        writer.writeheader()
        for candle in candles:
            writer.writerow(candle.to_dict())
    return path
