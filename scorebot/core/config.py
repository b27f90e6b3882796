"""
Run configuration and thresholds.

Centralizes the tunable parameters of a backtest run. A RunConfig is
immutable: each orchestrator invocation receives its own instance, so
concurrent runs over different parameter sets never share weights or
risk settings.

All percentage values are expressed as percents (e.g., 2.0 = 2%).
"""

import math
from dataclasses import asdict, dataclass, field
from datetime import datetime, timedelta

from scorebot.core.errors import InvalidConfigurationError

# Bars needed before the first tradable candle (EMA-200 drives the trend score)
INDICATOR_LOOKBACK = 200

# Weight vector must sum to 1.0 within this tolerance
WEIGHT_SUM_TOLERANCE = 0.01

_TIMEFRAMES: dict[str, timedelta] = {
    "1m": timedelta(minutes=1),
    "5m": timedelta(minutes=5),
    "15m": timedelta(minutes=15),
    "1h": timedelta(hours=1),
    "4h": timedelta(hours=4),
    "1d": timedelta(days=1),
}

_SECONDS_PER_YEAR = 365 * 24 * 60 * 60


def timeframe_to_interval(timeframe: str) -> timedelta:
    """
    Get the bar interval for a timeframe string.

    Raises:
        InvalidConfigurationError: If the timeframe is not supported
    """
    try:
        return _TIMEFRAMES[timeframe]
    except KeyError:
        available = ", ".join(_TIMEFRAMES)
        raise InvalidConfigurationError(
            f"Unknown timeframe '{timeframe}'. Available: {available}"
        ) from None


def periods_per_year(timeframe: str) -> float:
    """Number of bars of this timeframe in a (365-day) year."""
    return _SECONDS_PER_YEAR / timeframe_to_interval(timeframe).total_seconds()


@dataclass(frozen=True)
class StrategyWeights:
    """
    Weight of each confidence component.

    long_confidence = sum(component * weight) * 100, so the weights
    must sum to 1.0 (within WEIGHT_SUM_TOLERANCE).
    """

    momentum: float = 0.35  # StochRSI continuation
    volume: float = 0.30  # PVSRA burst confirmation
    trend: float = 0.18  # EMA 50/200 alignment
    volatility: float = 0.17  # Realized volatility (calmer = higher)

    def __post_init__(self) -> None:
        """Validate weights."""
        for name, weight in self.to_dict().items():
            if not math.isfinite(weight) or weight < 0:
                raise InvalidConfigurationError(
                    f"Weight '{name}' must be a non-negative number, got {weight}"
                )
        if abs(self.total - 1.0) > WEIGHT_SUM_TOLERANCE:
            raise InvalidConfigurationError(
                f"Strategy weights must sum to 1.0 (±{WEIGHT_SUM_TOLERANCE}), got {self.total:.4f}"
            )

    @property
    def total(self) -> float:
        return self.momentum + self.volume + self.trend + self.volatility

    def to_dict(self) -> dict[str, float]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "StrategyWeights":
        """Create weights from a dict, defaulting missing components."""
        defaults = cls()
        return cls(
            momentum=float(data.get("momentum", defaults.momentum)),
            volume=float(data.get("volume", defaults.volume)),
            trend=float(data.get("trend", defaults.trend)),
            volatility=float(data.get("volatility", defaults.volatility)),
        )


@dataclass(frozen=True)
class RiskParams:
    """Stop-loss / take-profit offsets (percent of entry price)."""

    stop_loss_percent: float
    take_profit_percent: float


@dataclass(frozen=True)
class RunConfig:
    """
    Configuration for a single backtest run.

    Echoed back inside the result for auditability.
    """

    symbol: str
    timeframe: str
    start: datetime
    end: datetime
    initial_capital: float = 10000.0
    risk_per_trade: float = 1.0  # % of capital risked per trade
    max_positions: int = 1
    stop_loss_percent: float = 2.0
    take_profit_percent: float = 4.5
    weights: StrategyWeights = field(default_factory=StrategyWeights)

    # Record an equity sample every N bars (and always on the last bar)
    equity_sample_interval: int = 24

    # Floor for the notional value of a new position
    min_position_value: float = 10.0

    def __post_init__(self) -> None:
        """Validate configuration."""
        if not self.symbol:
            raise InvalidConfigurationError("symbol is required")
        timeframe_to_interval(self.timeframe)
        if self.end <= self.start:
            raise InvalidConfigurationError("end must be after start")
        if not math.isfinite(self.initial_capital) or self.initial_capital <= 0:
            raise InvalidConfigurationError("initial_capital must be a positive number")
        if not 0.1 <= self.risk_per_trade <= 10:
            raise InvalidConfigurationError("risk_per_trade must be between 0.1 and 10 (%)")
        if not 1 <= self.max_positions <= 10:
            raise InvalidConfigurationError("max_positions must be between 1 and 10")
        if not 0.5 <= self.stop_loss_percent <= 20:
            raise InvalidConfigurationError("stop_loss_percent must be between 0.5 and 20")
        if not 1 <= self.take_profit_percent <= 50:
            raise InvalidConfigurationError("take_profit_percent must be between 1 and 50")
        if self.equity_sample_interval < 1:
            raise InvalidConfigurationError("equity_sample_interval must be at least 1")
        if not math.isfinite(self.min_position_value) or self.min_position_value < 0:
            raise InvalidConfigurationError("min_position_value must be non-negative")

    @property
    def interval(self) -> timedelta:
        """Duration of one bar."""
        return timeframe_to_interval(self.timeframe)

    @property
    def bars_per_year(self) -> float:
        return periods_per_year(self.timeframe)

    @property
    def risk_fraction(self) -> float:
        """risk_per_trade as a fraction of capital."""
        return self.risk_per_trade / 100

    @property
    def risk_params(self) -> RiskParams:
        return RiskParams(
            stop_loss_percent=self.stop_loss_percent,
            take_profit_percent=self.take_profit_percent,
        )

    @property
    def trading_bars(self) -> int:
        """Bars implied by the [start, end] date range."""
        span = self.end - self.start
        bars, remainder = divmod(span, self.interval)
        return bars + (1 if remainder else 0)

    @property
    def required_candles(self) -> int:
        """Indicator lookback plus the requested trading period."""
        return INDICATOR_LOOKBACK + self.trading_bars

    def to_dict(self) -> dict:
        """Convert to a JSON-friendly dictionary."""
        return {
            "symbol": self.symbol,
            "timeframe": self.timeframe,
            "start": self.start.isoformat(),
            "end": self.end.isoformat(),
            "initial_capital": self.initial_capital,
            "risk_per_trade": self.risk_per_trade,
            "max_positions": self.max_positions,
            "stop_loss_percent": self.stop_loss_percent,
            "take_profit_percent": self.take_profit_percent,
            "weights": self.weights.to_dict(),
            "equity_sample_interval": self.equity_sample_interval,
            "min_position_value": self.min_position_value,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "RunConfig":
        """Create config from dictionary."""
        try:
            return cls(
                symbol=data["symbol"],
                timeframe=data.get("timeframe", "1h"),
                start=_parse_datetime(data["start"]),
                end=_parse_datetime(data["end"]),
                initial_capital=float(data.get("initial_capital", 10000.0)),
                risk_per_trade=float(data.get("risk_per_trade", 1.0)),
                max_positions=int(data.get("max_positions", 1)),
                stop_loss_percent=float(data.get("stop_loss_percent", 2.0)),
                take_profit_percent=float(data.get("take_profit_percent", 4.5)),
                weights=StrategyWeights.from_dict(data.get("weights") or {}),
                equity_sample_interval=int(data.get("equity_sample_interval", 24)),
                min_position_value=float(data.get("min_position_value", 10.0)),
            )
        except KeyError as e:
            raise InvalidConfigurationError(f"Missing required config field: {e.args[0]}") from e


def _parse_datetime(value: str | datetime) -> datetime:
    if isinstance(value, datetime):
        return value
    try:
        return datetime.fromisoformat(value)
    except ValueError as e:
        raise InvalidConfigurationError(f"Invalid datetime: {value!r}") from e
