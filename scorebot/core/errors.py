"""
Error types raised by the scoring and backtesting core.
"""


class BacktestError(Exception):
    """Base class for all scorebot errors."""


class InsufficientDataError(BacktestError):
    """Raised when fewer candles are available than a calculation needs."""

    def __init__(self, required: int, available: int, context: str = "") -> None:
        self.required = required
        self.available = available
        message = f"Insufficient data: required {required} data points, available {available}"
        if context:
            message = f"{message} ({context})"
        super().__init__(message)


class InvalidConfigurationError(BacktestError, ValueError):
    """Raised when a run configuration violates its bounds."""


class CandleSequenceError(BacktestError):
    """Raised when candles are not strictly ascending by timestamp."""
