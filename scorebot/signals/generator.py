"""
Signal Generator - Turns a confidence pair into a directional trading signal.

A signal is only produced when one side clears the entry threshold and
is strictly greater than the other side. Stop-loss and take-profit are
percentage offsets from the current price, taken from the run's RiskParams.
"""

from dataclasses import dataclass
from enum import Enum

from scorebot.core.config import RiskParams

from .confidence import ConfidenceScore

ENTRY_THRESHOLD = 65.0


class Side(Enum):
    """Trade direction."""

    LONG = "LONG"  # Betting price goes UP
    SHORT = "SHORT"  # Betting price goes DOWN


@dataclass(frozen=True)
class Signal:
    """A directional entry signal with protective levels."""

    side: Side
    confidence: float  # 0-100, confidence of the chosen side
    entry_price: float
    stop_loss: float
    take_profit: float
    reasoning: str

    @property
    def is_long(self) -> bool:
        return self.side == Side.LONG

    @property
    def is_short(self) -> bool:
        return self.side == Side.SHORT

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "side": self.side.value,
            "confidence": self.confidence,
            "entry_price": self.entry_price,
            "stop_loss": self.stop_loss,
            "take_profit": self.take_profit,
            "reasoning": self.reasoning,
        }


def protective_levels(side: Side, price: float, risk: RiskParams) -> tuple[float, float]:
    """
    Calculate (stop_loss, take_profit) for an entry.

    Long: stop below, target above. Short: mirrored.
    """
    stop_offset = risk.stop_loss_percent / 100
    target_offset = risk.take_profit_percent / 100

    if side == Side.LONG:
        return price * (1 - stop_offset), price * (1 + target_offset)
    return price * (1 + stop_offset), price * (1 - target_offset)


class SignalGenerator:
    """Applies the entry threshold and side-selection rule."""

    def __init__(self, threshold: float = ENTRY_THRESHOLD) -> None:
        self.threshold = threshold

    def select_side(self, confidence: ConfidenceScore) -> Side | None:
        """
        Pick the side that clears the threshold and beats the other side.

        Returns None when neither side qualifies or both are tied.
        """
        long_conf = confidence.long_confidence
        short_conf = confidence.short_confidence

        if long_conf >= self.threshold and long_conf > short_conf:
            return Side.LONG
        if short_conf >= self.threshold and short_conf > long_conf:
            return Side.SHORT
        return None

    def generate(
        self,
        confidence: ConfidenceScore,
        current_price: float,
        risk_params: RiskParams,
    ) -> Signal | None:
        """
        Generate a trading signal.

        Args:
            confidence: Long/short confidence for the current bar
            current_price: Entry price
            risk_params: Stop-loss / take-profit percentages from the run config

        Returns:
            Signal, or None if no side qualifies
        """
        side = self.select_side(confidence)
        if side is None:
            return None

        side_confidence = (
            confidence.long_confidence if side == Side.LONG else confidence.short_confidence
        )
        stop_loss, take_profit = protective_levels(side, current_price, risk_params)

        return Signal(
            side=side,
            confidence=side_confidence,
            entry_price=current_price,
            stop_loss=stop_loss,
            take_profit=take_profit,
            reasoning=(
                f"{side.name} signal generated with {side_confidence:.1f}% confidence "
                f"(momentum={confidence.momentum:.2f}, volume={confidence.volume:.2f}, "
                f"trend={confidence.trend:.2f}, volatility={confidence.volatility:.2f})"
            ),
        )
