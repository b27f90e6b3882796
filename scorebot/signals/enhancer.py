"""
Confidence enhancement - Optional adjustment of a base ConfidenceScore.

An enhancer receives the base score and a MarketAnalysis summary and may
return an adjusted score. The scoring core works with any implementation:
- NoOpEnhancer: returns the score unchanged
- MathematicalAdjuster: shifts confidence by the volatility forecast (default)
- OllamaConfidenceAdviser (scorebot.ai): asks a local LLM, falls back to math

The implementation is injected into the backtest engine, never chosen from
environment variables inside the core.
"""

from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Protocol

from scorebot.indicators import realized_volatility

from .confidence import ConfidenceScore

ANALYSIS_WINDOW = 20

# Volatility is annualized with daily scaling for the market summary
ANALYSIS_PERIODS_PER_YEAR = 365

# Max points the mathematical adjuster moves confidence (either way)
MAX_MATH_ADJUSTMENT = 5.0


class Sentiment(Enum):
    BULLISH = "BULLISH"
    BEARISH = "BEARISH"
    NEUTRAL = "NEUTRAL"


class Direction(Enum):
    UP = "UP"
    DOWN = "DOWN"
    SIDEWAYS = "SIDEWAYS"


@dataclass(frozen=True)
class MarketAnalysis:
    """Short-horizon market summary passed to enhancers."""

    sentiment: Sentiment
    volatility_forecast: float  # 0-1
    support_level: float
    resistance_level: float
    direction: Direction
    prediction_confidence: float  # 0-100
    target_price: float
    price_change_pct: float
    volume_ratio: float

    def to_dict(self) -> dict:
        """Convert to dictionary (used in adviser prompts)."""
        return {
            "sentiment": self.sentiment.value,
            "volatility_forecast": round(self.volatility_forecast, 4),
            "support_level": round(self.support_level, 2),
            "resistance_level": round(self.resistance_level, 2),
            "direction": self.direction.value,
            "prediction_confidence": round(self.prediction_confidence, 1),
            "target_price": round(self.target_price, 2),
            "price_change_pct": round(self.price_change_pct, 3),
            "volume_ratio": round(self.volume_ratio, 3),
        }


def analyze_market(
    prices: Sequence[float],
    volumes: Sequence[float],
    current_price: float,
) -> MarketAnalysis:
    """
    Build a technical market summary from the last 20 bars.

    Sentiment is directional only when the 20-bar move exceeds 2%
    and the latest volume is at least 1.2x its 20-bar average.

    Args:
        prices: Close prices (most recent last), at least 2
        volumes: Volumes aligned with prices
        current_price: Latest price

    Returns:
        MarketAnalysis
    """
    recent_prices = list(prices[-ANALYSIS_WINDOW:])
    recent_volumes = list(volumes[-ANALYSIS_WINDOW:])

    price_change = (recent_prices[-1] - recent_prices[0]) / recent_prices[0]
    volatility = realized_volatility(recent_prices, ANALYSIS_PERIODS_PER_YEAR) or 0.0

    avg_volume = sum(recent_volumes) / len(recent_volumes)
    volume_ratio = recent_volumes[-1] / avg_volume if avg_volume > 0 else 1.0

    if price_change > 0.02 and volume_ratio > 1.2:
        sentiment = Sentiment.BULLISH
        direction = Direction.UP
        confidence = min(85.0, 60 + price_change * 100 + (volume_ratio - 1) * 20)
        target_price = current_price * 1.025
    elif price_change < -0.02 and volume_ratio > 1.2:
        sentiment = Sentiment.BEARISH
        direction = Direction.DOWN
        confidence = min(85.0, 60 + abs(price_change * 100) + (volume_ratio - 1) * 20)
        target_price = current_price * 0.975
    else:
        sentiment = Sentiment.NEUTRAL
        direction = Direction.SIDEWAYS
        confidence = 45 + volatility * 10
        target_price = current_price

    return MarketAnalysis(
        sentiment=sentiment,
        volatility_forecast=min(1.0, volatility),
        support_level=min(recent_prices) * 0.99,
        resistance_level=max(recent_prices) * 1.01,
        direction=direction,
        prediction_confidence=round(confidence),
        target_price=target_price,
        price_change_pct=price_change * 100,
        volume_ratio=volume_ratio,
    )


class ConfidenceEnhancer(Protocol):
    """Capability interface for confidence adjustment."""

    async def enhance(self, score: ConfidenceScore, analysis: MarketAnalysis) -> ConfidenceScore:
        """Return an adjusted (or unchanged) score."""
        ...


class NoOpEnhancer:
    """Leaves the base score untouched."""

    async def enhance(self, score: ConfidenceScore, analysis: MarketAnalysis) -> ConfidenceScore:
        return score


class MathematicalAdjuster:
    """
    Purely mathematical adjustment from the volatility forecast.

    adjustment = (volatility_forecast - 0.5) * 10   → within ±5 points
    Applied to long confidence; short confidence mirrors it.
    """

    def adjustment_for(self, analysis: MarketAnalysis) -> float:
        points = (analysis.volatility_forecast - 0.5) * 2 * MAX_MATH_ADJUSTMENT
        return max(-MAX_MATH_ADJUSTMENT, min(MAX_MATH_ADJUSTMENT, points))

    async def enhance(self, score: ConfidenceScore, analysis: MarketAnalysis) -> ConfidenceScore:
        return score.adjusted(self.adjustment_for(analysis))
