"""
Confidence Scorer - Combines indicator components into a long/short confidence pair.

Four component scores (each 0-1) are weighted by the active StrategyWeights:
- momentum:   StochRSI %K crossing above %D without being overbought
- volume:     Bullish volume burst (PVSRA)
- trend:      EMA 50 above EMA 200
- volatility: Calm markets score higher (annualized realized volatility)

long_confidence = clamp(0, 100, sum(component * weight) * 100)
short_confidence = 100 - long_confidence
"""

from collections.abc import Sequence
from dataclasses import dataclass, replace

from scorebot.core.config import StrategyWeights
from scorebot.indicators import BurstSignal, IndicatorSet, realized_volatility

# Component levels
MOMENTUM_BULLISH = 0.8
MOMENTUM_BEARISH = 0.2
STOCH_OVERBOUGHT = 80.0

VOLUME_BULL_BURST = 0.9
VOLUME_DEFAULT = 0.3

TREND_UP = 0.8
TREND_DOWN = 0.2

# Annualized volatility at (or above) which the volatility score hits 0
VOLATILITY_CEILING = 1.0

DEFAULT_PERIODS_PER_YEAR = 365 * 24  # Hourly bars


def clamp(value: float, low: float = 0.0, high: float = 100.0) -> float:
    return max(low, min(high, value))


@dataclass(frozen=True)
class ConfidenceScore:
    """
    Long/short confidence with the component scores that produced it.

    adjustment holds the points added by an enhancer on top of the
    weighted score (0 for a base score), so that
        long_confidence == clamp(weighted_total(weights)) + adjustment
    """

    long_confidence: float  # 0-100
    short_confidence: float  # 100 - long_confidence
    momentum: float  # 0-1
    volume: float  # 0-1
    trend: float  # 0-1
    volatility: float  # 0-1
    adjustment: float = 0.0

    def __post_init__(self) -> None:
        """Validate score ranges."""
        if not 0 <= self.long_confidence <= 100:
            raise ValueError(f"long_confidence must be 0-100, got {self.long_confidence}")
        if self.long_confidence + self.short_confidence != 100:
            raise ValueError("long_confidence and short_confidence must sum to 100")
        for name in ("momentum", "volume", "trend", "volatility"):
            value = getattr(self, name)
            if not 0 <= value <= 1:
                raise ValueError(f"{name} score must be 0-1, got {value}")

    @classmethod
    def from_long(cls, long_confidence: float, **components: float) -> "ConfidenceScore":
        """Build a score from the long side, deriving the short side."""
        long_confidence = clamp(long_confidence)
        return cls(
            long_confidence=long_confidence,
            short_confidence=100 - long_confidence,
            **components,
        )

    def weighted_total(self, weights: StrategyWeights) -> float:
        """Unclamped weighted component sum, scaled to 0-100."""
        return (
            self.momentum * weights.momentum
            + self.volume * weights.volume
            + self.trend * weights.trend
            + self.volatility * weights.volatility
        ) * 100

    def adjusted(self, points: float) -> "ConfidenceScore":
        """
        Shift long confidence by points (short mirrors it).

        The recorded adjustment is the effective shift after clamping.
        """
        new_long = clamp(self.long_confidence + points)
        return replace(
            self,
            long_confidence=new_long,
            short_confidence=100 - new_long,
            adjustment=self.adjustment + (new_long - self.long_confidence),
        )

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "long_confidence": self.long_confidence,
            "short_confidence": self.short_confidence,
            "momentum": self.momentum,
            "volume": self.volume,
            "trend": self.trend,
            "volatility": self.volatility,
            "adjustment": self.adjustment,
        }


class ConfidenceScorer:
    """
    Scores an IndicatorSet into a ConfidenceScore.

    Stateless: the weights are passed on every call so that each
    backtest run scores with its own configuration.
    """

    def score(
        self,
        indicators: IndicatorSet,
        prices: Sequence[float],
        volumes: Sequence[float],
        weights: StrategyWeights,
        periods_per_year: float = DEFAULT_PERIODS_PER_YEAR,
    ) -> ConfidenceScore:
        """
        Calculate long/short confidence.

        Args:
            indicators: Indicators for the latest bar
            prices: Close prices of the same window (most recent last)
            volumes: Volumes of the same window
            weights: Component weights (validated to sum to 1.0)
            periods_per_year: Bars per year, used to annualize volatility

        Returns:
            ConfidenceScore with adjustment = 0
        """
        momentum = self.momentum_score(indicators)
        volume = self.volume_score(indicators)
        trend = self.trend_score(indicators)
        volatility = self.volatility_score(prices, periods_per_year)

        weighted = (
            momentum * weights.momentum
            + volume * weights.volume
            + trend * weights.trend
            + volatility * weights.volatility
        ) * 100

        return ConfidenceScore.from_long(
            weighted,
            momentum=momentum,
            volume=volume,
            trend=trend,
            volatility=volatility,
        )

    @staticmethod
    def momentum_score(indicators: IndicatorSet) -> float:
        """%K above %D and not overbought → continuation bias."""
        if indicators.stoch_rsi_k > indicators.stoch_rsi_d and indicators.stoch_rsi_k < STOCH_OVERBOUGHT:
            return MOMENTUM_BULLISH
        return MOMENTUM_BEARISH

    @staticmethod
    def volume_score(indicators: IndicatorSet) -> float:
        if indicators.volume_spike and indicators.burst_signal == BurstSignal.BULL:
            return VOLUME_BULL_BURST
        return VOLUME_DEFAULT

    @staticmethod
    def trend_score(indicators: IndicatorSet) -> float:
        return TREND_UP if indicators.is_uptrend else TREND_DOWN

    @staticmethod
    def volatility_score(prices: Sequence[float], periods_per_year: float) -> float:
        """
        Map annualized volatility onto 0-1, higher volatility → lower score.

        score = 1 - min(1, annualized_volatility / VOLATILITY_CEILING)
        """
        annualized = realized_volatility(prices, periods_per_year)
        if annualized is None:
            return 0.5
        return 1 - min(1.0, annualized / VOLATILITY_CEILING)
