"""
Signals Module - Confidence scoring and signal generation.

Layer 2 of the scoring pipeline:
IndicatorSet → ConfidenceScore → (optional enhancement) → Signal
"""

from .confidence import ConfidenceScore, ConfidenceScorer
from .enhancer import (
    ConfidenceEnhancer,
    Direction,
    MarketAnalysis,
    MathematicalAdjuster,
    NoOpEnhancer,
    Sentiment,
    analyze_market,
)
from .generator import ENTRY_THRESHOLD, Side, Signal, SignalGenerator, protective_levels

__all__ = [
    # Confidence
    "ConfidenceScore",
    "ConfidenceScorer",
    # Enhancement
    "ConfidenceEnhancer",
    "Direction",
    "MarketAnalysis",
    "MathematicalAdjuster",
    "NoOpEnhancer",
    "Sentiment",
    "analyze_market",
    # Generation
    "ENTRY_THRESHOLD",
    "Side",
    "Signal",
    "SignalGenerator",
    "protective_levels",
]
