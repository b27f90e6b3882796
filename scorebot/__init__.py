"""
scorebot - Signal-confidence engine and candle-by-candle backtester.

Flow: Historical Candles → Indicators → Confidence → Signal → Position Simulator → Stats
"""

__version__ = "0.1.0"
