"""
Zonewatch - multi-timeframe market structure and trade-signal engine.

Derives trend structure and key zones from daily / 4H / 30m candles, scores
confluence against the daily bias and emits a risk-bounded signal or a typed
HOLD reason, plus a week-ahead conditional plan.
"""

__version__ = "0.1.0"
