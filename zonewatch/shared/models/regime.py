"""
Market context (regime) model for the 4H timeframe.
"""

from enum import Enum


class MarketContext(str, Enum):
    """
    Prevailing regime of the execution timeframe.

    - RANGE: none of the other regimes detected
    - EXPANSION: volume and candle range both well above their baselines
    - PULLBACK: last closes moving steadily against a labelled trend
    - REVERSAL: latest swings moving against the labelled trend
    """
    RANGE = "range"
    EXPANSION = "expansion"
    PULLBACK = "pullback"
    REVERSAL = "structural-reversal"

    @property
    def allows_counter_trend(self) -> bool:
        return self in (MarketContext.PULLBACK, MarketContext.REVERSAL)
