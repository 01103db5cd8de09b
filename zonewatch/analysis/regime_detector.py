"""
Market Context Detector

Classifies the prevailing regime of the 4H series. Checks run in a fixed
priority order and the first match wins:

1. expansion  - recent volume and recent candle range both reach expansion_multiplier x baseline
2. reversal   - the two latest swing highs and lows both move against the trend
3. pullback   - the last closes step steadily against a labelled trend
4. range      - none of the above

The detector holds configuration only; every call is independent.
"""
import logging
from typing import Optional

import numpy as np
import pandas as pd

from zonewatch.shared.config.smc_config import SMCConfig
from zonewatch.shared.models.regime import MarketContext
from zonewatch.shared.models.smc import TrendDirection, TrendResult

logger = logging.getLogger(__name__)


class ContextDetector:
    """Detects the 4H market context from volume, range and structure."""

    def __init__(self, config: Optional[SMCConfig] = None):
        self.config = config or SMCConfig.defaults()

    def detect(self, df: pd.DataFrame, trend: TrendResult) -> MarketContext:
        """
        Classify the context of a candle series.

        Args:
            df: 4H OHLCV DataFrame, oldest first
            trend: Trend classification of the same series

        Returns:
            MarketContext; RANGE when history is too short for every check
        """
        if self._is_expansion(df):
            return MarketContext.EXPANSION
        if self._is_reversal(trend):
            return MarketContext.REVERSAL
        if self._is_pullback(df, trend):
            return MarketContext.PULLBACK
        return MarketContext.RANGE

    def _is_expansion(self, df: pd.DataFrame) -> bool:
        cfg = self.config
        if len(df) < cfg.context_min_candles:
            logger.debug("Context: %d candles, expansion check needs %d", len(df), cfg.context_min_candles)
            return False

        recent_n = cfg.context_recent_candles
        volume = df['volume'].to_numpy(dtype=float)
        candle_range = (df['high'] - df['low']).to_numpy(dtype=float)

        recent_volume = volume[-recent_n:].mean()
        baseline_volume = volume[-(recent_n + cfg.context_volume_baseline):-recent_n].mean()
        recent_range = candle_range[-recent_n:].mean()
        baseline_range = candle_range[-(recent_n + cfg.context_range_baseline):-recent_n].mean()

        return bool(
            recent_volume >= baseline_volume * cfg.expansion_multiplier
            and recent_range >= baseline_range * cfg.expansion_multiplier
        )

    @staticmethod
    def _is_reversal(trend: TrendResult) -> bool:
        if trend.is_range or len(trend.swing_highs) < 2 or len(trend.swing_lows) < 2:
            return False
        prev_high, last_high = trend.swing_highs[-2].price, trend.swing_highs[-1].price
        prev_low, last_low = trend.swing_lows[-2].price, trend.swing_lows[-1].price

        if trend.direction == TrendDirection.BULLISH:
            return last_high < prev_high and last_low < prev_low
        return last_high > prev_high and last_low > prev_low

    def _is_pullback(self, df: pd.DataFrame, trend: TrendResult) -> bool:
        n = self.config.context_pullback_closes
        if trend.is_range or len(df) < n:
            return False
        steps = np.diff(df['close'].to_numpy(dtype=float)[-n:])
        if trend.direction == TrendDirection.BULLISH:
            return bool((steps <= 0).all())
        return bool((steps >= 0).all())


def detect_context(df: pd.DataFrame, trend: TrendResult, config: Optional[SMCConfig] = None) -> MarketContext:
    """Functional shortcut for ContextDetector(config).detect(df, trend)."""
    return ContextDetector(config).detect(df, trend)
