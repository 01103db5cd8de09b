"""
Swing Structure Detection

Finds fractal swing points and classifies the market structure of a
timeframe from them:
- HHHL: higher highs and higher lows dominate (bullish)
- LHLL: lower highs and lower lows dominate (bearish)
- RANGE: neither dominates, or not enough swings to tell

A swing high is a candle whose high is strictly above every high within
`lookback` candles on both sides; swing lows mirror this. The comparison is
strict so that a flat top or bottom never produces two swings.
"""

from typing import List, Tuple

import numpy as np
import pandas as pd
from loguru import logger

from zonewatch.shared.models.smc import SwingPoint, TrendDirection, TrendResult


def find_swings(df: pd.DataFrame, lookback: int = 5) -> Tuple[List[SwingPoint], List[SwingPoint]]:
    """
    Detect swing highs and swing lows.

    Args:
        df: OHLCV DataFrame with positional RangeIndex
        lookback: Candles required on each side of the swing

    Returns:
        (swing_highs, swing_lows), each ordered by index. Both are empty when
        fewer than 2 * lookback + 1 candles are available.
    """
    if lookback < 1:
        raise ValueError(f"Swing lookback must be >= 1, got {lookback}")

    n = len(df)
    if n < 2 * lookback + 1:
        logger.debug(f"Not enough candles for swings (need {2 * lookback + 1}, got {n})")
        return [], []

    highs = df['high'].to_numpy(dtype=float)
    lows = df['low'].to_numpy(dtype=float)
    times = df['timestamp'].tolist() if 'timestamp' in df.columns else [None] * n

    swing_highs: List[SwingPoint] = []
    swing_lows: List[SwingPoint] = []

    for i in range(lookback, n - lookback):
        left = slice(i - lookback, i)
        right = slice(i + 1, i + lookback + 1)

        if highs[i] > highs[left].max() and highs[i] > highs[right].max():
            swing_highs.append(SwingPoint(index=i, price=float(highs[i]), time=times[i]))
        if lows[i] < lows[left].min() and lows[i] < lows[right].min():
            swing_lows.append(SwingPoint(index=i, price=float(lows[i]), time=times[i]))

    return swing_highs, swing_lows


def _count_transitions(points: List[SwingPoint]) -> Tuple[int, int]:
    """(rising, not rising) step counts; an equal step counts as not rising."""
    prices = np.array([p.price for p in points], dtype=float)
    if len(prices) < 2:
        return 0, 0
    rising = int((np.diff(prices) > 0).sum())
    return rising, len(prices) - 1 - rising


def classify_trend(
    swing_highs: List[SwingPoint],
    swing_lows: List[SwingPoint],
    swing_count: int = 4,
) -> TrendResult:
    """
    Classify structure from the most recent swings of each kind.

    Bullish when higher highs >= lower highs, higher lows >= lower lows and
    more than one rising step was seen in total; bearish is the mirror.
    Everything else, including too few swings, is a range.
    """
    recent_highs = swing_highs[-swing_count:]
    recent_lows = swing_lows[-swing_count:]

    hh, lh = _count_transitions(recent_highs)
    hl, ll = _count_transitions(recent_lows)

    if hh >= lh and hl >= ll and hh + hl > 1:
        direction, structure = TrendDirection.BULLISH, "HHHL"
    elif lh >= hh and ll >= hl and lh + ll > 1:
        direction, structure = TrendDirection.BEARISH, "LHLL"
    else:
        direction, structure = TrendDirection.RANGE, "RANGE"

    return TrendResult(
        direction=direction,
        swing_highs=list(recent_highs),
        swing_lows=list(recent_lows),
        structure=structure,
    )


def detect_trend(df: pd.DataFrame, lookback: int = 5, swing_count: int = 4) -> TrendResult:
    """
    Swing detection plus trend classification for one timeframe.

    Never raises for short history: fewer than 2 * lookback + 1 candles gives
    a range result with empty swing lists.
    """
    swing_highs, swing_lows = find_swings(df, lookback)
    if not swing_highs and not swing_lows:
        return TrendResult.neutral()

    trend = classify_trend(swing_highs, swing_lows, swing_count)
    logger.debug(
        f"Trend {trend.structure}: {len(swing_highs)} swing highs, {len(swing_lows)} swing lows (lookback={lookback})"
    )
    return trend
