"""
Reusable candle fixtures for testing.

Hand-built frames with known geometry: every helper is deterministic, so
swing indices, gap bounds and cluster prices can be asserted exactly.
"""

from typing import Iterable, List, Optional, Sequence

import numpy as np
import pandas as pd

from zonewatch.shared.models.data import CANDLE_COLUMNS, MarketSnapshot, candles_to_frame
from zonewatch.data.adapters.mocks import generate_mock_ohlcv


def make_frame(rows: Iterable[Sequence[float]], volume: float = 1000.0) -> pd.DataFrame:
    """
    Frame from (open, high, low, close) or (open, high, low, close, volume) rows.

    Timestamps are the row positions.
    """
    data = []
    for i, row in enumerate(rows):
        o, h, l, c = row[:4]
        v = row[4] if len(row) > 4 else volume
        data.append((i, float(o), float(h), float(l), float(c), float(v)))
    return pd.DataFrame(data, columns=CANDLE_COLUMNS)


def zigzag(pivots: Sequence[float], leg: int = 6) -> List[float]:
    """Linear path through the pivots; pivot j lands exactly on index j * leg."""
    path: List[float] = []
    for a, b in zip(pivots, pivots[1:]):
        path.extend(np.linspace(a, b, leg + 1)[:-1].tolist())
    path.append(float(pivots[-1]))
    return path


def path_frame(prices: Sequence[float], wick: float = 0.5, volume: float = 1000.0) -> pd.DataFrame:
    """
    One candle per price: high = p + wick, low = p - wick.

    The body is half the wick and points in the direction of travel, so all
    bodies are equal and no order block can form.
    """
    rows = []
    prev = prices[0]
    for p in prices:
        half = wick / 4
        if p >= prev:
            o, c = p - half, p + half
        else:
            o, c = p + half, p - half
        rows.append((o, p + wick, p - wick, c, volume))
        prev = p
    return make_frame(rows)


# Pivot sequences (leg=6): highs/lows land on multiples of 6
BULLISH_PIVOTS = [100, 110, 104, 116, 108, 122, 112, 128]
BEARISH_PIVOTS = [130, 120, 126, 114, 120, 108, 114, 100]
EXPANDING_PIVOTS = [105, 110, 100, 114, 96, 118, 92, 105]


def mock_frame(regime: str, bars: int, seed: int, timeframe: str = '4H') -> pd.DataFrame:
    return candles_to_frame(generate_mock_ohlcv(regime, bars, seed, timeframe))


def mock_snapshot(symbol: str = "BTCUSDT", regime: str = "bullish", seed: int = 7,
                  price: Optional[float] = None) -> MarketSnapshot:
    """Three-timeframe snapshot built from the synthetic generators."""
    daily = mock_frame(regime, 200, seed, '1D')
    h4 = mock_frame(regime, 200, seed + 1, '4H')
    m30 = mock_frame(regime, 100, seed + 2, '30m')
    return MarketSnapshot(
        symbol=symbol,
        daily=daily,
        h4=h4,
        m30=m30,
        price=float(m30['close'].iloc[-1]) if price is None else price,
        change_24h=1.5,
    )
