"""
Data models for OHLCV candles and the per-symbol market snapshot.

This module defines the input structures of the analysis pipeline: a single
candle, the conversion of candle lists into the DataFrame shape every layer
consumes, and the three-timeframe snapshot handed to the orchestrator.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Iterable, Union

import pandas as pd


CANDLE_COLUMNS = ['timestamp', 'open', 'high', 'low', 'close', 'volume']


@dataclass(frozen=True)
class OHLCV:
    """
    Single OHLCV (Open, High, Low, Close, Volume) candlestick.

    Attributes:
        timestamp: Candle open time (datetime or epoch milliseconds)
        open: Opening price
        high: Highest price during period
        low: Lowest price during period
        close: Closing price
        volume: Trading volume
    """
    timestamp: Union[datetime, int]
    open: float
    high: float
    low: float
    close: float
    volume: float

    def __post_init__(self):
        """Validate OHLCV relationships."""
        if self.high < self.low:
            raise ValueError(f"High ({self.high}) cannot be less than Low ({self.low})")
        if self.high < self.close or self.high < self.open:
            raise ValueError(f"High ({self.high}) must be >= Open ({self.open}) and Close ({self.close})")
        if self.low > self.close or self.low > self.open:
            raise ValueError(f"Low ({self.low}) must be <= Open ({self.open}) and Close ({self.close})")

    @property
    def body(self) -> float:
        return abs(self.close - self.open)

    @property
    def is_bullish(self) -> bool:
        return self.close > self.open


def candles_to_frame(candles: Iterable[OHLCV]) -> pd.DataFrame:
    """
    Convert candles to the DataFrame layout used by every layer.

    The frame keeps a positional RangeIndex so that row positions are the
    candle indices reported in swing points, gaps and order blocks.
    """
    rows = [
        (c.timestamp, float(c.open), float(c.high), float(c.low), float(c.close), float(c.volume))
        for c in candles
    ]
    return pd.DataFrame(rows, columns=CANDLE_COLUMNS)


@dataclass
class MarketSnapshot:
    """
    Three-timeframe market history for one symbol at one point in time.

    Attributes:
        symbol: Trading pair symbol (e.g., 'BTCUSDT')
        daily: 1D candles, oldest first
        h4: 4H candles, oldest first
        m30: 30m candles, oldest first
        price: Current (ticker) price
        change_24h: 24-hour percentage change
        metadata: Free-form provenance (exchange, fetch limits)
    """
    symbol: str
    daily: pd.DataFrame
    h4: pd.DataFrame
    m30: pd.DataFrame
    price: float
    change_24h: float = 0.0
    metadata: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        """Validate snapshot structure."""
        if not self.symbol:
            raise ValueError("Symbol cannot be empty")
        if self.price <= 0:
            raise ValueError(f"Price must be positive, got {self.price}")

        required_columns = set(CANDLE_COLUMNS) - {'timestamp'}
        for tf, df in (('1D', self.daily), ('4H', self.h4), ('30m', self.m30)):
            if not isinstance(df, pd.DataFrame):
                raise TypeError(f"Timeframe '{tf}' data must be a pandas DataFrame")
            missing_cols = required_columns - set(df.columns)
            if missing_cols:
                raise ValueError(f"Timeframe '{tf}' missing required columns: {sorted(missing_cols)}")
