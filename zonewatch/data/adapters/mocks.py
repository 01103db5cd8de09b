"""
Mock data generators for deterministic testing.
Creates synthetic OHLCV data with different market regimes, plus an
in-memory provider that serves them through the MarketDataProvider interface.
"""

from datetime import datetime, timedelta
from typing import Dict, Iterable, List, Optional, Tuple

import numpy as np
import pandas as pd

from zonewatch.data.adapters.binance import MarketDataError
from zonewatch.shared.config.defaults import FETCH_LIMITS
from zonewatch.shared.models.data import OHLCV, candles_to_frame

TIMEFRAME_STEPS = {'1D': timedelta(days=1), '4H': timedelta(hours=4), '30m': timedelta(minutes=30)}


def _build_candles(
    closes: np.ndarray,
    rng: np.random.RandomState,
    step: timedelta,
    wick_volatility: float,
) -> List[OHLCV]:
    start_time = datetime(2024, 1, 1)
    candles = []
    prev_close = closes[0]
    for i, close_price in enumerate(closes):
        open_price = prev_close
        high_price = max(open_price, close_price) * (1 + abs(rng.normal(0, wick_volatility)))
        low_price = min(open_price, close_price) * (1 - abs(rng.normal(0, wick_volatility)))
        candles.append(OHLCV(
            timestamp=start_time + step * i,
            open=round(float(open_price), 4),
            high=round(float(high_price), 4),
            low=round(float(low_price), 4),
            close=round(float(close_price), 4),
            volume=round(float(rng.uniform(100, 1000)), 2),
        ))
        prev_close = close_price
    return candles


def generate_trending_data(
    bars: int = 200,
    seed: int = 42,
    base_price: float = 100.0,
    drift: float = 0.004,
    timeframe: str = '4H',
) -> List[OHLCV]:
    """
    Generate trending OHLCV data; a negative drift trends down.

    A slow sine wave is layered on the drift so the series forms repeated
    swings instead of a straight line.
    """
    rng = np.random.RandomState(seed)
    t = np.arange(bars)
    log_path = drift * t + 0.04 * np.sin(t / 6.0) + np.cumsum(rng.normal(0, 0.004, bars))
    closes = base_price * np.exp(log_path)
    return _build_candles(closes, rng, TIMEFRAME_STEPS.get(timeframe, timedelta(hours=4)), 0.003)


def generate_ranging_data(
    bars: int = 200,
    seed: int = 42,
    base_price: float = 100.0,
    amplitude: float = 0.05,
    timeframe: str = '4H',
) -> List[OHLCV]:
    """Generate sideways OHLCV data oscillating around base_price."""
    rng = np.random.RandomState(seed)
    t = np.arange(bars)
    closes = base_price * (1 + amplitude * np.sin(t / 5.0) + rng.normal(0, 0.003, bars))
    return _build_candles(closes, rng, TIMEFRAME_STEPS.get(timeframe, timedelta(hours=4)), 0.003)


def generate_mock_ohlcv(regime: str, bars: int = 200, seed: int = 42, timeframe: str = '4H') -> List[OHLCV]:
    """
    Generate mock OHLCV data based on market regime.

    Args:
        regime: 'bullish', 'bearish' or 'ranging'
        bars: Number of bars to generate
        seed: Random seed for reproducibility
        timeframe: Candle spacing label

    Returns:
        List of OHLCV dataclass instances
    """
    if regime == "bullish":
        return generate_trending_data(bars, seed, drift=0.004, timeframe=timeframe)
    if regime == "bearish":
        return generate_trending_data(bars, seed, drift=-0.004, timeframe=timeframe)
    if regime == "ranging":
        return generate_ranging_data(bars, seed, timeframe=timeframe)
    raise ValueError(f"Unknown regime: {regime}. Use 'bullish', 'bearish', or 'ranging'")


class MockProvider:
    """
    In-memory market-data provider.

    Frames can be supplied per (symbol, timeframe); anything not supplied is
    generated from `regime` with a seed derived from the symbol name, so the
    same symbol always yields the same candles. Symbols listed in `failing`
    raise MarketDataError, mimicking an unreachable exchange. The ticker
    price is the last close of the 30m series the provider serves.
    """

    def __init__(
        self,
        frames: Optional[Dict[Tuple[str, str], pd.DataFrame]] = None,
        regime: str = "bullish",
        failing: Iterable[str] = (),
        change_24h: float = 0.0,
    ):
        self.frames = dict(frames or {})
        self.regime = regime
        self.failing = set(failing)
        self.change_24h = change_24h

    @staticmethod
    def _seed(symbol: str) -> int:
        return sum(ord(c) for c in symbol)

    def fetch_ohlcv(self, symbol: str, timeframe: str, limit: int = 200) -> pd.DataFrame:
        if symbol in self.failing:
            raise MarketDataError(f"{symbol} {timeframe}: exchange unavailable")
        frame = self.frames.get((symbol, timeframe))
        if frame is None:
            candles = generate_mock_ohlcv(self.regime, limit, self._seed(symbol), timeframe)
            frame = candles_to_frame(candles)
        return frame.tail(limit).reset_index(drop=True)

    def fetch_ticker(self, symbol: str) -> Tuple[float, float]:
        if symbol in self.failing:
            raise MarketDataError(f"{symbol} ticker: exchange unavailable")
        frame = self.fetch_ohlcv(symbol, '30m', FETCH_LIMITS['30m'])
        return float(frame['close'].iloc[-1]), self.change_24h
