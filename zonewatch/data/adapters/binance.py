"""
Binance market-data adapter for fetching OHLCV candles and the live ticker.
Implements retry logic and rate limit handling.

This is the engine's system boundary: every blocking call lives here, and
every failure surfaces as MarketDataError so the orchestrator can skip the
symbol and carry on.
"""

import time
from functools import wraps
from typing import Protocol, Tuple

import ccxt
import pandas as pd
from loguru import logger

from zonewatch.shared.models.data import CANDLE_COLUMNS

# Engine timeframe labels -> ccxt timeframe strings
TIMEFRAME_MAP = {'1D': '1d', '4H': '4h', '30m': '30m'}


class MarketDataError(RuntimeError):
    """Raised when candles or the ticker cannot be obtained for a symbol."""


class MarketDataProvider(Protocol):
    """What the orchestrator needs from a market-data collaborator."""

    def fetch_ohlcv(self, symbol: str, timeframe: str, limit: int) -> pd.DataFrame:
        ...

    def fetch_ticker(self, symbol: str) -> Tuple[float, float]:
        """(last price, 24h percentage change)."""
        ...


def to_exchange_symbol(symbol: str) -> str:
    """'BTCUSDT' -> 'BTC/USDT'; symbols already in ccxt form pass through."""
    if '/' in symbol:
        return symbol
    if symbol.endswith('USDT'):
        return f"{symbol[:-4]}/USDT"
    return symbol


def _retry_on_rate_limit(max_retries: int = 3, backoff: float = 1.0):
    """
    Decorator to retry function calls on rate limit and network errors.

    Args:
        max_retries: Maximum number of retry attempts
        backoff: Initial backoff time in seconds (doubles on each retry)
    """
    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            retries = 0
            current_backoff = backoff

            while True:
                try:
                    return func(*args, **kwargs)
                except ccxt.RateLimitExceeded:
                    retries += 1
                    if retries >= max_retries:
                        logger.error(f"Rate limit exceeded after {max_retries} retries")
                        raise
                    logger.warning(
                        f"Rate limit hit, retrying in {current_backoff}s "
                        f"(attempt {retries}/{max_retries})"
                    )
                except ccxt.NetworkError as e:
                    retries += 1
                    if retries >= max_retries:
                        logger.error(f"Network error after {max_retries} retries: {e}")
                        raise
                    logger.warning(f"Network error, retrying in {current_backoff}s: {e}")
                time.sleep(current_backoff)
                current_backoff *= 2

        return wrapper
    return decorator


class BinanceAdapter:
    """
    Adapter for Binance spot market data using the ccxt library.
    Handles data fetching with rate limiting and error recovery.
    """

    def __init__(self, exchange=None, backoff: float = 1.0):
        """
        Initialize Binance exchange connection.

        Args:
            exchange: Pre-built ccxt exchange (tests inject a fake); defaults
                to ccxt.binance with rate limiting enabled
            backoff: Initial retry backoff in seconds
        """
        self.exchange = exchange or ccxt.binance({'enableRateLimit': True})
        self.backoff = backoff
        logger.info("Binance adapter initialized")

    def fetch_ohlcv(self, symbol: str, timeframe: str, limit: int = 200) -> pd.DataFrame:
        """
        Fetch OHLCV (candlestick) data.

        Args:
            symbol: Engine symbol (e.g., 'BTCUSDT')
            timeframe: Engine timeframe ('1D', '4H', '30m')
            limit: Number of candles to fetch

        Returns:
            DataFrame with columns: timestamp, open, high, low, close, volume,
            oldest first with a positional index

        Raises:
            MarketDataError: On exchange errors, exhausted retries or no data
        """
        tf = TIMEFRAME_MAP.get(timeframe, timeframe)
        market = to_exchange_symbol(symbol)
        try:
            logger.debug(f"Fetching {limit} {tf} candles for {market}")
            raw = self._call(self.exchange.fetch_ohlcv, market, timeframe=tf, limit=limit)
        except ccxt.BaseError as e:
            logger.error(f"Exchange error fetching {market} {tf}: {e}")
            raise MarketDataError(f"{symbol} {timeframe}: {e}") from e

        if not raw:
            raise MarketDataError(f"No {timeframe} candles returned for {symbol}")

        df = pd.DataFrame(raw, columns=CANDLE_COLUMNS)
        df['timestamp'] = pd.to_datetime(df['timestamp'], unit='ms')
        for col in CANDLE_COLUMNS[1:]:
            df[col] = df[col].astype(float)

        logger.info(f"✓ Fetched {len(df)} candles for {market} {tf}")
        return df.reset_index(drop=True)

    def fetch_ticker(self, symbol: str) -> Tuple[float, float]:
        """
        Fetch the current price and 24h percentage change.

        Raises:
            MarketDataError: On exchange errors or a ticker without a last price
        """
        market = to_exchange_symbol(symbol)
        try:
            ticker = self._call(self.exchange.fetch_ticker, market)
        except ccxt.BaseError as e:
            logger.error(f"Exchange error fetching ticker for {market}: {e}")
            raise MarketDataError(f"{symbol} ticker: {e}") from e

        last = ticker.get('last')
        if last is None:
            raise MarketDataError(f"Ticker for {symbol} has no last price")
        change = ticker.get('percentage') or 0.0
        logger.debug(f"Fetched ticker for {market}: {last}")
        return float(last), float(change)

    def _call(self, func, *args, **kwargs):
        return _retry_on_rate_limit(max_retries=3, backoff=self.backoff)(func)(*args, **kwargs)
