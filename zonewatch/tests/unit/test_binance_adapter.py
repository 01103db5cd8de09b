"""
Tests for the Binance adapter against an in-memory exchange.
"""

import ccxt
import pytest

from zonewatch.data.adapters.binance import BinanceAdapter, MarketDataError, to_exchange_symbol


class FakeExchange:
    def __init__(self, candles=None, ticker=None, errors=()):
        self.candles = candles if candles is not None else [
            [1704067200000, 100.0, 101.0, 99.0, 100.5, 10.0],
            [1704081600000, 100.5, 102.0, 100.0, 101.5, 12.0],
        ]
        self.ticker = ticker or {'last': 101.5, 'percentage': 2.5}
        self.errors = list(errors)
        self.calls = []

    def _maybe_fail(self):
        if self.errors:
            raise self.errors.pop(0)

    def fetch_ohlcv(self, symbol, timeframe='1h', limit=None):
        self.calls.append((symbol, timeframe, limit))
        self._maybe_fail()
        return self.candles

    def fetch_ticker(self, symbol):
        self._maybe_fail()
        return self.ticker


@pytest.mark.parametrize("raw,expected", [("BTCUSDT", "BTC/USDT"), ("ETH/USDT", "ETH/USDT"), ("BTCEUR", "BTCEUR")])
def test_exchange_symbol(raw, expected):
    assert to_exchange_symbol(raw) == expected


def test_fetch_ohlcv_maps_timeframe():
    exchange = FakeExchange()
    df = BinanceAdapter(exchange=exchange).fetch_ohlcv("BTCUSDT", "4H", limit=2)

    assert exchange.calls == [("BTC/USDT", "4h", 2)]
    assert list(df.columns) == ['timestamp', 'open', 'high', 'low', 'close', 'volume']
    assert df['close'].tolist() == [100.5, 101.5]
    assert str(df['timestamp'].iloc[0]) == "2024-01-01 00:00:00"


def test_fetch_ticker():
    assert BinanceAdapter(exchange=FakeExchange()).fetch_ticker("BTCUSDT") == (101.5, 2.5)


def test_ticker_without_price():
    adapter = BinanceAdapter(exchange=FakeExchange(ticker={'last': None}))
    with pytest.raises(MarketDataError, match="no last price"):
        adapter.fetch_ticker("BTCUSDT")


def test_empty_candles():
    with pytest.raises(MarketDataError, match="No 1D candles"):
        BinanceAdapter(exchange=FakeExchange(candles=[])).fetch_ohlcv("BTCUSDT", "1D")


def test_exchange_error_is_wrapped():
    adapter = BinanceAdapter(exchange=FakeExchange(errors=[ccxt.BadSymbol("unknown market")]))
    with pytest.raises(MarketDataError, match="unknown market"):
        adapter.fetch_ohlcv("XYZUSDT", "1D")


def test_rate_limit_is_retried():
    exchange = FakeExchange(errors=[ccxt.RateLimitExceeded("slow down")])
    df = BinanceAdapter(exchange=exchange, backoff=0).fetch_ohlcv("BTCUSDT", "30m", limit=2)

    assert len(df) == 2
    assert len(exchange.calls) == 2


def test_network_errors_exhaust_retries():
    errors = [ccxt.NetworkError("down")] * 3
    adapter = BinanceAdapter(exchange=FakeExchange(errors=errors), backoff=0)
    with pytest.raises(MarketDataError, match="down"):
        adapter.fetch_ticker("BTCUSDT")
