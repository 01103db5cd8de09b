"""
Tests for symbol list resolution.
"""

import json

import pytest

from zonewatch.shared.config.defaults import DEFAULT_SYMBOLS
from zonewatch.shared.config.symbols import load_stored_symbols, normalize_symbol, resolve_symbols, save_symbols


@pytest.mark.parametrize("raw,expected", [
    ("btc/usdt", "BTCUSDT"),
    (" sol ", "SOLUSDT"),
    ("ETH-USDT", "ETHUSDT"),
])
def test_normalize(raw, expected):
    assert normalize_symbol(raw) == expected


def test_explicit_list_wins(tmp_path):
    stored = tmp_path / "symbols.json"
    stored.write_text(json.dumps(["ADAUSDT"]))
    assert resolve_symbols(["eth", "ETHUSDT", "btc"], stored) == ["ETHUSDT", "BTCUSDT"]


def test_stored_list_used(tmp_path):
    path = save_symbols(["ada", "xrp"], tmp_path / "nested" / "symbols.json")
    assert resolve_symbols(None, path) == ["ADAUSDT", "XRPUSDT"]


def test_missing_file_falls_back_to_defaults(tmp_path):
    assert resolve_symbols([], tmp_path / "absent.json") == list(DEFAULT_SYMBOLS)


def test_malformed_file_is_ignored(tmp_path):
    path = tmp_path / "symbols.json"
    path.write_text("{not json")
    assert load_stored_symbols(path) is None

    path.write_text(json.dumps({"symbols": ["BTC"]}))
    assert load_stored_symbols(path) is None
