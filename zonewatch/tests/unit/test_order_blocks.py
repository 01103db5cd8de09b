"""
Tests for order block detection and closing-basis freshness.
"""

import pytest

from zonewatch.strategy.smc.order_blocks import detect_order_blocks, is_fresh
from zonewatch.tests.fixtures.candles import make_frame

BASE = [
    (100, 101, 99, 100.2),
    (100.2, 100.5, 99.0, 99.2),  # bearish block candle
    (99.2, 102.5, 99.1, 102.0),  # bullish impulse
    (102, 102.6, 101.5, 102.3),
]


def test_bullish_block():
    obs = detect_order_blocks(make_frame(BASE))

    assert len(obs) == 1
    ob = obs[0]
    assert ob.type == "bullish"
    assert (ob.high, ob.low, ob.index) == (100.5, 99.0, 1)
    assert ob.fresh is True
    assert ob.quality == 0


def test_close_through_block_mitigates_it():
    rows = BASE + [(102.3, 102.4, 98.0, 98.5)]
    df = make_frame(rows)

    fresh = detect_order_blocks(df)
    assert [(ob.type, ob.index) for ob in fresh] == [("bearish", 3)]

    everything = detect_order_blocks(df, fresh_only=False)
    assert [(ob.type, ob.index, ob.fresh) for ob in everything] == [
        ("bullish", 1, False),
        ("bearish", 3, True),
    ]


def test_wick_through_block_keeps_it_fresh():
    """Freshness is judged on closes only: a wick below the block low does not mitigate it."""
    rows = BASE + [(102.3, 102.4, 98.5, 99.5)]
    obs = detect_order_blocks(make_frame(rows))

    bullish = [ob for ob in obs if ob.type == "bullish"]
    assert len(bullish) == 1
    assert bullish[0].fresh is True


def test_impulse_at_exact_ratio_counts():
    rows = [
        (100, 103, 99, 102),
        (102, 102.5, 99.5, 100),  # bearish body 2
        (100, 103.5, 99.8, 103),  # bullish body 3, exactly 1.5x
        (103, 103.4, 102.6, 103.1),
    ]
    obs = detect_order_blocks(make_frame(rows))

    assert [(ob.type, ob.index) for ob in obs] == [("bullish", 1)]


def test_small_impulse_is_ignored():
    rows = list(BASE)
    rows[2] = (99.2, 100.8, 99.1, 100.4)  # body 1.2 < 1.5 * 1.0
    assert detect_order_blocks(make_frame(rows)) == []


@pytest.mark.parametrize("ob_type,high,low,close,expected", [
    ("bullish", 100.5, 99.0, 99.5, True),
    ("bullish", 100.5, 99.0, 98.9, False),
    ("bearish", 102.6, 101.5, 102.5, True),
    ("bearish", 102.6, 101.5, 102.7, False),
])
def test_is_fresh(ob_type, high, low, close, expected):
    assert is_fresh(ob_type, high, low, close) is expected


def test_body_ratio_override():
    rows = list(BASE)
    rows[2] = (99.2, 100.8, 99.1, 100.4)
    obs = detect_order_blocks(make_frame(rows), {'body_ratio': 1.1})
    assert [ob.index for ob in obs] == [1]
