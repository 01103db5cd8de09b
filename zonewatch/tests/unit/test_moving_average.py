"""
Tests for the seeded EMA.
"""

import math

import pandas as pd
import pytest

from zonewatch.indicators import compute_ema, latest_ema


def test_seed_is_simple_average():
    ema = compute_ema(pd.Series([1.0, 2.0, 3.0, 4.0, 5.0]), period=3)

    assert math.isnan(ema.iloc[0])
    assert math.isnan(ema.iloc[1])
    assert ema.iloc[2:].tolist() == pytest.approx([2.0, 3.0, 4.0])


def test_short_history_seeds_on_available_values():
    assert latest_ema(pd.Series([10.0, 20.0, 30.0]), period=200) == pytest.approx(20.0)


def test_accepts_dataframe():
    df = pd.DataFrame({'close': [1.0, 2.0, 3.0, 4.0, 5.0]})
    assert latest_ema(df, period=3) == pytest.approx(4.0)


def test_empty_series_has_no_value():
    assert latest_ema(pd.Series([], dtype=float), period=3) is None


def test_missing_close_column():
    with pytest.raises(ValueError, match="must contain 'close'"):
        compute_ema(pd.DataFrame({'open': [1.0]}))


def test_invalid_period():
    with pytest.raises(ValueError, match="EMA period must be >= 1"):
        compute_ema(pd.Series([1.0]), period=0)
