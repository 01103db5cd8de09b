"""
Moving average indicators.

The EMA here is seeded: its first value is the simple average of the first
`period` closes and later values follow the standard smoothing recurrence
ema[t] = close[t] * k + ema[t-1] * (1 - k), with k = 2 / (period + 1).
"""

import logging
from typing import Optional, Union

import numpy as np
import pandas as pd

logger = logging.getLogger(__name__)


def compute_ema(data: Union[pd.DataFrame, pd.Series], period: int = 200) -> pd.Series:
    """
    Compute a seeded exponential moving average.

    When fewer than `period` values are available the seed window shrinks to
    the available history, so a short series still yields a value.

    Args:
        data: DataFrame with a 'close' column, or a Series of prices
        period: EMA period (default 200)

    Returns:
        pd.Series aligned with the input; values before the seed are NaN

    Raises:
        ValueError: If period < 1 or the DataFrame lacks a 'close' column
    """
    if period < 1:
        raise ValueError(f"EMA period must be >= 1, got {period}")
    if isinstance(data, pd.DataFrame):
        if 'close' not in data.columns:
            raise ValueError("DataFrame must contain 'close' column")
        close = data['close'].astype(float)
    else:
        close = data.astype(float)

    result = pd.Series(np.nan, index=close.index, dtype=float)
    if close.empty:
        return result

    window = min(period, len(close))
    if window < period:
        logger.debug("EMA(%d) seeded on %d values only", period, window)

    seed = close.iloc[:window].mean()
    tail = close.iloc[window:]
    seeded = pd.concat([pd.Series([seed], index=[close.index[window - 1]]), tail])
    smoothed = seeded.ewm(alpha=2.0 / (period + 1), adjust=False).mean()
    result.loc[smoothed.index] = smoothed.values
    return result


def latest_ema(data: Union[pd.DataFrame, pd.Series], period: int = 200) -> Optional[float]:
    """Last EMA value, or None for an empty series."""
    ema = compute_ema(data, period)
    if ema.empty or pd.isna(ema.iloc[-1]):
        return None
    return float(ema.iloc[-1])
