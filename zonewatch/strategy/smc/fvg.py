"""
Fair Value Gap (FVG) Detection Module

Fair Value Gaps are price inefficiencies where:
- Candle 1's high/low does not overlap with Candle 3's low/high
- Candle 2 creates the gap and closed in its direction
- These gaps often act as support/resistance when revisited
"""

from typing import List

import pandas as pd
from loguru import logger

from zonewatch.shared.models.smc import FVG
from zonewatch.shared.config.smc_config import SMCConfig


def detect_fvgs(df: pd.DataFrame, config: SMCConfig | dict | None = None) -> List[FVG]:
    """
    Detect Fair Value Gaps in the most recent candles.

    FVG formation:
    - Bullish FVG: candle[i-2].high < candle[i].low and candle[i-1] closed up
    - Bearish FVG: candle[i-2].low > candle[i].high and candle[i-1] closed down

    Args:
        df: DataFrame with OHLC data
        config: SMCConfig, or dict with 'lookback' / 'max_results' overrides

    Returns:
        List[FVG]: The most recent gaps (at most fvg_max_results), oldest first
    """
    required_cols = ['open', 'high', 'low', 'close']
    missing_cols = [col for col in required_cols if col not in df.columns]
    if missing_cols:
        raise ValueError(f"DataFrame missing required columns: {missing_cols}")

    if config is None:
        smc_cfg = SMCConfig.defaults()
    elif isinstance(config, dict):
        mapped = {}
        if 'lookback' in config:
            mapped['fvg_lookback'] = config['lookback']
        if 'max_results' in config:
            mapped['fvg_max_results'] = config['max_results']
        smc_cfg = SMCConfig.from_dict(mapped)
    else:
        smc_cfg = config

    n = len(df)
    if n < 3:
        return []

    opens = df['open'].to_numpy(dtype=float)
    highs = df['high'].to_numpy(dtype=float)
    lows = df['low'].to_numpy(dtype=float)
    closes = df['close'].to_numpy(dtype=float)

    start = max(0, n - smc_cfg.fvg_lookback)
    fvgs: List[FVG] = []

    for i in range(start + 2, n):
        middle_up = closes[i - 1] > opens[i - 1]
        middle_down = closes[i - 1] < opens[i - 1]

        if highs[i - 2] < lows[i] and middle_up:
            fvgs.append(FVG(type="bullish", high=float(lows[i]), low=float(highs[i - 2]), index=i - 1))

        if lows[i - 2] > highs[i] and middle_down:
            fvgs.append(FVG(type="bearish", high=float(lows[i - 2]), low=float(highs[i]), index=i - 1))

    recent = fvgs[-smc_cfg.fvg_max_results:]
    logger.debug(f"FVG scan over {n - start} candles: {len(fvgs)} found, {len(recent)} kept")
    return recent
