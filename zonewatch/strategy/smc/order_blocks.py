"""
Order Block Detection Module

Order Blocks are supply/demand zones identified by:
- An opposing candle (the block) immediately followed by an impulse candle
- The impulse body reaching a fixed multiple of the block body
- Freshness: price has not closed back through the block

Freshness is judged on a closing basis against the latest close only. A
candle that wicked through the block but closed outside it leaves the block
fresh.
"""

from typing import List

import pandas as pd
from loguru import logger

from zonewatch.shared.models.smc import OrderBlock
from zonewatch.shared.config.smc_config import SMCConfig


def is_fresh(ob_type: str, ob_high: float, ob_low: float, last_close: float) -> bool:
    """
    Closing-basis freshness.

    A bullish block stays fresh while the last close is above its low, a
    bearish block while the last close is below its high.
    """
    if ob_type == "bullish":
        return last_close > ob_low
    return last_close < ob_high


def detect_order_blocks(
    df: pd.DataFrame,
    config: SMCConfig | dict | None = None,
    fresh_only: bool = True,
) -> List[OrderBlock]:
    """
    Detect order blocks in the most recent candles.

    - Bullish OB: bearish candle followed by a bullish candle whose body is
      at least ob_impulse_body_ratio times the bearish body
    - Bearish OB: mirror

    Args:
        df: DataFrame with OHLC data
        config: SMCConfig, or dict with 'lookback' / 'max_results' / 'body_ratio'
        fresh_only: Drop mitigated blocks before limiting the result

    Returns:
        List[OrderBlock]: The most recent blocks (at most ob_max_results), oldest first
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
            mapped['ob_lookback'] = config['lookback']
        if 'max_results' in config:
            mapped['ob_max_results'] = config['max_results']
        if 'body_ratio' in config:
            mapped['ob_impulse_body_ratio'] = config['body_ratio']
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
    last_close = float(closes[-1])
    ratio = smc_cfg.ob_impulse_body_ratio

    start = max(0, n - smc_cfg.ob_lookback)
    blocks: List[OrderBlock] = []

    for i in range(start + 1, n - 1):
        block_body = abs(closes[i] - opens[i])
        impulse_body = abs(closes[i + 1] - opens[i + 1])
        if impulse_body < block_body * ratio:
            continue

        block_down = closes[i] < opens[i]
        block_up = closes[i] > opens[i]
        impulse_up = closes[i + 1] > opens[i + 1]
        impulse_down = closes[i + 1] < opens[i + 1]

        if block_down and impulse_up:
            ob_type = "bullish"
        elif block_up and impulse_down:
            ob_type = "bearish"
        else:
            continue

        high, low = float(highs[i]), float(lows[i])
        blocks.append(OrderBlock(
            type=ob_type,
            high=high,
            low=low,
            index=i,
            fresh=is_fresh(ob_type, high, low, last_close),
        ))

    if fresh_only:
        kept = [ob for ob in blocks if ob.fresh]
    else:
        kept = blocks
    recent = kept[-smc_cfg.ob_max_results:]
    logger.debug(f"OB scan over {n - start} candles: {len(blocks)} found, {len(recent)} kept")
    return recent
