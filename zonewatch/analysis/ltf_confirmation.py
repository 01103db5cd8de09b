"""
30-Minute Confirmation

Checks the most recent 30m price action against the daily bias:
1. Breakout of the local range on strong volume. With the bias it confirms,
   against the bias it is reported but flagged unconfirmed.
2. Break-retest of a nearby S/R level followed by a rejection candle.
3. Long-wick rejection candle at a fresh extreme.
Absent any of these the verdict is "none" (wait).

Also hosts the break-then-retest setup detector used as the 30m signal
fallback when the 4H search finds nothing.
"""

from typing import List, Optional

import pandas as pd
from loguru import logger

from zonewatch.shared.config.smc_config import SMCConfig
from zonewatch.shared.models.planner import Bias, BreakRetest, Confirmation, ConfirmationType, meets_risk_reward
from zonewatch.shared.utils.report import fmt_price

# Retest wick / close factors around the level
RETEST_WICK_BAND = 0.002
RETEST_CLOSE_BAND = 0.003

# Break-retest setup windows (candles from the end of the series)
BREAK_RETEST_WINDOW = 20
BREAK_SEARCH = slice(-15, -5)
RETEST_SEARCH = slice(-5, None)
BREAK_CLOSE_BAND = 0.002
RETEST_PROXIMITY = 0.005
BREAK_RETEST_STOP_BAND = 0.003
BREAK_RETEST_TARGET_PCT = 0.03


def _wait(details: str, volume_strong: bool = False) -> Confirmation:
    return Confirmation(confirmed=False, type=ConfirmationType.NONE, details=details, volume_strong=volume_strong)


def confirm_30m(
    df: pd.DataFrame,
    bias: Bias,
    supports: List[float],
    resistances: List[float],
    config: Optional[SMCConfig] = None,
) -> Confirmation:
    """
    Classify the latest 30m price action against the daily bias.

    Args:
        df: 30m OHLCV DataFrame, oldest first
        bias: Daily bias; a neutral bias never confirms
        supports: Known supports (ascending)
        resistances: Known resistances (ascending)
        config: SMCConfig with confirm_* parameters

    Returns:
        Confirmation verdict
    """
    cfg = config or SMCConfig.defaults()
    if len(df) < cfg.confirm_min_candles:
        return _wait(f"Not enough 30m data ({len(df)} candles)")
    if bias == Bias.NEUTRAL:
        return _wait("No daily bias - wait for structure")

    long = bias == Bias.LONG
    recent = df.iloc[-cfg.confirm_window:]
    last = recent.iloc[-1]
    prev = recent.iloc[-2]
    price = float(last['close'])
    last_up = last['close'] > last['open']
    last_down = last['close'] < last['open']

    volume = recent['volume'].to_numpy(dtype=float)
    volume_strong = bool(volume[-3:].mean() > volume[:10].mean() * cfg.confirm_volume_ratio)

    local = recent.iloc[-cfg.confirm_local_range:]
    local_high = float(local['high'].max())
    local_low = float(local['low'].min())
    tolerance = (local_high - local_low) * cfg.confirm_range_tolerance

    break_up = bool(last['close'] > local_high - tolerance and last_up and volume_strong)
    break_down = bool(last['close'] < local_low + tolerance and last_down and volume_strong)

    # 1. Breakout
    if long and break_up:
        return Confirmation(True, ConfirmationType.BREAKOUT,
                            f"Bullish breakout of ${fmt_price(local_high)} with the LONG bias, volume OK", volume_strong)
    if not long and break_down:
        return Confirmation(True, ConfirmationType.BREAKOUT,
                            f"Bearish breakout of ${fmt_price(local_low)} with the SHORT bias, volume OK", volume_strong)
    if long and break_down:
        return Confirmation(False, ConfirmationType.BREAKOUT,
                            f"Bearish breakout of ${fmt_price(local_low)} against the LONG bias - wait for a return",
                            volume_strong)
    if not long and break_up:
        return Confirmation(False, ConfirmationType.BREAKOUT,
                            f"Bullish breakout of ${fmt_price(local_high)} against the SHORT bias - wait for a return",
                            volume_strong)

    # 2. Break-retest of a nearby level
    proximity = cfg.confirm_retest_proximity_pct
    if long:
        level = next((s for s in supports if abs(price - s) / price < proximity), None)
        if level is not None and prev['low'] < level * (1 + RETEST_WICK_BAND) \
                and last['close'] > level * (1 + RETEST_CLOSE_BAND) and last_up:
            return Confirmation(True, ConfirmationType.RETEST,
                                f"Break-retest of support ${fmt_price(level)} + bullish rejection", volume_strong)
    else:
        level = next((r for r in resistances if abs(price - r) / price < proximity), None)
        if level is not None and prev['high'] > level * (1 - RETEST_WICK_BAND) \
                and last['close'] < level * (1 - RETEST_CLOSE_BAND) and last_down:
            return Confirmation(True, ConfirmationType.RETEST,
                                f"Break-retest of resistance ${fmt_price(level)} + bearish rejection", volume_strong)

    # 3. Rejection candle (small body, long wick)
    total = float(last['high'] - last['low'])
    body = abs(float(last['close'] - last['open']))
    if total > 0 and body / total < cfg.confirm_reject_body_ratio:
        swept_low = last['low'] < prev['low']
        swept_high = last['high'] > prev['high']
        if long and last_up and swept_low:
            return Confirmation(True, ConfirmationType.REJECT, "Bullish 30m rejection (long lower wick)", volume_strong)
        if not long and last_down and swept_high:
            return Confirmation(True, ConfirmationType.REJECT, "Bearish 30m rejection (long upper wick)", volume_strong)
        if long and last_down and swept_high:
            return Confirmation(False, ConfirmationType.REJECT, "Selling pressure on 30m against the LONG bias",
                                volume_strong)
        if not long and last_up and swept_low:
            return Confirmation(False, ConfirmationType.REJECT, "Buying pressure on 30m against the SHORT bias",
                                volume_strong)

    return _wait("No 30m confirmation - WAIT", volume_strong)


def detect_break_retest(
    df: pd.DataFrame,
    supports: List[float],
    resistances: List[float],
    long: bool,
) -> Optional[BreakRetest]:
    """
    Find a break-then-retest of a known level on the 30m series.

    For longs each support is checked for a close above it (plus a small
    band) in the break window, a touch back within the retest window and a
    bullish last candle closing above it. Shorts mirror this on resistances.
    Only setups with reward/risk >= 1 are returned.
    """
    if len(df) < BREAK_RETEST_WINDOW:
        return None

    recent = df.iloc[-BREAK_RETEST_WINDOW:]
    last = recent.iloc[-1]
    entry = float(last['close'])
    break_closes = recent['close'].iloc[BREAK_SEARCH]
    retest = recent.iloc[RETEST_SEARCH]

    for level in (supports if long else resistances):
        retested = bool(
            ((retest['low'] - level).abs() / entry < RETEST_PROXIMITY).any()
            or ((retest['high'] - level).abs() / entry < RETEST_PROXIMITY).any()
        )
        if not retested:
            continue

        if long:
            broke = bool((break_closes > level * (1 + BREAK_CLOSE_BAND)).any())
            if not (broke and entry > level and last['close'] > last['open']):
                continue
            stop = level * (1 - BREAK_RETEST_STOP_BAND)
            above = [r for r in resistances if r > entry]
            if above:
                target, source = above[0], "Resistance"
            else:
                target, source = entry * (1 + BREAK_RETEST_TARGET_PCT), "+3%"
        else:
            broke = bool((break_closes < level * (1 - BREAK_CLOSE_BAND)).any())
            if not (broke and entry < level and last['close'] < last['open']):
                continue
            stop = level * (1 + BREAK_RETEST_STOP_BAND)
            below = [s for s in supports if s < entry]
            if below:
                target, source = below[-1], "Support"
            else:
                target, source = entry * (1 - BREAK_RETEST_TARGET_PCT), "-3%"

        setup = BreakRetest(level=level, entry=entry, stop_loss=stop, take_profit=target, take_profit_source=source)
        if meets_risk_reward(setup.risk_reward):
            logger.debug(f"Break-retest at {level:.4f}: entry {entry:.4f}, R:R {setup.risk_reward:.2f}")
            return setup

    return None
