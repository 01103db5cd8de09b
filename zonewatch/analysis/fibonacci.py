"""Fibonacci Retracement Calculator

Calculates retracement levels from the most recent completed swing leg of a
timeframe. The 50% and 61.8% levels bound the "golden zone"; 78.6% is the
deepest level still consistent with the leg and anchors protective stops.

For a BULLISH leg (low then high) retracements are measured DOWN from the
swing high; for a BEARISH leg (high then low) they are measured UP from the
swing low.
"""

from typing import List, Optional, Tuple

from zonewatch.shared.models.smc import FibLevel, FibLevels, SwingPoint, TrendDirection, TrendResult

# (label, ratio) in table order
FIB_RATIOS: List[Tuple[str, float]] = [
    ("0%", 0.0),
    ("23.6%", 0.236),
    ("38.2%", 0.382),
    ("50%", 0.5),
    ("61.8%", 0.618),
    ("78.6%", 0.786),
    ("100%", 1.0),
]

EXTENSION_RATIO = 1.618


def calculate_fib_levels(swing_low: float, swing_high: float, bullish: bool) -> Optional[FibLevels]:
    """
    Calculate the retracement table for one leg.

    Args:
        swing_low: Leg low
        swing_high: Leg high
        bullish: True for a low-then-high leg

    Returns:
        FibLevels, or None when swing_high <= swing_low
    """
    if swing_high <= swing_low:
        return None

    range_size = swing_high - swing_low
    levels = []
    for label, ratio in FIB_RATIOS:
        if bullish:
            price = swing_high - range_size * ratio
        else:
            price = swing_low + range_size * ratio
        levels.append(FibLevel(label=label, ratio=ratio, price=price))

    by_ratio = {lvl.ratio: lvl.price for lvl in levels}
    return FibLevels(
        swing_low=swing_low,
        swing_high=swing_high,
        bullish=bullish,
        levels=levels,
        zone50=by_ratio[0.5],
        zone618=by_ratio[0.618],
        zone786=by_ratio[0.786],
    )


def _latest_before(points: List[SwingPoint], index: int) -> Optional[SwingPoint]:
    earlier = [p for p in points if p.index < index]
    return earlier[-1] if earlier else None


def select_leg(trend: TrendResult) -> Optional[Tuple[float, float, bool]]:
    """
    Pick the most recent completed swing leg for the trend's context.

    - bullish: last swing high and the latest swing low before it
    - bearish: last swing low and the latest swing high before it
    - range: whichever of the last swing high / low is more recent ends the leg

    Returns:
        (swing_low, swing_high, bullish) or None when no such pair exists
    """
    last_high = trend.last_swing_high
    last_low = trend.last_swing_low
    if last_high is None or last_low is None:
        return None

    if trend.direction == TrendDirection.BULLISH:
        bullish = True
    elif trend.direction == TrendDirection.BEARISH:
        bullish = False
    else:
        bullish = last_high.index > last_low.index

    if bullish:
        origin = _latest_before(trend.swing_lows, last_high.index)
        if origin is None or last_high.price <= origin.price:
            return None
        return origin.price, last_high.price, True

    origin = _latest_before(trend.swing_highs, last_low.index)
    if origin is None or origin.price <= last_low.price:
        return None
    return last_low.price, origin.price, False


def fib_for_trend(trend: TrendResult) -> Optional[FibLevels]:
    """Retracement of the trend's latest leg; None when the leg is missing."""
    leg = select_leg(trend)
    if leg is None:
        return None
    swing_low, swing_high, bullish = leg
    return calculate_fib_levels(swing_low, swing_high, bullish)


def fib_extension(fib: FibLevels, long: bool, ratio: float = EXTENSION_RATIO) -> float:
    """1.618 projection of the leg in the trade direction."""
    if long:
        return fib.swing_low + fib.range_size * ratio
    return fib.swing_high - fib.range_size * ratio


def in_golden_zone(price: float, fib: Optional[FibLevels], tolerance: float = 0.0) -> bool:
    """Price within the 50-61.8% band, widened by an absolute tolerance."""
    if fib is None:
        return False
    low, high = fib.golden_zone
    return low - tolerance <= price <= high + tolerance
