"""
Order Block Quality Scoring

Rates each order block 0-5 against five independent criteria:
1. imbalance  - a same-direction FVG abuts or sits inside the block
2. trend      - block direction matches the daily trend
3. freshness  - block not mitigated on a closing basis
4. fib_side   - block midpoint on the discount (bullish) or premium (bearish)
                side of the 50% retracement
5. liquidity  - block not adjacent to an equal-highs/equal-lows pool

Every criterion is always evaluated and recorded, so quality_details has
exactly five entries whatever the score.
"""

from dataclasses import replace
from typing import Dict, List, Optional

from loguru import logger

from zonewatch.analysis.premium_discount import is_price_in_optimal_zone
from zonewatch.shared.config.smc_config import SMCConfig
from zonewatch.shared.models.smc import (
    FVG,
    FibLevels,
    OrderBlock,
    QualityCheck,
    SwingPoint,
    TrendDirection,
    TrendResult,
)


def detect_equal_highs_lows(
    swing_highs: List[SwingPoint],
    swing_lows: List[SwingPoint],
    price: float,
    tolerance_pct: float = 0.003,
) -> Dict[str, List[float]]:
    """
    Detect equal highs and equal lows (liquidity pools).

    A swing is "equal" when it lies within tolerance_pct of current price of
    the swing of the same kind right before it.

    Returns:
        dict: {'equal_highs': [...], 'equal_lows': [...]} swing prices
    """
    def _equal(points: List[SwingPoint]) -> List[float]:
        return [
            p.price for prev, p in zip(points, points[1:])
            if abs(p.price - prev.price) / price < tolerance_pct
        ]

    return {'equal_highs': _equal(swing_highs), 'equal_lows': _equal(swing_lows)}


def _has_adjacent_fvg(ob: OrderBlock, fvgs: List[FVG], price: float, adjacency_pct: float) -> bool:
    for f in fvgs:
        if f.type != ob.type:
            continue
        if ob.type == "bullish":
            if abs(f.low - ob.high) / price < adjacency_pct or (f.low >= ob.low and f.high <= ob.high * 1.02):
                return True
        else:
            if abs(f.high - ob.low) / price < adjacency_pct or (f.high <= ob.high and f.low >= ob.low * 0.98):
                return True
    return False


def score_ob_quality(
    ob: OrderBlock,
    trend: TrendResult,
    fvgs: List[FVG],
    fib: Optional[FibLevels],
    equal_levels: Dict[str, List[float]],
    price: float,
    config: Optional[SMCConfig] = None,
) -> OrderBlock:
    """
    Score one order block.

    Args:
        ob: Block to score
        trend: Higher-timeframe (daily) trend
        fvgs: Gaps detected on the block's timeframe
        fib: Daily retracement levels, None when no leg exists
        equal_levels: Output of detect_equal_highs_lows on the block's timeframe
        price: Current price
        config: SMCConfig for the proximity tolerances

    Returns:
        Copy of the block with quality and quality_details set
    """
    cfg = config or SMCConfig.defaults()
    bullish = ob.type == "bullish"
    checks: List[QualityCheck] = []

    has_fvg = _has_adjacent_fvg(ob, fvgs, price, cfg.fvg_ob_adjacency_pct)
    checks.append(QualityCheck("imbalance", has_fvg, "FVG adjacent" if has_fvg else "no FVG"))

    aligned = (
        (bullish and trend.direction == TrendDirection.BULLISH)
        or (not bullish and trend.direction == TrendDirection.BEARISH)
    )
    checks.append(QualityCheck("trend", aligned, "with trend" if aligned else "against trend"))

    checks.append(QualityCheck("freshness", ob.fresh, "fresh" if ob.fresh else "mitigated"))

    if fib is None:
        checks.append(QualityCheck("fib_side", False, "no Fib leg"))
    elif is_price_in_optimal_zone(ob.midpoint, ob.type, fib):
        checks.append(QualityCheck("fib_side", True, "discount zone" if bullish else "premium zone"))
    else:
        checks.append(QualityCheck("fib_side", False, "wrong Fib side"))

    near_high = any(abs(h - ob.high) / price < cfg.liquidity_proximity_pct for h in equal_levels.get('equal_highs', []))
    near_low = any(abs(l - ob.low) / price < cfg.liquidity_proximity_pct for l in equal_levels.get('equal_lows', []))
    clear = not near_high and not near_low
    checks.append(QualityCheck("liquidity", clear, "away from liquidity" if clear else "near liquidity"))

    return replace(ob, quality=sum(1 for c in checks if c.passed), quality_details=checks)


def score_order_blocks(
    obs: List[OrderBlock],
    trend: TrendResult,
    fvgs: List[FVG],
    fib: Optional[FibLevels],
    swing_highs: List[SwingPoint],
    swing_lows: List[SwingPoint],
    price: float,
    config: Optional[SMCConfig] = None,
) -> List[OrderBlock]:
    """Score every block against the same equal-highs/lows pools."""
    cfg = config or SMCConfig.defaults()
    equal_levels = detect_equal_highs_lows(swing_highs, swing_lows, price, cfg.equal_level_tolerance_pct)
    scored = [score_ob_quality(ob, trend, fvgs, fib, equal_levels, price, cfg) for ob in obs]
    if scored:
        logger.debug(f"OB quality: {[ob.quality for ob in scored]}")
    return scored
