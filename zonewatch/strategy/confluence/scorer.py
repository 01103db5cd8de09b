"""
Confluence Scorer Module

Counts independent technical agreements with the daily bias. Seven factors
are evaluated, each exactly once:

- timeframe_alignment: daily and 4H trends agree (and are not ranging)
- ema_filter: price on the bias side of the daily EMA 200
- fib_golden_zone: price inside the 50-61.8% band (with zone tolerance)
- sr_proximity: support (long) / resistance (short) within S/R proximity
- order_block: matching order block brackets price within zone tolerance
- imbalance: matching FVG brackets price within zone tolerance
- discount_premium: price on the discount (long) / premium (short) side of 50%

With a neutral bias every directional factor is unmatched.
"""

from typing import List, Optional
import logging

from zonewatch.analysis.fibonacci import in_golden_zone
from zonewatch.analysis.premium_discount import is_price_in_optimal_zone
from zonewatch.shared.config.smc_config import SMCConfig
from zonewatch.shared.models.planner import Bias
from zonewatch.shared.models.scoring import ConfluenceFactor, ConfluenceResult
from zonewatch.shared.models.smc import FVG, FibLevels, OrderBlock, TrendResult
from zonewatch.shared.utils.report import fmt_price

logger = logging.getLogger(__name__)


def calculate_confluence_score(
    price: float,
    bias: Bias,
    trend_1d: TrendResult,
    trend_4h: TrendResult,
    ema_position: Optional[str],
    fib: Optional[FibLevels],
    fvgs: List[FVG],
    order_blocks: List[OrderBlock],
    supports: List[float],
    resistances: List[float],
    config: Optional[SMCConfig] = None,
) -> ConfluenceResult:
    """
    Evaluate the seven confluence factors against the bias.

    Args:
        price: Current price
        bias: Daily bias
        trend_1d: Daily trend
        trend_4h: 4H trend
        ema_position: 'above' / 'below' the daily EMA 200, None if unknown
        fib: Daily retracement levels (None when no leg)
        fvgs: Gaps on the zone timeframe
        order_blocks: Blocks on the zone timeframe
        supports: Supports (ascending)
        resistances: Resistances (ascending)
        config: SMCConfig with the proximity tolerances

    Returns:
        ConfluenceResult whose score equals the matched factor count
    """
    cfg = config or SMCConfig.defaults()
    zone_tolerance = price * cfg.zone_tolerance_pct

    factors = [
        _score_timeframe_alignment(trend_1d, trend_4h),
        _score_ema_filter(bias, ema_position),
        _score_golden_zone(price, bias, fib, zone_tolerance),
        _score_sr_proximity(price, bias, supports, resistances, cfg.sr_proximity_pct),
        _score_order_blocks(price, bias, order_blocks, zone_tolerance),
        _score_fvgs(price, bias, fvgs, zone_tolerance),
        _score_discount_premium(price, bias, fib),
    ]

    result = ConfluenceResult.from_factors(factors)
    logger.debug("Confluence %d/%d (%s): %s", result.score, result.total, result.probability,
                 [f.name for f in factors if f.matched])
    return result


def _score_timeframe_alignment(trend_1d: TrendResult, trend_4h: TrendResult) -> ConfluenceFactor:
    matched = trend_1d.direction == trend_4h.direction and not trend_1d.is_range
    return ConfluenceFactor(
        "timeframe_alignment", matched,
        f"1D/4H trend aligned: {trend_1d.direction.value}" if matched else "",
    )


def _score_ema_filter(bias: Bias, ema_position: Optional[str]) -> ConfluenceFactor:
    matched = (
        (bias == Bias.LONG and ema_position == "above")
        or (bias == Bias.SHORT and ema_position == "below")
    )
    return ConfluenceFactor("ema_filter", matched, "EMA 200 confirms the bias" if matched else "")


def _score_golden_zone(price: float, bias: Bias, fib: Optional[FibLevels], tolerance: float) -> ConfluenceFactor:
    matched = bias != Bias.NEUTRAL and in_golden_zone(price, fib, tolerance)
    return ConfluenceFactor("fib_golden_zone", matched, "Price in the Fib golden zone (50-61.8%)" if matched else "")


def _score_sr_proximity(
    price: float,
    bias: Bias,
    supports: List[float],
    resistances: List[float],
    proximity_pct: float,
) -> ConfluenceFactor:
    if bias == Bias.LONG:
        level = next((s for s in supports if abs(price - s) / price < proximity_pct), None)
        label = f"Support nearby: ${fmt_price(level)}" if level is not None else ""
    elif bias == Bias.SHORT:
        level = next((r for r in resistances if abs(price - r) / price < proximity_pct), None)
        label = f"Resistance nearby: ${fmt_price(level)}" if level is not None else ""
    else:
        level, label = None, ""
    return ConfluenceFactor("sr_proximity", level is not None, label)


def _score_order_blocks(price: float, bias: Bias, order_blocks: List[OrderBlock], tolerance: float) -> ConfluenceFactor:
    wanted = bias.zone_type
    ob = next((o for o in order_blocks if o.type == wanted and o.contains_price(price, tolerance)), None)
    label = f"Order Block {ob.type}: ${fmt_price(ob.low)}-${fmt_price(ob.high)}" if ob else ""
    return ConfluenceFactor("order_block", ob is not None, label)


def _score_fvgs(price: float, bias: Bias, fvgs: List[FVG], tolerance: float) -> ConfluenceFactor:
    wanted = bias.zone_type
    gap = next((f for f in fvgs if f.type == wanted and f.contains_price(price, tolerance)), None)
    label = f"FVG {gap.type}: ${fmt_price(gap.low)}-${fmt_price(gap.high)}" if gap else ""
    return ConfluenceFactor("imbalance", gap is not None, label)


def _score_discount_premium(price: float, bias: Bias, fib: Optional[FibLevels]) -> ConfluenceFactor:
    if bias == Bias.NEUTRAL:
        return ConfluenceFactor("discount_premium", False)
    matched = is_price_in_optimal_zone(price, bias.value, fib)
    if not matched:
        return ConfluenceFactor("discount_premium", False)
    label = "DISCOUNT zone (below Fib 0.5)" if bias == Bias.LONG else "PREMIUM zone (above Fib 0.5)"
    return ConfluenceFactor("discount_premium", True, label)
