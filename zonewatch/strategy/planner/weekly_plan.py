"""
Weekly Plan Generator

Derives the week-ahead conditional plan from the daily structure. Plans are
"if price reaches Z, then A" entries, never orders, and are produced whether
or not a signal fired this run:

1. Reaction at the 61.8% retracement
2. Reaction at the highest-quality order block matching the bias
3. Invalidation alert beyond the furthest retained support / resistance
"""

from typing import Dict, List, Optional

from loguru import logger

from zonewatch.shared.models.planner import Bias, PlanType, WeeklyPlanEntry
from zonewatch.shared.models.smc import FibLevels, OrderBlock
from zonewatch.shared.utils.report import fmt_price

PLAN_ALERT_PROXIMITY = 0.02


def _fib_plan(symbol: str, bias: Bias, fib: FibLevels) -> WeeklyPlanEntry:
    # Without a bias the leg direction decides which way the retrace is traded
    buy = bias == Bias.LONG or (bias == Bias.NEUTRAL and fib.bullish)
    zone = fib.zone618
    if buy:
        return WeeklyPlanEntry(
            symbol=symbol,
            condition=f"If price retraces to ${fmt_price(zone)} (Fib 61.8%)",
            action="Look for confluence + buy",
            zone=zone,
            type=PlanType.BUY_ZONE,
        )
    return WeeklyPlanEntry(
        symbol=symbol,
        condition=f"If price rallies to ${fmt_price(zone)} (Fib 61.8%)",
        action="Look for confluence + sell",
        zone=zone,
        type=PlanType.SELL_ZONE,
    )


def _order_block_plan(symbol: str, bias: Bias, order_blocks: List[OrderBlock]) -> Optional[WeeklyPlanEntry]:
    matching = [ob for ob in order_blocks if ob.type == bias.zone_type]
    if not matching:
        return None
    # max() keeps the first block on ties, i.e. the oldest of the best
    best = max(matching, key=lambda ob: ob.quality)
    long = bias == Bias.LONG
    return WeeklyPlanEntry(
        symbol=symbol,
        condition=f"If price reaches OB {best.type} ${fmt_price(best.low)}-${fmt_price(best.high)} ({best.quality}★)",
        action=f"{'Buy' if long else 'Sell'} on rejection from the OB",
        zone=best.midpoint,
        type=PlanType.BUY_ZONE if long else PlanType.SELL_ZONE,
    )


def _support_alert(symbol: str, level: float) -> WeeklyPlanEntry:
    return WeeklyPlanEntry(
        symbol=symbol,
        condition=f"If price breaks ${fmt_price(level)} (key support)",
        action="REVERSAL ALERT - close longs",
        zone=level,
        type=PlanType.ALERT,
    )


def _resistance_alert(symbol: str, level: float) -> WeeklyPlanEntry:
    return WeeklyPlanEntry(
        symbol=symbol,
        condition=f"If price clears ${fmt_price(level)} (key resistance)",
        action="REVERSAL ALERT - reconsider the bias",
        zone=level,
        type=PlanType.ALERT,
    )


def generate_weekly_plans(
    symbol: str,
    bias: Bias,
    fib: Optional[FibLevels],
    order_blocks: List[OrderBlock],
    supports: List[float],
    resistances: List[float],
) -> List[WeeklyPlanEntry]:
    """
    Build the conditional plan for one symbol.

    Args:
        symbol: Trading symbol
        bias: Daily bias
        fib: Daily retracement levels (no Fib plan without a leg)
        order_blocks: Quality-scored order blocks
        supports: Supports, ascending
        resistances: Resistances, ascending

    Returns:
        Plan entries in order: Fib zone, order block, alerts
    """
    plans: List[WeeklyPlanEntry] = []

    if fib is not None:
        plans.append(_fib_plan(symbol, bias, fib))

    ob_plan = _order_block_plan(symbol, bias, order_blocks)
    if ob_plan is not None:
        plans.append(ob_plan)

    # Furthest retained level: lowest support, highest resistance
    if bias in (Bias.LONG, Bias.NEUTRAL) and supports:
        plans.append(_support_alert(symbol, supports[0]))
    if bias in (Bias.SHORT, Bias.NEUTRAL) and resistances:
        plans.append(_resistance_alert(symbol, resistances[-1]))

    logger.debug(f"[{symbol}] Weekly plan: {[p.type.value for p in plans]}")
    return plans


def check_plan_alerts(
    plans: List[WeeklyPlanEntry],
    prices: Dict[str, float],
    proximity: float = PLAN_ALERT_PROXIMITY,
) -> List[WeeklyPlanEntry]:
    """
    Plan entries whose zone is within `proximity` of the symbol's price.

    Distance is measured relative to the zone. Symbols without a price are
    skipped.
    """
    triggered = []
    for plan in plans:
        price = prices.get(plan.symbol)
        if price is None or plan.zone <= 0:
            continue
        if abs(price - plan.zone) / plan.zone < proximity:
            triggered.append(plan)
    if triggered:
        logger.info(f"{len(triggered)} plan alert(s) triggered")
    return triggered


def format_plan_alerts(triggered: List[WeeklyPlanEntry]) -> str:
    lines = ["📋 PLAN ALERTS"]
    lines += [f"🔔 {p.symbol} near ${fmt_price(p.zone)} - {p.action}" for p in triggered]
    return "\n".join(lines)
