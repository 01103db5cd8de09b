"""
Risk Engine Module

Stop-loss and take-profit construction for the signal layer:
- Structure-based stop loss (4H swing or Fib 78.6%, whichever is tighter)
- Target candidate collection in priority order
- Progressive target search: nearest candidate meeting the R:R floor wins
"""

import logging
from typing import List, Optional, Tuple

from zonewatch.analysis.fibonacci import fib_extension
from zonewatch.shared.config.defaults import EngineConfig
from zonewatch.shared.models.planner import TargetCandidate, meets_risk_reward
from zonewatch.shared.models.smc import FibLevels, OrderBlock, TrendResult

logger = logging.getLogger(__name__)


def _calculate_stop_loss(
    is_bullish: bool,
    entry: float,
    trend_4h: TrendResult,
    fib: Optional[FibLevels],
    config: EngineConfig,
) -> Tuple[float, str]:
    """
    Calculate the protective stop.

    Candidates are the most recent 4H swing beyond entry and the 78.6% level
    when it lies beyond entry, each pushed out by stop_buffer_pct. The one
    closest to entry wins; with neither, stop_fallback_pct from entry.

    Returns:
        (stop price, source label)
    """
    buffer = config.stop_buffer_pct
    candidates: List[Tuple[float, str]] = []

    if is_bullish:
        swing = next((s for s in reversed(trend_4h.swing_lows) if s.price < entry), None)
        if swing is not None:
            candidates.append((swing.price * (1 - buffer), "Swing Low 4H"))
        if fib is not None and fib.zone786 < entry:
            candidates.append((fib.zone786 * (1 - buffer), "Fib 78.6%"))
        if candidates:
            return max(candidates, key=lambda c: c[0])
        return entry * (1 - config.stop_fallback_pct), f"-{config.stop_fallback_pct:.0%}"

    swing = next((s for s in reversed(trend_4h.swing_highs) if s.price > entry), None)
    if swing is not None:
        candidates.append((swing.price * (1 + buffer), "Swing High 4H"))
    if fib is not None and fib.zone786 > entry:
        candidates.append((fib.zone786 * (1 + buffer), "Fib 78.6%"))
    if candidates:
        return min(candidates, key=lambda c: c[0])
    return entry * (1 + config.stop_fallback_pct), f"+{config.stop_fallback_pct:.0%}"


def _collect_target_candidates(
    is_bullish: bool,
    entry: float,
    supports: List[float],
    resistances: List[float],
    trend_4h: TrendResult,
    trend_1d: TrendResult,
    order_blocks: List[OrderBlock],
    fib: Optional[FibLevels],
    config: EngineConfig,
) -> List[Tuple[float, str]]:
    """
    Gather take-profit candidates beyond entry.

    Families are appended in priority order (opposing S/R, 4H swings, 1D
    swings, opposing order blocks, Fib extension, percentage fallbacks) and
    then stably sorted nearest-first, so priority breaks price ties.
    """
    raw: List[Tuple[float, str]] = []

    if is_bullish:
        raw += [(r, "Resistance") for r in resistances]
        raw += [(s.price, "Swing High 4H") for s in trend_4h.swing_highs]
        raw += [(s.price, "Swing High 1D") for s in trend_1d.swing_highs]
        raw += [(ob.low, "OB Bear zone") for ob in order_blocks if ob.type == "bearish"]
        if fib is not None:
            raw.append((fib_extension(fib, long=True, ratio=config.fib_extension_ratio), "Fib 1.618"))
        raw += [(entry * (1 + pct), f"+{pct:.0%}") for pct in config.target_fallback_pcts]
        beyond = [c for c in raw if c[0] > entry]
        return sorted(beyond, key=lambda c: c[0])

    raw += [(s, "Support") for s in supports]
    raw += [(s.price, "Swing Low 4H") for s in trend_4h.swing_lows]
    raw += [(s.price, "Swing Low 1D") for s in trend_1d.swing_lows]
    raw += [(ob.high, "OB Bull zone") for ob in order_blocks if ob.type == "bullish"]
    if fib is not None:
        raw.append((fib_extension(fib, long=False, ratio=config.fib_extension_ratio), "Fib 1.618"))
    raw += [(entry * (1 - pct), f"-{pct:.0%}") for pct in config.target_fallback_pcts]
    beyond = [c for c in raw if 0 < c[0] < entry]
    return sorted(beyond, key=lambda c: c[0], reverse=True)


def risk_reward(entry: float, stop: float, target: float) -> float:
    """Reward over risk, unrounded; compare with meets_risk_reward."""
    risk = abs(entry - stop)
    if risk <= 0:
        return 0.0
    return abs(target - entry) / risk


def _search_target(
    entry: float,
    stop: float,
    candidates: List[Tuple[float, str]],
    min_rr: float,
) -> Tuple[Optional[TargetCandidate], List[TargetCandidate]]:
    """
    Walk the candidates and accept the first with R:R >= min_rr.

    Returns:
        (accepted candidate or None, every candidate examined in order)
    """
    tried: List[TargetCandidate] = []
    for price, source in candidates:
        rr = risk_reward(entry, stop, price)
        if meets_risk_reward(rr, min_rr):
            accepted = TargetCandidate(price=price, source=source, risk_reward=rr, accepted=True)
            tried.append(accepted)
            logger.debug("Target %s @ %.4f accepted (R:R %.2f) after %d candidates", source, price, rr, len(tried))
            return accepted, tried
        tried.append(TargetCandidate(price=price, source=source, risk_reward=rr))
    logger.debug("No target met R:R %.1f among %d candidates", min_rr, len(tried))
    return None, tried
