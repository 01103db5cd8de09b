"""
Signal Planner Service Module

Runs the signal acceptance state machine:

    pending-alignment-check -> (tier) -> stop -> target search -> emitted
                 |                                   |
             no-signal                            rejected

Logic is delegated to the Risk Engine for stops and targets. Every path that
does not emit a signal ends in a typed SignalDecision carrying its reason;
nothing here raises for a business outcome.

Following the "No-Null, Actionable Outputs" principle.
"""

from typing import List, Optional

from loguru import logger

from zonewatch.shared.config.defaults import EngineConfig
from zonewatch.shared.models.planner import (
    AlignmentTier,
    Bias,
    BreakRetest,
    SignalDecision,
    SignalResult,
    SignalState,
    SignalType,
)
from zonewatch.shared.models.regime import MarketContext
from zonewatch.shared.models.scoring import ConfluenceResult
from zonewatch.shared.models.smc import FibLevels, OrderBlock, TrendResult
from zonewatch.shared.utils.logging_utils import log_rejection
from zonewatch.strategy.planner.risk_engine import (
    _calculate_stop_loss,
    _collect_target_candidates,
    _search_target,
)

# Terminal reasons
REASON_DAILY_RANGE = "daily trend is range"
REASON_RANGE_TIER = "4H ranging and confluence below 4"
REASON_COUNTER_CONTEXT = "4H opposes daily without pullback/reversal context"
REASON_COUNTER_SCORE = "4H opposes daily and confluence below 5"
REASON_LOW_CONFLUENCE = "confluence below minimum"
REASON_RISK_REWARD = "risk:reward below minimum"
REASON_OBSERVATION = "observation mode: signals disabled"

BREAK_RETEST_STRATEGY = "Break-Retest"


def _strategy_label(tier: AlignmentTier, context: MarketContext) -> str:
    if tier == AlignmentTier.FULL:
        if context == MarketContext.PULLBACK:
            return "Fibonacci Retracement"
        if context == MarketContext.EXPANSION:
            return "Expansion"
        return "Breakout"
    if tier == AlignmentTier.RANGE:
        return "Range Bounce (1D bias)"
    return "Structural Reversal" if context == MarketContext.REVERSAL else "Deep Retracement"


def _resolve_tier(
    trend_1d: TrendResult,
    trend_4h: TrendResult,
    context: MarketContext,
    score: int,
    config: EngineConfig,
) -> tuple:
    """(tier, None) when the setup may proceed, (None, reason) otherwise."""
    if trend_1d.direction == trend_4h.direction:
        return AlignmentTier.FULL, None
    if trend_4h.is_range:
        if score < config.range_tier_min_confluence:
            return None, REASON_RANGE_TIER
        return AlignmentTier.RANGE, None
    if not context.allows_counter_trend:
        return None, REASON_COUNTER_CONTEXT
    if score < config.counter_trend_min_confluence:
        return None, REASON_COUNTER_SCORE
    return AlignmentTier.COUNTER, None


def _has_quality_ob_nearby(price: float, bias: Bias, order_blocks: List[OrderBlock], config: EngineConfig) -> bool:
    return any(
        ob.quality >= config.quality_ob_min
        and ob.type == bias.zone_type
        and abs(price - ob.midpoint) / price < config.quality_ob_proximity_pct
        for ob in order_blocks
    )


def calculate_confidence(
    score: int,
    tier: AlignmentTier,
    quality_ob_nearby: bool,
    ema_aligned: bool,
    config: Optional[EngineConfig] = None,
) -> int:
    """Base + per-factor increment + bonuses, clamped to the confidence bounds."""
    cfg = config or EngineConfig.defaults()
    bonus = 0
    if tier == AlignmentTier.FULL:
        bonus += cfg.confidence_alignment_bonus
    elif tier == AlignmentTier.COUNTER:
        bonus -= cfg.confidence_counter_penalty
    if quality_ob_nearby:
        bonus += cfg.confidence_quality_ob_bonus
    if ema_aligned:
        bonus += cfg.confidence_ema_bonus
    raw = cfg.confidence_base + cfg.confidence_per_factor * score + bonus
    return max(cfg.confidence_min, min(cfg.confidence_max, raw))


def generate_signal(
    symbol: str,
    price: float,
    trend_1d: TrendResult,
    trend_4h: TrendResult,
    fib: Optional[FibLevels],
    context: MarketContext,
    confluence: ConfluenceResult,
    supports: List[float],
    resistances: List[float],
    order_blocks: List[OrderBlock],
    ema_position: Optional[str] = None,
    config: Optional[EngineConfig] = None,
) -> SignalDecision:
    """
    Decide whether a directional signal is justified.

    Args:
        symbol: Symbol for logging
        price: Entry (current) price
        trend_1d: Daily trend, anchors the direction
        trend_4h: 4H trend
        fib: Daily retracement levels
        context: 4H market context
        confluence: Confluence evaluated against the daily bias
        supports: 4H supports (ascending)
        resistances: 4H resistances (ascending)
        order_blocks: Quality-scored 4H order blocks
        ema_position: 'above' / 'below' the daily EMA 200
        config: EngineConfig thresholds

    Returns:
        SignalDecision in state emitted, no-signal or rejected
    """
    cfg = config or EngineConfig.defaults()
    score = confluence.score

    if trend_1d.is_range:
        log_rejection(symbol, "ALIGNMENT", REASON_DAILY_RANGE, {'confluence': score}, level="DEBUG")
        return SignalDecision.no_signal(REASON_DAILY_RANGE)

    state = SignalState.PENDING_ALIGNMENT_CHECK
    logger.debug(f"[{symbol}] {state.value}: 1D {trend_1d.structure} / 4H {trend_4h.structure}, "
                 f"context {context.value}, confluence {score}")

    tier, reason = _resolve_tier(trend_1d, trend_4h, context, score, cfg)
    if tier is None:
        log_rejection(symbol, "ALIGNMENT", reason, {'confluence': score, 'context': context.value})
        return SignalDecision.no_signal(reason)

    if score < cfg.min_confluence:
        log_rejection(symbol, "CONFLUENCE", REASON_LOW_CONFLUENCE,
                      {'confluence': score, 'minimum': cfg.min_confluence, 'tier': tier.value})
        return SignalDecision.no_signal(REASON_LOW_CONFLUENCE, tier=tier)

    bias = Bias.from_trend(trend_1d.direction)
    is_bullish = bias == Bias.LONG
    entry = price

    stop, stop_source = _calculate_stop_loss(is_bullish, entry, trend_4h, fib, cfg)
    candidates = _collect_target_candidates(
        is_bullish, entry, supports, resistances, trend_4h, trend_1d, order_blocks, fib, cfg
    )
    accepted, tried = _search_target(entry, stop, candidates, cfg.min_risk_reward)

    if accepted is None:
        log_rejection(symbol, "TARGETS", REASON_RISK_REWARD, {
            'entry': entry,
            'stop': stop,
            'stop_source': stop_source,
            'candidates': len(tried),
            'best_rr': max((c.risk_reward for c in tried), default=0.0),
        })
        return SignalDecision(
            state=SignalState.REJECTED,
            reason=REASON_RISK_REWARD,
            tier=tier,
            stop_loss=stop,
            candidates_tried=tried,
        )

    ema_aligned = (
        (is_bullish and ema_position == "above")
        or (not is_bullish and ema_position == "below")
    )
    confidence = calculate_confidence(
        score, tier, _has_quality_ob_nearby(price, bias, order_blocks, cfg), ema_aligned, cfg
    )

    signal = SignalResult(
        type=SignalType.LONG if is_bullish else SignalType.SHORT,
        entry=entry,
        stop_loss=stop,
        take_profit=accepted.price,
        risk_reward=accepted.risk_reward,
        strategy=_strategy_label(tier, context),
        confidence=confidence,
        take_profit_source=accepted.source,
    )
    logger.info(f"[{symbol}] {signal.type.value.upper()} {signal.strategy}: entry {entry:.4f}, "
                f"SL {stop:.4f} ({stop_source}), TP {accepted.price:.4f} ({accepted.source}), "
                f"R:R {signal.rr_display}, confidence {confidence}%")
    return SignalDecision(
        state=SignalState.EMITTED,
        signal=signal,
        tier=tier,
        stop_loss=stop,
        candidates_tried=tried,
    )


def break_retest_signal(
    setup: BreakRetest,
    bias: Bias,
    score: int,
    config: Optional[EngineConfig] = None,
) -> SignalDecision:
    """Promote a 30m break-retest setup to an emitted decision."""
    cfg = config or EngineConfig.defaults()
    confidence = min(cfg.break_retest_confidence_cap, cfg.confidence_base + 10 * score)
    confidence = max(cfg.confidence_min, min(cfg.confidence_max, confidence))
    signal = SignalResult(
        type=SignalType.LONG if bias == Bias.LONG else SignalType.SHORT,
        entry=setup.entry,
        stop_loss=setup.stop_loss,
        take_profit=setup.take_profit,
        risk_reward=setup.risk_reward,
        strategy=BREAK_RETEST_STRATEGY,
        confidence=confidence,
        take_profit_source=setup.take_profit_source,
    )
    return SignalDecision(state=SignalState.EMITTED, signal=signal, tier=AlignmentTier.FULL, stop_loss=setup.stop_loss)


def discard_for_observation(decision: SignalDecision) -> SignalDecision:
    """Observation mode keeps the analysis but never lets a signal out."""
    if not decision.emitted:
        return decision
    logger.info(f"Observation mode: discarding {decision.signal.type.value} signal")
    return SignalDecision(
        state=SignalState.NO_SIGNAL,
        reason=REASON_OBSERVATION,
        tier=decision.tier,
        stop_loss=decision.stop_loss,
        candidates_tried=decision.candidates_tried,
    )
