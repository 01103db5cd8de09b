"""
Signal Transform Utility

Shared logic for turning AnalysisResult objects into plain data:
- to_record: the compact persisted record (symbol, signal type, confidence, notes)
- to_dict: the complete JSON-serialisable analysis

Both are pure functions of the result; no clock reads, so identical inputs
serialise to identical bytes.
"""

from typing import Any, Dict, Optional

from zonewatch.shared.models.planner import AnalysisResult
from zonewatch.shared.models.smc import FibLevels, SwingPoint, TrendResult, serialize_time


HOLD = "hold"


def _swing(point: SwingPoint) -> Dict[str, Any]:
    return {'index': point.index, 'price': point.price, 'time': serialize_time(point.time)}


def _trend(trend: Optional[TrendResult]) -> Optional[Dict[str, Any]]:
    if trend is None:
        return None
    return {
        'direction': trend.direction.value,
        'structure': trend.structure,
        'swing_highs': [_swing(p) for p in trend.swing_highs],
        'swing_lows': [_swing(p) for p in trend.swing_lows],
    }


def _fib(fib: Optional[FibLevels]) -> Optional[Dict[str, Any]]:
    if fib is None:
        return None
    return {
        'swing_low': fib.swing_low,
        'swing_high': fib.swing_high,
        'bullish': fib.bullish,
        'levels': [{'label': lvl.label, 'ratio': lvl.ratio, 'price': lvl.price} for lvl in fib.levels],
        'zone50': fib.zone50,
        'zone618': fib.zone618,
        'zone786': fib.zone786,
    }


def to_record(result: AnalysisResult) -> Dict[str, Any]:
    """
    Persisted record for one analysis.

    Confidence is the signal's confidence, or ten times the confluence score
    when no signal was emitted.
    """
    signal = result.signal
    score = result.confluence.score if result.confluence else 0
    return {
        'symbol': result.symbol,
        'signal_type': signal.type.value if signal else HOLD,
        'confidence': signal.confidence if signal else score * 10,
        'notes': {
            'trend_1d': result.trend_1d.structure,
            'trend_4h': result.trend_4h.structure if result.trend_4h else None,
            'context': result.context.value if result.context else None,
            'confluence': score,
            'ema_position': result.ema_position,
            'signal': signal.to_dict() if signal else None,
        },
    }


def to_dict(result: AnalysisResult) -> Dict[str, Any]:
    """Complete analysis as JSON-serialisable primitives."""
    decision = result.decision
    confluence = result.confluence
    confirmation = result.confirmation
    return {
        'symbol': result.symbol,
        'price': result.price,
        'change_24h': result.change_24h,
        'mode': result.mode.value,
        'bias': result.bias.value,
        'bias_label': result.bias_label,
        'trend_1d': _trend(result.trend_1d),
        'ema200_1d': result.ema200_1d,
        'ema_position': result.ema_position,
        'fib_1d': _fib(result.fib_1d),
        'trend_4h': _trend(result.trend_4h),
        'ema200_4h': result.ema200_4h,
        'aligned': result.aligned,
        'zone_timeframe': result.zone_timeframe,
        'fvgs': [
            {'type': f.type, 'high': f.high, 'low': f.low, 'index': f.index}
            for f in result.fvgs
        ],
        'order_blocks': [ob.to_dict() for ob in result.order_blocks],
        'supports': list(result.supports),
        'resistances': list(result.resistances),
        'context': result.context.value if result.context else None,
        'confluence': {
            'score': confluence.score,
            'total': confluence.total,
            'probability': confluence.probability,
            'elements': confluence.elements,
            'factors': {f.name: f.matched for f in confluence.factors},
        } if confluence else None,
        'decision': {
            'state': decision.state.value,
            'reason': decision.reason,
            'tier': decision.tier.value if decision.tier else None,
            'stop_loss': decision.stop_loss,
            'candidates_tried': [
                {'price': c.price, 'source': c.source, 'risk_reward': c.risk_reward, 'accepted': c.accepted}
                for c in decision.candidates_tried
            ],
        } if decision else None,
        'signal': result.signal.to_dict() if result.signal else None,
        'confirmation': {
            'confirmed': confirmation.confirmed,
            'type': confirmation.type.value,
            'details': confirmation.details,
            'volume_strong': confirmation.volume_strong,
        } if confirmation else None,
        'position_size': result.position_size.to_dict() if result.position_size else None,
        'weekly_plans': [p.to_dict() for p in result.weekly_plans],
        'hold_reason': result.hold_reason,
    }
