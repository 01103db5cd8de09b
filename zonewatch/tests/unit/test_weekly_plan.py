"""
Tests for the week-ahead plan and its proximity alerts.
"""

import pytest

from zonewatch.analysis.fibonacci import calculate_fib_levels
from zonewatch.shared.models.planner import Bias, PlanType, SignalState
from zonewatch.shared.models.regime import MarketContext
from zonewatch.shared.models.scoring import ConfluenceResult
from zonewatch.shared.models.smc import OrderBlock, SwingPoint, TrendDirection, TrendResult
from zonewatch.strategy.planner.planner_service import generate_signal
from zonewatch.strategy.planner.weekly_plan import check_plan_alerts, format_plan_alerts, generate_weekly_plans

FIB = calculate_fib_levels(100, 120, bullish=True)
BLOCKS = [
    OrderBlock(type="bullish", high=104, low=102, index=3, fresh=True, quality=2),
    OrderBlock(type="bullish", high=109, low=107, index=8, fresh=True, quality=4),
    OrderBlock(type="bearish", high=125, low=123, index=9, fresh=True, quality=5),
]


def test_long_plan():
    plans = generate_weekly_plans("BTCUSDT", Bias.LONG, FIB, BLOCKS, [95, 98], [125, 130])

    assert [p.type for p in plans] == [PlanType.BUY_ZONE, PlanType.BUY_ZONE, PlanType.ALERT]
    assert plans[0].zone == pytest.approx(107.64)
    assert plans[0].condition == "If price retraces to $107.64 (Fib 61.8%)"
    assert plans[1].zone == pytest.approx(108.0)
    assert "(4★)" in plans[1].condition
    assert plans[2].zone == 95


def test_short_plan():
    plans = generate_weekly_plans("BTCUSDT", Bias.SHORT, FIB, BLOCKS, [95, 98], [125, 130])

    assert [p.type for p in plans] == [PlanType.SELL_ZONE, PlanType.SELL_ZONE, PlanType.ALERT]
    assert plans[1].zone == pytest.approx(124.0)
    assert plans[2].zone == 130


def test_neutral_plan_has_both_alerts_and_no_block():
    plans = generate_weekly_plans("BTCUSDT", Bias.NEUTRAL, FIB, BLOCKS, [95], [130])

    assert [p.type for p in plans] == [PlanType.BUY_ZONE, PlanType.ALERT, PlanType.ALERT]
    assert [p.zone for p in plans[1:]] == [95, 130]


def test_no_inputs_no_plan():
    assert generate_weekly_plans("BTCUSDT", Bias.LONG, None, [], [], []) == []


def test_alerts_fire_near_the_zone():
    plans = generate_weekly_plans("BTCUSDT", Bias.LONG, FIB, BLOCKS, [95], [])
    plans += generate_weekly_plans("ETHUSDT", Bias.LONG, FIB, [], [], [])

    triggered = check_plan_alerts(plans, {'BTCUSDT': 108.0})

    assert [p.zone for p in triggered] == pytest.approx([107.64, 108.0])
    assert all(p.symbol == "BTCUSDT" for p in triggered)
    assert "🔔 BTCUSDT near $107.64" in format_plan_alerts(triggered)


def test_alert_proximity_is_configurable():
    plans = generate_weekly_plans("BTCUSDT", Bias.LONG, FIB, [], [], [])
    assert check_plan_alerts(plans, {'BTCUSDT': 110.0}) == []
    assert len(check_plan_alerts(plans, {'BTCUSDT': 110.0}, proximity=0.05)) == 1


def test_plan_survives_a_rejected_signal():
    """A run that rejects its signal still leaves a plan built on the same structure."""
    fib = calculate_fib_levels(100, 104, bullish=True)
    blocks = [
        OrderBlock(type="bullish", high=97, low=95, index=4, fresh=True, quality=2),
        OrderBlock(type="bullish", high=99, low=98, index=7, fresh=True, quality=4),
        OrderBlock(type="bearish", high=106, low=105, index=9, fresh=True, quality=3),
    ]
    trend_4h = TrendResult(direction=TrendDirection.BULLISH,
                           swing_lows=[SwingPoint(10, 90), SwingPoint(20, 93)])
    bullish = TrendResult(direction=TrendDirection.BULLISH)

    decision = generate_signal(
        symbol="BTCUSDT",
        price=100.0,
        trend_1d=bullish,
        trend_4h=trend_4h,
        fib=fib,
        context=MarketContext.RANGE,
        confluence=ConfluenceResult(score=3),
        supports=[96],
        resistances=[101.5],
        order_blocks=blocks,
        ema_position=None,
    )
    assert decision.state == SignalState.REJECTED
    assert decision.signal is None

    plans = generate_weekly_plans("BTCUSDT", Bias.LONG, fib, blocks, [96], [101.5])

    assert plans
    assert [p.type for p in plans] == [PlanType.BUY_ZONE, PlanType.BUY_ZONE, PlanType.ALERT]
    assert plans[0].zone == pytest.approx(fib.zone618)
    assert plans[1].zone == pytest.approx(blocks[1].midpoint)
    assert plans[1].zone == pytest.approx(98.5)
