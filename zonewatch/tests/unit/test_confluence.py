"""
Tests for confluence scoring.
"""

import pytest

from zonewatch.analysis.fibonacci import calculate_fib_levels
from zonewatch.shared.models.planner import Bias
from zonewatch.shared.models.scoring import CONFLUENCE_FACTORS, ConfluenceFactor, ConfluenceResult, probability_band
from zonewatch.shared.models.smc import FVG, OrderBlock, TrendDirection, TrendResult
from zonewatch.strategy.confluence.scorer import calculate_confluence_score

BULLISH = TrendResult(direction=TrendDirection.BULLISH)


def _full_long_setup(bias=Bias.LONG, trend_1d=BULLISH, trend_4h=BULLISH):
    return calculate_confluence_score(
        price=100,
        bias=bias,
        trend_1d=trend_1d,
        trend_4h=trend_4h,
        ema_position="above",
        fib=calculate_fib_levels(90, 120, bullish=True),
        fvgs=[FVG(type="bullish", high=101, low=99, index=5)],
        order_blocks=[OrderBlock(type="bullish", high=100.5, low=99, index=3, fresh=True)],
        supports=[99.5],
        resistances=[],
    )


def test_all_seven_factors():
    result = _full_long_setup()

    assert result.score == 7
    assert result.total == 7
    assert result.probability == "~85%+"
    assert [f.name for f in result.factors] == list(CONFLUENCE_FACTORS)
    assert "Support nearby: $99.5" in result.elements


def test_score_equals_matched_factors():
    result = _full_long_setup(trend_4h=TrendResult(direction=TrendDirection.BEARISH))
    assert result.score == 6
    assert not result.has("timeframe_alignment")
    assert result.score == sum(1 for f in result.factors if f.matched)


def test_neutral_bias_matches_nothing():
    result = _full_long_setup(bias=Bias.NEUTRAL, trend_1d=TrendResult.neutral(), trend_4h=TrendResult.neutral())
    assert result.score == 0
    assert result.probability == "~30%"


def test_short_bias_ignores_bullish_zones():
    result = _full_long_setup(bias=Bias.SHORT)
    assert not result.has("order_block")
    assert not result.has("imbalance")
    assert not result.has("ema_filter")
    assert not result.has("discount_premium")


@pytest.mark.parametrize("score,band", [(0, "~30%"), (1, "~30%"), (2, "~50%"), (3, "~70%"), (4, "~85%+"), (7, "~85%+")])
def test_probability_bands(score, band):
    assert probability_band(score) == band


def test_inconsistent_score_rejected():
    with pytest.raises(ValueError, match="does not match"):
        ConfluenceResult(score=2, factors=[ConfluenceFactor("ema_filter", True)])


def test_duplicate_factor_rejected():
    with pytest.raises(ValueError, match="more than once"):
        ConfluenceResult.from_factors([ConfluenceFactor("ema_filter", True), ConfluenceFactor("ema_filter", False)])


def test_unknown_factor_rejected():
    with pytest.raises(ValueError, match="Unknown confluence factor"):
        ConfluenceFactor("moon_phase", True)
