"""
Tests for 30m confirmation and break-retest detection.
"""

import pytest

from zonewatch.analysis.ltf_confirmation import confirm_30m, detect_break_retest
from zonewatch.shared.models.planner import Bias, ConfirmationType
from zonewatch.tests.fixtures.candles import make_frame

FLAT = (100, 100.5, 99.5, 100)


def _breakout_frame():
    rows = [FLAT + (100,)] * 17 + [FLAT + (300,)] * 2 + [(100, 101.2, 99.9, 101.0, 300)]
    return make_frame(rows)


def _rejection_frame():
    return make_frame([FLAT] * 19 + [(99.8, 100.2, 98.0, 100.0)], volume=100)


def test_breakout_with_bias_confirms():
    c = confirm_30m(_breakout_frame(), Bias.LONG, [], [])

    assert c.confirmed
    assert c.type == ConfirmationType.BREAKOUT
    assert c.volume_strong


def test_breakout_against_bias_is_flagged():
    c = confirm_30m(_breakout_frame(), Bias.SHORT, [], [])

    assert not c.confirmed
    assert c.type == ConfirmationType.BREAKOUT
    assert c.against_bias
    assert "against the SHORT bias" in c.details


def test_rejection_candle():
    long = confirm_30m(_rejection_frame(), Bias.LONG, [], [])
    assert long.confirmed
    assert long.type == ConfirmationType.REJECT
    assert not long.volume_strong

    short = confirm_30m(_rejection_frame(), Bias.SHORT, [], [])
    assert short.against_bias


def test_quiet_market_waits():
    c = confirm_30m(make_frame([FLAT] * 20), Bias.LONG, [], [])
    assert c.type == ConfirmationType.NONE
    assert c.details == "No 30m confirmation - WAIT"


def test_neutral_bias_never_confirms():
    c = confirm_30m(_breakout_frame(), Bias.NEUTRAL, [], [])
    assert not c.confirmed
    assert c.type == ConfirmationType.NONE


def test_short_history():
    c = confirm_30m(make_frame([FLAT] * 10), Bias.LONG, [], [])
    assert c.details == "Not enough 30m data (10 candles)"


class TestBreakRetest:
    ROWS = (
        [(99, 99.5, 98.5, 99.2)] * 5
        + [(100.8, 101.3, 100.6, 101.0)] * 10
        + [(100.6, 100.8, 100.1, 100.4)] * 4
        + [(100.3, 100.9, 100.1, 100.8)]
    )

    def test_long_setup(self):
        setup = detect_break_retest(make_frame(self.ROWS), supports=[100], resistances=[103], long=True)

        assert setup.level == 100
        assert setup.entry == pytest.approx(100.8)
        assert setup.stop_loss == pytest.approx(99.7)
        assert setup.take_profit == 103
        assert setup.take_profit_source == "Resistance"
        assert setup.risk_reward == pytest.approx(2.0)

    def test_close_target_is_not_worth_it(self):
        assert detect_break_retest(make_frame(self.ROWS), supports=[100], resistances=[101.5], long=True) is None

    def test_short_window(self):
        assert detect_break_retest(make_frame(self.ROWS[-10:]), supports=[100], resistances=[103], long=True) is None
