"""
Tests for report rendering and the persisted record.
"""

import pytest

from zonewatch.engine.orchestrator import Orchestrator
from zonewatch.shared.models.planner import RunMode
from zonewatch.shared.utils.report import fmt_price, format_trading_report, format_weekly_report
from zonewatch.shared.utils.signal_transform import HOLD, to_dict, to_record
from zonewatch.tests.fixtures.candles import mock_snapshot


@pytest.mark.parametrize("value,text", [
    (43250.7, "43,251"),
    (123.456, "123.46"),
    (0.123456, "0.1235"),
    (100.0, "100"),
    (1.5, "1.5"),
])
def test_fmt_price(value, text):
    assert fmt_price(value) == text


@pytest.fixture(scope="module")
def observed():
    return Orchestrator().analyze(mock_snapshot(seed=21), RunMode.OBSERVATION)


def test_record_of_a_hold(observed):
    record = to_record(observed)

    assert record['symbol'] == "BTCUSDT"
    assert record['signal_type'] == HOLD
    assert record['confidence'] == observed.confluence.score * 10
    assert record['notes']['signal'] is None
    assert record['notes']['trend_1d'] == observed.trend_1d.structure


def test_full_dict_carries_decision(observed):
    data = to_dict(observed)

    assert data['mode'] == "observation"
    assert data['signal'] is None
    assert data['decision']['reason'] == observed.hold_reason
    assert data['hold_reason'] == observed.hold_reason
    assert len(data['confluence']['factors']) == 7


def test_observation_report_header(observed):
    text = format_trading_report([observed], RunMode.OBSERVATION)

    assert text.startswith("OBSERVATION")
    assert "⏸ HOLD - no signal" in text
    assert f"↳ {observed.hold_reason}" in text


def test_weekly_report():
    result = Orchestrator().analyze(mock_snapshot(seed=21), RunMode.WEEKLY)
    text = format_weekly_report([result])

    assert text.startswith("WEEKLY ANALYSIS")
    assert "BTCUSDT" in text
    assert f"Bias  {result.bias_label}" in text
