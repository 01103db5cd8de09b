"""
End-to-end pipeline tests on synthetic market data.
"""

import json

import numpy as np
import pytest

from zonewatch.data.adapters.mocks import MockProvider
from zonewatch.engine.orchestrator import Orchestrator, SymbolFailure
from zonewatch.indicators.validation_utils import DataValidationError
from zonewatch.shared.config.defaults import FETCH_LIMITS
from zonewatch.shared.models.data import MarketSnapshot
from zonewatch.shared.models.planner import (
    AnalysisResult,
    Bias,
    RunMode,
    SignalDecision,
    SignalState,
    SignalType,
)
from zonewatch.shared.models.scoring import ConfluenceResult
from zonewatch.shared.models.smc import TrendDirection, TrendResult
from zonewatch.shared.utils.signal_transform import to_dict
from zonewatch.strategy.planner.planner_service import BREAK_RETEST_STRATEGY, REASON_LOW_CONFLUENCE, REASON_OBSERVATION
from zonewatch.tests.fixtures.candles import make_frame, mock_frame, mock_snapshot

SYMBOLS = ["BTCUSDT", "ETHUSDT", "SOLUSDT"]


@pytest.fixture
def orchestrator():
    return Orchestrator(provider=MockProvider())


def _assert_bounded(result: AnalysisResult):
    if result.confluence is not None:
        assert 0 <= result.confluence.score <= 7
        assert result.confluence.score == sum(1 for f in result.confluence.factors if f.matched)
    for ob in result.order_blocks:
        assert 0 <= ob.quality <= 5
        assert len(ob.quality_details) == 5
    assert all(s < result.price for s in result.supports)
    assert all(r > result.price for r in result.resistances)
    assert len(result.supports) <= 3 and len(result.resistances) <= 3

    signal = result.signal
    if signal is not None:
        assert signal.risk_reward >= 1.0
        assert 30 <= signal.confidence <= 95
        if signal.type == SignalType.LONG:
            assert signal.stop_loss < signal.entry < signal.take_profit
        else:
            assert signal.take_profit < signal.entry < signal.stop_loss
        assert result.position_size is not None
        assert result.hold_reason is None
    elif result.mode != RunMode.WEEKLY:
        assert result.hold_reason
        assert result.position_size is None


class TestRun:
    def test_failing_symbol_is_isolated(self):
        orchestrator = Orchestrator(provider=MockProvider(failing={"ETHUSDT"}))
        report = orchestrator.run(SYMBOLS, RunMode.TRADING)

        assert [r.symbol for r in report.results] == ["BTCUSDT", "SOLUSDT"]
        assert report.failures == [
            SymbolFailure("ETHUSDT", "MarketDataError", "ETHUSDT 1D: exchange unavailable"),
        ]

    def test_parallel_run_keeps_input_order(self):
        orchestrator = Orchestrator(provider=MockProvider(failing={"BTCUSDT"}))
        report = orchestrator.run(SYMBOLS, RunMode.TRADING, max_workers=3)

        assert [r.symbol for r in report.results] == ["ETHUSDT", "SOLUSDT"]
        assert [f.symbol for f in report.failures] == ["BTCUSDT"]

    def test_invalid_data_is_a_failure(self):
        bad = mock_frame("bullish", 200, 1, '1D')
        bad.loc[50, 'close'] = np.nan
        orchestrator = Orchestrator(provider=MockProvider(frames={("BTCUSDT", "1D"): bad}))
        report = orchestrator.run(["BTCUSDT", "SOLUSDT"])

        assert [r.symbol for r in report.results] == ["SOLUSDT"]
        assert report.failures[0].error_type == "DataValidationError"

    def test_price_is_last_close_of_analysed_series(self):
        provider = MockProvider()
        m30 = provider.fetch_ohlcv("BTCUSDT", "30m", FETCH_LIMITS['30m'])
        price, _ = provider.fetch_ticker("BTCUSDT")
        assert price == float(m30['close'].iloc[-1])

        snapshot = Orchestrator(provider=provider).fetch_snapshot("BTCUSDT")
        assert snapshot.price == float(snapshot.m30['close'].iloc[-1])

        report = Orchestrator(provider=provider).run(["BTCUSDT"])
        assert report.results[0].price == price

    def test_no_provider(self):
        report = Orchestrator().run(["BTCUSDT"])
        assert report.results == []
        assert report.failures[0].error_type == "MarketDataError"

    def test_observation_never_emits(self):
        report = Orchestrator(provider=MockProvider()).run(SYMBOLS, RunMode.OBSERVATION)

        assert report.signals == []
        for result in report.results:
            assert result.decision.state != SignalState.EMITTED
            assert result.position_size is None
            assert result.hold_reason
        assert sum(report.hold_breakdown().values()) == len(report.results)

    def test_weekly_skips_signal_layers(self):
        report = Orchestrator(provider=MockProvider()).run(SYMBOLS, RunMode.WEEKLY)

        for result in report.results:
            assert result.zone_timeframe == "1D"
            assert result.trend_4h is None
            assert result.decision is None
            assert result.confluence is None
            assert result.confirmation is None
            assert result.hold_reason is None


class TestAnalyze:
    @pytest.mark.parametrize("regime", ["bullish", "bearish", "ranging"])
    @pytest.mark.parametrize("seed", [3, 11, 29])
    def test_outputs_are_bounded(self, orchestrator, regime, seed):
        result = orchestrator.analyze(mock_snapshot(regime=regime, seed=seed), RunMode.TRADING)
        _assert_bounded(result)
        assert result.context is not None
        assert result.confirmation is not None

    def test_trends_follow_regime(self, orchestrator):
        assert orchestrator.analyze(mock_snapshot(regime="bullish")).bias != Bias.SHORT
        assert orchestrator.analyze(mock_snapshot(regime="bearish")).bias != Bias.LONG

    def test_deterministic(self, orchestrator):
        snapshot = mock_snapshot(seed=5)
        first = json.dumps(to_dict(orchestrator.analyze(snapshot)), sort_keys=True)
        second = json.dumps(to_dict(orchestrator.analyze(snapshot)), sort_keys=True)
        assert first == second

    def test_weekly_plan_independent_of_signal(self, orchestrator):
        snapshot = mock_snapshot(seed=13)
        trading = orchestrator.analyze(snapshot, RunMode.TRADING)
        observation = orchestrator.analyze(snapshot, RunMode.OBSERVATION)
        assert trading.weekly_plans == observation.weekly_plans

    def test_observation_discards_what_trading_emits(self, orchestrator):
        for seed in range(1, 15):
            snapshot = mock_snapshot(seed=seed)
            trading = orchestrator.analyze(snapshot, RunMode.TRADING)
            if trading.signal is None:
                continue
            observation = orchestrator.analyze(snapshot, RunMode.OBSERVATION)
            assert observation.signal is None
            assert observation.hold_reason == REASON_OBSERVATION
            assert observation.confluence.score == trading.confluence.score

    def test_nan_frame_raises(self, orchestrator):
        snapshot = mock_snapshot()
        snapshot.h4.loc[10, 'high'] = np.nan
        with pytest.raises(DataValidationError, match="NaN"):
            orchestrator.analyze(snapshot)


class TestBreakRetestFallback:
    ROWS = (
        [(99, 99.5, 98.5, 99.2)] * 5
        + [(100.8, 101.3, 100.6, 101.0)] * 10
        + [(100.6, 100.8, 100.1, 100.4)] * 4
        + [(100.3, 100.9, 100.1, 100.8)]
    )

    def _setup(self, score=2, aligned=True):
        frame = make_frame(self.ROWS)
        snapshot = MarketSnapshot("BTCUSDT", frame, frame, frame, price=100.8)
        result = AnalysisResult(
            symbol="BTCUSDT",
            price=100.8,
            change_24h=0.0,
            mode=RunMode.TRADING,
            trend_1d=TrendResult(direction=TrendDirection.BULLISH),
            bias=Bias.LONG,
            aligned=aligned,
            supports=[100],
            resistances=[103],
            confluence=ConfluenceResult(score=score),
        )
        return snapshot, result

    def test_fallback_promotes_setup(self, orchestrator):
        snapshot, result = self._setup()
        decision = orchestrator._break_retest_fallback(
            snapshot, result, SignalDecision.no_signal(REASON_LOW_CONFLUENCE)
        )

        assert decision.emitted
        assert decision.signal.strategy == BREAK_RETEST_STRATEGY
        assert decision.signal.confidence == 65

    def test_fallback_needs_alignment(self, orchestrator):
        snapshot, result = self._setup(aligned=False)
        held = SignalDecision.no_signal(REASON_LOW_CONFLUENCE)
        assert orchestrator._break_retest_fallback(snapshot, result, held) is held

    def test_fallback_needs_confluence(self, orchestrator):
        snapshot, result = self._setup(score=1)
        held = SignalDecision.no_signal(REASON_LOW_CONFLUENCE)
        assert orchestrator._break_retest_fallback(snapshot, result, held) is held

    def test_rejected_decision_is_final(self, orchestrator):
        snapshot, result = self._setup()
        rejected = SignalDecision(state=SignalState.REJECTED, reason="risk:reward below minimum")
        assert orchestrator._break_retest_fallback(snapshot, result, rejected) is rejected
