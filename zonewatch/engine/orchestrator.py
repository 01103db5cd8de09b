"""
Zonewatch Orchestrator

The pipeline controller that wires together every layer, one pass per symbol:
1. Trend / EMA (daily, then 4H)
2. Zones (Fibonacci, imbalances, order blocks, support/resistance)
3. Order-block quality
4. Context
5. Confluence
6. Signal state machine (+ 30m break-retest fallback)
7. 30m confirmation
8. Position sizing and weekly plan

The run mode decides which layers execute. Symbols are independent: a
failure fetching or validating one symbol is recorded and the run continues.
"""

import concurrent.futures
import logging
import time
from collections import Counter
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

import pandas as pd

from zonewatch.analysis.fibonacci import fib_for_trend
from zonewatch.analysis.ltf_confirmation import confirm_30m, detect_break_retest
from zonewatch.analysis.regime_detector import ContextDetector
from zonewatch.analysis.support_resistance import find_support_resistance
from zonewatch.data.adapters.binance import MarketDataError, MarketDataProvider
from zonewatch.indicators.moving_average import latest_ema
from zonewatch.indicators.validation_utils import DataValidationError, validate_ohlcv
from zonewatch.risk.position_sizer import PositionSizer
from zonewatch.shared.config.defaults import FETCH_LIMITS, EngineConfig
from zonewatch.shared.config.smc_config import SMCConfig
from zonewatch.shared.models.data import MarketSnapshot
from zonewatch.shared.models.planner import AnalysisResult, Bias, RunMode, SignalDecision, SignalState
from zonewatch.shared.models.smc import SwingPoint, TrendResult
from zonewatch.shared.utils.logging_utils import format_run_summary, log_pipeline_stage, log_zone_summary, time_operation
from zonewatch.strategy.confluence.scorer import calculate_confluence_score
from zonewatch.strategy.planner.planner_service import (
    break_retest_signal,
    discard_for_observation,
    generate_signal,
)
from zonewatch.strategy.planner.weekly_plan import generate_weekly_plans
from zonewatch.strategy.smc.fvg import detect_fvgs
from zonewatch.strategy.smc.ob_quality import score_order_blocks
from zonewatch.strategy.smc.order_blocks import detect_order_blocks
from zonewatch.strategy.smc.swing_structure import classify_trend, find_swings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SymbolFailure:
    """A symbol skipped because a collaborator or its data failed."""
    symbol: str
    error_type: str
    message: str


@dataclass
class RunReport:
    """Outcome of a multi-symbol run; results keep the input symbol order."""
    results: List[AnalysisResult] = field(default_factory=list)
    failures: List[SymbolFailure] = field(default_factory=list)

    @property
    def signals(self) -> list:
        return [r.signal for r in self.results if r.signal is not None]

    def hold_breakdown(self) -> dict:
        return dict(Counter(r.hold_reason for r in self.results if r.hold_reason))


def _structure(df: pd.DataFrame, lookback: int, swing_count: int) -> Tuple[TrendResult, List[SwingPoint], List[SwingPoint]]:
    """Trend plus the full swing lists (the trend itself only keeps the latest swings)."""
    highs, lows = find_swings(df, lookback)
    if not highs and not lows:
        return TrendResult.neutral(), [], []
    return classify_trend(highs, lows, swing_count), highs, lows


class Orchestrator:
    """
    Main pipeline orchestrator.

    Usage:
        orchestrator = Orchestrator(provider=BinanceAdapter())
        report = orchestrator.run(['BTCUSDT', 'ETHUSDT'], RunMode.TRADING)

        for result in report.results:
            print(result.symbol, result.signal or result.hold_reason)

    The orchestrator holds configuration and collaborators only; analyze()
    keeps no state between calls.
    """

    def __init__(
        self,
        provider: Optional[MarketDataProvider] = None,
        smc_config: Optional[SMCConfig] = None,
        engine_config: Optional[EngineConfig] = None,
    ):
        self.provider = provider
        self.smc_config = smc_config or SMCConfig.defaults()
        self.engine_config = engine_config or EngineConfig.defaults()
        self.smc_config.validate()
        self.engine_config.validate()
        self.context_detector = ContextDetector(self.smc_config)
        logger.info(
            "Orchestrator initialized: capital=%.2f | risk=%.1f%% | min confluence=%d",
            self.engine_config.capital, self.engine_config.risk_pct, self.engine_config.min_confluence,
        )

    def analyze(self, snapshot: MarketSnapshot, mode: RunMode = RunMode.TRADING) -> AnalysisResult:
        """
        Run the pipeline for one symbol.

        Raises:
            DataValidationError: If a candle frame holds NaN or non-positive prices
        """
        for df in (snapshot.daily, snapshot.h4, snapshot.m30):
            validate_ohlcv(df)

        cfg = self.smc_config
        symbol = snapshot.symbol
        price = snapshot.price

        # 1. Daily trend / EMA / Fibonacci
        log_pipeline_stage("TREND", symbol)
        trend_1d, highs_1d, lows_1d = _structure(snapshot.daily, cfg.daily_swing_lookback, cfg.trend_swing_count)
        ema200_1d = latest_ema(snapshot.daily, cfg.ema_period)
        ema_position = None if ema200_1d is None else ("above" if price > ema200_1d else "below")
        fib_1d = fib_for_trend(trend_1d)
        bias = Bias.from_trend(trend_1d.direction)
        log_pipeline_stage("TREND", symbol, "COMPLETE", {
            '1D': trend_1d.structure, 'EMA 200': ema_position, 'bias': bias.value,
        })

        result = AnalysisResult(
            symbol=symbol,
            price=price,
            change_24h=snapshot.change_24h,
            mode=mode,
            trend_1d=trend_1d,
            bias=bias,
            ema200_1d=ema200_1d,
            ema_position=ema_position,
            fib_1d=fib_1d,
        )

        if mode == RunMode.WEEKLY:
            self._daily_zones(snapshot, result, highs_1d, lows_1d)
            log_pipeline_stage("SIGNAL", symbol, "SKIPPED", {'reason': 'weekly mode'})
        else:
            self._trading_layers(snapshot, result)

        result.weekly_plans = generate_weekly_plans(
            symbol, bias, fib_1d, result.order_blocks, result.supports, result.resistances,
        )
        return result

    def _zones(self, df: pd.DataFrame, result: AnalysisResult, highs: List[SwingPoint], lows: List[SwingPoint]) -> None:
        cfg = self.smc_config
        result.fvgs = detect_fvgs(df, cfg)
        result.order_blocks = score_order_blocks(
            detect_order_blocks(df, cfg), result.trend_1d, result.fvgs, result.fib_1d,
            highs, lows, result.price, cfg,
        )
        result.supports, result.resistances = find_support_resistance(df, result.price, cfg)
        log_zone_summary(result.symbol, {
            'fvgs': len(result.fvgs),
            'order_blocks': len(result.order_blocks),
            'supports': len(result.supports),
            'resistances': len(result.resistances),
        })

    def _daily_zones(self, snapshot: MarketSnapshot, result: AnalysisResult,
                     highs: List[SwingPoint], lows: List[SwingPoint]) -> None:
        result.zone_timeframe = "1D"
        self._zones(snapshot.daily, result, highs, lows)

    def _trading_layers(self, snapshot: MarketSnapshot, result: AnalysisResult) -> None:
        cfg = self.smc_config
        engine = self.engine_config
        symbol = snapshot.symbol

        trend_4h, highs_4h, lows_4h = _structure(snapshot.h4, cfg.h4_swing_lookback, cfg.trend_swing_count)
        result.trend_4h = trend_4h
        result.ema200_4h = latest_ema(snapshot.h4, cfg.ema_period)
        result.aligned = trend_4h.direction == result.trend_1d.direction and not result.trend_1d.is_range

        self._zones(snapshot.h4, result, highs_4h, lows_4h)
        result.context = self.context_detector.detect(snapshot.h4, trend_4h)
        result.confluence = calculate_confluence_score(
            result.price, result.bias, result.trend_1d, trend_4h, result.ema_position, result.fib_1d,
            result.fvgs, result.order_blocks, result.supports, result.resistances, cfg,
        )

        decision = generate_signal(
            symbol, result.price, result.trend_1d, trend_4h, result.fib_1d, result.context,
            result.confluence, result.supports, result.resistances, result.order_blocks,
            result.ema_position, engine,
        )
        decision = self._break_retest_fallback(snapshot, result, decision)

        result.confirmation = confirm_30m(snapshot.m30, result.bias, result.supports, result.resistances, cfg)

        if result.mode == RunMode.OBSERVATION:
            decision = discard_for_observation(decision)

        result.decision = decision
        if decision.emitted:
            signal = decision.signal
            sizer = PositionSizer(account_balance=engine.capital)
            result.position_size = sizer.calculate_fixed_fractional(engine.risk_pct, signal.entry, signal.stop_loss)
        else:
            result.hold_reason = decision.reason

        log_pipeline_stage("SIGNAL", symbol, "COMPLETE", {
            'state': decision.state.value,
            'confluence': result.confluence.score,
            'reason': decision.reason,
        })

    def _break_retest_fallback(self, snapshot: MarketSnapshot, result: AnalysisResult,
                               decision: SignalDecision) -> SignalDecision:
        engine = self.engine_config
        if not engine.break_retest_enabled or decision.state != SignalState.NO_SIGNAL:
            return decision
        if not result.aligned or result.bias == Bias.NEUTRAL:
            return decision
        if result.confluence.score < engine.break_retest_min_confluence:
            return decision

        setup = detect_break_retest(snapshot.m30, result.supports, result.resistances, result.bias == Bias.LONG)
        if setup is None:
            return decision
        logger.info("%s: break-retest fallback at %.4f (R:R %.2f)", snapshot.symbol, setup.level, setup.risk_reward)
        return break_retest_signal(setup, result.bias, result.confluence.score, engine)

    def fetch_snapshot(self, symbol: str) -> MarketSnapshot:
        """
        Fetch the three candle series and the ticker for a symbol.

        Raises:
            MarketDataError: If no provider is configured or a fetch fails
        """
        if self.provider is None:
            raise MarketDataError("No market-data provider configured")
        with time_operation("fetch", symbol):
            frames = {tf: self.provider.fetch_ohlcv(symbol, tf, limit) for tf, limit in FETCH_LIMITS.items()}
            price, change = self.provider.fetch_ticker(symbol)
        return MarketSnapshot(
            symbol=symbol,
            daily=frames['1D'],
            h4=frames['4H'],
            m30=frames['30m'],
            price=price,
            change_24h=change,
        )

    def _safe_process(self, symbol: str, mode: RunMode):
        try:
            snapshot = self.fetch_snapshot(symbol)
            with time_operation("analyze", symbol):
                return self.analyze(snapshot, mode)
        except (MarketDataError, DataValidationError) as e:
            logger.error("%s: skipped - %s", symbol, e)
            return SymbolFailure(symbol, type(e).__name__, str(e))
        except Exception as e:  # adapter-specific errors must not abort the run
            logger.error("%s: pipeline error - %s", symbol, e, exc_info=True)
            return SymbolFailure(symbol, type(e).__name__, str(e))

    def run(self, symbols: List[str], mode: RunMode = RunMode.TRADING, max_workers: int = 1) -> RunReport:
        """
        Analyse every symbol independently.

        Args:
            symbols: Symbols to analyse
            mode: Run mode applied to every symbol
            max_workers: Thread pool size; 1 runs sequentially

        Returns:
            RunReport with results in input order and the skipped symbols
        """
        start = time.perf_counter()
        logger.info("Starting %s run for %d symbols", mode.value, len(symbols))

        if max_workers > 1:
            with concurrent.futures.ThreadPoolExecutor(max_workers=max_workers) as executor:
                outcomes = list(executor.map(lambda s: self._safe_process(s, mode), symbols))
        else:
            outcomes = [self._safe_process(s, mode) for s in symbols]

        report = RunReport()
        for outcome in outcomes:
            if isinstance(outcome, SymbolFailure):
                report.failures.append(outcome)
            else:
                report.results.append(outcome)

        logger.info("\n%s", format_run_summary(
            symbols_analyzed=len(report.results),
            signals_emitted=len(report.signals),
            failures=len(report.failures),
            duration_sec=time.perf_counter() - start,
            hold_breakdown=report.hold_breakdown(),
        ))
        return report
