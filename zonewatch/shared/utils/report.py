"""
Human-readable reports.

Two report shapes, one per run mode family:
- weekly: daily structure, Fibonacci zones, bias summary and the week-ahead plan
- trading / observation: bias, structure, rated order blocks, S/R, confluence,
  30m confirmation and either the signal with its size or the HOLD reasons
"""

from typing import List, Optional

from zonewatch.shared.models.planner import (
    AnalysisResult,
    Bias,
    ConfirmationType,
    PlanType,
    RunMode,
    WeeklyPlanEntry,
)
from zonewatch.shared.models.smc import TrendDirection

LINE = "━" * 20

_TREND_ARROWS = {
    TrendDirection.BULLISH: "▲",
    TrendDirection.BEARISH: "▼",
    TrendDirection.RANGE: "↔",
}

_PLAN_ICONS = {
    PlanType.BUY_ZONE: "🟢",
    PlanType.SELL_ZONE: "🔴",
    PlanType.ALERT: "⚠️",
}


def fmt_price(n: float) -> str:
    """Magnitude-scaled price: no decimals above 1000, 2 above 1, else 4."""
    if n >= 1000:
        return f"{n:,.0f}"
    decimals = 2 if n >= 1 else 4
    text = f"{n:,.{decimals}f}"
    return text.rstrip('0').rstrip('.') if '.' in text else text


def _change_text(change: float) -> str:
    return f"{'+' if change >= 0 else ''}{change:.1f}%"


def _ema_text(result: AnalysisResult) -> str:
    if result.ema_position is None:
        return "EMA 200 n/a"
    return f"EMA 200 {result.ema_position}"


def format_weekly_section(result: AnalysisResult) -> str:
    trend = result.trend_1d
    lines = [
        f"{result.symbol}  ${fmt_price(result.price)}  {_change_text(result.change_24h)}",
        LINE,
        f"1D  {trend.structure} {_TREND_ARROWS[trend.direction]}  |  {_ema_text(result)}",
    ]
    if trend.last_swing_high and trend.last_swing_low:
        lines.append(f"SH ${fmt_price(trend.last_swing_high.price)}  ·  SL ${fmt_price(trend.last_swing_low.price)}")
    if result.fib_1d:
        fib = result.fib_1d
        lines.append(
            f"Fibonacci  50% ${fmt_price(fib.zone50)}  ·  61.8% ${fmt_price(fib.zone618)}  ·  78.6% ${fmt_price(fib.zone786)}"
        )
    lines.append(f"Bias  {result.bias_label}")
    return "\n".join(lines) + "\n"


def _bias_summary(result: AnalysisResult) -> str:
    if result.trend_1d.is_range:
        return f"{result.symbol} ↔ range"
    if result.bias_label == result.bias.value:
        arrow = "▲" if result.bias == Bias.LONG else "▼"
        return f"{result.symbol} {arrow} {result.trend_1d.direction.value}"
    return f"{result.symbol} ⚠"


def format_plan(plans: List[WeeklyPlanEntry]) -> str:
    lines = ["📋 WEEKLY PLAN", "WAIT FOR THE ZONES - NO ACTION NOW"]
    for p in plans:
        lines.append(f"{_PLAN_ICONS[p.type]} {p.symbol}: {p.condition}")
        lines.append(f"   → {p.action}")
    return "\n".join(lines)


def format_weekly_report(results: List[AnalysisResult]) -> str:
    """Weekly report: one daily-structure section per symbol, then the plan."""
    parts = ["WEEKLY ANALYSIS", "Bias for the coming sessions", LINE, ""]
    parts += [format_weekly_section(r) for r in results]
    parts += ["SUMMARY", "  ·  ".join(_bias_summary(r) for r in results),
              "Look for setups aligned with the 1D bias"]

    plans = [p for r in results for p in r.weekly_plans]
    if plans:
        parts += ["", format_plan(plans)]
    return "\n".join(parts)


def _order_block_lines(result: AnalysisResult) -> List[str]:
    best = [ob for ob in result.order_blocks if ob.quality >= 3][-2:]
    shown = best or result.order_blocks[-1:]
    lines = []
    for ob in shown:
        side = "Bull" if ob.type == "bullish" else "Bear"
        lines.append(f"OB {side} ${fmt_price(ob.low)}-${fmt_price(ob.high)} {ob.stars}")
        if ob.quality_details:
            lines.append("  " + " · ".join(str(c) for c in ob.quality_details))
    return lines


def _confirmation_line(result: AnalysisResult) -> Optional[str]:
    c = result.confirmation
    if c is None:
        return None
    if c.confirmed:
        return f"30m  ✅ {c.details}"
    if c.type in (ConfirmationType.BREAKOUT, ConfirmationType.REJECT):
        return f"30m  {c.details}"
    return f"30m  ⏳ {c.details}"


def format_trading_section(result: AnalysisResult, min_confluence: int = 3) -> str:
    """One symbol of the trading report."""
    trend_4h = result.trend_4h
    lines = [
        f"{result.symbol}  ${fmt_price(result.price)}",
        LINE,
        f"BIAS: {result.bias_label.upper()}",
        "",
        f"1D {result.trend_1d.structure}  ·  4H {trend_4h.structure if trend_4h else 'n/a'}"
        f"{' ✓' if result.aligned else ''}",
        f"{_ema_text(result)}  ·  {result.context.value if result.context else 'n/a'}",
    ]
    lines += _order_block_lines(result)

    sr = []
    if result.supports:
        sr.append(f"Support ${fmt_price(result.supports[-1])}")
    if result.resistances:
        sr.append(f"Resistance ${fmt_price(result.resistances[0])}")
    if sr:
        lines.append("  ·  ".join(sr))

    if result.confluence:
        lines.append(f"Confluence  {result.confluence.score}/{result.confluence.total} → {result.confluence.probability}")
        lines += [f"  ✓ {e}" for e in result.confluence.elements[:5]]

    confirmation = _confirmation_line(result)
    if confirmation:
        lines += ["", confirmation]

    signal = result.signal
    lines.append("")
    if signal:
        label = "🟢 LONG" if signal.is_long else "🔴 SHORT"
        lines.append(f"{label}  ${fmt_price(signal.entry)}")
        lines.append(f"  SL ${fmt_price(signal.stop_loss)}  ·  TP ${fmt_price(signal.take_profit)} ({signal.take_profit_source})")
        lines.append(f"  R:R {signal.rr_display}  ·  {signal.strategy}  ·  {signal.confidence}%")
        if result.confirmation and not result.confirmation.confirmed:
            lines.append("  ⚠️ WAIT for 30m confirmation")
        if result.position_size:
            size = result.position_size
            lines.append(f"  📐 Size: {size.quantity_text} {result.symbol} · Risk: {size.risk_amount_text} ({size.risk_pct_text})")
    else:
        lines.append("⏸ HOLD - no signal")
        if result.hold_reason:
            lines.append(f"  ↳ {result.hold_reason}")
        if not result.aligned and trend_4h is not None:
            lines.append(f"  ↳ 1D/4H not aligned (1D {result.trend_1d.structure} vs 4H {trend_4h.structure})")
        if result.confluence and result.confluence.score < min_confluence:
            lines.append(f"  ↳ Confluence too low ({result.confluence.score}/{result.confluence.total}, min {min_confluence})")
        if result.confirmation and not result.confirmation.confirmed:
            lines.append("  ↳ No 30m confirmation")
        lines.append("  Patience = discipline")
    return "\n".join(lines) + "\n"


def format_trading_report(results: List[AnalysisResult], mode: RunMode = RunMode.TRADING) -> str:
    """Trading report; observation mode gets its own header."""
    if mode == RunMode.OBSERVATION:
        header = ["OBSERVATION", "No positions taken", LINE, ""]
    else:
        header = ["ANALYSIS", LINE, ""]
    return "\n".join(header + [format_trading_section(r) for r in results])
