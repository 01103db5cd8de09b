"""
Logging utilities for the analysis pipeline.

Consistent helpers for tracking layer flow, signal rejections, timing and
zone counts. Timing is only ever logged; it never reaches an analysis result.
"""

import time
from typing import Any, Dict, Optional
from loguru import logger


def log_pipeline_stage(
    stage_name: str,
    symbol: str,
    status: str = "START",
    data: Optional[Dict[str, Any]] = None,
    level: str = "DEBUG"
) -> None:
    """
    Log a pipeline stage with consistent formatting.

    Args:
        stage_name: Name of the layer (e.g., "TREND", "ZONES", "SIGNAL")
        symbol: Trading symbol being processed
        status: Stage status ("START", "COMPLETE", "SKIPPED")
        data: Optional additional data to log
        level: Log level ("DEBUG", "INFO", "WARNING", "ERROR")
    """
    log_func = getattr(logger, level.lower(), logger.debug)

    if status == "START":
        log_func(f"[{stage_name}] Starting for {symbol}")
    elif status == "COMPLETE":
        log_func(f"[{stage_name}] Completed for {symbol}")
        if data:
            for key, value in data.items():
                log_func(f"   └─ {key}: {value}")
    elif status == "SKIPPED":
        reason = data.get('reason', 'mode') if data else 'mode'
        log_func(f"[{stage_name}] Skipped for {symbol} ({reason})")


def log_rejection(
    symbol: str,
    stage: str,
    reason: str,
    diagnostics: Optional[Dict[str, Any]] = None,
    level: str = "INFO"
) -> None:
    """
    Log a signal rejection with its diagnostic context.

    Args:
        symbol: Trading symbol
        stage: Pipeline stage where rejection occurred
        reason: Terminal reason recorded on the decision
        diagnostics: Detailed diagnostic data
        level: Log level
    """
    log_func = getattr(logger, level.lower(), logger.info)

    log_func(f"HOLD: {symbol} at {stage}")
    log_func(f"   └─ Reason: {reason}")

    if diagnostics:
        log_func("   └─ Diagnostics:")
        for key, value in diagnostics.items():
            if isinstance(value, float):
                log_func(f"      • {key}: {value:.4f}")
            else:
                log_func(f"      • {key}: {value}")


def log_timing(
    operation_name: str,
    duration_ms: float,
    symbol: Optional[str] = None,
    level: str = "DEBUG"
) -> None:
    log_func = getattr(logger, level.lower(), logger.debug)
    symbol_str = f" [{symbol}]" if symbol else ""
    log_func(f"{operation_name}{symbol_str}: {duration_ms:.0f}ms")


def log_zone_summary(symbol: str, zones: Dict[str, int]) -> None:
    """
    Log zone detection counts.

    Args:
        symbol: Trading symbol
        zones: Dict of zone type -> count
    """
    logger.debug(f"[{symbol}] Zone detection summary:")
    for zone_type, count in zones.items():
        logger.debug(f"   └─ {zone_type}: {count}")


def format_run_summary(
    symbols_analyzed: int,
    signals_emitted: int,
    failures: int,
    duration_sec: float,
    hold_breakdown: Optional[Dict[str, int]] = None
) -> str:
    """
    Format a multi-symbol run summary.

    Args:
        symbols_analyzed: Symbols that produced an analysis
        signals_emitted: Count of emitted signals
        failures: Symbols skipped because of a collaborator or data failure
        duration_sec: Total run duration in seconds
        hold_breakdown: Optional dict of hold reasons and counts

    Returns:
        Formatted summary string
    """
    lines = [
        "=" * 60,
        "RUN SUMMARY",
        "=" * 60,
        f"Symbols analyzed:  {symbols_analyzed}",
        f"Signals emitted:   {signals_emitted}",
        f"Failures:          {failures}",
        f"Total duration:    {duration_sec:.2f}s",
    ]

    if hold_breakdown:
        lines.append("")
        lines.append("Hold reasons:")
        for reason, count in sorted(hold_breakdown.items(), key=lambda x: x[1], reverse=True):
            lines.append(f"  • {reason}: {count}")

    lines.append("=" * 60)
    return "\n".join(lines)


class TimingContext:
    """Context manager for timing operations."""

    def __init__(self, operation_name: str, symbol: Optional[str] = None):
        self.operation_name = operation_name
        self.symbol = symbol
        self.start_time = None
        self.duration_ms = None

    def __enter__(self):
        self.start_time = time.perf_counter()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.duration_ms = (time.perf_counter() - self.start_time) * 1000
        log_timing(self.operation_name, self.duration_ms, self.symbol)
        return False


def time_operation(operation_name: str, symbol: Optional[str] = None) -> TimingContext:
    """
    Context manager for timing operations.

        with time_operation("fetch", "BTCUSDT"):
            ...
    """
    return TimingContext(operation_name, symbol)
