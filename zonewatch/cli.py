"""
Zonewatch CLI - Command-line interface.

    zonewatch analyze --symbols BTCUSDT,ETHUSDT
    zonewatch analyze --mode observation --json
    zonewatch plan
"""
import json
from pathlib import Path
from typing import List, Optional

import typer

from zonewatch import __version__
from zonewatch.shared.config.defaults import EngineConfig
from zonewatch.shared.config.symbols import DEFAULT_SYMBOLS_FILE, resolve_symbols
from zonewatch.shared.models.planner import RunMode
from zonewatch.shared.utils.report import format_trading_report, format_weekly_report
from zonewatch.shared.utils.signal_transform import to_dict, to_record
from zonewatch.strategy.planner.weekly_plan import check_plan_alerts, format_plan_alerts

app = typer.Typer(help="📈 Zonewatch - multi-timeframe market structure and signal engine")


def _parse_symbols(symbols: Optional[str]) -> Optional[List[str]]:
    if not symbols:
        return None
    return [s for s in symbols.split(',') if s.strip()]


def _build_orchestrator(capital: float, risk_pct: float):
    from zonewatch.data.adapters.binance import BinanceAdapter
    from zonewatch.engine.orchestrator import Orchestrator

    engine_config = EngineConfig.from_dict({'capital': capital, 'risk_pct': risk_pct})
    return Orchestrator(provider=BinanceAdapter(), engine_config=engine_config)


def _echo_failures(report) -> None:
    for failure in report.failures:
        typer.echo(f"❌ {failure.symbol}: {failure.error_type} - {failure.message}", err=True)


@app.command()
def analyze(
    symbols: Optional[str] = typer.Option(None, help="Comma-separated symbols (e.g. BTCUSDT,ETHUSDT)"),
    symbols_file: Path = typer.Option(DEFAULT_SYMBOLS_FILE, help="Stored symbol list (JSON array)"),
    mode: RunMode = typer.Option(RunMode.TRADING, help="trading or observation"),
    capital: float = typer.Option(144.0, envvar="TRADING_CAPITAL", help="Trading capital in USDT"),
    risk_pct: float = typer.Option(2.0, envvar="TRADING_RISK_PCT", help="Percent of capital risked per trade"),
    workers: int = typer.Option(1, min=1, help="Symbols analysed in parallel"),
    as_json: bool = typer.Option(False, "--json", help="Print persisted records instead of the report"),
    full: bool = typer.Option(False, "--full", help="With --json, print the complete analysis"),
):
    """
    🎯 Analyse symbols on 1D / 4H / 30m and emit signals or HOLD reasons.
    """
    if mode == RunMode.WEEKLY:
        typer.echo("Use `zonewatch plan` for the weekly analysis", err=True)
        raise typer.Exit(code=2)

    symbol_list = resolve_symbols(_parse_symbols(symbols), symbols_file)
    try:
        orchestrator = _build_orchestrator(capital, risk_pct)
    except ValueError as e:
        typer.echo(f"❌ Invalid configuration: {e}", err=True)
        raise typer.Exit(code=2)

    report = orchestrator.run(symbol_list, mode, max_workers=workers)

    if as_json:
        payload = [to_dict(r) if full else to_record(r) for r in report.results]
        typer.echo(json.dumps(payload, indent=2, ensure_ascii=False))
    else:
        typer.echo(format_trading_report(report.results, mode))
        plans = [p for r in report.results for p in r.weekly_plans]
        triggered = check_plan_alerts(plans, {r.symbol: r.price for r in report.results},
                                      orchestrator.engine_config.plan_alert_proximity_pct)
        if triggered:
            typer.echo(format_plan_alerts(triggered))

    _echo_failures(report)
    if not report.results and report.failures:
        raise typer.Exit(code=1)


@app.command()
def plan(
    symbols: Optional[str] = typer.Option(None, help="Comma-separated symbols (e.g. BTCUSDT,ETHUSDT)"),
    symbols_file: Path = typer.Option(DEFAULT_SYMBOLS_FILE, help="Stored symbol list (JSON array)"),
    as_json: bool = typer.Option(False, "--json", help="Print plan entries as JSON"),
):
    """
    📋 Weekly analysis: daily structure, Fibonacci zones and the week-ahead plan.
    """
    symbol_list = resolve_symbols(_parse_symbols(symbols), symbols_file)
    defaults = EngineConfig.defaults()
    orchestrator = _build_orchestrator(defaults.capital, defaults.risk_pct)
    report = orchestrator.run(symbol_list, RunMode.WEEKLY)

    if as_json:
        plans = [p.to_dict() for r in report.results for p in r.weekly_plans]
        typer.echo(json.dumps(plans, indent=2, ensure_ascii=False))
    else:
        typer.echo(format_weekly_report(report.results))

    _echo_failures(report)
    if not report.results and report.failures:
        raise typer.Exit(code=1)


@app.command()
def version():
    """Show the installed version."""
    typer.echo(f"zonewatch {__version__}")


if __name__ == "__main__":
    app()
