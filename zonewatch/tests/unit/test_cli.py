"""
Tests for the command-line interface.
"""

import json

import pytest
from typer.testing import CliRunner

from zonewatch import __version__, cli
from zonewatch.data.adapters.mocks import MockProvider
from zonewatch.engine.orchestrator import Orchestrator

runner = CliRunner()


@pytest.fixture
def offline(monkeypatch):
    monkeypatch.setattr(cli, "_build_orchestrator", lambda capital, risk_pct: Orchestrator(provider=MockProvider()))


def test_version():
    result = runner.invoke(cli.app, ["version"])
    assert result.exit_code == 0
    assert f"zonewatch {__version__}" in result.stdout


def test_analyze_refuses_weekly_mode():
    result = runner.invoke(cli.app, ["analyze", "--mode", "weekly"])
    assert result.exit_code == 2


def test_analyze_json_records(offline, tmp_path):
    result = runner.invoke(cli.app, [
        "analyze", "--symbols", "btc,ETHUSDT", "--symbols-file", str(tmp_path / "none.json"), "--json",
    ])

    assert result.exit_code == 0
    records = json.loads(result.stdout)
    assert [r['symbol'] for r in records] == ["BTCUSDT", "ETHUSDT"]
    assert all(r['signal_type'] in ("long", "short", "hold") for r in records)


def test_plan_json(offline, tmp_path):
    result = runner.invoke(cli.app, [
        "plan", "--symbols", "SOLUSDT", "--symbols-file", str(tmp_path / "none.json"), "--json",
    ])

    assert result.exit_code == 0
    plans = json.loads(result.stdout)
    assert all(p['symbol'] == "SOLUSDT" for p in plans)
    assert all(p['type'] in ("buy-zone", "sell-zone", "alert") for p in plans)
