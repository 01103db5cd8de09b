"""
Tests for configuration validation.
"""

import pytest

from zonewatch.shared.config.defaults import EngineConfig
from zonewatch.shared.config.smc_config import SMCConfig


class TestSMCConfig:
    def test_defaults_are_valid(self):
        SMCConfig.defaults().validate()

    def test_from_dict_applies_overrides(self):
        cfg = SMCConfig.from_dict({'daily_swing_lookback': 7, 'unknown_key': 1})
        assert cfg.daily_swing_lookback == 7
        assert cfg.h4_swing_lookback == 3
        assert not hasattr(cfg, 'unknown_key')

    def test_swing_lookback_per_timeframe(self):
        cfg = SMCConfig.defaults()
        assert cfg.swing_lookback('1D') == 5
        assert cfg.swing_lookback('4h') == 3

    @pytest.mark.parametrize("overrides,message", [
        ({'daily_swing_lookback': 0}, "daily_swing_lookback must be >= 1"),
        ({'zone_tolerance_pct': 0.5}, "zone_tolerance_pct must be between"),
        ({'confirm_local_range': 20}, "cannot exceed confirm_window"),
        ({'context_min_candles': 30}, "context_min_candles must cover"),
    ])
    def test_invalid_values(self, overrides, message):
        with pytest.raises(ValueError, match=message):
            SMCConfig.from_dict(overrides)


class TestEngineConfig:
    def test_defaults_are_valid(self):
        cfg = EngineConfig.defaults()
        cfg.validate()
        assert cfg.capital == 144.0
        assert cfg.risk_pct == 2.0

    def test_rr_floor_cannot_be_lowered(self):
        with pytest.raises(ValueError, match="min_risk_reward cannot be lowered"):
            EngineConfig.from_dict({'min_risk_reward': 0.8})

    def test_risk_pct_bounds(self):
        with pytest.raises(ValueError, match="risk_pct must be in"):
            EngineConfig.from_dict({'risk_pct': 0})

    def test_fallback_targets_become_tuple(self):
        cfg = EngineConfig.from_dict({'target_fallback_pcts': [0.02, 0.04]})
        assert cfg.target_fallback_pcts == (0.02, 0.04)
        assert cfg.to_dict()['target_fallback_pcts'] == (0.02, 0.04)
