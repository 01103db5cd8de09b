"""
Default configuration for the zonewatch engine.

Signal acceptance thresholds, confidence weights and sizing inputs.
"""
from dataclasses import dataclass, asdict
from typing import Any, Dict, Tuple


DEFAULT_SYMBOLS: Tuple[str, ...] = ("BTCUSDT", "ETHUSDT", "SOLUSDT")

# Candles fetched per timeframe for one analysis
FETCH_LIMITS: Dict[str, int] = {'1D': 200, '4H': 200, '30m': 100}


@dataclass
class EngineConfig:
    """Signal layer, sizing and planning configuration."""
    capital: float = 144.0
    risk_pct: float = 2.0  # Percent of capital risked per trade

    # Alignment tiers
    min_risk_reward: float = 1.0
    min_confluence: int = 3
    range_tier_min_confluence: int = 4
    counter_trend_min_confluence: int = 5

    # Confidence = base + per_factor * score + bonuses, clamped
    confidence_base: int = 45
    confidence_per_factor: int = 8
    confidence_alignment_bonus: int = 10
    confidence_counter_penalty: int = 10
    confidence_quality_ob_bonus: int = 5
    confidence_ema_bonus: int = 5
    confidence_min: int = 30
    confidence_max: int = 95
    quality_ob_min: int = 4
    quality_ob_proximity_pct: float = 0.02

    # Stop / target construction
    stop_buffer_pct: float = 0.002
    stop_fallback_pct: float = 0.03
    target_fallback_pcts: Tuple[float, ...] = (0.03, 0.05)
    fib_extension_ratio: float = 1.618

    # 30m break-retest fallback
    break_retest_enabled: bool = True
    break_retest_min_confluence: int = 2
    break_retest_confidence_cap: int = 90

    # Weekly plan alerts fire when price is within this distance of a zone
    plan_alert_proximity_pct: float = 0.02

    @staticmethod
    def defaults() -> "EngineConfig":
        return EngineConfig()

    def validate(self) -> None:
        """Validate configuration values, raising ValueError on invalid entries."""
        if self.capital <= 0:
            raise ValueError(f"capital must be positive, got {self.capital}")
        if not 0 < self.risk_pct <= 100:
            raise ValueError(f"risk_pct must be in (0, 100], got {self.risk_pct}")
        if self.min_risk_reward < 1.0:
            raise ValueError(f"min_risk_reward cannot be lowered below 1.0, got {self.min_risk_reward}")
        if not 0 <= self.min_confluence <= 7:
            raise ValueError(f"min_confluence must be 0-7, got {self.min_confluence}")
        if not self.min_confluence <= self.range_tier_min_confluence <= 7:
            raise ValueError(f"range_tier_min_confluence must be {self.min_confluence}-7, got {self.range_tier_min_confluence}")
        if not self.min_confluence <= self.counter_trend_min_confluence <= 7:
            raise ValueError(
                f"counter_trend_min_confluence must be {self.min_confluence}-7, got {self.counter_trend_min_confluence}"
            )
        if not 30 <= self.confidence_min <= self.confidence_max <= 95:
            raise ValueError(
                f"confidence bounds must satisfy 30 <= min <= max <= 95, got {self.confidence_min}-{self.confidence_max}"
            )
        for name, value in (
            ("stop_buffer_pct", self.stop_buffer_pct),
            ("stop_fallback_pct", self.stop_fallback_pct),
            ("quality_ob_proximity_pct", self.quality_ob_proximity_pct),
            ("plan_alert_proximity_pct", self.plan_alert_proximity_pct),
        ):
            if not 0 < value < 0.5:
                raise ValueError(f"{name} must be between 0 and 0.5, got {value}")
        if any(p <= 0 for p in self.target_fallback_pcts):
            raise ValueError(f"target_fallback_pcts must be positive, got {self.target_fallback_pcts}")

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "EngineConfig":
        """Create configuration from partial dict, applying defaults for missing keys."""
        base = EngineConfig.defaults()
        for key, value in data.items():
            if hasattr(base, key):
                if key == 'target_fallback_pcts':
                    value = tuple(value)
                setattr(base, key, value)
        base.validate()
        return base
