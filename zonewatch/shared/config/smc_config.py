"""Structure and zone detection configuration module.

Centralizes all tunable parameters of the detection layers (swings, gaps,
order blocks, support/resistance, context and 30-minute confirmation) so
they can be supplied from a dict or the CLI instead of living as magic
numbers inside individual detector modules.

Percentages are expressed as fractions of price (0.005 == 0.5%).
"""

from dataclasses import dataclass, asdict
from typing import Dict, Any


@dataclass
class SMCConfig:
    # Trend / EMA
    ema_period: int = 200
    daily_swing_lookback: int = 5  # Wider on daily - each candle is significant
    h4_swing_lookback: int = 3
    trend_swing_count: int = 4  # Last N swings of each kind vote on the trend

    # Fair Value Gap parameters
    fvg_lookback: int = 30
    fvg_max_results: int = 5

    # Order Block parameters
    ob_lookback: int = 50
    ob_max_results: int = 5
    ob_impulse_body_ratio: float = 1.5  # Next candle body must exceed this multiple

    # Support / resistance clustering
    sr_swing_lookback: int = 3
    sr_cluster_tolerance_pct: float = 0.005
    sr_min_touches: int = 2
    sr_max_levels: int = 3  # Per side

    # Proximity tolerances
    zone_tolerance_pct: float = 0.02  # OB / FVG bracketing price
    sr_proximity_pct: float = 0.015
    equal_level_tolerance_pct: float = 0.003  # Consecutive swings considered "equal"
    liquidity_proximity_pct: float = 0.01  # OB too close to an equal-highs/lows pool
    fvg_ob_adjacency_pct: float = 0.01

    # Context (4H regime) windows
    context_recent_candles: int = 10
    context_volume_baseline: int = 40
    context_range_baseline: int = 20
    context_pullback_closes: int = 5
    context_min_candles: int = 50
    expansion_multiplier: float = 1.5

    # 30-minute confirmation
    confirm_min_candles: int = 20
    confirm_window: int = 15
    confirm_local_range: int = 10
    confirm_range_tolerance: float = 0.15  # Fraction of the local range
    confirm_volume_ratio: float = 1.3
    confirm_retest_proximity_pct: float = 0.01
    confirm_reject_body_ratio: float = 0.3

    @staticmethod
    def defaults() -> "SMCConfig":
        """Return a fresh default configuration object."""
        return SMCConfig()

    def validate(self) -> None:
        """Validate configuration values, raising ValueError on invalid entries."""
        numeric_fields = [
            ("ema_period", self.ema_period, 1),
            ("daily_swing_lookback", self.daily_swing_lookback, 1),
            ("h4_swing_lookback", self.h4_swing_lookback, 1),
            ("trend_swing_count", self.trend_swing_count, 2),
            ("fvg_lookback", self.fvg_lookback, 3),
            ("fvg_max_results", self.fvg_max_results, 1),
            ("ob_lookback", self.ob_lookback, 2),
            ("ob_max_results", self.ob_max_results, 1),
            ("ob_impulse_body_ratio", self.ob_impulse_body_ratio, 1),
            ("sr_swing_lookback", self.sr_swing_lookback, 1),
            ("sr_min_touches", self.sr_min_touches, 1),
            ("sr_max_levels", self.sr_max_levels, 1),
            ("context_recent_candles", self.context_recent_candles, 1),
            ("context_volume_baseline", self.context_volume_baseline, 1),
            ("context_range_baseline", self.context_range_baseline, 1),
            ("context_pullback_closes", self.context_pullback_closes, 2),
            ("expansion_multiplier", self.expansion_multiplier, 1),
            ("confirm_window", self.confirm_window, 3),
            ("confirm_local_range", self.confirm_local_range, 2),
            ("confirm_volume_ratio", self.confirm_volume_ratio, 1),
        ]
        for name, value, minimum in numeric_fields:
            if value < minimum:
                raise ValueError(f"{name} must be >= {minimum}, got {value}")

        pct_fields = [
            ("sr_cluster_tolerance_pct", self.sr_cluster_tolerance_pct),
            ("zone_tolerance_pct", self.zone_tolerance_pct),
            ("sr_proximity_pct", self.sr_proximity_pct),
            ("equal_level_tolerance_pct", self.equal_level_tolerance_pct),
            ("liquidity_proximity_pct", self.liquidity_proximity_pct),
            ("fvg_ob_adjacency_pct", self.fvg_ob_adjacency_pct),
            ("confirm_retest_proximity_pct", self.confirm_retest_proximity_pct),
        ]
        for name, value in pct_fields:
            if not 0 < value < 0.1:
                raise ValueError(f"{name} must be between 0 and 0.1 (10%), got {value}")

        if not 0 < self.confirm_range_tolerance < 1:
            raise ValueError(f"confirm_range_tolerance must be between 0 and 1, got {self.confirm_range_tolerance}")
        if not 0 < self.confirm_reject_body_ratio < 1:
            raise ValueError(f"confirm_reject_body_ratio must be between 0 and 1, got {self.confirm_reject_body_ratio}")
        if self.confirm_local_range > self.confirm_window:
            raise ValueError(
                f"confirm_local_range ({self.confirm_local_range}) cannot exceed confirm_window ({self.confirm_window})"
            )
        needed = self.context_recent_candles + max(self.context_volume_baseline, self.context_range_baseline)
        if self.context_min_candles < needed:
            raise ValueError(f"context_min_candles must cover the baseline windows (>= {needed}), got {self.context_min_candles}")

    def to_dict(self) -> Dict[str, Any]:
        """Return a dict representation suitable for serialization."""
        return asdict(self)

    def swing_lookback(self, timeframe: str) -> int:
        """Swing lookback for a timeframe label ('1D' is wider than '4H')."""
        return self.daily_swing_lookback if timeframe.upper() == '1D' else self.h4_swing_lookback

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "SMCConfig":
        """Create configuration from partial dict, applying defaults for missing keys."""
        base = SMCConfig.defaults()
        for key, value in data.items():
            if hasattr(base, key):
                setattr(base, key, value)
        base.validate()
        return base
