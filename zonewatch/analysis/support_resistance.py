"""
Support / Resistance Levels

Clusters swing points by proximity into horizontal levels. A cluster only
becomes a level once it has been touched at least `sr_min_touches` times;
levels are then split around the reference price and the nearest ones on
each side are kept.
"""

from dataclasses import dataclass
from typing import List, Optional, Tuple

import pandas as pd
from loguru import logger

from zonewatch.shared.config.smc_config import SMCConfig
from zonewatch.strategy.smc.swing_structure import find_swings


@dataclass
class _Cluster:
    price: float
    touches: int = 1


def cluster_levels(points: List[float], tolerance_pct: float = 0.005) -> List[Tuple[float, int]]:
    """
    Greedy proximity clustering.

    Each point joins the first cluster within tolerance_pct of it (relative
    to the point) and moves that cluster to the average of the two prices;
    otherwise it starts a new cluster.

    Returns:
        (price, touches) per cluster, in creation order
    """
    clusters: List[_Cluster] = []
    for p in points:
        match = next((c for c in clusters if abs(c.price - p) / p < tolerance_pct), None)
        if match is None:
            clusters.append(_Cluster(price=p))
        else:
            match.touches += 1
            match.price = (match.price + p) / 2
    return [(c.price, c.touches) for c in clusters]


def find_support_resistance(
    df: pd.DataFrame,
    price: Optional[float] = None,
    config: Optional[SMCConfig] = None,
) -> Tuple[List[float], List[float]]:
    """
    Find support and resistance levels.

    Args:
        df: OHLCV DataFrame
        price: Reference price; defaults to the last close
        config: SMCConfig with sr_* parameters

    Returns:
        (supports, resistances), both ascending. Supports are the nearest
        levels below price, resistances the nearest above.
    """
    cfg = config or SMCConfig.defaults()
    if df.empty:
        return [], []
    ref = float(df['close'].iloc[-1]) if price is None else price

    swing_highs, swing_lows = find_swings(df, cfg.sr_swing_lookback)
    points = [s.price for s in swing_highs] + [s.price for s in swing_lows]

    strong = sorted(p for p, touches in cluster_levels(points, cfg.sr_cluster_tolerance_pct)
                    if touches >= cfg.sr_min_touches)

    supports = [p for p in strong if p < ref][-cfg.sr_max_levels:]
    resistances = [p for p in strong if p > ref][:cfg.sr_max_levels]

    logger.debug(f"S/R: {len(points)} swing points -> {len(strong)} levels "
                 f"({len(supports)} supports, {len(resistances)} resistances)")
    return supports, resistances
