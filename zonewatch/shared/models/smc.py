"""
Market-structure detection models.

This module defines the data structures produced by the structure and zone
layers:
- Swing points and the trend classification built from them
- Fibonacci retracement levels of the most recent swing leg
- Fair Value Gaps (FVG): 3-candle imbalance zones
- Order Blocks (OB): last opposing candle before an impulse, with a 0-5 quality rating
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, List, Literal, Optional, Tuple, Union
from datetime import datetime


ZoneDirection = Literal["bullish", "bearish"]


class TrendDirection(str, Enum):
    """Market structure direction of a timeframe."""
    BULLISH = "bullish"
    BEARISH = "bearish"
    RANGE = "range"


@dataclass(frozen=True)
class SwingPoint:
    """A swing high or low confirmed by a symmetric lookback window."""
    index: int  # Row position in the candle frame
    price: float
    time: Union[datetime, int, None] = None

    def __repr__(self):
        return f"Swing @ {self.price:.4f} (#{self.index})"


@dataclass
class TrendResult:
    """
    Trend classification for one timeframe.

    Attributes:
        direction: bullish / bearish / range
        swing_highs: The (up to four) most recent swing highs used for the vote
        swing_lows: The (up to four) most recent swing lows used for the vote
        structure: 'HHHL', 'LHLL' or 'RANGE'
    """
    direction: TrendDirection
    swing_highs: List[SwingPoint] = field(default_factory=list)
    swing_lows: List[SwingPoint] = field(default_factory=list)
    structure: str = "RANGE"

    @property
    def is_range(self) -> bool:
        return self.direction == TrendDirection.RANGE

    @property
    def last_swing_high(self) -> Optional[SwingPoint]:
        return self.swing_highs[-1] if self.swing_highs else None

    @property
    def last_swing_low(self) -> Optional[SwingPoint]:
        return self.swing_lows[-1] if self.swing_lows else None

    @staticmethod
    def neutral() -> "TrendResult":
        """Result used when history is too short to classify."""
        return TrendResult(direction=TrendDirection.RANGE)


@dataclass(frozen=True)
class FibLevel:
    """One row of the retracement table."""
    label: str  # e.g. '61.8%'
    ratio: float
    price: float


@dataclass
class FibLevels:
    """
    Fibonacci retracement of the most recent swing leg.

    For a bullish leg levels are measured down from the swing high, for a
    bearish leg up from the swing low, so zone618 is always the deeper
    retracement of the two golden-zone bounds.
    """
    swing_low: float
    swing_high: float
    bullish: bool
    levels: List[FibLevel]
    zone50: float
    zone618: float
    zone786: float

    def __post_init__(self):
        if self.swing_high <= self.swing_low:
            raise ValueError(f"Swing high ({self.swing_high}) must be > swing low ({self.swing_low})")

    @property
    def range_size(self) -> float:
        return self.swing_high - self.swing_low

    @property
    def golden_zone(self) -> Tuple[float, float]:
        """(low, high) bounds of the 50-61.8% zone."""
        return min(self.zone50, self.zone618), max(self.zone50, self.zone618)

    def level(self, label: str) -> Optional[float]:
        for lvl in self.levels:
            if lvl.label == label:
                return lvl.price
        return None


@dataclass(frozen=True)
class FVG:
    """
    Fair Value Gap - 3-candle imbalance.

    Occurs when candle 1's extreme does not overlap candle 3's opposite
    extreme and candle 2 closed in the direction of the gap.

    Attributes:
        type: 'bullish' (gap up) or 'bearish' (gap down)
        high: Upper boundary of the gap
        low: Lower boundary of the gap
        index: Position of the middle candle
    """
    type: ZoneDirection
    high: float
    low: float
    index: int

    def __post_init__(self):
        if self.high <= self.low:
            raise ValueError(f"FVG high ({self.high}) must be > low ({self.low})")

    @property
    def midpoint(self) -> float:
        return (self.high + self.low) / 2

    def contains_price(self, price: float, tolerance: float = 0.0) -> bool:
        return self.low - tolerance <= price <= self.high + tolerance


QUALITY_CRITERIA = ("imbalance", "trend", "freshness", "fib_side", "liquidity")


@dataclass(frozen=True)
class QualityCheck:
    """Outcome of one order-block quality criterion."""
    criterion: str
    passed: bool
    label: str

    def __str__(self):
        return f"{'✓' if self.passed else '✗'}{self.label}"


@dataclass
class OrderBlock:
    """
    Order Block - last opposing candle before an impulse.

    Attributes:
        type: 'bullish' (demand zone) or 'bearish' (supply zone)
        high: Upper boundary of the block
        low: Lower boundary of the block
        index: Position of the block candle
        fresh: Price has not closed back through the block
        quality: 0-5 rating assigned by the quality layer
        quality_details: One check per criterion, passed or failed
    """
    type: ZoneDirection
    high: float
    low: float
    index: int
    fresh: bool
    quality: int = 0
    quality_details: List[QualityCheck] = field(default_factory=list)

    def __post_init__(self):
        """Validate order block data."""
        if self.high < self.low:
            raise ValueError(f"OB high ({self.high}) must be >= low ({self.low})")
        if not 0 <= self.quality <= 5:
            raise ValueError(f"OB quality must be 0-5, got {self.quality}")

    @property
    def midpoint(self) -> float:
        """Calculate midpoint of the order block."""
        return (self.high + self.low) / 2

    @property
    def stars(self) -> str:
        return "★" * self.quality + "☆" * (5 - self.quality)

    def contains_price(self, price: float, tolerance: float = 0.0) -> bool:
        return self.low - tolerance <= price <= self.high + tolerance

    def to_dict(self) -> dict:
        return {
            'type': self.type,
            'high': self.high,
            'low': self.low,
            'index': self.index,
            'fresh': self.fresh,
            'quality': self.quality,
            'quality_details': [
                {'criterion': c.criterion, 'passed': c.passed, 'label': c.label}
                for c in self.quality_details
            ],
        }


def serialize_time(value: Any) -> Any:
    """Render a candle time for JSON output without consulting the clock."""
    if isinstance(value, datetime):
        return value.isoformat()
    if hasattr(value, 'isoformat'):
        return value.isoformat()
    if hasattr(value, 'item'):
        return value.item()
    return value
