"""
Signal, confirmation, plan and analysis result models.

Following the "No-Null, Actionable Outputs" principle: a SignalResult can
only exist when it is economically justified (risk:reward >= 1:1), and every
run that does not emit a signal carries the typed reason why.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, List, Optional

from zonewatch.shared.models.regime import MarketContext
from zonewatch.shared.models.scoring import ConfluenceResult
from zonewatch.shared.models.smc import (
    FVG,
    FibLevels,
    OrderBlock,
    TrendDirection,
    TrendResult,
)

if TYPE_CHECKING:
    from zonewatch.risk.position_sizer import PositionSize


MIN_RISK_REWARD = 1.0
CONFIDENCE_BOUNDS = (30, 95)
# Float noise allowed on a reward/risk ratio; far below any real shortfall
RR_TOLERANCE = 1e-9


def meets_risk_reward(risk_reward: float, min_rr: float = MIN_RISK_REWARD) -> bool:
    """True when an unrounded ratio reaches min_rr, exact 1:1 included."""
    return risk_reward >= min_rr - RR_TOLERANCE


class RunMode(str, Enum):
    """Which layers run, decided by the external scheduler."""
    WEEKLY = "weekly"            # daily layers + plan, no signal search
    TRADING = "trading"          # full pipeline, signals emitted
    OBSERVATION = "observation"  # full pipeline, signals discarded


class Bias(str, Enum):
    """Directional lean derived from the daily trend."""
    LONG = "long"
    SHORT = "short"
    NEUTRAL = "neutral"

    @staticmethod
    def from_trend(direction: TrendDirection) -> "Bias":
        if direction == TrendDirection.BULLISH:
            return Bias.LONG
        if direction == TrendDirection.BEARISH:
            return Bias.SHORT
        return Bias.NEUTRAL

    @property
    def zone_type(self) -> Optional[str]:
        """Zone direction (bullish/bearish) that supports this bias."""
        if self == Bias.LONG:
            return "bullish"
        if self == Bias.SHORT:
            return "bearish"
        return None


class SignalType(str, Enum):
    LONG = "long"
    SHORT = "short"


class SignalState(str, Enum):
    """States of the signal acceptance state machine."""
    NO_SIGNAL = "no-signal"
    PENDING_ALIGNMENT_CHECK = "pending-alignment-check"
    EMITTED = "emitted"
    REJECTED = "rejected"


class AlignmentTier(str, Enum):
    FULL = "full"                # daily and 4H agree
    RANGE = "range"              # 4H ranging inside a trending daily
    COUNTER = "counter-trend"    # 4H opposes daily


@dataclass(frozen=True)
class TargetCandidate:
    """One take-profit candidate examined by the progressive search."""
    price: float
    source: str
    risk_reward: float
    accepted: bool = False


@dataclass(frozen=True)
class SignalResult:
    """
    Directional trade signal.

    Attributes:
        type: long or short
        entry: Entry price (current price)
        stop_loss: Protective stop, beyond entry
        take_profit: Target chosen by the progressive search
        risk_reward: reward / risk, never below 1.0
        strategy: Human-readable strategy label
        confidence: 30-95
        take_profit_source: Which candidate family produced the target
    """
    type: SignalType
    entry: float
    stop_loss: float
    take_profit: float
    risk_reward: float
    strategy: str
    confidence: int
    take_profit_source: str

    def __post_init__(self):
        """Validate signal invariants."""
        if self.entry <= 0 or self.stop_loss <= 0 or self.take_profit <= 0:
            raise ValueError(
                f"Signal prices must be positive (entry={self.entry}, "
                f"stop={self.stop_loss}, target={self.take_profit})"
            )
        if self.type == SignalType.LONG and not self.stop_loss < self.entry < self.take_profit:
            raise ValueError(
                f"Long signal requires stop < entry < target, got "
                f"{self.stop_loss} / {self.entry} / {self.take_profit}"
            )
        if self.type == SignalType.SHORT and not self.take_profit < self.entry < self.stop_loss:
            raise ValueError(
                f"Short signal requires target < entry < stop, got "
                f"{self.take_profit} / {self.entry} / {self.stop_loss}"
            )
        if not meets_risk_reward(self.risk_reward):
            raise ValueError(f"Risk:reward must be >= {MIN_RISK_REWARD}, got {self.risk_reward:.2f}")
        low, high = CONFIDENCE_BOUNDS
        if not low <= self.confidence <= high:
            raise ValueError(f"Confidence must be {low}-{high}, got {self.confidence}")

    @property
    def is_long(self) -> bool:
        return self.type == SignalType.LONG

    @property
    def risk(self) -> float:
        return abs(self.entry - self.stop_loss)

    @property
    def reward(self) -> float:
        return abs(self.take_profit - self.entry)

    @property
    def rr_display(self) -> str:
        return f"1:{self.risk_reward:.1f}"

    def to_dict(self) -> dict:
        return {
            'type': self.type.value,
            'entry': self.entry,
            'stop_loss': self.stop_loss,
            'take_profit': self.take_profit,
            'risk_reward': self.risk_reward,
            'strategy': self.strategy,
            'confidence': self.confidence,
            'take_profit_source': self.take_profit_source,
        }


@dataclass
class SignalDecision:
    """
    Terminal state of the signal state machine.

    Exactly one of `signal` (state EMITTED) or `reason` (any other state) is
    meaningful. `candidates_tried` records every take-profit candidate the
    search examined, in the order it examined them.
    """
    state: SignalState
    reason: Optional[str] = None
    signal: Optional[SignalResult] = None
    tier: Optional[AlignmentTier] = None
    stop_loss: Optional[float] = None
    candidates_tried: List[TargetCandidate] = field(default_factory=list)

    def __post_init__(self):
        if self.state == SignalState.EMITTED and self.signal is None:
            raise ValueError("Emitted decision requires a signal")
        if self.state != SignalState.EMITTED and self.signal is not None:
            raise ValueError(f"Decision in state {self.state.value} cannot carry a signal")

    @staticmethod
    def no_signal(reason: str, tier: Optional[AlignmentTier] = None) -> "SignalDecision":
        return SignalDecision(state=SignalState.NO_SIGNAL, reason=reason, tier=tier)

    @property
    def emitted(self) -> bool:
        return self.state == SignalState.EMITTED


class ConfirmationType(str, Enum):
    BREAKOUT = "breakout"
    RETEST = "retest"
    REJECT = "reject"
    NONE = "none"


@dataclass(frozen=True)
class Confirmation:
    """30-minute price-action verdict on the daily bias."""
    confirmed: bool
    type: ConfirmationType
    details: str
    volume_strong: bool = False

    @property
    def against_bias(self) -> bool:
        """A pattern was found but it contradicts the bias."""
        return not self.confirmed and self.type != ConfirmationType.NONE


@dataclass(frozen=True)
class BreakRetest:
    """Break-then-retest setup of a known level on the 30m series."""
    level: float
    entry: float
    stop_loss: float
    take_profit: float
    take_profit_source: str

    @property
    def risk_reward(self) -> float:
        risk = abs(self.entry - self.stop_loss)
        return abs(self.take_profit - self.entry) / risk if risk > 0 else 0.0


class PlanType(str, Enum):
    BUY_ZONE = "buy-zone"
    SELL_ZONE = "sell-zone"
    ALERT = "alert"


@dataclass(frozen=True)
class WeeklyPlanEntry:
    """Conditional 'if price reaches zone, then action' plan item."""
    symbol: str
    condition: str
    action: str
    zone: float
    type: PlanType

    def to_dict(self) -> dict:
        return {
            'symbol': self.symbol,
            'condition': self.condition,
            'action': self.action,
            'zone': self.zone,
            'type': self.type.value,
        }


@dataclass
class AnalysisResult:
    """
    Aggregate output of the pipeline for one symbol at one point in time.

    Layers skipped by the run mode leave their fields as None.
    """
    symbol: str
    price: float
    change_24h: float
    mode: RunMode
    trend_1d: TrendResult
    bias: Bias
    ema200_1d: Optional[float] = None
    ema_position: Optional[str] = None  # 'above' / 'below' the daily EMA 200
    fib_1d: Optional[FibLevels] = None
    trend_4h: Optional[TrendResult] = None
    ema200_4h: Optional[float] = None
    aligned: bool = False
    zone_timeframe: str = "4H"
    fvgs: List[FVG] = field(default_factory=list)
    order_blocks: List[OrderBlock] = field(default_factory=list)
    supports: List[float] = field(default_factory=list)
    resistances: List[float] = field(default_factory=list)
    context: Optional[MarketContext] = None
    confluence: Optional[ConfluenceResult] = None
    decision: Optional[SignalDecision] = None
    confirmation: Optional[Confirmation] = None
    position_size: Optional["PositionSize"] = None
    weekly_plans: List[WeeklyPlanEntry] = field(default_factory=list)
    hold_reason: Optional[str] = None

    @property
    def signal(self) -> Optional[SignalResult]:
        return self.decision.signal if self.decision else None

    @property
    def bias_label(self) -> str:
        """Bias qualified by the EMA 200 position."""
        if self.bias == Bias.NEUTRAL:
            return "neutral"
        ema_agrees = (
            (self.bias == Bias.LONG and self.ema_position == "above")
            or (self.bias == Bias.SHORT and self.ema_position == "below")
        )
        return self.bias.value if ema_agrees else f"{self.bias.value} (cautious)"
