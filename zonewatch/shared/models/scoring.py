"""
Confluence scoring models.

Confluence is a count of independent technical agreements with the
directional bias. Each factor is evaluated once and contributes at most one
point; the result carries every evaluated factor so the score can always be
re-derived from its parts.
"""

from dataclasses import dataclass, field
from typing import List


CONFLUENCE_FACTORS = (
    "timeframe_alignment",
    "ema_filter",
    "fib_golden_zone",
    "sr_proximity",
    "order_block",
    "imbalance",
    "discount_premium",
)

# (minimum score, band label), highest first
PROBABILITY_BANDS = (
    (4, "~85%+"),
    (3, "~70%"),
    (2, "~50%"),
    (0, "~30%"),
)


def probability_band(score: int) -> str:
    """Map a confluence score to its qualitative probability band."""
    for minimum, label in PROBABILITY_BANDS:
        if score >= minimum:
            return label
    return PROBABILITY_BANDS[-1][1]


@dataclass(frozen=True)
class ConfluenceFactor:
    """
    Individual confluence factor outcome.

    Attributes:
        name: Factor identifier from CONFLUENCE_FACTORS
        matched: Whether the factor agrees with the bias
        description: Human-readable explanation (shown when matched)
    """
    name: str
    matched: bool
    description: str = ""

    def __post_init__(self):
        if self.name not in CONFLUENCE_FACTORS:
            raise ValueError(f"Unknown confluence factor '{self.name}'")


@dataclass
class ConfluenceResult:
    """
    Complete confluence evaluation.

    Attributes:
        score: Number of matched factors
        total: Size of the factor catalogue (always 7)
        factors: Every evaluated factor, matched or not
        probability: Qualitative band derived from the score
    """
    score: int
    factors: List[ConfluenceFactor] = field(default_factory=list)
    total: int = len(CONFLUENCE_FACTORS)
    probability: str = ""

    def __post_init__(self):
        """Validate confluence data."""
        if not 0 <= self.score <= self.total:
            raise ValueError(f"Confluence score must be 0-{self.total}, got {self.score}")
        names = [f.name for f in self.factors]
        if len(names) != len(set(names)):
            raise ValueError(f"Confluence factors evaluated more than once: {names}")
        matched = sum(1 for f in self.factors if f.matched)
        if self.factors and matched != self.score:
            raise ValueError(f"Score {self.score} does not match {matched} matched factors")
        if not self.probability:
            self.probability = probability_band(self.score)

    @staticmethod
    def from_factors(factors: List[ConfluenceFactor]) -> "ConfluenceResult":
        return ConfluenceResult(score=sum(1 for f in factors if f.matched), factors=list(factors))

    @property
    def elements(self) -> List[str]:
        """Descriptions of the matched factors, in catalogue order."""
        return [f.description for f in self.factors if f.matched]

    def has(self, name: str) -> bool:
        return any(f.name == name and f.matched for f in self.factors)
