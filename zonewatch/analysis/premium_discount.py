"""
Premium/Discount Zone Detection

Classifies a price against the 50% level of the daily swing leg:
- Premium Zone: above equilibrium (sell zone for shorts)
- Discount Zone: below equilibrium (buy zone for longs)
- Equilibrium: exactly at the 50% level

Institutional traders look to buy in discount and sell in premium.
"""

from typing import Literal, Optional

from zonewatch.shared.models.smc import FibLevels

ZoneType = Literal["premium", "discount", "equilibrium"]


def price_zone(price: float, fib: Optional[FibLevels]) -> Optional[ZoneType]:
    """Zone of `price`, or None without a Fibonacci leg."""
    if fib is None:
        return None
    if price > fib.zone50:
        return "premium"
    if price < fib.zone50:
        return "discount"
    return "equilibrium"


def is_price_in_optimal_zone(price: float, direction: str, fib: Optional[FibLevels]) -> bool:
    """
    Check if price is in the optimal zone for the given direction.

    Args:
        price: Price to check
        direction: 'long'/'bullish' or 'short'/'bearish'
        fib: Daily retracement levels

    Returns:
        True for discount on longs, premium on shorts
    """
    zone = price_zone(price, fib)
    if direction.lower() in ("long", "bullish"):
        return zone == "discount"
    return zone == "premium"
