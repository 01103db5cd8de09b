"""
Risk management package.

Provides fixed-fractional position sizing.
"""

from .position_sizer import PositionSizer, PositionSize, format_quantity

__all__ = [
    'PositionSizer',
    'PositionSize',
    'format_quantity',
]
