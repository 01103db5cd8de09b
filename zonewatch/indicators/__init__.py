"""
Technical Indicators Package

Provides:
- Seeded exponential moving average
- OHLCV data validation utilities

Indicator functions accept a pandas DataFrame with OHLCV columns and raise
ValueError for missing columns.
"""

from zonewatch.indicators.moving_average import compute_ema, latest_ema
from zonewatch.indicators.validation_utils import DataValidationError, validate_ohlcv

__all__ = [
    'compute_ema',
    'latest_ema',
    'DataValidationError',
    'validate_ohlcv',
]
