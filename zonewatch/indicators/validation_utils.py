"""
OHLCV Data Validation Utilities

Centralized input validation for the analysis layers, catching data quality
issues at the boundary instead of letting NaN values propagate into zones
and signals.
"""

from typing import Optional
import pandas as pd
import logging

logger = logging.getLogger(__name__)


class DataValidationError(ValueError):
    """Raised when OHLCV data fails validation checks."""


def validate_ohlcv(
    df: pd.DataFrame,
    require_volume: bool = True,
    check_nan: bool = True,
    check_positive_prices: bool = True,
    check_candle_integrity: bool = True,
    min_rows: Optional[int] = None,
    raise_on_error: bool = True,
) -> dict:
    """
    Validate an OHLCV DataFrame before analysis.

    Args:
        df: DataFrame with OHLCV columns
        require_volume: If True, require 'volume' column (default True)
        check_nan: If True, reject NaN values in price/volume columns
        check_positive_prices: If True, verify O/H/L/C > 0
        check_candle_integrity: If True, verify high >= low
        min_rows: Minimum required rows (None = no minimum)
        raise_on_error: If True, raise DataValidationError; else return dict

    Returns:
        dict with validation results:
            - valid: bool indicating if all checks passed
            - errors: list of error messages
            - warnings: list of warning messages

    Raises:
        DataValidationError: If validation fails and raise_on_error=True
    """
    result = {"valid": True, "errors": [], "warnings": []}

    required_cols = ["open", "high", "low", "close"]
    if require_volume:
        required_cols.append("volume")

    missing_cols = [col for col in required_cols if col not in df.columns]
    if missing_cols:
        result["errors"].append(f"Missing required columns: {missing_cols}")
        result["valid"] = False
        if raise_on_error:
            raise DataValidationError("; ".join(result["errors"]))
        return result

    if min_rows is not None and len(df) < min_rows:
        result["errors"].append(f"DataFrame too short: need {min_rows} rows, got {len(df)}")
        result["valid"] = False

    # Detection layers compare neighbouring candles, so a single NaN is fatal
    if check_nan:
        for col in required_cols:
            nan_count = int(df[col].isna().sum())
            if nan_count > 0:
                result["errors"].append(f"Column '{col}' has {nan_count} NaN values")
                result["valid"] = False

    if check_positive_prices:
        for col in ["open", "high", "low", "close"]:
            non_positive = int((df[col] <= 0).sum())
            if non_positive > 0:
                result["errors"].append(f"Column '{col}' has {non_positive} non-positive values")
                result["valid"] = False

    if check_candle_integrity:
        inverted = int((df["high"] < df["low"]).sum())
        if inverted > 0:
            result["errors"].append(
                f"Found {inverted} inverted candles (high < low) - data corruption suspected"
            )
            result["valid"] = False

    if require_volume:
        negative_volume = int((df["volume"] < 0).sum())
        if negative_volume > 0:
            result["errors"].append(f"Found {negative_volume} negative volume values")
            result["valid"] = False

        zero_volume = int((df["volume"] == 0).sum())
        if len(df) and zero_volume / len(df) > 0.1:
            result["warnings"].append(f"Found {zero_volume} zero volume bars ({zero_volume / len(df) * 100:.1f}%)")

    for warning in result["warnings"]:
        logger.warning(warning)

    if raise_on_error and not result["valid"]:
        raise DataValidationError("; ".join(result["errors"]))

    return result
