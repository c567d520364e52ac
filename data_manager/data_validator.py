"""
Data validation for daily price series.
"""

import pandas as pd
from typing import List, Tuple


class DataValidator:
    """Validates a single-ticker daily price series."""

    def __init__(self, min_price: float = 0.0, max_price: float = 1e7,
                 max_missing_fraction: float = 0.01):
        # Define reasonable bounds for data validation
        self.validation_bounds = {
            'price': {'min': min_price, 'max': max_price},
        }
        self.max_missing_fraction = max_missing_fraction

    def validate_prices(self, prices: pd.Series) -> Tuple[bool, List[str]]:
        """
        Validates the price series.

        Args:
            prices: Series of prices indexed by date

        Returns:
            Tuple of (is_valid, list_of_issues). Missing values below the
            tolerated fraction are reported but do not fail validation.
        """
        issues = []
        fatal = False

        if prices.empty:
            return False, ["Price series is empty"]

        if not isinstance(prices.index, pd.DatetimeIndex):
            issues.append("Price index is not a DatetimeIndex")
            fatal = True
        else:
            if prices.index.has_duplicates:
                n_dup = prices.index.duplicated().sum()
                issues.append(f"Price series has {n_dup} duplicate dates")
                fatal = True
            if not prices.index.is_monotonic_increasing:
                issues.append("Price series is not sorted by date")
                fatal = True

        # Check for data completeness
        missing_count = prices.isna().sum()
        if missing_count > 0:
            issues.append(f"Price series has {missing_count} missing values")
            if missing_count / len(prices) > self.max_missing_fraction:
                fatal = True

        bound_issues = self._validate_bounds(
            prices.dropna(),
            self.validation_bounds['price']['min'],
            self.validation_bounds['price']['max'],
            "price"
        )
        if bound_issues:
            issues.extend(bound_issues)
            fatal = True

        return not fatal, issues

    def _validate_bounds(self, series: pd.Series, min_val: float, max_val: float, name: str) -> List[str]:
        """Validates that values fall within expected bounds; the minimum is exclusive."""
        issues = []

        below_min = series[series <= min_val]
        if not below_min.empty:
            issues.append(
                f"{name}: {len(below_min)} values at or below minimum of {min_val} "
                f"(first occurrence at index {below_min.index[0]})"
            )

        above_max = series[series > max_val]
        if not above_max.empty:
            issues.append(
                f"{name}: {len(above_max)} values above maximum of {max_val} "
                f"(first occurrence at index {above_max.index[0]})"
            )

        return issues
