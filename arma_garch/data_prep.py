"""
Prepare price data for ARMA+GARCH estimation.
"""

import logging
import pandas as pd
import numpy as np

logger = logging.getLogger(__name__)


class ReturnPreparer:
    """Turns a price series into the log-return series the forecaster consumes."""

    def prepare_returns(self, prices: pd.Series) -> pd.Series:
        """
        Compute daily log returns from prices.

        Args:
            prices: Series of prices indexed by date, one observation per date

        Returns:
            Series of log returns, named 'returns', starting at the second price
        """
        prices = prices.copy()
        prices.index = pd.DatetimeIndex(prices.index)

        if prices.index.has_duplicates:
            duplicated = prices.index[prices.index.duplicated()].unique()
            raise ValueError(f"Prices contain {len(duplicated)} duplicate dates, "
                             f"first at {duplicated[0]:%Y-%m-%d}")

        prices = prices.sort_index().dropna()
        if (prices <= 0).any():
            raise ValueError("Prices must be strictly positive to take logs")

        log_returns = np.log(prices / prices.shift(1)).dropna()
        log_returns.name = 'returns'
        log_returns.index.name = 'date'

        if not log_returns.empty:
            logger.info(
                f"Prepared log returns:\n"
                f"  Observations: {len(log_returns)}\n"
                f"  Date range: {log_returns.index[0]:%Y-%m-%d} to {log_returns.index[-1]:%Y-%m-%d}\n"
                f"  Mean: {log_returns.mean():.6f}\n"
                f"  Std:  {log_returns.std():.6f}"
            )

        return log_returns

    def verify_data_quality(self, returns: pd.Series, window_length: int) -> bool:
        """
        Check the return series can support at least one forecast window.

        Args:
            returns: Series of log returns
            window_length: Estimation window length

        Returns:
            bool indicating if data meets the requirements
        """
        if len(returns) <= window_length:
            logger.error(f"Insufficient observations: {len(returns)} <= {window_length}")
            return False

        if not np.isfinite(returns.to_numpy(dtype=float)).all():
            logger.error("Returns contain non-finite values")
            return False

        # A flat stretch longer than a window leaves nothing to fit
        zero_run = (returns == 0).astype(int)
        longest_zero_run = zero_run.groupby((zero_run == 0).cumsum()).sum().max()
        if longest_zero_run >= window_length:
            logger.error(f"Found {longest_zero_run} consecutive zero returns")
            return False
        if longest_zero_run > 5:
            logger.warning(f"Found sequence of {longest_zero_run} zero returns")

        return True
