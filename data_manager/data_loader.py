"""
Price data loader for the ARIMA+GARCH backtest.
"""

import logging
from pathlib import Path
from typing import Optional, Union
import pandas as pd
import yfinance as yf
from data_manager.data_validator import DataValidator

logger = logging.getLogger(__name__)


class DataLoader:
    def __init__(self, validator: Optional[DataValidator] = None):
        """Initialize data loader with a price validator."""
        self.validator = validator or DataValidator()

    def load_csv(self, file_path: Union[str, Path], date_column: str = 'date',
                 price_column: str = 'close') -> pd.Series:
        """Load a date/price CSV into a validated price series."""
        logger.info(f"Reading prices from: {file_path}")
        df = pd.read_csv(file_path)

        columns = {c.lower(): c for c in df.columns}
        missing = [c for c in (date_column, price_column) if c.lower() not in columns]
        if missing:
            raise ValueError(f"Missing required columns {missing} in {file_path}")

        prices = pd.Series(
            pd.to_numeric(df[columns[price_column.lower()]], errors='coerce').values,
            index=pd.to_datetime(df[columns[date_column.lower()]]),
            name='price'
        )
        prices.index.name = 'date'
        return self._validated(prices.sort_index())

    def download(self, ticker: str, start: str, end: Optional[str] = None) -> pd.Series:
        """Download adjusted daily closes from Yahoo Finance."""
        logger.info(f"Downloading {ticker} prices from {start} to {end or 'today'}")
        data = yf.download(ticker, start=start, end=end, auto_adjust=True,
                           actions=False, progress=False)
        if data is None or data.empty:
            raise ValueError(f"No price data returned for {ticker}")

        close = data['Close']
        # Newer yfinance releases return one column per ticker
        if isinstance(close, pd.DataFrame):
            close = close.iloc[:, 0]

        prices = close.rename('price')
        prices.index = pd.DatetimeIndex(prices.index).tz_localize(None)
        prices.index.name = 'date'
        return self._validated(prices)

    def _validated(self, prices: pd.Series) -> pd.Series:
        is_valid, issues = self.validator.validate_prices(prices)
        for issue in issues:
            logger.warning(issue)
        if not is_valid:
            raise ValueError(f"Price data failed validation: {'; '.join(issues)}")

        logger.info(
            f"Loaded {len(prices)} prices from {prices.index[0]:%Y-%m-%d} "
            f"to {prices.index[-1]:%Y-%m-%d}"
        )
        return prices

    def save_csv(self, prices: pd.Series, file_path: Union[str, Path]) -> Path:
        """Cache a price series as a date/close CSV."""
        file_path = Path(file_path)
        file_path.parent.mkdir(parents=True, exist_ok=True)
        prices.rename('close').rename_axis('date').to_csv(file_path)
        return file_path
