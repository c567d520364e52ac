"""
Signal mapping, look-ahead lag and CSV artifacts.
"""

from pathlib import Path
from typing import Optional, Union
import logging
import pandas as pd
from models import LONG, SHORT

logger = logging.getLogger(__name__)


def to_signal(forecast: Optional[float], fallback: int = LONG) -> int:
    """Map a one-step forecast to a trading direction; None means the fit failed"""
    if forecast is None:
        return fallback
    return SHORT if forecast < 0 else LONG


def lag_signals(signals: pd.Series, fill_value: int = LONG) -> pd.Series:
    """Apply each signal one record later to avoid look-ahead bias.

    The lagged signal at date t is the raw signal computed for the previous
    date in the sequence. The first date has no predecessor and gets
    ``fill_value``.
    """
    if not signals.index.is_monotonic_increasing:
        raise ValueError("Signals must be sorted by date before lagging")

    lagged = signals.shift(1)
    if len(lagged) > 0:
        lagged.iloc[0] = fill_value
    lagged = lagged.astype('int64')
    lagged.name = 'lagged_signal'
    return lagged


def write_signal_csv(signals: pd.Series, path: Union[str, Path],
                     column: str = 'signal') -> Path:
    """Persist a signal series as ``date,<column>`` rows"""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    frame = pd.DataFrame({
        'date': pd.DatetimeIndex(signals.index).strftime('%Y-%m-%d'),
        column: signals.astype('int64').values
    })
    frame.to_csv(path, index=False)

    logger.info(f"Wrote {len(frame)} {column} rows to {path}")
    return path


def read_signal_csv(path: Union[str, Path], column: str = 'signal') -> pd.Series:
    """Load a ``date,<column>`` artifact back into a date-indexed series"""
    frame = pd.read_csv(path, parse_dates=['date'])
    if column not in frame.columns:
        raise ValueError(f"Column '{column}' not found in {path}")

    series = frame.set_index('date')[column].astype('int64')
    series.name = column
    return series
