"""Common data models used across the project."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
import numpy as np
import pandas as pd
from typing import List, Optional, Tuple

LONG = 1
SHORT = -1


class FitStatus(Enum):
    """Outcome of a single model fit attempt"""
    SUCCESS = 'success'
    FAILED_HARD = 'failed_hard'  # fit raised
    FAILED_SOFT = 'failed_soft'  # fit warned or did not converge

    @property
    def is_failure(self) -> bool:
        return self is not FitStatus.SUCCESS


@dataclass(frozen=True)
class ModelOrder:
    """ARMA mean model order (p, q)"""
    p: int
    q: int

    def __post_init__(self):
        if self.p < 0 or self.q < 0:
            raise ValueError(f"Model order must be non-negative: ({self.p}, {self.q})")

    @property
    def is_null(self) -> bool:
        return self.p == 0 and self.q == 0

    def as_arima(self) -> Tuple[int, int, int]:
        """Order tuple for statsmodels, returns are already differenced"""
        return (self.p, 0, self.q)

    def __str__(self):
        return f"({self.p},{self.q})"


@dataclass
class FitOutcome:
    """Tagged result of a mean or mean+variance fit"""
    status: FitStatus
    order: Optional[ModelOrder]
    aic: Optional[float] = None
    forecast: Optional[float] = None
    messages: Tuple[str, ...] = ()

    @property
    def succeeded(self) -> bool:
        return not self.status.is_failure

    @classmethod
    def hard_failure(cls, order: Optional[ModelOrder], message: str) -> 'FitOutcome':
        return cls(status=FitStatus.FAILED_HARD, order=order, messages=(message,))

    @classmethod
    def soft_failure(cls, order: Optional[ModelOrder], messages) -> 'FitOutcome':
        return cls(status=FitStatus.FAILED_SOFT, order=order, messages=tuple(messages))


@dataclass
class OrderSearchResult:
    """Best order found over the (p, q) grid for one window"""
    order: Optional[ModelOrder]
    aic: Optional[float]
    n_candidates: int
    n_failed: int

    @property
    def found(self) -> bool:
        return self.order is not None


@dataclass
class ForecastWindow:
    """Fixed-length slice of the return series used for one forecast"""
    offset: int
    start_date: datetime
    end_date: datetime
    target_date: datetime
    returns: np.ndarray


@dataclass(frozen=True)
class ForecastRecord:
    """Signal for the target date of one window"""
    date: datetime
    signal: int
    order: Optional[ModelOrder] = None
    forecast: Optional[float] = None
    fallback: bool = False


@dataclass
class WindowFailure:
    """Diagnostic for a window that fell back to the default signal"""
    start_date: datetime
    end_date: datetime
    target_date: datetime
    reason: str  # 'no_model_found' or 'volatility_fit_failed'
    status: Optional[FitStatus] = None
    messages: Tuple[str, ...] = ()


@dataclass
class SignalRun:
    """Ordered output of a rolling signal generation run"""
    records: List[ForecastRecord] = field(default_factory=list)
    failures: List[WindowFailure] = field(default_factory=list)

    def __len__(self):
        return len(self.records)

    def to_series(self) -> pd.Series:
        """Raw signals indexed by target date"""
        index = pd.DatetimeIndex([r.date for r in self.records], name='date')
        return pd.Series([r.signal for r in self.records], index=index,
                         name='signal', dtype='int64')

    def to_dataframe(self) -> pd.DataFrame:
        rows = [{
            'date': r.date,
            'signal': r.signal,
            'order_p': r.order.p if r.order is not None else None,
            'order_q': r.order.q if r.order is not None else None,
            'forecast': r.forecast,
            'fallback': r.fallback,
        } for r in self.records]
        frame = pd.DataFrame(rows, columns=['date', 'signal', 'order_p', 'order_q',
                                            'forecast', 'fallback'])
        return frame.astype({'signal': 'int64', 'order_p': 'Int64', 'order_q': 'Int64',
                             'forecast': 'float64', 'fallback': 'bool'})

    def failures_dataframe(self) -> pd.DataFrame:
        rows = [{
            'start_date': f.start_date,
            'end_date': f.end_date,
            'target_date': f.target_date,
            'reason': f.reason,
            'status': f.status.value if f.status is not None else None,
            'messages': ' | '.join(f.messages),
        } for f in self.failures]
        return pd.DataFrame(rows, columns=['start_date', 'end_date', 'target_date',
                                           'reason', 'status', 'messages'])
