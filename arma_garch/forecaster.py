from concurrent.futures import ProcessPoolExecutor, as_completed
from typing import Iterator, List, Optional
from pathlib import Path
import hashlib
import logging
import pandas as pd
from pandas.tseries.offsets import BDay
from models import (LONG, ForecastRecord, ForecastWindow, ModelOrder,
                    SignalRun, WindowFailure)
from .checkpoint import CheckpointManager, WindowOutcome
from .estimator import ArmaGarchEstimator
from .order_search import OrderSearcher
from .signals import to_signal

logger = logging.getLogger(__name__)

NO_MODEL_POLICIES = ('fallback_signal', 'default_order')


class SignalForecaster:
    """Rolls a fixed-length window over the return series and emits one signal per window"""

    def __init__(self, estimator: ArmaGarchEstimator,
                 searcher: OrderSearcher,
                 window_length: int = 500,
                 fallback_signal: int = LONG,
                 no_model_policy: str = 'fallback_signal',
                 default_order: ModelOrder = ModelOrder(0, 0),
                 forecast_next_session: bool = False,
                 checkpoint_dir: Optional[Path] = None):
        """
        Initialize forecaster

        Args:
            estimator: Fits the ARMA+GARCH model for the chosen order
            searcher: Picks the ARMA order for each window
            window_length: Number of returns in each estimation window
            fallback_signal: Signal emitted when a window cannot be fitted
            no_model_policy: 'fallback_signal' emits the fallback when the order
                search finds nothing, 'default_order' fits default_order instead
            default_order: Order used under the 'default_order' policy
            forecast_next_session: Also forecast the session after the last
                observation, using the final window
            checkpoint_dir: Directory for per-window checkpoints, disabled if None
        """
        if window_length < 1:
            raise ValueError(f"Window length must be positive: {window_length}")
        if fallback_signal not in (-1, 1):
            raise ValueError(f"Fallback signal must be -1 or 1: {fallback_signal}")
        if no_model_policy not in NO_MODEL_POLICIES:
            raise ValueError(f"Unknown no-model policy '{no_model_policy}', "
                             f"expected one of {NO_MODEL_POLICIES}")

        self.estimator = estimator
        self.searcher = searcher
        self.window_length = window_length
        self.fallback_signal = fallback_signal
        self.no_model_policy = no_model_policy
        self.default_order = default_order
        self.forecast_next_session = forecast_next_session
        self.checkpoints = CheckpointManager(checkpoint_dir) if checkpoint_dir else None
        self.logger = logging.getLogger('arma_garch.forecaster')

    def _validate_returns(self, returns: pd.Series):
        if not isinstance(returns.index, pd.DatetimeIndex):
            raise ValueError("Returns must be indexed by a DatetimeIndex")
        if returns.index.has_duplicates:
            raise ValueError("Returns contain duplicate dates")
        if not returns.index.is_monotonic_increasing:
            raise ValueError("Returns must be sorted by date")
        if returns.isna().any():
            raise ValueError("Returns contain missing values")
        if len(returns) <= self.window_length:
            raise ValueError(
                f"Insufficient observations: {len(returns)} returns for a "
                f"window of {self.window_length}"
            )

    def iter_windows(self, returns: pd.Series) -> Iterator[ForecastWindow]:
        """Yield windows in date order, each advancing one observation"""
        self._validate_returns(returns)

        values = returns.to_numpy(dtype=float)
        dates = returns.index
        fore_length = len(returns) - self.window_length
        last_offset = fore_length if self.forecast_next_session else fore_length - 1

        for d in range(last_offset + 1):
            window_end = d + self.window_length
            if window_end < len(dates):
                target_date = dates[window_end]
            else:
                target_date = dates[-1] + BDay(1)

            yield ForecastWindow(
                offset=d,
                start_date=dates[d],
                end_date=dates[window_end - 1],
                target_date=target_date,
                returns=values[d:window_end]
            )

    def _fallback(self, window: ForecastWindow, reason: str,
                  status=None, messages=()) -> WindowOutcome:
        failure = WindowFailure(
            start_date=window.start_date,
            end_date=window.end_date,
            target_date=window.target_date,
            reason=reason,
            status=status,
            messages=tuple(messages)
        )
        self.logger.warning(
            f"Window {window.start_date:%Y-%m-%d} to {window.end_date:%Y-%m-%d} "
            f"fell back to signal {self.fallback_signal} ({reason})"
            + (f": {'; '.join(messages)}" if messages else "")
        )
        record = ForecastRecord(date=window.target_date, signal=self.fallback_signal,
                                fallback=True)
        return record, failure

    def forecast_window(self, window: ForecastWindow) -> WindowOutcome:
        """Search the order, fit ARMA+GARCH and map the forecast to a signal"""
        search = self.searcher.search(window.returns)

        if search.found:
            order = search.order
        elif self.no_model_policy == 'default_order':
            order = self.default_order
            self.logger.info(
                f"No order fitted for window ending {window.end_date:%Y-%m-%d}, "
                f"using default order {order}"
            )
        else:
            return self._fallback(window, 'no_model_found',
                                  messages=[f"0 of {search.n_candidates} orders fitted"])

        outcome = self.estimator.fit_and_forecast(window.returns, order)
        if outcome.status.is_failure:
            return self._fallback(window, 'volatility_fit_failed',
                                  status=outcome.status, messages=outcome.messages)

        record = ForecastRecord(
            date=window.target_date,
            signal=to_signal(outcome.forecast, self.fallback_signal),
            order=order,
            forecast=outcome.forecast
        )
        return record, None

    def checkpoint_key(self, window: ForecastWindow) -> str:
        """Digest of the window's data and every setting that shapes its outcome"""
        settings = (
            self.window_length,
            self.fallback_signal,
            self.no_model_policy,
            str(self.default_order),
            self.searcher.p_max,
            self.searcher.q_max,
            getattr(self.estimator, 'distribution', None),
            getattr(self.estimator, 'maxiter', None),
            type(self.estimator).__name__,
            str(window.start_date),
            str(window.target_date),
        )
        digest = hashlib.sha256(repr(settings).encode())
        digest.update(window.returns.tobytes())
        return digest.hexdigest()

    def _forecast_with_checkpoint(self, window: ForecastWindow) -> WindowOutcome:
        key = self.checkpoint_key(window) if self.checkpoints is not None else ''
        if self.checkpoints is not None:
            cached = self.checkpoints.load_checkpoint(window.target_date, key)
            if cached is not None:
                return cached

        outcome = self.forecast_window(window)

        if self.checkpoints is not None:
            self.checkpoints.save_checkpoint(window.target_date, outcome, key)
        return outcome

    def generate_signals(self, returns: pd.Series, monitor=None,
                         parallel: bool = False,
                         max_workers: Optional[int] = None) -> SignalRun:
        """Run every window and return the date-ordered signals and failures"""
        windows = list(self.iter_windows(returns))

        self.logger.info(
            f"\nRolling window setup:"
            f"\n  Total observations: {len(returns)}"
            f"\n  Window length: {self.window_length}"
            f"\n  Number of windows: {len(windows)}"
            f"\n  First window: {windows[0].start_date:%Y-%m-%d} to {windows[0].end_date:%Y-%m-%d}"
            f"\n  Last window: {windows[-1].start_date:%Y-%m-%d} to {windows[-1].end_date:%Y-%m-%d}"
        )

        if parallel:
            outcomes = self._run_parallel(windows, monitor, max_workers)
        else:
            outcomes = []
            for i, window in enumerate(windows):
                outcomes.append(self._forecast_with_checkpoint(window))
                if monitor is not None:
                    monitor.update(1)
                if (i + 1) % 100 == 0:
                    self.logger.info(f"Completed {i + 1}/{len(windows)} windows")

        run = collect_in_order(outcomes)
        self.logger.info(
            f"Generated {len(run.records)} signals, "
            f"{len(run.failures)} windows fell back to {self.fallback_signal}"
        )
        return run

    def _run_parallel(self, windows: List[ForecastWindow], monitor,
                      max_workers: Optional[int]) -> List[WindowOutcome]:
        outcomes = []
        with ProcessPoolExecutor(max_workers=max_workers) as executor:
            futures = [executor.submit(self._forecast_with_checkpoint, w) for w in windows]
            for future in as_completed(futures):
                outcomes.append(future.result())
                if monitor is not None:
                    monitor.update(1)
        return outcomes


def collect_in_order(outcomes: List[WindowOutcome]) -> SignalRun:
    """Sort window outcomes by target date into a SignalRun"""
    ordered = sorted(outcomes, key=lambda outcome: outcome[0].date)
    dates = [record.date for record, _ in ordered]
    if len(set(dates)) != len(dates):
        raise ValueError("Duplicate target dates in window outcomes")

    run = SignalRun()
    for record, failure in ordered:
        run.records.append(record)
        if failure is not None:
            run.failures.append(failure)
    return run
