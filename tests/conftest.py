import sys
import os

# Add project root to Python path
project_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if project_root not in sys.path:
    sys.path.append(project_root)

import pytest
import numpy as np
import pandas as pd
from arma_garch.estimator import ArmaGarchEstimator
from models import FitOutcome, FitStatus


class StubEstimator(ArmaGarchEstimator):
    """Estimator with scripted fit outcomes instead of statsmodels/arch fits"""

    def __init__(self, aic_fn=None, mean_failure_fn=None, forecast_fn=None, vol_failure_fn=None):
        super().__init__()
        self.aic_fn = aic_fn or (lambda returns, order: 10.0 + order.p + order.q)
        self.mean_failure_fn = mean_failure_fn or (lambda returns, order: None)
        self.forecast_fn = forecast_fn or (lambda returns, order: float(np.mean(returns)))
        self.vol_failure_fn = vol_failure_fn or (lambda returns, order: None)
        self.mean_calls = []
        self.forecast_calls = []

    def fit_mean_model(self, returns, order):
        self.mean_calls.append(order)
        status = self.mean_failure_fn(returns, order)
        if status is not None:
            return FitOutcome(status=status, order=order, messages=("scripted failure",))
        return FitOutcome(status=FitStatus.SUCCESS, order=order, aic=self.aic_fn(returns, order))

    def fit_and_forecast(self, returns, order):
        self.forecast_calls.append(order)
        status = self.vol_failure_fn(returns, order)
        if status is not None:
            return FitOutcome(status=status, order=order, messages=("scripted GARCH failure",))
        return FitOutcome(status=FitStatus.SUCCESS, order=order,
                          aic=self.aic_fn(returns, order),
                          forecast=self.forecast_fn(returns, order))


@pytest.fixture
def stub_estimator_factory():
    """Build stub estimators with scripted behaviour"""
    return StubEstimator


@pytest.fixture
def synthetic_returns():
    """520 business-day log returns with volatility clustering"""
    np.random.seed(42)
    n = 520
    dates = pd.bdate_range('2020-01-01', periods=n)
    volatility = 0.01 * np.exp(np.random.normal(0, 0.2, n))
    returns = np.random.normal(0, 1, n) * volatility
    return pd.Series(returns, index=dates, name='returns')
