import sys
import os

# Add project root to Python path
project_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if project_root not in sys.path:
    sys.path.append(project_root)

import warnings
import pytest
import numpy as np
from statsmodels.tools.sm_exceptions import ConvergenceWarning
from arma_garch.estimator import ArmaGarchEstimator, guarded_fit
from models import FitStatus, ModelOrder


class FakeArimaResult:
    def __init__(self, aic, converged=True):
        self.aic = aic
        self.mle_retvals = {'converged': converged}


@pytest.fixture
def ar1_returns():
    """AR(1) returns with a small positive drift"""
    np.random.seed(7)
    n = 500
    eps = np.random.normal(0, 0.01, n)
    r = np.zeros(n)
    for t in range(1, n):
        r[t] = 0.0002 + 0.3 * r[t - 1] + eps[t]
    return r


@pytest.fixture
def estimator():
    return ArmaGarchEstimator(distribution='skewt')


def test_guarded_fit_success():
    result, outcome = guarded_fit(lambda: 42, ModelOrder(1, 0))
    assert result == 42
    assert outcome.status == FitStatus.SUCCESS
    assert outcome.succeeded


def test_guarded_fit_exception_is_hard_failure():
    def boom():
        raise np.linalg.LinAlgError("Singular matrix")

    result, outcome = guarded_fit(boom, ModelOrder(2, 1))
    assert result is None
    assert outcome.status == FitStatus.FAILED_HARD
    assert outcome.order == ModelOrder(2, 1)
    assert "LinAlgError" in outcome.messages[0]


def test_guarded_fit_warning_is_soft_failure():
    def noisy():
        warnings.warn("Maximum Likelihood optimization failed to converge", ConvergenceWarning)
        return 'fitted'

    result, outcome = guarded_fit(noisy, ModelOrder(1, 1))
    assert result == 'fitted'
    assert outcome.status == FitStatus.FAILED_SOFT
    assert not outcome.succeeded
    assert "ConvergenceWarning" in outcome.messages[0]


def test_guarded_fit_ignores_deprecation_notices():
    def deprecated():
        warnings.warn("old keyword", FutureWarning)
        return 'fitted'

    _, outcome = guarded_fit(deprecated, ModelOrder(1, 1))
    assert outcome.status == FitStatus.SUCCESS


def test_invalid_distribution():
    with pytest.raises(ValueError):
        ArmaGarchEstimator(distribution='sged')


def test_mean_model_hard_failure(estimator, ar1_returns, monkeypatch):
    def failing_fit(returns, order):
        raise ValueError("non-stationary")

    monkeypatch.setattr(estimator, '_fit_arima', failing_fit)
    outcome = estimator.fit_mean_model(ar1_returns, ModelOrder(1, 0))
    assert outcome.status == FitStatus.FAILED_HARD
    assert outcome.aic is None


def test_mean_model_non_convergence_is_soft_failure(estimator, ar1_returns, monkeypatch):
    monkeypatch.setattr(estimator, '_fit_arima',
                        lambda returns, order: FakeArimaResult(-3000.0, converged=False))
    outcome = estimator.fit_mean_model(ar1_returns, ModelOrder(1, 0))
    assert outcome.status == FitStatus.FAILED_SOFT


def test_mean_model_non_finite_aic_is_failure(estimator, ar1_returns, monkeypatch):
    monkeypatch.setattr(estimator, '_fit_arima',
                        lambda returns, order: FakeArimaResult(np.nan))
    outcome = estimator.fit_mean_model(ar1_returns, ModelOrder(1, 0))
    assert outcome.status.is_failure


def test_mean_model_reports_aic(estimator, ar1_returns, monkeypatch):
    monkeypatch.setattr(estimator, '_fit_arima',
                        lambda returns, order: FakeArimaResult(-3100.5))
    outcome = estimator.fit_mean_model(ar1_returns, ModelOrder(1, 0))
    assert outcome.status == FitStatus.SUCCESS
    assert outcome.aic == pytest.approx(-3100.5)


def test_forecast_fails_when_mean_equation_warns(estimator, ar1_returns, monkeypatch):
    def noisy_fit(returns, order):
        warnings.warn("Non-invertible starting MA parameters found", UserWarning)
        return FakeArimaResult(-3000.0)

    monkeypatch.setattr(estimator, '_fit_arima', noisy_fit)
    outcome = estimator.fit_and_forecast(ar1_returns, ModelOrder(0, 1))
    assert outcome.status == FitStatus.FAILED_SOFT
    assert outcome.forecast is None


def test_real_mean_model_fit(estimator, ar1_returns):
    """statsmodels fit of a well-specified AR(1)"""
    outcome = estimator.fit_mean_model(ar1_returns, ModelOrder(1, 0))
    assert outcome.order == ModelOrder(1, 0)
    if outcome.succeeded:
        assert np.isfinite(outcome.aic)
    else:
        assert outcome.messages


def test_real_fit_and_forecast_is_deterministic(estimator, ar1_returns):
    """Refitting the same window gives the same outcome"""
    first = estimator.fit_and_forecast(ar1_returns, ModelOrder(1, 0))
    second = estimator.fit_and_forecast(ar1_returns, ModelOrder(1, 0))

    assert first.status == second.status
    if first.succeeded:
        assert np.isfinite(first.forecast)
        assert first.forecast == pytest.approx(second.forecast, rel=1e-10)
    else:
        assert first.forecast is None and second.forecast is None


if __name__ == '__main__':
    pytest.main([__file__])
