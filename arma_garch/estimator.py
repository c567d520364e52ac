from typing import Callable, Optional, Tuple
import numpy as np
import warnings
import logging
from arch import arch_model
from statsmodels.tsa.arima.model import ARIMA
from models import FitOutcome, FitStatus, ModelOrder

logger = logging.getLogger(__name__)

# Residual distributions supported by arch
DISTRIBUTIONS = ('normal', 'studentst', 'skewt', 'ged')

_IGNORED_WARNINGS = (DeprecationWarning, PendingDeprecationWarning, FutureWarning)


def guarded_fit(fit_fn: Callable, order: Optional[ModelOrder]) -> Tuple[object, FitOutcome]:
    """Run a fit call and classify it as success, hard failure or soft failure.

    Any exception is a hard failure. Any warning emitted while fitting is a
    soft failure; both are reported as failures by the caller.
    """
    with warnings.catch_warnings(record=True) as caught:
        warnings.simplefilter('always')
        try:
            result = fit_fn()
        except Exception as e:
            return None, FitOutcome.hard_failure(order, f"{type(e).__name__}: {e}")

    # Library deprecation notices say nothing about fit quality
    quality = [w for w in caught if not issubclass(w.category, _IGNORED_WARNINGS)]
    if quality:
        messages = [f"{w.category.__name__}: {w.message}" for w in quality]
        return result, FitOutcome.soft_failure(order, messages)

    return result, FitOutcome(status=FitStatus.SUCCESS, order=order)


class ArmaGarchEstimator:
    """Fits ARMA(p, q) mean models and ARMA(p, q)+GARCH(1,1) forecast models"""

    def __init__(self, distribution: str = 'skewt', maxiter: int = 1000):
        """
        Initialize estimator

        Args:
            distribution: Residual distribution of the GARCH(1,1) innovations
            maxiter: Maximum optimizer iterations for the GARCH fit
        """
        if distribution not in DISTRIBUTIONS:
            raise ValueError(f"Unsupported distribution '{distribution}', "
                             f"expected one of {DISTRIBUTIONS}")
        self.distribution = distribution
        self.maxiter = maxiter
        self.logger = logging.getLogger('arma_garch.estimator')

    def _fit_arima(self, returns: np.ndarray, order: ModelOrder):
        model = ARIMA(np.asarray(returns, dtype=float), order=order.as_arima(), trend='c')
        return model.fit()

    @staticmethod
    def _converged(result) -> bool:
        retvals = getattr(result, 'mle_retvals', None) or {}
        return bool(retvals.get('converged', True))

    def fit_mean_model(self, returns: np.ndarray, order: ModelOrder) -> FitOutcome:
        """Fit ARMA(p, q) with intercept and report its AIC"""
        result, outcome = guarded_fit(lambda: self._fit_arima(returns, order), order)
        if outcome.status.is_failure:
            return outcome

        if not self._converged(result):
            return FitOutcome.soft_failure(order, ["ARMA optimizer did not converge"])

        aic = float(result.aic)
        if not np.isfinite(aic):
            return FitOutcome.soft_failure(order, [f"Non-finite AIC: {aic}"])

        return FitOutcome(status=FitStatus.SUCCESS, order=order, aic=aic)

    def fit_and_forecast(self, returns: np.ndarray, order: ModelOrder) -> FitOutcome:
        """Fit ARMA(p, q)+GARCH(1,1) and forecast the next-period mean return"""
        returns = np.asarray(returns, dtype=float)

        # Mean equation
        arma_result, outcome = guarded_fit(lambda: self._fit_arima(returns, order), order)
        if outcome.status.is_failure:
            return outcome
        if not self._converged(arma_result):
            return FitOutcome.soft_failure(order, ["ARMA optimizer did not converge"])

        # Variance equation on the mean-model residuals
        residuals = np.asarray(arma_result.resid, dtype=float)
        vol_model = arch_model(
            residuals,
            mean='Zero',
            vol='GARCH',
            p=1,
            q=1,
            dist=self.distribution,
            rescale=True
        )
        garch_result, outcome = guarded_fit(
            lambda: vol_model.fit(
                disp='off',
                show_warning=True,
                options={'maxiter': self.maxiter},
                update_freq=0
            ),
            order
        )
        if outcome.status.is_failure:
            return outcome
        if garch_result.convergence_flag != 0:
            return FitOutcome.soft_failure(
                order, [f"GARCH optimizer convergence flag {garch_result.convergence_flag}"]
            )

        predicted_mu, predicted_et = self._one_step_forecast(arma_result, garch_result)
        prediction = predicted_mu + predicted_et
        if not np.isfinite(prediction):
            return FitOutcome.soft_failure(order, [f"Non-finite forecast: {prediction}"])

        self.logger.debug(
            f"Order {order}: mu={predicted_mu:.6f}, et={predicted_et:.6f}, "
            f"forecast={prediction:.6f}"
        )
        return FitOutcome(
            status=FitStatus.SUCCESS,
            order=order,
            aic=float(arma_result.aic),
            forecast=float(prediction)
        )

    def _one_step_forecast(self, arma_result, garch_result) -> Tuple[float, float]:
        """ARMA mean forecast and GARCH innovation mean forecast, one step ahead"""
        predicted_mu = float(np.asarray(arma_result.forecast(steps=1))[0])

        garch_forecast = garch_result.forecast(horizon=1, reindex=False)
        # Undo arch's internal rescaling so both terms share the returns' units
        scale = getattr(garch_result, 'scale', 1.0) or 1.0
        predicted_et = float(garch_forecast.mean['h.1'].iloc[-1]) / scale

        return predicted_mu, predicted_et
