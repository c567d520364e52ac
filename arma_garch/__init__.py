"""
ARMA+GARCH rolling signal package.
Implements order selection, model fitting and rolling signal generation.
"""

from .estimator import ArmaGarchEstimator
from .order_search import OrderSearcher
from .forecaster import SignalForecaster
from .data_prep import ReturnPreparer
from .signals import lag_signals, to_signal

__all__ = ['ArmaGarchEstimator', 'OrderSearcher', 'SignalForecaster',
           'ReturnPreparer', 'lag_signals', 'to_signal']
