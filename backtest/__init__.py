"""Backtest evaluation of ARIMA+GARCH signals"""

from .evaluation import align_signals, cumulative_log_returns, compare_to_benchmark, evaluate

__all__ = ['align_signals', 'cumulative_log_returns', 'compare_to_benchmark', 'evaluate']
