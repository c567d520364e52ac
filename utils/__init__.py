"""Utility functions and classes for the ARIMA+GARCH backtest"""

from .progress import ProgressMonitor

__all__ = ['ProgressMonitor']
