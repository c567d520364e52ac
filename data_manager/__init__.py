"""
Data management package for the ARIMA+GARCH backtest.
Handles price loading, validation, and signal storage.
"""

from .data_loader import DataLoader
from .data_validator import DataValidator
from .database import SignalDatabase

__all__ = ['DataLoader', 'DataValidator', 'SignalDatabase']
