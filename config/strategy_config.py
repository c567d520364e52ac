"""
Configuration for the ARIMA+GARCH signal backtest.
"""

import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Optional
from dotenv import load_dotenv

ENV_PREFIX = 'ARIMA_GARCH_'


@dataclass
class StrategyConfig:

    # Data Parameters
    ticker: str = '^GSPC'
    start_date: str = '2000-01-01'
    end_date: Optional[str] = None
    price_csv: Optional[str] = None  # Load prices from CSV instead of downloading

    # Model Parameters
    window_length: int = 500  # Returns per estimation window
    p_max: int = 5  # Largest AR order searched
    q_max: int = 5  # Largest MA order searched
    distribution: str = 'skewt'  # GARCH innovation distribution
    maxiter: int = 1000

    # Signal Parameters
    fallback_signal: int = 1  # Signal for windows that cannot be fitted
    lag_fill_value: int = 1  # First lagged signal
    no_model_policy: str = 'fallback_signal'
    forecast_next_session: bool = False

    # Execution Parameters
    parallel: bool = False
    max_workers: Optional[int] = None
    use_checkpoints: bool = True
    clear_checkpoints: bool = False  # Drop cached windows before running

    # Output Parameters
    output_dir: str = 'results'
    db_path: Optional[str] = None  # Defaults to <output_dir>/signals.db
    log_level: str = 'INFO'

    @property
    def output_path(self) -> Path:
        return Path(self.output_dir)

    @property
    def database_path(self) -> Path:
        return Path(self.db_path) if self.db_path else self.output_path / 'signals.db'

    @property
    def run_id(self) -> str:
        run_id = (f"{self.ticker}_{self.window_length}_{self.p_max}x{self.q_max}_"
                  f"{self.distribution}_{self.no_model_policy}_fb{self.fallback_signal:+d}")
        if self.forecast_next_session:
            run_id += "_next"
        if self.price_csv:
            run_id += f"_{Path(self.price_csv).stem}"
        return run_id

    def validate(self) -> 'StrategyConfig':
        """Raise ValueError on out-of-range settings"""
        if self.window_length < 2:
            raise ValueError(f"window_length must be at least 2: {self.window_length}")
        if self.p_max < 0 or self.q_max < 0 or self.p_max + self.q_max == 0:
            raise ValueError(f"Order grid must contain a non-null order: "
                             f"p_max={self.p_max}, q_max={self.q_max}")
        for name in ('fallback_signal', 'lag_fill_value'):
            if getattr(self, name) not in (-1, 1):
                raise ValueError(f"{name} must be -1 or 1: {getattr(self, name)}")
        if self.no_model_policy not in ('fallback_signal', 'default_order'):
            raise ValueError(f"Unknown no_model_policy: {self.no_model_policy}")
        if self.max_workers is not None and self.max_workers < 1:
            raise ValueError(f"max_workers must be positive: {self.max_workers}")
        return self

    @classmethod
    def from_env(cls, env_file: Optional[str] = None, **overrides) -> 'StrategyConfig':
        """Build a config from ARIMA_GARCH_* environment variables and explicit overrides"""
        load_dotenv(env_file)

        values = {}
        for f in fields(cls):
            raw = os.getenv(ENV_PREFIX + f.name.upper())
            if raw is None or raw == '':
                continue
            values[f.name] = _coerce(raw, f.type)

        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values).validate()


def _coerce(raw: str, field_type):
    """Convert an environment string to the field's annotated type"""
    if field_type is bool:
        return raw.strip().lower() in ('1', 'true', 'yes', 'on')
    if field_type in (int, Optional[int]):
        return int(raw)
    if field_type in (float, Optional[float]):
        return float(raw)
    return raw
