from pathlib import Path
import pickle
import logging
from typing import Optional, Tuple
import pandas as pd
from models import ForecastRecord, WindowFailure

WindowOutcome = Tuple[ForecastRecord, Optional[WindowFailure]]


class CheckpointManager:
    def __init__(self, checkpoint_dir: Path):
        self.checkpoint_dir = Path(checkpoint_dir)
        self.checkpoint_dir.mkdir(parents=True, exist_ok=True)
        self.logger = logging.getLogger('checkpoint_manager')

    def _checkpoint_file(self, date: pd.Timestamp) -> Path:
        return self.checkpoint_dir / f"checkpoint_{pd.Timestamp(date).strftime('%Y%m%d')}.pkl"

    def save_checkpoint(self, date: pd.Timestamp, outcome: WindowOutcome, key: str = ''):
        """Save the outcome of the window forecasting ``date`` under ``key``"""
        with open(self._checkpoint_file(date), 'wb') as f:
            pickle.dump({'key': key, 'outcome': outcome}, f)

    def load_checkpoint(self, date: pd.Timestamp, key: str = '') -> Optional[WindowOutcome]:
        """Load checkpoint if it exists and was saved under the same key"""
        checkpoint_file = self._checkpoint_file(date)
        if not checkpoint_file.exists():
            return None

        with open(checkpoint_file, 'rb') as f:
            saved = pickle.load(f)

        if not isinstance(saved, dict) or saved.get('key') != key:
            self.logger.info(f"Ignoring stale checkpoint {checkpoint_file.name}")
            return None
        return saved['outcome']

    def clear(self) -> int:
        """Remove all checkpoints"""
        removed = 0
        for checkpoint_file in self.checkpoint_dir.glob('checkpoint_*.pkl'):
            checkpoint_file.unlink()
            removed += 1
        self.logger.info(f"Removed {removed} checkpoints from {self.checkpoint_dir}")
        return removed
