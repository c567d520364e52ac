import logging
from pathlib import Path
from typing import Optional, Union
import duckdb
import pandas as pd
from models import SignalRun

logger = logging.getLogger(__name__)


class SignalDatabase:
    def __init__(self, db_path: Union[str, Path]):
        """Initialize database connection"""
        self.logger = logging.getLogger(__name__)
        self.db_path = Path(db_path)

        # Create database directory if it doesn't exist
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

        self.conn = duckdb.connect(str(self.db_path))
        self._initialize_tables()

        self.logger.info(f"Initialized database at {db_path}")

    def _initialize_tables(self):
        """Create tables if they don't exist"""
        self.conn.execute("""
            CREATE TABLE IF NOT EXISTS signals (
                run_id VARCHAR,
                date TIMESTAMP,
                signal INTEGER CHECK (signal IN (-1, 1)),
                order_p INTEGER,
                order_q INTEGER,
                forecast DOUBLE,
                fallback BOOLEAN,
                PRIMARY KEY (run_id, date)
            );

            CREATE TABLE IF NOT EXISTS lagged_signals (
                run_id VARCHAR,
                date TIMESTAMP,
                lagged_signal INTEGER CHECK (lagged_signal IN (-1, 1)),
                PRIMARY KEY (run_id, date)
            );

            CREATE TABLE IF NOT EXISTS window_failures (
                run_id VARCHAR,
                start_date TIMESTAMP,
                end_date TIMESTAMP,
                target_date TIMESTAMP,
                reason VARCHAR,
                status VARCHAR,
                messages VARCHAR,
                PRIMARY KEY (run_id, target_date)
            );
        """)

    def _replace(self, table: str, run_id: str, frame: pd.DataFrame):
        frame = frame.copy()
        frame.insert(0, 'run_id', run_id)
        self.conn.execute(f"DELETE FROM {table} WHERE run_id = ?", [run_id])
        if frame.empty:
            return
        self.conn.register('incoming_df', frame)
        try:
            columns = ', '.join(frame.columns)
            self.conn.execute(f"INSERT INTO {table} ({columns}) SELECT {columns} FROM incoming_df")
        finally:
            self.conn.unregister('incoming_df')

    def save_run(self, run_id: str, run: SignalRun, lagged: Optional[pd.Series] = None):
        """Store a run's signals, failures and lagged signals, replacing any previous copy"""
        try:
            self.conn.execute("BEGIN TRANSACTION")
            self._replace('signals', run_id, run.to_dataframe())
            self._replace('window_failures', run_id, run.failures_dataframe())
            if lagged is not None:
                lagged_df = pd.DataFrame({
                    'date': pd.DatetimeIndex(lagged.index),
                    'lagged_signal': lagged.astype('int64').values
                })
                self._replace('lagged_signals', run_id, lagged_df)
            self.conn.execute("COMMIT")
        except Exception as e:
            self.conn.execute("ROLLBACK")
            self.logger.error(f"Error saving run {run_id}: {str(e)}")
            raise

        self.logger.info(
            f"Saved run {run_id}: {len(run.records)} signals, {len(run.failures)} failures"
        )

    def load_signals(self, run_id: str) -> pd.DataFrame:
        """Signals of a run in date order"""
        return self.conn.execute("""
            SELECT date, signal, order_p, order_q, forecast, fallback
            FROM signals
            WHERE run_id = ?
            ORDER BY date
        """, [run_id]).df()

    def load_lagged_signals(self, run_id: str) -> pd.DataFrame:
        return self.conn.execute("""
            SELECT date, lagged_signal
            FROM lagged_signals
            WHERE run_id = ?
            ORDER BY date
        """, [run_id]).df()

    def load_failures(self, run_id: str) -> pd.DataFrame:
        return self.conn.execute("""
            SELECT start_date, end_date, target_date, reason, status, messages
            FROM window_failures
            WHERE run_id = ?
            ORDER BY target_date
        """, [run_id]).df()

    def list_runs(self) -> list:
        rows = self.conn.execute("SELECT DISTINCT run_id FROM signals ORDER BY run_id").fetchall()
        return [row[0] for row in rows]

    def close(self):
        """Close database connection"""
        self.conn.close()
