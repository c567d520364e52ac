#!/usr/bin/env python
"""
Full pipeline for the ARIMA+GARCH signal backtest.
Coordinates price loading, rolling signal generation, persistence and evaluation.
"""
import sys
import argparse
from pathlib import Path
import logging
from datetime import datetime
from typing import Dict, Optional, Any
import time
import psutil
import traceback
import pandas as pd

# Add project root to path
project_root = Path(__file__).parent
if str(project_root) not in sys.path:
    sys.path.append(str(project_root))

from config.strategy_config import StrategyConfig
from arma_garch.checkpoint import CheckpointManager
from arma_garch.estimator import ArmaGarchEstimator
from arma_garch.order_search import OrderSearcher
from arma_garch.forecaster import SignalForecaster
from arma_garch.data_prep import ReturnPreparer
from arma_garch.signals import lag_signals, write_signal_csv
from backtest.evaluation import evaluate
from data_manager.data_loader import DataLoader
from data_manager.database import SignalDatabase
from models import ModelOrder
from utils.progress import ProgressMonitor


class StageTimer:
    """Tracks duration and memory of pipeline stages"""
    def __init__(self):
        self.start_time = time.time()
        self.last_checkpoint = self.start_time
        self.checkpoints = {}

    def checkpoint(self, name: str):
        """Record timing for a stage"""
        now = time.time()
        self.checkpoints[name] = {
            'duration': now - self.last_checkpoint,
            'memory': psutil.Process().memory_info().rss / 1024 / 1024  # MB
        }
        self.last_checkpoint = now

    def report(self) -> str:
        total_time = time.time() - self.start_time
        report = ["Performance Report:", "-----------------"]

        for name, stats in self.checkpoints.items():
            report.append(f"{name}:")
            report.append(f"  Duration: {stats['duration']:.2f} seconds")
            report.append(f"  Memory: {stats['memory']:.2f} MB")

        report.append("-----------------")
        report.append(f"Total Time: {total_time:.2f} seconds")
        return "\n".join(report)


def setup_logging(output_dir: Path, level: str = 'INFO') -> logging.Logger:
    """
    Configure logging with both file and console handlers

    Parameters:
    -----------
    output_dir : Path
        Directory for log file
    level : str
        Logging level name

    Returns:
    --------
    logging.Logger
        Configured root logger
    """
    log_dir = output_dir / "logs"
    log_dir.mkdir(parents=True, exist_ok=True)

    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    log_file = log_dir / f"backtest_{timestamp}.log"

    # Component loggers ('arma_garch.*', 'data_manager.*') propagate to root
    logger = logging.getLogger()
    logger.setLevel(level)

    file_handler = logging.FileHandler(log_file)
    file_handler.setLevel(level)
    file_handler.setFormatter(
        logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')
    )

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(
        logging.Formatter('%(message)s')
    )

    logger.addHandler(file_handler)
    logger.addHandler(console_handler)

    return logging.getLogger("backtest")


def load_prices(config: StrategyConfig, logger: logging.Logger) -> pd.Series:
    """Load prices from the configured CSV or download them"""
    loader = DataLoader()
    try:
        if config.price_csv:
            return loader.load_csv(config.price_csv)

        prices = loader.download(config.ticker, config.start_date, config.end_date)
        cache_file = config.output_path / "data" / f"{_safe_name(config.ticker)}_prices.csv"
        loader.save_csv(prices, cache_file)
        logger.info(f"Cached prices to {cache_file}")
        return prices

    except Exception as e:
        logger.error(f"Error loading data: {str(e)}")
        logger.error(f"Traceback: {traceback.format_exc()}")
        raise


def initialize_components(config: StrategyConfig, logger: logging.Logger = None) -> Dict:
    """Initialize all analysis components"""
    if logger is None:
        logger = logging.getLogger('backtest')

    logger.info("Creating ARMA+GARCH estimator...")
    estimator = ArmaGarchEstimator(
        distribution=config.distribution,
        maxiter=config.maxiter
    )

    logger.info("Creating order searcher...")
    searcher = OrderSearcher(estimator, p_max=config.p_max, q_max=config.q_max)

    checkpoint_dir = None
    if config.use_checkpoints:
        checkpoint_dir = config.output_path / "checkpoints" / _safe_name(config.run_id)
        if config.clear_checkpoints and checkpoint_dir.exists():
            CheckpointManager(checkpoint_dir).clear()

    logger.info("Creating forecaster...")
    forecaster = SignalForecaster(
        estimator=estimator,
        searcher=searcher,
        window_length=config.window_length,
        fallback_signal=config.fallback_signal,
        no_model_policy=config.no_model_policy,
        default_order=ModelOrder(0, 0),
        forecast_next_session=config.forecast_next_session,
        checkpoint_dir=checkpoint_dir
    )

    return {
        'estimator': estimator,
        'searcher': searcher,
        'forecaster': forecaster,
        'preparer': ReturnPreparer(),
    }


def run_analysis(components: Dict, prices: pd.Series, config: StrategyConfig,
                 logger: logging.Logger, monitor: Any = None) -> Dict:
    """Run the signal pipeline and write all artifacts"""
    logger.info("Starting analysis pipeline...")
    output_dir = config.output_path
    output_dir.mkdir(parents=True, exist_ok=True)
    name = _safe_name(config.ticker)

    try:
        returns = components['preparer'].prepare_returns(prices)
        if not components['preparer'].verify_data_quality(returns, config.window_length):
            raise ValueError(
                f"Insufficient data: {len(returns)} returns for a window of {config.window_length}"
            )

        logger.info("Generating rolling signals...")
        run = components['forecaster'].generate_signals(
            returns,
            monitor=monitor,
            parallel=config.parallel,
            max_workers=config.max_workers
        )

        signals = run.to_series()
        lagged = lag_signals(signals, fill_value=config.lag_fill_value)

        signal_file = write_signal_csv(signals, output_dir / f"{name}_signals.csv", 'signal')
        lagged_file = write_signal_csv(lagged, output_dir / f"{name}_lagged_signals.csv",
                                       'lagged_signal')
        failures_file = output_dir / f"{name}_window_failures.csv"
        run.failures_dataframe().to_csv(failures_file, index=False)

        db = SignalDatabase(config.database_path)
        try:
            db.save_run(config.run_id, run, lagged)
        finally:
            db.close()

        logger.info("Evaluating strategy against buy-and-hold...")
        evaluation = evaluate(lagged, returns)
        summary_file = output_dir / f"{name}_performance.csv"
        evaluation['summary'].to_csv(summary_file)
        evaluation['curves'].to_csv(output_dir / f"{name}_equity_curves.csv")

        logger.info("Pipeline completed successfully")
        return {
            'run_id': config.run_id,
            'returns': returns,
            'run': run,
            'signals': signals,
            'lagged_signals': lagged,
            'evaluation': evaluation,
            'files': {
                'signals': signal_file,
                'lagged_signals': lagged_file,
                'failures': failures_file,
                'summary': summary_file,
            }
        }

    except Exception as e:
        logger.error(f"Error in analysis pipeline: {str(e)}")
        logger.error(f"Traceback: {traceback.format_exc()}")
        raise


def _safe_name(name: str) -> str:
    return name.replace('^', '').replace('/', '_')


def parse_args(argv=None) -> argparse.Namespace:
    ap = argparse.ArgumentParser(description="Backtest a rolling ARIMA+GARCH long/short signal")
    ap.add_argument("--ticker", default=None, help="Ticker to download (default ^GSPC)")
    ap.add_argument("--start", dest="start_date", default=None)
    ap.add_argument("--end", dest="end_date", default=None)
    ap.add_argument("--csv", dest="price_csv", default=None, help="CSV with date and close columns")
    ap.add_argument("--window", dest="window_length", type=int, default=None)
    ap.add_argument("--p-max", dest="p_max", type=int, default=None)
    ap.add_argument("--q-max", dest="q_max", type=int, default=None)
    ap.add_argument("--dist", dest="distribution", default=None)
    ap.add_argument("--fallback-signal", dest="fallback_signal", type=int, choices=[-1, 1],
                    default=None, help="Signal for windows that cannot be fitted")
    ap.add_argument("--lag-fill", dest="lag_fill_value", type=int, choices=[-1, 1],
                    default=None, help="First lagged signal")
    ap.add_argument("--no-model-policy", dest="no_model_policy",
                    choices=["fallback_signal", "default_order"], default=None)
    ap.add_argument("--next-session", dest="forecast_next_session", action="store_true",
                    default=None, help="Also forecast the session after the last price")
    ap.add_argument("--parallel", action="store_true", default=None)
    ap.add_argument("--workers", dest="max_workers", type=int, default=None)
    ap.add_argument("--no-checkpoints", dest="use_checkpoints", action="store_false",
                    default=None)
    ap.add_argument("--clear-checkpoints", dest="clear_checkpoints", action="store_true",
                    default=None, help="Remove cached windows of this run before starting")
    ap.add_argument("--outdir", dest="output_dir", default=None)
    ap.add_argument("--env-file", default=None)
    return ap.parse_args(argv)


def main(argv=None):
    """Main entry point with configuration and setup"""
    args = vars(parse_args(argv))
    env_file = args.pop('env_file')
    config = StrategyConfig.from_env(env_file, **args)

    logger = setup_logging(config.output_path, config.log_level)
    logger.info(f"Starting backtest {config.run_id}...")
    timer = StageTimer()

    try:
        prices = load_prices(config, logger)
        timer.checkpoint('load')

        components = initialize_components(config, logger)

        n_windows = max(len(prices) - 1 - config.window_length, 0) + int(config.forecast_next_session)
        monitor = ProgressMonitor(total=n_windows, desc="Forecast windows", logger=logger)
        try:
            results = run_analysis(components, prices, config, logger, monitor)
        finally:
            monitor.close()
        timer.checkpoint('analysis')

        logger.info(f"\n{results['evaluation']['summary'].T.to_string()}")
        logger.info(timer.report())
        return results

    except Exception as e:
        logger.error(f"Pipeline failed: {str(e)}")
        logger.error(f"Traceback: {traceback.format_exc()}")
        raise


if __name__ == '__main__':
    main()
