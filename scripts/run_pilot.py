"""
Pilot script for testing the backtest pipeline on a small synthetic dataset.
"""

import logging
from pathlib import Path
import sys
import numpy as np
import pandas as pd

# Add parent directory to path to import our modules
sys.path.append(str(Path(__file__).parent.parent))

from config.strategy_config import StrategyConfig
from run_backtest import initialize_components, run_analysis
from utils.progress import ProgressMonitor

# Data parameters
N_DAYS = 400
WINDOW_LENGTH = 250


def simulate_prices(n_days: int, seed: int = 42) -> pd.Series:
    """Random walk in log prices with GARCH-like volatility clustering"""
    rng = np.random.RandomState(seed)
    volatility = 0.01 * np.exp(np.cumsum(rng.normal(0, 0.05, n_days)) * 0.1)
    log_returns = rng.normal(0.0003, 1, n_days) * volatility
    dates = pd.bdate_range('2018-01-02', periods=n_days + 1)
    return pd.Series(100 * np.exp(np.concatenate([[0.0], np.cumsum(log_returns)])),
                     index=dates, name='price')


if __name__ == "__main__":
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.FileHandler('pilot_run.log'),
            logging.StreamHandler()
        ]
    )
    logger = logging.getLogger('pilot')

    config = StrategyConfig(
        ticker='PILOT',
        window_length=WINDOW_LENGTH,
        p_max=2,
        q_max=2,
        output_dir=str(Path("results/pilot")),
        use_checkpoints=False
    ).validate()

    try:
        logger.info("Starting pilot run...")
        prices = simulate_prices(N_DAYS)

        components = initialize_components(config, logger)
        monitor = ProgressMonitor(total=N_DAYS - WINDOW_LENGTH, desc="Processing windows",
                                  logger=logger)
        results = run_analysis(components, prices, config, logger, monitor)
        monitor.close()

        logger.info("Pilot analysis completed successfully")
        logger.info(f"\n{results['evaluation']['summary'].T.to_string()}")
        logger.info(f"Results saved to {config.output_path}")

    except Exception as e:
        logger.error(f"Pilot analysis failed: {str(e)}")
        raise
