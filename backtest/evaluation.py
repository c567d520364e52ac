"""Strategy evaluation against buy-and-hold"""

import logging
import numpy as np
import pandas as pd
from scipy import stats as scipy_stats
from statsmodels.stats.weightstats import DescrStatsW
from typing import Dict

logger = logging.getLogger(__name__)

TRADING_DAYS = 252

SUMMARY_KEYS = (
    'observations', 'annual mean return', 'annual mean log return', 'annual std',
    'sharpe ratio', 'p(return)<2.5%', 'p(return)>97.5%', 'win ratio',
    'ratio risk/benefit', 'total log return', 'max drawdown', 'skewness', 'kurtosis',
)


def align_signals(signals: pd.Series, returns: pd.Series) -> pd.DataFrame:
    """
    Inner-join signals and realized returns on date

    Parameters:
    - signals: Lagged signals indexed by date
    - returns: Realized log returns indexed by date

    Returns a frame with columns signal, market_return and strategy_return,
    keeping only dates present in both inputs.
    """
    frame = pd.concat(
        [signals.rename('signal'), returns.rename('market_return')],
        axis=1,
        join='inner'
    ).sort_index()
    frame['strategy_return'] = frame['signal'] * frame['market_return']

    dropped = len(signals) + len(returns) - 2 * len(frame)
    logger.info(f"Aligned {len(frame)} dates ({dropped} unmatched rows dropped)")
    return frame


def cumulative_log_returns(aligned: pd.DataFrame) -> pd.DataFrame:
    """Cumulative log return and equity curve for strategy and buy-and-hold"""
    curves = pd.DataFrame(index=aligned.index)
    curves['strategy_cum_log'] = aligned['strategy_return'].cumsum()
    curves['benchmark_cum_log'] = aligned['market_return'].cumsum()
    curves['strategy_equity'] = np.exp(curves['strategy_cum_log'])
    curves['benchmark_equity'] = np.exp(curves['benchmark_cum_log'])
    return curves


def max_drawdown(log_returns: pd.Series) -> float:
    """Largest peak-to-trough loss of the equity curve, as a negative fraction"""
    if log_returns.empty:
        return 0.0
    equity = np.exp(log_returns.cumsum())
    peak = np.maximum.accumulate(np.concatenate([[1.0], equity.to_numpy()]))[1:]
    return float((equity.to_numpy() / peak - 1.0).min())


def summary_statistics(log_returns: pd.Series, periodicity: int = 1) -> Dict[str, float]:
    """Annualized performance statistics of a daily log-return series"""
    r = log_returns.dropna()
    if len(r) < 2:
        logger.warning(f"Only {len(r)} returns, dispersion statistics are undefined")
        stats = dict.fromkeys(SUMMARY_KEYS, np.nan)
        stats['observations'] = int(len(r))
        stats['total log return'] = float(r.sum())
        stats['max drawdown'] = max_drawdown(r)
        if len(r):
            stats['annual mean log return'] = float(r.mean() * TRADING_DAYS / periodicity)
            stats['annual mean return'] = float(np.exp(stats['annual mean log return']) - 1)
            stats['win ratio'] = float((r > 0).sum() / len(r))
        return stats

    scale = TRADING_DAYS / periodicity
    mean_log = r.mean() * scale
    std = r.std() * np.sqrt(scale)
    lower, upper = DescrStatsW(r.to_numpy()).tconfint_mean(alpha=0.05)
    gains = r[r > 0]
    losses = r[r < 0]

    return {
        'observations': int(len(r)),
        'annual mean return': float(np.exp(mean_log) - 1),
        'annual mean log return': float(mean_log),
        'annual std': float(std),
        'sharpe ratio': float(mean_log / std) if std > 0 else np.nan,
        'p(return)<2.5%': float(np.exp(lower * scale) - 1),
        'p(return)>97.5%': float(np.exp(upper * scale) - 1),
        'win ratio': float((r > 0).sum() / len(r)),
        'ratio risk/benefit': float(-gains.sum() / losses.sum()) if len(losses) else np.nan,
        'total log return': float(r.sum()),
        'max drawdown': max_drawdown(r),
        'skewness': float(scipy_stats.skew(r)),
        'kurtosis': float(scipy_stats.kurtosis(r)),
    }


def compare_to_benchmark(aligned: pd.DataFrame, strategy_name: str = 'ArimaGarch',
                         periodicity: int = 1) -> pd.DataFrame:
    """Summary statistics of the strategy and buy-and-hold over the same dates"""
    summary = pd.DataFrame({
        'Buy&Hold': summary_statistics(aligned['market_return'], periodicity),
        strategy_name: summary_statistics(aligned['strategy_return'], periodicity),
    }).T

    logger.info(
        f"\nPerformance over {len(aligned)} days:"
        f"\n  {strategy_name}: total log return {summary.loc[strategy_name, 'total log return']:.4f}, "
        f"sharpe {summary.loc[strategy_name, 'sharpe ratio']:.2f}"
        f"\n  Buy&Hold: total log return {summary.loc['Buy&Hold', 'total log return']:.4f}, "
        f"sharpe {summary.loc['Buy&Hold', 'sharpe ratio']:.2f}"
    )
    return summary


def evaluate(lagged_signals: pd.Series, returns: pd.Series,
             strategy_name: str = 'ArimaGarch') -> Dict[str, pd.DataFrame]:
    """Join, compound and summarize a lagged signal sequence against realized returns"""
    aligned = align_signals(lagged_signals, returns)
    if aligned.empty:
        raise ValueError("No overlapping dates between signals and returns")

    return {
        'aligned': aligned,
        'curves': cumulative_log_returns(aligned),
        'summary': compare_to_benchmark(aligned, strategy_name),
    }
