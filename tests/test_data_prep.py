import sys
import os

# Add project root to Python path
project_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if project_root not in sys.path:
    sys.path.append(project_root)

import pytest
import numpy as np
import pandas as pd
from arma_garch.data_prep import ReturnPreparer
from data_manager.data_loader import DataLoader
from data_manager.data_validator import DataValidator


@pytest.fixture
def prices():
    dates = pd.bdate_range('2019-01-01', periods=6)
    return pd.Series([100.0, 101.0, 99.5, 99.5, 102.0, 103.1], index=dates, name='price')


def test_log_returns(prices):
    returns = ReturnPreparer().prepare_returns(prices)

    assert len(returns) == len(prices) - 1
    assert returns.index[0] == prices.index[1]
    assert returns.iloc[0] == pytest.approx(np.log(101.0 / 100.0))
    assert returns.iloc[2] == 0.0
    assert returns.name == 'returns'


def test_returns_sorted_chronologically(prices):
    returns = ReturnPreparer().prepare_returns(prices.iloc[::-1])
    assert returns.index.is_monotonic_increasing
    assert returns.iloc[0] == pytest.approx(np.log(101.0 / 100.0))


def test_duplicate_dates_rejected(prices):
    duplicated = pd.concat([prices, prices.iloc[[2]]])
    with pytest.raises(ValueError, match="duplicate"):
        ReturnPreparer().prepare_returns(duplicated)


def test_non_positive_prices_rejected(prices):
    bad = prices.copy()
    bad.iloc[3] = 0.0
    with pytest.raises(ValueError):
        ReturnPreparer().prepare_returns(bad)


def test_verify_data_quality():
    preparer = ReturnPreparer()
    dates = pd.bdate_range('2019-01-01', periods=30)
    returns = pd.Series(np.random.RandomState(0).normal(0, 0.01, 30), index=dates)

    assert preparer.verify_data_quality(returns, window_length=20)
    assert not preparer.verify_data_quality(returns, window_length=30)

    flat = returns.copy()
    flat.iloc[2:25] = 0.0
    assert not preparer.verify_data_quality(flat, window_length=20)


def test_validator_flags_problems(prices):
    validator = DataValidator()
    assert validator.validate_prices(prices) == (True, [])

    bad = prices.copy()
    bad.iloc[1] = -5.0
    is_valid, issues = validator.validate_prices(bad)
    assert not is_valid
    assert any("minimum" in issue for issue in issues)

    is_valid, issues = validator.validate_prices(prices.iloc[::-1])
    assert not is_valid
    assert any("sorted" in issue for issue in issues)


def test_validator_tolerates_sparse_missing_values():
    dates = pd.bdate_range('2019-01-01', periods=200)
    prices = pd.Series(np.linspace(100, 120, 200), index=dates)
    prices.iloc[50] = np.nan

    is_valid, issues = DataValidator(max_missing_fraction=0.01).validate_prices(prices)
    assert is_valid
    assert issues == ["Price series has 1 missing values"]


def test_loader_reads_csv(prices, tmp_path):
    csv_file = tmp_path / "prices.csv"
    pd.DataFrame({'Date': prices.index.strftime('%Y-%m-%d'),
                  'Close': prices.values}).to_csv(csv_file, index=False)

    loaded = DataLoader().load_csv(csv_file)
    assert list(loaded.values) == list(prices.values)
    assert list(loaded.index) == list(prices.index)


def test_loader_missing_columns(tmp_path):
    csv_file = tmp_path / "bad.csv"
    pd.DataFrame({'when': ['2020-01-01'], 'px': [1.0]}).to_csv(csv_file, index=False)
    with pytest.raises(ValueError, match="Missing required columns"):
        DataLoader().load_csv(csv_file)


def test_loader_save_round_trip(prices, tmp_path):
    loader = DataLoader()
    path = loader.save_csv(prices, tmp_path / "cache" / "prices.csv")
    assert path.read_text().splitlines()[0] == "date,close"
    assert len(loader.load_csv(path)) == len(prices)


if __name__ == '__main__':
    pytest.main([__file__])
