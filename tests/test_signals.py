import sys
import os

# Add project root to Python path
project_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if project_root not in sys.path:
    sys.path.append(project_root)

import pytest
import pandas as pd
from arma_garch.signals import lag_signals, read_signal_csv, to_signal, write_signal_csv


@pytest.fixture
def raw_signals():
    dates = pd.bdate_range('2022-03-01', periods=6)
    return pd.Series([1, -1, -1, 1, -1, 1], index=dates, name='signal')


@pytest.mark.parametrize("forecast, expected", [
    (0.0021, 1),
    (0.0, 1),
    (-0.0001, -1),
    (-3.5, -1),
    (None, 1),
])
def test_to_signal(forecast, expected):
    assert to_signal(forecast) == expected


def test_to_signal_custom_fallback():
    assert to_signal(None, fallback=-1) == -1
    assert to_signal(0.5, fallback=-1) == 1


def test_lag_signals(raw_signals):
    lagged = lag_signals(raw_signals)

    assert lagged.name == 'lagged_signal'
    assert lagged.index.equals(raw_signals.index)
    assert lagged.iloc[0] == 1
    for i in range(1, len(raw_signals)):
        assert lagged.iloc[i] == raw_signals.iloc[i - 1]
    assert lagged.dtype == 'int64'


def test_lag_signals_fill_value(raw_signals):
    lagged = lag_signals(raw_signals, fill_value=-1)
    assert lagged.iloc[0] == -1
    assert lagged.iloc[1] == raw_signals.iloc[0]


def test_lag_signals_requires_sorted_dates(raw_signals):
    with pytest.raises(ValueError):
        lag_signals(raw_signals.iloc[::-1])


def test_lag_signals_empty():
    empty = pd.Series([], index=pd.DatetimeIndex([]), dtype='int64', name='signal')
    assert lag_signals(empty).empty


def test_signal_csv_format(raw_signals, tmp_path):
    path = write_signal_csv(raw_signals, tmp_path / "out" / "signals.csv")

    lines = path.read_text().splitlines()
    assert lines[0] == "date,signal"
    assert lines[1] == "2022-03-01,1"
    assert lines[2] == "2022-03-02,-1"
    assert len(lines) == len(raw_signals) + 1

    loaded = read_signal_csv(path)
    assert list(loaded.values) == list(raw_signals.values)
    assert list(loaded.index) == list(raw_signals.index)


def test_lagged_signal_csv(raw_signals, tmp_path):
    lagged = lag_signals(raw_signals)
    path = write_signal_csv(lagged, tmp_path / "lagged.csv", column='lagged_signal')

    assert path.read_text().splitlines()[0] == "date,lagged_signal"
    with pytest.raises(ValueError):
        read_signal_csv(path, column='signal')


if __name__ == '__main__':
    pytest.main([__file__])
