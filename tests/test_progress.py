import sys
import os

# Add project root to Python path
project_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if project_root not in sys.path:
    sys.path.append(project_root)

import pytest
import logging
from utils.progress import ProgressMonitor


def test_progress_logs_every_n_steps(caplog):
    logger = logging.getLogger('test.progress')
    with caplog.at_level(logging.INFO, logger='test.progress'):
        monitor = ProgressMonitor(total=10, desc="Windows", logger=logger,
                                  log_every=4, disable=True)
        for _ in range(10):
            monitor.update(1)
        monitor.close()

    progress_lines = [r.message for r in caplog.records if r.message.startswith("Progress:")]
    assert len(progress_lines) == 2
    assert progress_lines[0].startswith("Progress: 4/10")
    assert monitor.current == 10
    assert "Completed Windows" in caplog.records[-1].message


def test_progress_status_message(caplog):
    logger = logging.getLogger('test.progress')
    with caplog.at_level(logging.INFO, logger='test.progress'):
        monitor = ProgressMonitor(total=3, desc="Windows", logger=logger, disable=True)
        monitor.update(1, status="window 2020-01-01 fell back")
        monitor.close()

    assert any("window 2020-01-01 fell back" in r.message for r in caplog.records)


if __name__ == '__main__':
    pytest.main([__file__])
