"""
Shared pytest configuration: makes the top-level modules importable
from the test tree and registers the custom markers.
"""

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent))


def pytest_configure(config):
    config.addinivalue_line("markers", "slow: long running tests, skipped by run_tests.py --fast")
