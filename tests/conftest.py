"""
Configuration for pytest to set up the import path and shared sample data.
"""

import sys
from pathlib import Path
import pytest


# Add the parent directory to Python path so we can import streams, option, etc.
parent_dir = Path(__file__).parent.parent
sys.path.insert(0, str(parent_dir))

from models import ParallelSettings


@pytest.fixture
def numbers():
    return [1, 2, 3, 4, 5]


@pytest.fixture
def words():
    return ["One", "Two", "Three", "Four", "Two"]


@pytest.fixture
def currency_pairs():
    return ["EURO/INR", "USD/AUD", "USD/GBP", "USD/EURO"]


@pytest.fixture
def thread_settings():
    """Small thread pool with more partitions than workers."""
    return ParallelSettings(max_workers=2, partitions=4)
