"""
Root conftest.py for all tests
Provides common fixtures and configuration
"""
import os
import sys

# Add project root to Python path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

# Settings are read on import, so the test environment must be in place first
os.environ["ENVIRONMENT"] = "test"
os.environ["BOUNCEBAN_API_KEY"] = "test-key"
os.environ["BOUNCEBAN_SOURCE_TAG"] = "test_suite"
os.environ["LOG_FORMAT"] = "text"

import pytest  # noqa: E402

from core.config import get_settings  # noqa: E402
from tests.helpers import FakeClock, FakeSleep  # noqa: E402


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def fake_sleep(fake_clock) -> FakeSleep:
    """Sleep that advances the fake clock instead of waiting"""
    return FakeSleep(fake_clock)


@pytest.fixture
def settings():
    return get_settings()
