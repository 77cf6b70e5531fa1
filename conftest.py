"""
Root conftest.py for pytest configuration

Applies markers automatically based on test location.
"""
from pathlib import Path

import pytest

LOCATION_MARKERS = {
    "unit": "unit",
    "integration": "integration",
}


def pytest_collection_modifyitems(config, items):
    """Mark tests under tests/unit and tests/integration accordingly"""
    for item in items:
        parts = Path(str(item.fspath)).parts
        for directory, marker in LOCATION_MARKERS.items():
            if directory in parts:
                item.add_marker(getattr(pytest.mark, marker))
