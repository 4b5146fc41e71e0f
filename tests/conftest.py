"""
Root conftest.py - Global fixtures and configuration for all test layers.

Test Layers:
    - component/  : Component tests (mocked repository, FastAPI TestClient)
    - unit/       : Unit tests (pure functions, no I/O)
"""
import os
import sys

import pytest

# Add project root to path
PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, PROJECT_ROOT)

# Set testing environment BEFORE any service imports
os.environ.setdefault("ENV", "testing")
os.environ.setdefault("ENVIRONMENT", "testing")

# Import shared fixtures from tests/fixtures
from tests.fixtures import (
    NOW,
    make_item,
    make_items,
    make_reservation,
    make_window,
    make_billing_period,
)


# =============================================================================
# Test Configuration
# =============================================================================

def pytest_configure(config):
    """Register layer markers"""
    config.addinivalue_line("markers", "unit: pure logic tests")
    config.addinivalue_line("markers", "component: service tests with mocked dependencies")


class FakeClock:
    """Manually advanced monotonic clock"""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def now():
    return NOW
