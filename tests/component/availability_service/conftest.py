"""
Component Test Fixtures for Availability Service

Wires AvailabilityService and ExpirationSweeper to the in-memory repository,
a fresh cache and fixed clocks.
"""

from datetime import date

import pytest

from core.config import AvailabilityConfig
from core.memory_cache import TTLCache
from microservices.availability_service.availability_service import AvailabilityService
from microservices.availability_service.expiration_sweeper import ExpirationSweeper
from tests.component.availability_service.mocks import MockAvailabilityRepository
from tests.fixtures import NOW

TODAY = date(2024, 6, 1)


@pytest.fixture
def mock_repo():
    return MockAvailabilityRepository()


@pytest.fixture
def cache(fake_clock):
    """Fresh cache per test"""
    return TTLCache(default_ttl_seconds=300, clock=fake_clock)


@pytest.fixture
def config():
    return AvailabilityConfig()


@pytest.fixture
def sweeper(mock_repo, cache):
    return ExpirationSweeper(
        mock_repo,
        holding_days=20,
        interval_seconds=6 * 60 * 60,
        cache=cache,
        clock=lambda: NOW,
    )


@pytest.fixture
def service(mock_repo, cache, config, sweeper):
    return AvailabilityService(
        repository=mock_repo,
        cache=cache,
        config=config,
        sweeper=sweeper,
        today=lambda: TODAY,
    )


@pytest.fixture
def client(service):
    """FastAPI test client with the service injected (lifespan not run)"""
    from fastapi.testclient import TestClient
    from microservices.availability_service.main import app, get_availability_service

    app.dependency_overrides[get_availability_service] = lambda: service
    yield TestClient(app, raise_server_exceptions=False)
    app.dependency_overrides.clear()
