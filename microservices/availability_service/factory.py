"""
Availability Service Factory

Factory functions for creating service instances with real dependencies.
This is the ONLY place that imports I/O-dependent modules.

Usage:
    from .factory import create_availability_service
    service = create_availability_service(config, db)
"""
from typing import Optional

from core.config import AvailabilityConfig
from core.memory_cache import TTLCache
from core.postgres_client import PostgresClient

from .availability_service import AvailabilityService
from .expiration_sweeper import ExpirationSweeper


def create_availability_service(
    config: Optional[AvailabilityConfig] = None,
    db: Optional[PostgresClient] = None,
    cache: Optional[TTLCache] = None,
) -> AvailabilityService:
    """
    Create AvailabilityService with real dependencies.

    This function imports the real repository (which has I/O dependencies).
    Use this in production, NOT in tests.

    Args:
        config: Service configuration
        db: PostgreSQL client (connected by the caller)
        cache: Process-wide TTL cache

    Returns:
        AvailabilityService wired to the repository, cache and sweeper
    """
    # Import real repository here (not at module level)
    from .availability_repository import AvailabilityRepository

    config = config or AvailabilityConfig.from_env()
    db = db or PostgresClient("availability_service", config=config.infrastructure)
    cache = cache if cache is not None else TTLCache(config.cache.availability_ttl_seconds)

    repository = AvailabilityRepository(db)
    sweeper = ExpirationSweeper(
        repository,
        holding_days=config.expiry.holding_days,
        interval_seconds=config.expiry.sweep_interval_seconds,
        cache=cache,
    )

    return AvailabilityService(
        repository=repository,
        cache=cache,
        config=config,
        sweeper=sweeper,
    )
