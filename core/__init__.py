#!/usr/bin/env python3
"""
Core Module for Microservices Architecture

Shared infrastructure for the availability microservice.

COMPONENTS:
    - config/: Environment-driven dataclass configuration
    - logger.py: Service logger setup
    - postgres_client.py: asyncpg pool wrapper with startup retry
    - memory_cache.py: In-process TTL cache
    - scheduler.py: Periodic async tasks

USAGE:
    from core.config import get_settings
    from core.postgres_client import PostgresClient, connect_with_retry

    settings = get_settings()
    db = PostgresClient("availability_service", config=settings.infrastructure)
"""

__version__ = "2.0.0"
