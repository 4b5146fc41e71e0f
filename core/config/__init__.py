#!/usr/bin/env python3
"""Modular configuration system for the availability service

Configuration hierarchy:
- infra_config: Backing store (PostgreSQL)
- logging_config: Logging configuration
- availability_config: Reservation expiry, cache TTLs, pagination, startup retry
"""
import os
from dotenv import load_dotenv
from .logging_config import LoggingConfig
from .infra_config import InfraConfig
from .availability_config import (
    AvailabilityConfig,
    CacheConfig,
    ReservationExpiryConfig,
)

# Load environment file based on ENV
env = os.getenv("ENV") or os.getenv("ENVIRONMENT", "development")
env_files = {
    "development": "deployment/environments/dev.env",
    "dev": "deployment/environments/dev.env",
    "testing": "deployment/environments/test.env",
    "test": "deployment/environments/test.env",
    "staging": "deployment/environments/staging.env",
    "production": "deployment/environments/production.env",
}
env_file = env_files.get(env, "deployment/environments/dev.env")
load_dotenv(env_file, override=False)

# Create global settings instance
settings = AvailabilityConfig.from_env()

def get_settings() -> AvailabilityConfig:
    """Get global settings instance"""
    return settings

def reload_settings() -> AvailabilityConfig:
    """Reload settings from environment"""
    global settings
    settings = AvailabilityConfig.from_env()
    return settings

__all__ = [
    # Main config
    'AvailabilityConfig',
    'get_settings',
    'reload_settings',
    'settings',
    # Sub-configs
    'LoggingConfig',
    'InfraConfig',
    'CacheConfig',
    'ReservationExpiryConfig',
]
