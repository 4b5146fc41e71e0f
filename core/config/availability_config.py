#!/usr/bin/env python3
"""Availability service main configuration

Combines the sub-configs with the reservation expiration, cache and
pagination settings of the availability service.
"""
import os
from dataclasses import dataclass, field

from .infra_config import InfraConfig
from .logging_config import LoggingConfig


def _bool(val: str) -> bool:
    return val.lower() == "true"

def _int(val: str, default: int) -> int:
    try:
        return int(val) if val else default
    except ValueError:
        return default

def _float(val: str, default: float) -> float:
    try:
        return float(val) if val else default
    except ValueError:
        return default


# ===========================================
# Reservation / Cache Settings
# ===========================================

@dataclass
class ReservationExpiryConfig:
    """Automatic release of tentative holds"""
    holding_days: int = 20
    sweep_interval_seconds: float = 6 * 60 * 60

    @classmethod
    def from_env(cls) -> 'ReservationExpiryConfig':
        return cls(
            holding_days=_int(os.getenv("RESERVATION_HOLDING_DAYS", "20"), 20),
            sweep_interval_seconds=_float(
                os.getenv("RESERVATION_SWEEP_INTERVAL_SECONDS", "21600"), 21600.0
            ),
        )


@dataclass
class CacheConfig:
    """In-process cache TTLs (seconds)"""
    availability_ttl_seconds: float = 5 * 60
    filter_options_ttl_seconds: float = 30 * 60
    cleanup_interval_seconds: float = 5 * 60

    @classmethod
    def from_env(cls) -> 'CacheConfig':
        return cls(
            availability_ttl_seconds=_float(os.getenv("AVAILABILITY_CACHE_TTL_SECONDS", "300"), 300.0),
            filter_options_ttl_seconds=_float(os.getenv("FILTER_OPTIONS_CACHE_TTL_SECONDS", "1800"), 1800.0),
            cleanup_interval_seconds=_float(os.getenv("CACHE_CLEANUP_INTERVAL_SECONDS", "300"), 300.0),
        )


# ===========================================
# Main Availability Configuration
# ===========================================

@dataclass
class AvailabilityConfig:
    """Main availability service configuration with all sub-configs"""

    # Environment
    environment: str = "development"
    debug: bool = False

    # Service settings
    service_host: str = "0.0.0.0"
    service_port: int = 8240

    # Startup connection retry
    db_connect_attempts: int = 5
    db_connect_delay_seconds: float = 5.0

    # Pagination
    default_page_size: int = 50
    max_page_size: int = 500

    # Sub-configurations
    expiry: ReservationExpiryConfig = field(default_factory=ReservationExpiryConfig)
    cache: CacheConfig = field(default_factory=CacheConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    infrastructure: InfraConfig = field(default_factory=InfraConfig)

    @classmethod
    def from_env(cls) -> 'AvailabilityConfig':
        """Load complete configuration from environment"""
        env = os.getenv("ENV") or os.getenv("ENVIRONMENT", "development")
        return cls(
            # Environment
            environment=env,
            debug=_bool(os.getenv("DEBUG", "true" if env == "development" else "false")),

            # Service settings
            service_host=os.getenv("HOST", "0.0.0.0"),
            service_port=_int(os.getenv("PORT", "8240"), 8240),

            # Startup retry
            db_connect_attempts=_int(os.getenv("DB_CONNECT_ATTEMPTS", "5"), 5),
            db_connect_delay_seconds=_float(os.getenv("DB_CONNECT_DELAY_SECONDS", "5"), 5.0),

            # Pagination
            default_page_size=_int(os.getenv("AVAILABILITY_DEFAULT_PAGE_SIZE", "50"), 50),
            max_page_size=_int(os.getenv("AVAILABILITY_MAX_PAGE_SIZE", "500"), 500),

            # Load sub-configs
            expiry=ReservationExpiryConfig.from_env(),
            cache=CacheConfig.from_env(),
            logging=LoggingConfig.from_env(),
            infrastructure=InfraConfig.from_env(),
        )
