"""
Unit Tests for Availability Configuration
"""

import pytest

from core.config import AvailabilityConfig, CacheConfig, InfraConfig, ReservationExpiryConfig

pytestmark = [pytest.mark.unit]


class TestDefaults:
    """Tests for default values"""

    def test_expiry_defaults(self):
        config = ReservationExpiryConfig()

        assert config.holding_days == 20
        assert config.sweep_interval_seconds == 21600

    def test_cache_defaults(self):
        config = CacheConfig()

        assert config.availability_ttl_seconds == 300
        assert config.filter_options_ttl_seconds == 1800
        assert config.cleanup_interval_seconds == 300

    def test_startup_retry_defaults(self):
        config = AvailabilityConfig()

        assert config.db_connect_attempts == 5
        assert config.db_connect_delay_seconds == 5.0


class TestFromEnv:
    """Tests for environment loading"""

    def test_overrides(self, monkeypatch):
        monkeypatch.setenv("RESERVATION_HOLDING_DAYS", "30")
        monkeypatch.setenv("RESERVATION_SWEEP_INTERVAL_SECONDS", "3600")
        monkeypatch.setenv("AVAILABILITY_CACHE_TTL_SECONDS", "60")
        monkeypatch.setenv("DB_CONNECT_ATTEMPTS", "3")
        monkeypatch.setenv("PORT", "9000")

        config = AvailabilityConfig.from_env()

        assert config.expiry.holding_days == 30
        assert config.expiry.sweep_interval_seconds == 3600
        assert config.cache.availability_ttl_seconds == 60
        assert config.db_connect_attempts == 3
        assert config.service_port == 9000

    def test_invalid_numbers_fall_back_to_defaults(self, monkeypatch):
        monkeypatch.setenv("RESERVATION_HOLDING_DAYS", "twenty")
        monkeypatch.setenv("DB_CONNECT_DELAY_SECONDS", "soon")

        config = AvailabilityConfig.from_env()

        assert config.expiry.holding_days == 20
        assert config.db_connect_delay_seconds == 5.0

    def test_postgres_dsn(self, monkeypatch):
        monkeypatch.setenv("POSTGRES_HOST", "db.internal")
        monkeypatch.setenv("POSTGRES_DB", "inventario")

        config = InfraConfig.from_env()

        assert config.postgres_dsn.endswith("@db.internal:5432/inventario")
