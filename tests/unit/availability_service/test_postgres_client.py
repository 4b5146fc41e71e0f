"""
Unit Tests for the PostgreSQL client wrapper

Covers command-tag parsing and the bounded startup retry. No real database:
``connect`` is replaced per test.
"""

import asyncio

import pytest

from core.config import InfraConfig
from core.postgres_client import (
    DatabaseUnavailableError,
    PostgresClient,
    connect_with_retry,
    parse_affected_rows,
)

pytestmark = [pytest.mark.unit]


@pytest.fixture
def client():
    return PostgresClient("availability_service", config=InfraConfig())


class TestParseAffectedRows:
    """Tests for parse_affected_rows"""

    @pytest.mark.parametrize("status,expected", [
        ("UPDATE 3", 3),
        ("UPDATE 0", 0),
        ("INSERT 0 1", 1),
        ("", 0),
        ("SELECT", 0),
    ])
    def test_parse(self, status, expected):
        assert parse_affected_rows(status) == expected


class TestClientState:
    """Tests for the unconnected client"""

    def test_not_connected_until_connect(self, client):
        assert not client.is_connected

    @pytest.mark.asyncio
    async def test_query_before_connect_raises(self, client):
        with pytest.raises(DatabaseUnavailableError):
            await client.query("SELECT 1")

    @pytest.mark.asyncio
    async def test_health_check_reports_unhealthy(self, client):
        result = await client.health_check()

        assert result["healthy"] is False


class TestConnectWithRetry:
    """Tests for connect_with_retry"""

    @pytest.mark.asyncio
    async def test_succeeds_after_transient_failures(self, client, monkeypatch):
        """Two refused connections, then success on the third attempt"""
        attempts = []

        async def flaky_connect():
            attempts.append(1)
            if len(attempts) < 3:
                raise ConnectionRefusedError("connection refused")

        monkeypatch.setattr(client, "connect", flaky_connect)

        await connect_with_retry(client, attempts=5, delay_seconds=0)

        assert len(attempts) == 3

    @pytest.mark.asyncio
    async def test_exhaustion_raises_unavailable(self, client, monkeypatch):
        attempts = []

        async def refused():
            attempts.append(1)
            raise ConnectionRefusedError("connection refused")

        monkeypatch.setattr(client, "connect", refused)

        with pytest.raises(DatabaseUnavailableError) as exc_info:
            await connect_with_retry(client, attempts=5, delay_seconds=0)

        assert len(attempts) == 5
        assert isinstance(exc_info.value.__cause__, ConnectionRefusedError)

    @pytest.mark.asyncio
    async def test_non_connection_errors_are_not_retried(self, client, monkeypatch):
        attempts = []

        async def misconfigured():
            attempts.append(1)
            raise ValueError("bad dsn")

        monkeypatch.setattr(client, "connect", misconfigured)

        with pytest.raises(ValueError, match="bad dsn"):
            await connect_with_retry(client, attempts=5, delay_seconds=0)

        assert len(attempts) == 1

    @pytest.mark.asyncio
    async def test_connect_timeout_is_retried(self, client, monkeypatch):
        """asyncpg connect timeouts surface as asyncio.TimeoutError"""
        attempts = []

        async def slow_connect():
            attempts.append(1)
            if len(attempts) < 2:
                raise asyncio.TimeoutError()

        monkeypatch.setattr(client, "connect", slow_connect)

        await connect_with_retry(client, attempts=3, delay_seconds=0)

        assert len(attempts) == 2
