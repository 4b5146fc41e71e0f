"""
PostgreSQL Client Wrapper

Thin wrapper over an asyncpg connection pool. Provides:
- Configuration from InfraConfig / environment
- Startup connection with bounded, fixed-delay retry (tenacity)
- dict-shaped query results and affected-row counts for writes

Usage:
    from core.postgres_client import PostgresClient, connect_with_retry

    db = PostgresClient("availability_service")
    await connect_with_retry(db, attempts=5, delay_seconds=5)

    rows = await db.query("SELECT * FROM reservas WHERE deleted_at IS NULL")
    await db.close()
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional, Sequence

import asyncpg
from tenacity import (
    AsyncRetrying,
    RetryError,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_fixed,
)

from core.config import InfraConfig

logger = logging.getLogger(__name__)

# Errors that mean "the store is not reachable right now"
CONNECTION_ERRORS = (
    OSError,
    asyncio.TimeoutError,
    asyncpg.PostgresConnectionError,
    asyncpg.CannotConnectNowError,
    asyncpg.TooManyConnectionsError,
    asyncpg.InterfaceError,
)


class DatabaseUnavailableError(Exception):
    """Backing store could not be reached"""
    pass


class PostgresClient:
    """
    PostgreSQL client backed by an asyncpg pool.

    The pool is created by ``connect()``; queries before that raise
    DatabaseUnavailableError.
    """

    def __init__(
        self,
        service_name: str,
        config: Optional[InfraConfig] = None,
        dsn: Optional[str] = None,
    ):
        """
        Initialize PostgreSQL client.

        Args:
            service_name: Name of the service using this client
            config: Infrastructure configuration (defaults to environment)
            dsn: Explicit connection string, overrides config
        """
        self.service_name = service_name
        self.config = config or InfraConfig.from_env()
        self.dsn = dsn or self.config.postgres_dsn
        self._pool: Optional[asyncpg.Pool] = None

        logger.info(
            f"PostgreSQL client initialized for {service_name}: "
            f"{self.config.postgres_host}:{self.config.postgres_port}/{self.config.postgres_db}"
        )

    @property
    def is_connected(self) -> bool:
        return self._pool is not None

    async def connect(self) -> None:
        """Create the connection pool (no-op when already connected)"""
        if self._pool is not None:
            return

        self._pool = await asyncpg.create_pool(
            dsn=self.dsn,
            min_size=self.config.postgres_min_pool_size,
            max_size=self.config.postgres_max_pool_size,
            command_timeout=self.config.postgres_command_timeout,
        )
        logger.info(f"[{self.service_name}] PostgreSQL pool ready")

    async def close(self) -> None:
        """Close the pool"""
        if self._pool is None:
            return

        await self._pool.close()
        self._pool = None
        logger.info(f"[{self.service_name}] PostgreSQL pool closed")

    def _require_pool(self) -> asyncpg.Pool:
        if self._pool is None:
            raise DatabaseUnavailableError(f"{self.service_name}: database not connected")
        return self._pool

    async def health_check(self) -> Dict[str, Any]:
        """Check database health"""
        try:
            pool = self._require_pool()
            version = await pool.fetchval("SELECT version()")
            return {"healthy": True, "version": version}
        except (DatabaseUnavailableError, *CONNECTION_ERRORS) as e:
            logger.warning(f"[{self.service_name}] health check failed: {e}")
            return {"healthy": False, "error": str(e)}

    async def query(self, sql: str, params: Optional[Sequence[Any]] = None) -> List[Dict[str, Any]]:
        """Execute query and return result rows as dicts"""
        pool = self._require_pool()
        rows = await pool.fetch(sql, *(params or []))
        return [dict(row) for row in rows]

    async def query_row(self, sql: str, params: Optional[Sequence[Any]] = None) -> Optional[Dict[str, Any]]:
        """Execute query and return a single row"""
        pool = self._require_pool()
        row = await pool.fetchrow(sql, *(params or []))
        return dict(row) if row is not None else None

    async def execute(self, sql: str, params: Optional[Sequence[Any]] = None) -> int:
        """Execute a write statement and return the number of affected rows"""
        pool = self._require_pool()
        status = await pool.execute(sql, *(params or []))
        return parse_affected_rows(status)


def parse_affected_rows(status: str) -> int:
    """Parse asyncpg's command status tag, e.g. ``UPDATE 3`` -> 3"""
    if not status:
        return 0
    last = status.rsplit(" ", 1)[-1]
    return int(last) if last.isdigit() else 0


async def connect_with_retry(
    client: PostgresClient,
    attempts: int = 5,
    delay_seconds: float = 5.0,
) -> None:
    """
    Connect ``client`` retrying a fixed number of times with a fixed delay.

    Raises:
        DatabaseUnavailableError: all attempts failed
    """
    retrying = AsyncRetrying(
        stop=stop_after_attempt(attempts),
        wait=wait_fixed(delay_seconds),
        retry=retry_if_exception_type(CONNECTION_ERRORS),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=False,
    )

    try:
        async for attempt in retrying:
            with attempt:
                n = attempt.retry_state.attempt_number
                logger.info(f"[{client.service_name}] connecting to PostgreSQL (attempt {n}/{attempts})")
                await client.connect()
    except RetryError as e:
        cause = e.last_attempt.exception()
        logger.error(f"[{client.service_name}] PostgreSQL unreachable after {attempts} attempts: {cause}")
        raise DatabaseUnavailableError(
            f"PostgreSQL unreachable after {attempts} attempts"
        ) from cause
