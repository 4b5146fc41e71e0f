"""
Reservation Expiration Sweeper

Releases tentative holds (Reserved / Bonus) that were never converted into a
sale within the holding period, so the inventory goes back to the available
pool without anyone releasing it explicitly. Sold and Blocked reservations
never expire.

Runs once at startup and then on a fixed interval.
"""

import asyncio
import logging
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Callable, Optional

from core.memory_cache import TTLCache
from core.scheduler import PeriodicTask

from .models import HOLD_STATUSES, SweeperStatusResponse
from .protocols import (
    AvailabilityRepositoryProtocol,
    SweepFailure,
)

logger = logging.getLogger(__name__)

AVAILABILITY_CACHE_PREFIX = "availability:"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SweeperState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"


class ExpirationSweeper:
    """
    Soft-expires stale holds in one bulk update per run.

    Runs are serialized; a slow run delays the next one but never
    overlaps it.
    """

    def __init__(
        self,
        repository: AvailabilityRepositoryProtocol,
        holding_days: int = 20,
        interval_seconds: float = 6 * 60 * 60,
        cache: Optional[TTLCache] = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        if holding_days < 0:
            raise ValueError(f"holding_days must not be negative, got {holding_days}")

        self.repository = repository
        self.holding_days = holding_days
        self.interval_seconds = interval_seconds
        self.cache = cache
        self.clock = clock

        self.state = SweeperState.IDLE
        self.last_run_at: Optional[datetime] = None
        self.last_expired_count: Optional[int] = None
        self.last_error: Optional[str] = None

        self._lock = asyncio.Lock()
        self._task: Optional[PeriodicTask] = None

    async def sweep(self, now: Optional[datetime] = None, holding_days: Optional[int] = None) -> int:
        """
        Expire every active hold reserved before ``now - holding_days``.

        Returns:
            Number of reservations expired

        Raises:
            SweepFailure: the bulk update failed
        """
        now = now or self.clock()
        days = self.holding_days if holding_days is None else holding_days
        if days < 0:
            raise ValueError(f"holding_days must not be negative, got {days}")
        cutoff = now - timedelta(days=days)

        async with self._lock:
            self.state = SweeperState.RUNNING
            try:
                expired = await self.repository.expire_reservations(
                    statuses=HOLD_STATUSES,
                    reserved_before=cutoff,
                    expired_at=now,
                )
            except Exception as e:
                self.last_error = str(e)
                raise SweepFailure(f"Reservation sweep failed: {e}") from e
            finally:
                self.state = SweeperState.IDLE
                self.last_run_at = now

            self.last_expired_count = expired
            self.last_error = None

        if expired > 0:
            logger.info(
                f"[Sweep] {expired} reservations released after {days} days without sale"
            )
            if self.cache is not None:
                self.cache.delete_prefix(AVAILABILITY_CACHE_PREFIX)
        else:
            logger.debug("[Sweep] no expired reservations")

        return expired

    async def run_scheduled(self) -> None:
        """Scheduler entry point: failures are logged, the next tick retries"""
        try:
            await self.sweep()
        except SweepFailure as e:
            logger.error(f"[Sweep] {e}")

    # ========================================
    # Lifecycle
    # ========================================

    @property
    def is_scheduled(self) -> bool:
        return self._task is not None and self._task.is_running

    def start(self) -> None:
        """Arm the periodic sweep; the first tick fires after one interval"""
        if self._task is None:
            self._task = PeriodicTask(
                "reservation_sweep",
                self.interval_seconds,
                self.run_scheduled,
                run_immediately=False,
            )
        self._task.start()
        logger.info(
            f"[Sweep] scheduled every {self.interval_seconds / 3600:g} hours "
            f"(holding period {self.holding_days} days)"
        )

    async def stop(self) -> None:
        if self._task is not None:
            await self._task.stop()
            self._task = None

    def status(self) -> SweeperStatusResponse:
        return SweeperStatusResponse(
            state=self.state.value,
            holding_days=self.holding_days,
            interval_seconds=self.interval_seconds,
            scheduled=self.is_scheduled,
            last_run_at=self.last_run_at,
            last_expired_count=self.last_expired_count,
            last_error=self.last_error,
        )
