"""
Periodic Task Scheduler

Runs an async callback on a fixed interval inside the running event loop.

Usage:
    from core.scheduler import PeriodicTask

    task = PeriodicTask("reservation_sweep", 6 * 3600, sweeper.run_scheduled)
    task.start()
    ...
    await task.stop()
"""

import asyncio
import logging
from typing import Awaitable, Callable, Optional

logger = logging.getLogger(__name__)


class PeriodicTask:
    """
    Fires ``callback`` every ``interval_seconds``.

    The first run happens immediately on ``start()`` when ``run_immediately``
    is set, otherwise after one full interval. Exceptions raised by the
    callback are logged and the schedule keeps going.
    """

    def __init__(
        self,
        name: str,
        interval_seconds: float,
        callback: Callable[[], Awaitable[object]],
        run_immediately: bool = True,
    ):
        if interval_seconds <= 0:
            raise ValueError(f"interval_seconds must be positive, got {interval_seconds}")

        self.name = name
        self.interval_seconds = interval_seconds
        self.callback = callback
        self.run_immediately = run_immediately
        self.run_count = 0
        self._task: Optional[asyncio.Task] = None

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Arm the timer (must be called from a running event loop)"""
        if self.is_running:
            logger.debug(f"[{self.name}] already running")
            return

        self._task = asyncio.get_running_loop().create_task(self._run(), name=self.name)
        logger.info(f"[{self.name}] scheduled every {self.interval_seconds:g}s")

    async def stop(self) -> None:
        """Cancel the timer and wait for the loop to exit"""
        if self._task is None:
            return

        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        finally:
            self._task = None
            logger.info(f"[{self.name}] stopped")

    async def _run(self) -> None:
        if not self.run_immediately:
            await asyncio.sleep(self.interval_seconds)

        while True:
            try:
                await self.callback()
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.error(f"[{self.name}] run failed: {e}", exc_info=True)
            finally:
                self.run_count += 1

            await asyncio.sleep(self.interval_seconds)
