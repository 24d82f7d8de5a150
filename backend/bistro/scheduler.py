from __future__ import annotations

import asyncio
import logging
import time
from contextlib import suppress
from typing import Any, Awaitable, Callable, Optional

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from .config import Settings
from .infrastructure.repositories import SqlAlchemyOrderRepository
from .domain.repositories import Notifier
from .usecases.lifecycle import SweepReport, run_lifecycle_sweeps
from .utils.request_id import generate_request_id, set_request_id
from .utils.time import now_in, restaurant_tz

logger = logging.getLogger(__name__)

Tick = Callable[[], Awaitable[Any]]


class LifecycleScheduler:
    """
    Runs `tick` forever on one asyncio task: first after `startup_delay`, then every
    `period` seconds on a fixed rate measured from loop start. Ticks never overlap;
    a tick that overruns its slot makes the next one start right away.
    """

    def __init__(
        self,
        tick: Tick,
        *,
        startup_delay: float = 5.0,
        period: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        if period <= 0:
            raise ValueError("period must be positive")
        self._tick = tick
        self._startup_delay = startup_delay
        self._period = period
        self._clock = clock
        self._sleep = sleep
        self._task: Optional[asyncio.Task[None]] = None
        self.ticks = 0

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> asyncio.Task[None]:
        """Begin the loop on the running event loop. Calling it again is a no-op."""
        if self._task is None or self._task.done():
            self._task = asyncio.get_running_loop().create_task(self.run(), name="lifecycle-scheduler")
            logger.info(
                "lifecycle scheduler started (delay=%ss, period=%ss)", self._startup_delay, self._period
            )
        return self._task

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        with suppress(asyncio.CancelledError):
            await self._task
        self._task = None

    async def run(self) -> None:
        next_run = self._clock() + self._startup_delay
        while True:
            delay = next_run - self._clock()
            if delay > 0:
                await self._sleep(delay)
            set_request_id(generate_request_id("tick-"))
            try:
                await self._tick()
            except Exception:
                logger.exception("lifecycle tick failed")
            finally:
                set_request_id(None)
            self.ticks += 1
            # An overrun starts the next tick at once; periods it swallowed are skipped.
            next_run = max(next_run + self._period, self._clock())


def build_lifecycle_tick(
    session_factory: async_sessionmaker[AsyncSession],
    notifier: Notifier,
    settings: Settings,
) -> Callable[[], Awaitable[SweepReport]]:
    tz = restaurant_tz(settings.restaurant_tz)

    async def tick() -> SweepReport:
        logger.debug("running automated time checks")
        async with session_factory() as session:
            repo = SqlAlchemyOrderRepository(session, tz=tz, occupancy_minutes=settings.occupancy_minutes)
            return await run_lifecycle_sweeps(
                repo,
                notifier,
                now=now_in(tz),
                grace_minutes=settings.late_grace_minutes,
                reminder_lead_hours=settings.reminder_lead_hours,
                invoice_after_hours=settings.invoice_after_hours,
            )

    return tick
