"""Periodic background sweeps over the subscriptions table."""

import asyncio
import contextlib
import time
from typing import Any, Awaitable, Callable, List, Optional

import structlog
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.config import settings
from app.services.subscription_service import (
    deactivate_expired_subscriptions,
    subscription_stats,
)

logger = structlog.get_logger()


class PeriodicSweep:
    """Run an async job every ``interval_seconds`` until stopped.

    ``start`` and ``stop`` are idempotent. A failing run is logged and the loop
    carries on. Unaligned, runs start one interval apart from ``start``. With
    ``align=True`` every run starts on a multiple of the interval counted from
    the Unix epoch, so an hourly sweep fires on the hour (UTC) and does not
    drift by the time each run takes.
    """

    def __init__(
        self,
        name: str,
        interval_seconds: float,
        job: Callable[[], Awaitable[Any]],
        align: bool = False,
    ):
        self.name = name
        self.interval_seconds = interval_seconds
        self.align = align
        self._job = job
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self._loop(), name=f"sweep:{self.name}")
        logger.info(
            "Sweep started",
            sweep=self.name,
            interval=self.interval_seconds,
            first_run_in=round(self.next_delay(), 3),
        )

    async def stop(self) -> None:
        if self._task is None:
            return
        task, self._task = self._task, None
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task
        logger.info("Sweep stopped", sweep=self.name)

    async def run_once(self) -> Any:
        return await self._job()

    def next_delay(self, now: Optional[float] = None) -> float:
        if not self.align:
            return self.interval_seconds
        now = time.time() if now is None else now
        delay = seconds_until_boundary(now, self.interval_seconds)
        # a wake-up just short of the boundary must not fire twice
        if delay < min(1.0, self.interval_seconds / 2):
            delay += self.interval_seconds
        return delay

    async def _loop(self) -> None:
        while True:
            await asyncio.sleep(self.next_delay())
            try:
                await self.run_once()
            except Exception:
                logger.exception("Sweep run failed", sweep=self.name)


def seconds_until_boundary(now: float, period: float) -> float:
    """Seconds from ``now`` to the next multiple of ``period``. Never zero."""
    return period - (now % period)


def build_subscription_sweeps(
    session_factory: async_sessionmaker[AsyncSession],
) -> List[PeriodicSweep]:
    """Create the hourly expiry sweep and the daily sweep that also reports stats."""

    async def hourly() -> int:
        return await deactivate_expired_subscriptions(session_factory)

    async def daily() -> int:
        modified = await deactivate_expired_subscriptions(session_factory)
        stats = await subscription_stats(session_factory)
        logger.info("Daily subscription report", modified=modified, **stats)
        return modified

    return [
        PeriodicSweep(
            "hourly", settings.SUBSCRIPTION_HOURLY_INTERVAL_SECONDS, hourly, align=True
        ),
        PeriodicSweep(
            "daily", settings.SUBSCRIPTION_DAILY_INTERVAL_SECONDS, daily, align=True
        ),
    ]
