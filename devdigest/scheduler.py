"""
Weekly scheduler - fires the newsletter cycle at a fixed weekday and time.

Defaults to Monday 09:00 local time. The scheduler only decides *when*; what
runs is the job callable (normally Pipeline.run_cycle). A failing job is logged
and the scheduler waits for the next slot.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from datetime import datetime, timedelta
from typing import Any

from devdigest.config import SCHEDULE_HOUR, SCHEDULE_MINUTE, SCHEDULE_WEEKDAY
from devdigest.observability.logging import get_logger
from devdigest.observability.telemetry import counter

logger = get_logger(__name__)

WEEKDAY_NAMES = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"]


def next_run_after(
    now: datetime,
    weekday: int = SCHEDULE_WEEKDAY,
    hour: int = SCHEDULE_HOUR,
    minute: int = SCHEDULE_MINUTE,
) -> datetime:
    """
    Next scheduled slot strictly after ``now``.

    Args:
        now: Reference time (naive local or tz-aware, result matches)
        weekday: 0=Monday ... 6=Sunday
        hour: 0-23
        minute: 0-59
    """
    if not 0 <= weekday <= 6:
        raise ValueError(f"weekday must be 0-6, got {weekday}")

    days_ahead = (weekday - now.weekday()) % 7
    candidate = (now + timedelta(days=days_ahead)).replace(
        hour=hour, minute=minute, second=0, microsecond=0
    )
    if candidate <= now:
        candidate += timedelta(days=7)
    return candidate


class WeeklyScheduler:
    """Runs ``job`` once per week until stopped."""

    def __init__(
        self,
        job: Callable[[], Awaitable[Any]],
        weekday: int = SCHEDULE_WEEKDAY,
        hour: int = SCHEDULE_HOUR,
        minute: int = SCHEDULE_MINUTE,
        clock: Callable[[], datetime] = datetime.now,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.job = job
        self.weekday = weekday
        self.hour = hour
        self.minute = minute
        self.clock = clock
        self._sleep = sleep
        self._task: asyncio.Task | None = None
        self._last_slot: datetime | None = None

    def describe(self) -> str:
        return f"every {WEEKDAY_NAMES[self.weekday]} at {self.hour:02d}:{self.minute:02d}"

    def next_run(self) -> datetime:
        now = self.clock()
        # Early wake-ups must not fire the same slot twice
        if self._last_slot is not None and now < self._last_slot:
            now = self._last_slot
        return next_run_after(now, self.weekday, self.hour, self.minute)

    async def run_once(self) -> None:
        """Sleep until the next slot, then run the job once."""
        target = self.next_run()
        delay = max((target - self.clock()).total_seconds(), 0.0)
        logger.debug("Next scheduled newsletter at %s (in %.0fs)", target.isoformat(), delay)
        await self._sleep(delay)
        self._last_slot = target

        logger.info("Executing scheduled newsletter delivery...")
        counter("scheduler.fired")
        try:
            await self.job()
        except Exception as e:
            counter("scheduler.job_error")
            logger.exception("Scheduled newsletter run failed: %s", e)

    async def run_forever(self) -> None:
        while True:
            await self.run_once()

    def start(self) -> asyncio.Task:
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self.run_forever())
            logger.info("Newsletter will be sent automatically %s", self.describe())
        return self._task

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
