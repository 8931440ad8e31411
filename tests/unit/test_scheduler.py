"""Unit tests for the weekly scheduler"""

from __future__ import annotations

import asyncio
from datetime import datetime

import pytest

from devdigest.observability.telemetry import get_counter
from devdigest.scheduler import WeeklyScheduler, next_run_after


@pytest.mark.parametrize(
    "now, expected",
    [
        # Sunday evening -> next morning
        (datetime(2025, 3, 2, 20, 0), datetime(2025, 3, 3, 9, 0)),
        # Monday before the slot -> same day
        (datetime(2025, 3, 3, 8, 59), datetime(2025, 3, 3, 9, 0)),
        # Exactly on the slot -> following week
        (datetime(2025, 3, 3, 9, 0), datetime(2025, 3, 10, 9, 0)),
        # Wednesday -> next Monday
        (datetime(2025, 3, 5, 12, 0), datetime(2025, 3, 10, 9, 0)),
    ],
)
def test_next_run_after_monday_nine(now, expected):
    assert next_run_after(now, weekday=0, hour=9, minute=0) == expected


def test_next_run_after_rejects_bad_weekday():
    with pytest.raises(ValueError):
        next_run_after(datetime(2025, 3, 3), weekday=7)


def test_describe():
    scheduler = WeeklyScheduler(job=None, weekday=4, hour=17, minute=5)

    assert scheduler.describe() == "every Friday at 17:05"


def test_run_once_sleeps_until_slot_then_runs_job():
    calls = []
    sleeps = []

    async def job():
        calls.append("ran")

    async def fake_sleep(seconds):
        sleeps.append(seconds)

    scheduler = WeeklyScheduler(
        job,
        weekday=0,
        hour=9,
        minute=0,
        clock=lambda: datetime(2025, 3, 3, 8, 0),
        sleep=fake_sleep,
    )

    asyncio.run(scheduler.run_once())

    assert sleeps == [3600.0]
    assert calls == ["ran"]
    assert get_counter("scheduler.fired") == 1


def test_same_slot_never_fires_twice_on_early_wakeup():
    async def job():
        return None

    async def fake_sleep(seconds):
        return None

    # Clock stuck before the slot, as if sleep returned early
    scheduler = WeeklyScheduler(
        job, weekday=0, hour=9, minute=0, clock=lambda: datetime(2025, 3, 3, 8, 0), sleep=fake_sleep
    )

    asyncio.run(scheduler.run_once())

    assert scheduler.next_run() == datetime(2025, 3, 10, 9, 0)


def test_job_failure_is_contained():
    async def job():
        raise RuntimeError("cycle exploded")

    async def fake_sleep(seconds):
        return None

    scheduler = WeeklyScheduler(job, clock=lambda: datetime(2025, 3, 3, 8, 0), sleep=fake_sleep)

    asyncio.run(scheduler.run_once())

    assert get_counter("scheduler.job_error") == 1


def test_start_and_stop():
    async def job():
        return None

    async def scenario():
        scheduler = WeeklyScheduler(job)
        task = scheduler.start()
        assert scheduler.start() is task
        await scheduler.stop()
        return task

    task = asyncio.run(scenario())
    assert task.cancelled()
