import asyncio

import pytest

from apps.watcher.events import EventType
from apps.watcher.timer import ALARM_JOB_NAME, AlarmTimer


class FlakyScheduler:
    """Minimal APScheduler stand-in whose add_job fails a set number of times."""

    def __init__(self, failures: int) -> None:
        self.failures = failures
        self.attempts = 0
        self.jobs: list[dict] = []
        self.running = False

    def start(self) -> None:
        self.running = True

    def shutdown(self, wait: bool = True) -> None:
        self.running = False

    def add_job(self, func, **kwargs) -> None:
        self.attempts += 1
        if self.attempts <= self.failures:
            raise RuntimeError("scheduler unavailable")
        self.jobs.append(kwargs)


def test_alarm_fires_into_queue() -> None:
    async def scenario() -> EventType:
        events: asyncio.Queue = asyncio.Queue()
        timer = AlarmTimer()
        timer.start(events)
        try:
            await timer.arm(0.05)
            return await asyncio.wait_for(events.get(), timeout=5)
        finally:
            timer.shutdown()

    assert asyncio.run(scenario()) is EventType.ALARM_FIRED


def test_alarm_does_not_fire_early() -> None:
    async def scenario() -> bool:
        events: asyncio.Queue = asyncio.Queue()
        timer = AlarmTimer()
        timer.start(events)
        try:
            await timer.arm(30)
            await asyncio.sleep(0.1)
            return events.empty()
        finally:
            timer.shutdown()

    assert asyncio.run(scenario())


def test_arm_before_start_fails() -> None:
    with pytest.raises(RuntimeError):
        asyncio.run(AlarmTimer(scheduler=FlakyScheduler(0)).arm(1))


def test_arm_retries_transient_failures() -> None:
    scheduler = FlakyScheduler(failures=2)
    timer = AlarmTimer(scheduler=scheduler, max_attempts=3)
    timer.start(asyncio.Queue())

    asyncio.run(timer.arm(5))

    assert scheduler.attempts == 3
    assert len(scheduler.jobs) == 1
    assert scheduler.jobs[0]["name"] == ALARM_JOB_NAME
    assert scheduler.jobs[0]["misfire_grace_time"] is None


def test_arm_gives_up_after_max_attempts() -> None:
    scheduler = FlakyScheduler(failures=5)
    timer = AlarmTimer(scheduler=scheduler, max_attempts=2)
    timer.start(asyncio.Queue())

    with pytest.raises(RuntimeError, match="unavailable"):
        asyncio.run(timer.arm(5))

    assert scheduler.attempts == 2


def test_shutdown_stops_scheduler() -> None:
    scheduler = FlakyScheduler(0)
    timer = AlarmTimer(scheduler=scheduler)
    timer.start(asyncio.Queue())

    timer.shutdown()

    assert not scheduler.running


def test_retry_wait_does_not_block_event_loop() -> None:
    scheduler = FlakyScheduler(failures=2)
    timer = AlarmTimer(scheduler=scheduler, max_attempts=3)
    timer.start(asyncio.Queue())

    async def scenario() -> int:
        ticks = 0

        async def ticker() -> None:
            nonlocal ticks
            while True:
                ticks += 1
                await asyncio.sleep(0.01)

        task = asyncio.create_task(ticker())
        await asyncio.sleep(0)
        try:
            await timer.arm(5)
        finally:
            task.cancel()
        return ticks

    # Two backoff waits (~0.15s) leave room for the ticker to keep running.
    assert asyncio.run(scenario()) >= 3
    assert scheduler.attempts == 3
