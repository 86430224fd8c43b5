"""
Alarm Timer - Detached One-Shot Alarms via APScheduler

Each call to arm() schedules a one-shot DateTrigger job on an
AsyncIOScheduler. When it fires, the job only puts ALARM_FIRED on the
watcher's event queue; it never runs watcher logic itself.
"""

import asyncio
import logging
from datetime import datetime, timedelta, timezone

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.date import DateTrigger
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from apps.watcher.events import EventType
from utils.config import settings

logger = logging.getLogger(__name__)

ALARM_JOB_NAME = "hn-watcher-sleep"


class AlarmTimer:
    """
    Posts ALARM_FIRED to an event queue after a delay.

    Handles:
    - APScheduler setup and shutdown
    - One-shot alarm jobs (one per cycle)
    - Retrying a failed arm before giving up
    """

    def __init__(
        self,
        scheduler: AsyncIOScheduler | None = None,
        max_attempts: int | None = None,
    ) -> None:
        """
        Initialize timer.

        Args:
            scheduler: APScheduler instance, created on start() when omitted
            max_attempts: Attempts to arm an alarm, defaults to settings.TIMER_ARM_MAX_ATTEMPTS
        """
        self.scheduler = scheduler
        self.max_attempts = max_attempts or settings.TIMER_ARM_MAX_ATTEMPTS
        self.events: asyncio.Queue | None = None

    def start(self, events: asyncio.Queue) -> None:
        """Bind the event queue and start the scheduler (requires a running loop)."""
        self.events = events
        if self.scheduler is None:
            self.scheduler = AsyncIOScheduler()
        if not self.scheduler.running:
            self.scheduler.start()

    async def _fire(self) -> None:
        await self.events.put(EventType.ALARM_FIRED)

    async def arm(self, delay: float) -> None:
        """
        Schedule the next ALARM_FIRED `delay` seconds from now.

        Raises:
            RuntimeError: If the job could not be scheduled after all attempts
        """
        if self.events is None or self.scheduler is None:
            raise RuntimeError("AlarmTimer.arm() called before start()")

        async for attempt in AsyncRetrying(
            retry=retry_if_exception_type(RuntimeError),
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_exponential(multiplier=0.05, max=1),
            reraise=True,
        ):
            with attempt:
                run_date = datetime.now(timezone.utc) + timedelta(seconds=delay)
                self.scheduler.add_job(
                    self._fire,
                    trigger=DateTrigger(run_date=run_date),
                    name=ALARM_JOB_NAME,
                    misfire_grace_time=None,
                )

        logger.info(f"Sleeping for {delay:g} secs", extra={"delay_seconds": delay})

    def shutdown(self) -> None:
        """Stop the scheduler; alarms not yet fired are dropped."""
        if self.scheduler is not None and self.scheduler.running:
            self.scheduler.shutdown(wait=False)
