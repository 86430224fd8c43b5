"""
Watcher Scheduler - Event Loop for Poll/Enrich/Persist Cycles

Single consumer of an event queue fed by the alarm timer and by SIGINT/SIGTERM.

Features:
- Initial alarm on start, then one alarm armed after every completed cycle
- Snapshot rotation check against the snapshot's own capture date
- Fail-fast by default (FAIL_FAST=false logs the failed cycle and keeps polling)
- RUN_ONCE mode for a single capture
- Graceful shutdown handling

Usage:
    # Poll continuously (default)
    python -m apps.watcher

    # Capture one snapshot and exit
    RUN_ONCE=true python -m apps.watcher
"""

import asyncio
import logging
import signal
import sys
from datetime import datetime, timezone
from enum import Enum
from typing import Callable

from apps.watcher.events import EventType
from apps.watcher.fetcher import DecodeError, HNFetcher, TransportError
from apps.watcher.snapshot import build_snapshot
from apps.watcher.timer import AlarmTimer
from apps.watcher.writer import OutputWriteError, SnapshotWriter
from utils.config import settings
from utils.logging import setup_logging
from utils.schemas import encode_snapshot

logger = logging.getLogger(__name__)

CYCLE_ERRORS = (TransportError, DecodeError, OutputWriteError)


class WatcherState(Enum):
    RUNNING = "running"
    STOPPED = "stopped"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class WatcherScheduler:
    """
    Event loop driving the snapshot pipeline.

    Handles:
    - Event queue consumption (ALARM_FIRED, INTERRUPTED)
    - One fetch/enrich/persist cycle per alarm
    - Arming the next alarm on the detached timer
    - Signal handling for graceful shutdown
    """

    def __init__(
        self,
        fetcher,
        writer: SnapshotWriter,
        timer: AlarmTimer | None = None,
        interval: float | None = None,
        page_size: int | None = None,
        fail_fast: bool | None = None,
        run_once: bool | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        """
        Initialize scheduler.

        Args:
            fetcher: Object exposing async list_top_ids() and get_detail(id)
            writer: Output writer owned by this loop
            timer: Alarm timer, defaults to an APScheduler-backed AlarmTimer
            interval: Seconds between a cycle's end and the next alarm
            page_size: Items kept per snapshot
            fail_fast: Stop the loop on the first failed cycle
            run_once: Capture a single snapshot then stop
            clock: Source of UTC capture times
        """
        self.fetcher = fetcher
        self.writer = writer
        self.timer = timer or AlarmTimer()
        self.interval = interval if interval is not None else settings.POLL_INTERVAL_SECONDS
        self.page_size = page_size if page_size is not None else settings.PAGE_SIZE
        self.fail_fast = settings.FAIL_FAST if fail_fast is None else fail_fast
        self.run_once = settings.RUN_ONCE if run_once is None else run_once
        self.clock = clock

        self.events: asyncio.Queue[EventType] = asyncio.Queue()
        self.state = WatcherState.STOPPED
        self._loop: asyncio.AbstractEventLoop | None = None
        self._snapshot_count = 0
        self._failed_cycles = 0

        logger.info(
            "WatcherScheduler initialized",
            extra={
                "interval_seconds": self.interval,
                "page_size": self.page_size,
                "fail_fast": self.fail_fast,
                "run_once": self.run_once,
            },
        )

    @property
    def snapshot_count(self) -> int:
        return self._snapshot_count

    @property
    def failed_cycles(self) -> int:
        return self._failed_cycles

    def interrupt(self) -> None:
        """Queue INTERRUPTED; safe to call from a signal handler or another thread."""
        if self._loop is not None:
            self._loop.call_soon_threadsafe(self.events.put_nowait, EventType.INTERRUPTED)
        else:
            self.events.put_nowait(EventType.INTERRUPTED)

    def setup_signal_handlers(self) -> None:
        """Setup handlers for graceful shutdown on SIGINT/SIGTERM."""

        def signal_handler(signum: int, frame: object) -> None:
            logger.info(f"Received signal {signum}, initiating graceful shutdown")
            self.interrupt()

        signal.signal(signal.SIGINT, signal_handler)
        signal.signal(signal.SIGTERM, signal_handler)

    async def run_cycle(self) -> None:
        """
        Capture, rotate and persist one snapshot.

        Rotation is evaluated with the snapshot's own timestamp before the write.

        Raises:
            TransportError, DecodeError, OutputWriteError: On any failed step
        """
        now = self.clock()
        snapshot = await build_snapshot(now, self.fetcher, self.page_size)

        path = self.writer.ensure_open_for(snapshot.timestamp.date())
        self.writer.append_line(encode_snapshot(snapshot))
        self._snapshot_count += 1

        logger.info(
            "Snapshot captured",
            extra={
                "t": snapshot.timestamp.isoformat(),
                "items": len(snapshot.items),
                "file_path": str(path),
            },
        )

    async def handle_alarm(self) -> None:
        """Run one cycle, apply the failure policy, then arm the next alarm."""
        try:
            await self.run_cycle()
        except CYCLE_ERRORS as e:
            self._failed_cycles += 1
            logger.error(
                "Snapshot cycle failed",
                extra={"error": str(e), "error_type": type(e).__name__},
                exc_info=True,
            )
            if self.fail_fast:
                raise

        if self.run_once:
            logger.info("RUN_ONCE mode: stopping after first cycle")
            self.state = WatcherState.STOPPED
            return

        await self.timer.arm(self.interval)

    async def start(self) -> None:
        """
        Open today's file, queue the first alarm and process events until stopped.

        Raises:
            TransportError, DecodeError, OutputWriteError: In fail-fast mode
        """
        self._loop = asyncio.get_running_loop()

        self.writer.ensure_open_for(self.clock().date())
        self.timer.start(self.events)
        self.events.put_nowait(EventType.ALARM_FIRED)
        self.state = WatcherState.RUNNING
        logger.info("Watcher started")

        try:
            while self.state is WatcherState.RUNNING:
                event = await self.events.get()

                if event is EventType.INTERRUPTED:
                    logger.info("Interrupted, stopping watcher")
                    self.state = WatcherState.STOPPED
                elif event is EventType.ALARM_FIRED:
                    await self.handle_alarm()
        finally:
            self.state = WatcherState.STOPPED
            self.timer.shutdown()
            self.writer.close()
            logger.info(
                "Watcher shutdown complete",
                extra={
                    "snapshots": self._snapshot_count,
                    "failed_cycles": self._failed_cycles,
                },
            )


async def main() -> None:
    """Main entry point for the watcher."""
    setup_logging(
        level=settings.LOG_LEVEL,
        format_type=settings.LOG_FORMAT,
        static_fields={
            "app": settings.APP_NAME,
            "version": settings.APP_VERSION,
            "env": settings.ENVIRONMENT,
        },
    )

    try:
        async with HNFetcher() as fetcher:
            scheduler = WatcherScheduler(fetcher=fetcher, writer=SnapshotWriter())
            scheduler.setup_signal_handlers()
            await scheduler.start()
    except Exception as e:
        logger.error("Watcher failed", extra={"error": str(e)}, exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    asyncio.run(main())
