import asyncio
from datetime import datetime, timezone
from typing import Callable, Iterable

import pytest

from apps.watcher.events import EventType
from apps.watcher.fetcher import TransportError
from utils.schemas import ItemDetail


def utc(*args: int) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


class FakeFetcher:
    """In-memory fetcher: detail for id N is {id: N, score: N*10, descendants: N}."""

    def __init__(self, ids: list[int], fail_on: set[int] | None = None) -> None:
        self.ids = ids
        self.fail_on = fail_on or set()
        self.calls: list[object] = []

    async def list_top_ids(self) -> list[int]:
        self.calls.append("top")
        return list(self.ids)

    async def get_detail(self, item_id: int) -> ItemDetail:
        self.calls.append(item_id)
        if item_id in self.fail_on:
            raise TransportError(f"boom on {item_id}")
        return ItemDetail.model_validate(
            {"id": item_id, "score": item_id * 10, "descendants": item_id}
        )


class FakeTimer:
    """
    Stands in for AlarmTimer without real delays.

    Each arm() immediately queues ALARM_FIRED until `alarms` alarms have been
    armed, after which INTERRUPTED is queued instead.
    """

    def __init__(self, alarms: int = 0) -> None:
        self.alarms = alarms
        self.armed: list[float] = []
        self.events: asyncio.Queue | None = None
        self.started = False
        self.stopped = False

    def start(self, events: asyncio.Queue) -> None:
        self.events = events
        self.started = True

    async def arm(self, delay: float) -> None:
        self.armed.append(delay)
        if len(self.armed) <= self.alarms:
            self.events.put_nowait(EventType.ALARM_FIRED)
        else:
            self.events.put_nowait(EventType.INTERRUPTED)

    def shutdown(self) -> None:
        self.stopped = True


def sequence_clock(times: Iterable[datetime]) -> Callable[[], datetime]:
    it = iter(times)
    return lambda: next(it)


@pytest.fixture
def fake_fetcher() -> FakeFetcher:
    return FakeFetcher([5, 6, 7])
