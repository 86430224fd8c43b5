"""Events delivered to the watcher loop over its event queue."""

from enum import Enum


class EventType(Enum):
    INTERRUPTED = "interrupted"
    ALARM_FIRED = "alarm_fired"
