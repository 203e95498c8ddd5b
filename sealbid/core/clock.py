"""
Clock - time source consumed by the auction engine.

Phases are derived from the time read at each call, so the engine never
depends on a timer. Tests drive a ManualClock instead of sleeping.
"""

import time
from typing import Protocol, runtime_checkable


@runtime_checkable
class Clock(Protocol):
    """Anything that can report the current time in whole seconds."""

    def now(self) -> int:
        ...


class SystemClock:
    """Wall-clock time (Unix seconds)."""

    def now(self) -> int:
        return int(time.time())


class ManualClock:
    """
    Clock that only moves when told to.

    Time never goes backwards: set() rejects earlier timestamps.
    """

    def __init__(self, start: int = 0):
        self._now = start

    def now(self) -> int:
        return self._now

    def advance(self, seconds: int) -> int:
        if seconds < 0:
            raise ValueError(f"Cannot advance by negative seconds: {seconds}")
        self._now += seconds
        return self._now

    def set(self, timestamp: int) -> int:
        if timestamp < self._now:
            raise ValueError(f"Clock cannot move backwards: {timestamp} < {self._now}")
        self._now = timestamp
        return self._now


__all__ = ["Clock", "SystemClock", "ManualClock"]
