"""
Time sources for cooldowns and cache expiry.

Every component that compares timestamps takes a Clock so tests can move
time forward instead of sleeping.
"""

import threading
import time
from typing import Protocol


class Clock(Protocol):
    """Anything that reports the current time in seconds."""

    def now(self) -> float:
        ...


class SystemClock:
    """Wall-clock time from time.time()."""

    def now(self) -> float:
        return time.time()


class ManualClock:
    """
    A clock that only moves when told to.

    Example:
        >>> clock = ManualClock(start=100.0)
        >>> clock.advance(61)
        >>> clock.now()
        161.0
    """

    def __init__(self, start: float = 0.0) -> None:
        self._now = float(start)
        self._lock = threading.Lock()

    def now(self) -> float:
        with self._lock:
            return self._now

    def advance(self, seconds: float) -> None:
        if seconds < 0:
            raise ValueError(f"cannot move a clock backwards ({seconds}s)")
        with self._lock:
            self._now += seconds

    def set(self, timestamp: float) -> None:
        with self._lock:
            self._now = float(timestamp)
