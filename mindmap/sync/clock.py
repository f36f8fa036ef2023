"""
Injectable Clock
================

All debounce timing reads time through a clock object, never through
`time` directly, so coalescing can be driven deterministically.

MODES:
======
1. MonotonicClock: real elapsed seconds (time.monotonic)
2. ManualClock:    time only moves when advance() is called
"""

from __future__ import annotations
from dataclasses import dataclass
import time


class Clock:
    """Seconds on an arbitrary, monotonic origin."""

    def now(self) -> float:
        raise NotImplementedError


class MonotonicClock(Clock):
    def now(self) -> float:
        return time.monotonic()

    def __repr__(self) -> str:
        return "MonotonicClock()"


@dataclass
class ManualClock(Clock):
    """
    Clock that only moves when told to.

    GUARANTEES:
    - never reads system time
    - never goes backwards
    """
    _now: float = 0.0

    def now(self) -> float:
        return self._now

    def advance(self, seconds: float) -> float:
        if seconds < 0:
            raise ValueError("ManualClock cannot go backwards")
        self._now += seconds
        return self._now

    def __repr__(self) -> str:
        return f"ManualClock(now={self._now})"
