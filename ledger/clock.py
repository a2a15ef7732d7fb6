"""
Time Sources

The ledger compares release times against an integer "now" supplied by
a clock. Clocks must never go backwards.
"""

from __future__ import annotations

import time
from typing import Protocol


class Clock(Protocol):
    """Supplies the current time as integer unix seconds."""

    def now(self) -> int:
        ...


class SystemClock:
    """Wall-clock time, truncated to whole seconds."""

    def now(self) -> int:
        return int(time.time())


class ManualClock:
    """
    Settable clock for tests and simulations.

    Usage:
        clock = ManualClock(1_700_000_000)
        clock.advance(60)
    """

    def __init__(self, start: int = 0) -> None:
        self._now = start

    def now(self) -> int:
        return self._now

    def set(self, value: int) -> None:
        if value < self._now:
            raise ValueError(f"Clock cannot move backwards: {value} < {self._now}")
        self._now = value

    def advance(self, seconds: int) -> int:
        self.set(self._now + seconds)
        return self._now


__all__ = ["Clock", "SystemClock", "ManualClock"]
