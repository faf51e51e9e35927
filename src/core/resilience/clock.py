"""
Clock abstraction for time-dependent resilience components.

The limiter, credential manager and backoff policy read time through a
Clock so tests can advance time without sleeping.
"""

import asyncio
import time
from typing import Protocol


class Clock(Protocol):
    """Protocol for wall-clock time and suspension."""

    def now(self) -> float:
        """Current wall-clock time as epoch seconds."""
        ...

    async def sleep(self, seconds: float) -> None:
        """Suspend the calling task for the given number of seconds."""
        ...


class SystemClock:
    """Clock backed by time.time() and asyncio.sleep()."""

    def now(self) -> float:
        return time.time()

    async def sleep(self, seconds: float) -> None:
        await asyncio.sleep(seconds)


SYSTEM_CLOCK = SystemClock()


__all__ = ["Clock", "SystemClock", "SYSTEM_CLOCK"]
