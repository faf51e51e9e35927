"""
Admission limiter for outbound API calls.

Enforces a minimum gap between calls and supports an externally imposed
cool-down. The whole state is a single "earliest next start" instant shared
by every caller of one limiter instance.

How It Works:
- wait() suspends until now >= next_at (returns at once if already past)
- notify_done() slides next_at to now + min_gap after a successful call, never backward
- pause(seconds) sets next_at to now + seconds, overriding any pending value

Usage:
    limiter = AdmissionLimiter(min_gap_seconds=0.3)

    await limiter.wait()
    response = await make_request()
    limiter.notify_done()

    # Remote signalled overload
    limiter.pause(30)
"""

import logging
import threading

from core.resilience.clock import SYSTEM_CLOCK, Clock

logger = logging.getLogger(__name__)

# Start conservative: 300ms between calls
DEFAULT_MIN_GAP_SECONDS = 0.3


class AdmissionLimiter:
    """
    Global pacing gate for outbound calls.

    Thread-safe and async-safe: the instant is only read and written under
    a lock, and nothing awaits while holding it.

    Attributes:
        min_gap_seconds: Spacing applied after each successful call
        name: Name for logging
    """

    def __init__(
        self,
        min_gap_seconds: float = DEFAULT_MIN_GAP_SECONDS,
        clock: Clock | None = None,
        name: str = "admission",
    ):
        if min_gap_seconds < 0:
            raise ValueError(f"min_gap_seconds must be >= 0, got {min_gap_seconds}")

        self._min_gap = float(min_gap_seconds)
        self._clock = clock or SYSTEM_CLOCK
        self._next_at = 0.0  # No restriction until the first call completes
        self._lock = threading.Lock()
        self.name = name

        logger.info(
            f"Admission limiter '{name}' initialized",
            extra={"limiter": name, "min_gap_ms": self._min_gap * 1000},
        )

    @property
    def min_gap_seconds(self) -> float:
        return self._min_gap

    @property
    def next_at(self) -> float:
        """Earliest instant (epoch seconds) a new call may start."""
        with self._lock:
            return self._next_at

    def _remaining_delay(self) -> float:
        with self._lock:
            return max(0.0, self._next_at - self._clock.now())

    async def wait(self) -> None:
        """
        Wait until the shared instant has passed.

        Re-checks after each sleep so a pause() issued while this caller was
        waiting extends the wait.
        """
        delay = self._remaining_delay()
        while delay > 0:
            logger.debug(
                f"Admission gate closed for '{self.name}', waiting {delay:.3f}s",
                extra={"limiter": self.name, "delay_seconds": delay},
            )
            await self._clock.sleep(delay)
            delay = self._remaining_delay()

    def notify_done(self) -> None:
        """
        Slide the window forward after a successful call.

        Never moves the instant backward, so a pending pause() survives.
        """
        with self._lock:
            self._next_at = max(self._next_at, self._clock.now() + self._min_gap)

    def pause(self, seconds: float) -> None:
        """
        Impose a cool-down: no call may start before now + seconds.

        Overrides whatever instant was pending.
        """
        if seconds < 0:
            raise ValueError(f"pause duration must be >= 0, got {seconds}")

        with self._lock:
            self._next_at = self._clock.now() + seconds

        logger.info(
            f"Admission limiter '{self.name}' paused for {seconds:.3f}s",
            extra={"limiter": self.name, "delay_seconds": seconds},
        )

    def get_stats(self) -> dict:
        """
        Get current limiter statistics.

        Returns:
            Dict with the pending instant and configuration
        """
        with self._lock:
            next_at = self._next_at
            remaining = max(0.0, next_at - self._clock.now())
        return {
            "name": self.name,
            "min_gap_seconds": self._min_gap,
            "next_at": next_at,
            "remaining_delay_seconds": remaining,
        }


__all__ = [
    "AdmissionLimiter",
    "DEFAULT_MIN_GAP_SECONDS",
]
