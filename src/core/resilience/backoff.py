"""
Backoff policy for rate-limited calls.

Sizes the pause before a rate-limited replay either from the server's
Retry-After header or, when that is absent or unusable, from a randomized
fallback spread wide enough to desynchronize processes sharing one budget.
"""

import logging
import random
import re
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import UTC
from email.utils import parsedate_to_datetime

from core.resilience.clock import SYSTEM_CLOCK, Clock

logger = logging.getLogger(__name__)

DEFAULT_BACKOFF_MIN_SECONDS = 15.0
DEFAULT_BACKOFF_MAX_SECONDS = 45.0
DEFAULT_MAX_RETRY_AFTER_SECONDS = 300.0

DELAY_SOURCE_SERVER = "server"
DELAY_SOURCE_JITTER = "jitter"

_SECONDS_PATTERN = re.compile(r"^\d+$")


def parse_retry_after(value: str | None, now: float) -> float | None:
    """
    Parse a Retry-After header value into seconds.

    Purely numeric values are seconds. Anything else is tried as an HTTP
    date, giving the non-negative difference from now.

    Args:
        value: Raw header value (may be None)
        now: Current wall-clock time as epoch seconds

    Returns:
        Seconds to wait, or None if absent or unparseable
    """
    if value is None:
        return None

    value = str(value).strip()
    if not value:
        return None

    if _SECONDS_PATTERN.match(value):
        return float(int(value))

    try:
        when = parsedate_to_datetime(value)
    except (TypeError, ValueError, IndexError):
        return None

    if when.tzinfo is None:
        when = when.replace(tzinfo=UTC)

    return max(0.0, when.timestamp() - now)


@dataclass
class BackoffDecision:
    """Pause to apply before a rate-limited replay."""

    seconds: float
    source: str  # DELAY_SOURCE_SERVER or DELAY_SOURCE_JITTER
    server_retry_after: float | None = None


class BackoffPolicy:
    """
    Computes the pause for a rate-limited call.

    Attributes:
        min_seconds: Lower bound of the randomized fallback
        max_seconds: Upper bound of the randomized fallback
        max_retry_after_seconds: Cap applied to server-supplied values
    """

    def __init__(
        self,
        min_seconds: float = DEFAULT_BACKOFF_MIN_SECONDS,
        max_seconds: float = DEFAULT_BACKOFF_MAX_SECONDS,
        max_retry_after_seconds: float | None = DEFAULT_MAX_RETRY_AFTER_SECONDS,
        rng: random.Random | None = None,
        clock: Clock | None = None,
    ):
        if min_seconds < 0 or max_seconds < min_seconds:
            raise ValueError(
                f"Invalid fallback range: [{min_seconds}, {max_seconds}]"
            )

        self.min_seconds = float(min_seconds)
        self.max_seconds = float(max_seconds)
        self.max_retry_after_seconds = max_retry_after_seconds
        self._rng = rng or random.Random()
        self._clock = clock or SYSTEM_CLOCK

    def fallback_delay(self) -> float:
        """Randomized delay uniformly distributed over [min_seconds, max_seconds]."""
        return self._rng.uniform(self.min_seconds, self.max_seconds)

    def delay_for(self, headers: Mapping[str, str] | None) -> BackoffDecision:
        """
        Decide how long to pause given the rate-limited response's headers.

        Args:
            headers: Response headers with lower-cased names

        Returns:
            BackoffDecision with the delay and where it came from
        """
        raw = headers.get("retry-after") if headers else None
        server_delay = parse_retry_after(raw, self._clock.now())

        if server_delay is None:
            if raw is not None:
                logger.debug(
                    "Ignoring unparseable Retry-After header",
                    extra={"retry_after_header": raw},
                )
            return BackoffDecision(self.fallback_delay(), DELAY_SOURCE_JITTER)

        delay = server_delay
        if self.max_retry_after_seconds is not None and delay > self.max_retry_after_seconds:
            logger.warning(
                f"Server Retry-After of {delay:.0f}s exceeds cap, "
                f"using {self.max_retry_after_seconds:.0f}s",
                extra={
                    "server_retry_after": server_delay,
                    "delay_seconds": self.max_retry_after_seconds,
                },
            )
            delay = self.max_retry_after_seconds

        return BackoffDecision(delay, DELAY_SOURCE_SERVER, server_retry_after=server_delay)


__all__ = [
    "BackoffDecision",
    "BackoffPolicy",
    "parse_retry_after",
    "DEFAULT_BACKOFF_MIN_SECONDS",
    "DEFAULT_BACKOFF_MAX_SECONDS",
    "DEFAULT_MAX_RETRY_AFTER_SECONDS",
    "DELAY_SOURCE_SERVER",
    "DELAY_SOURCE_JITTER",
]
