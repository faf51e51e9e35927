"""
Resilience patterns module.

Provides pacing and backoff primitives for calls against a rate-limited API.

Components:
    - AdmissionLimiter: Minimum gap between calls plus explicit cool-down
    - BackoffPolicy: Retry-After parsing with randomized fallback
    - Clock / SystemClock: Injectable time source
"""

from .admission import DEFAULT_MIN_GAP_SECONDS, AdmissionLimiter
from .backoff import (
    DEFAULT_BACKOFF_MAX_SECONDS,
    DEFAULT_BACKOFF_MIN_SECONDS,
    DEFAULT_MAX_RETRY_AFTER_SECONDS,
    DELAY_SOURCE_JITTER,
    DELAY_SOURCE_SERVER,
    BackoffDecision,
    BackoffPolicy,
    parse_retry_after,
)
from .clock import SYSTEM_CLOCK, Clock, SystemClock

__all__ = [
    # Admission
    "AdmissionLimiter",
    "DEFAULT_MIN_GAP_SECONDS",
    # Backoff
    "BackoffPolicy",
    "BackoffDecision",
    "parse_retry_after",
    "DEFAULT_BACKOFF_MIN_SECONDS",
    "DEFAULT_BACKOFF_MAX_SECONDS",
    "DEFAULT_MAX_RETRY_AFTER_SECONDS",
    "DELAY_SOURCE_SERVER",
    "DELAY_SOURCE_JITTER",
    # Clock
    "Clock",
    "SystemClock",
    "SYSTEM_CLOCK",
]
