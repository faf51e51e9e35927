"""
Core types shared across modules.

This module provides the base enums used by the error hierarchy and the
resilience layer to decide how a failed outbound call is handled.
"""

from enum import Enum


class ErrorCategory(Enum):
    """
    Classification of error types for handling decisions.

    Categories:
        TRANSIENT: Temporary failures (rate limiting, network errors, 5xx)
        AUTH: Credential rejected by the remote API (401)
        PERMANENT: Failures that won't succeed on replay (404, validation)
        UNKNOWN: Unclassified errors
    """

    TRANSIENT = "transient"
    AUTH = "auth"
    PERMANENT = "permanent"
    UNKNOWN = "unknown"


__all__ = [
    "ErrorCategory",
]
