"""
Error classification and exception hierarchy.

Provides:
- GatewayError hierarchy for typed exceptions
- HTTP status and rate-limit response classification
"""

from core.errors.classifiers import (
    RATE_LIMIT_BODY_PATTERNS,
    body_as_text,
    error_from_response,
    is_rate_limit_response,
    truncate_body,
)
from core.errors.exceptions import (
    RATE_LIMITED_RETRY_FAILED,
    ErrorCategory,
    GatewayError,
    RateLimitedError,
    RemoteApiError,
    TransportError,
    UnauthorizedError,
    classify_http_status,
)

__all__ = [
    # Enums
    "ErrorCategory",
    # Exceptions
    "GatewayError",
    "UnauthorizedError",
    "RateLimitedError",
    "RemoteApiError",
    "TransportError",
    "RATE_LIMITED_RETRY_FAILED",
    # Classification utilities
    "classify_http_status",
    "is_rate_limit_response",
    "error_from_response",
    "body_as_text",
    "truncate_body",
    "RATE_LIMIT_BODY_PATTERNS",
]
