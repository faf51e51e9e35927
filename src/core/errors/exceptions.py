"""
Unified exception hierarchy for outbound API calls.

Provides typed exceptions so the gateway can tell recoverable failures
(rejected credential, rate limiting) apart from everything else.
"""

# Import ErrorCategory from canonical source to avoid duplicate enum issues
# (comparing enums from different classes always returns False)
from core.types import ErrorCategory

RATE_LIMITED_RETRY_FAILED = "Rate-limited retry also failed"


class GatewayError(Exception):
    """
    Base exception for all outbound call errors.

    Attributes:
        message: Human-readable error description
        category: Error classification (auth, transient, permanent)
        cause: Original exception if wrapping
        context: Additional context dict for debugging
        status_code: HTTP status of the failed response, if any
        response_body: Response body text (truncated), if any
        rate_limited_retry_failed: True when this error came from the replay
            that followed a rate-limit pause
    """

    category: ErrorCategory = ErrorCategory.UNKNOWN

    def __init__(
        self,
        message: str,
        cause: Exception | None = None,
        context: dict | None = None,
        status_code: int | None = None,
        response_body: str | None = None,
    ):
        self.message = message
        self.cause = cause
        self.context = context or {}
        self.status_code = status_code
        self.response_body = response_body
        self.rate_limited_retry_failed = False
        super().__init__(message)

    def mark_rate_limited_retry_failed(self) -> None:
        """Annotate this error as the failure of a post-backoff replay."""
        if self.rate_limited_retry_failed:
            return
        self.rate_limited_retry_failed = True
        self.context["rate_limited_retry_failed"] = True
        self.message = f"{RATE_LIMITED_RETRY_FAILED}: {self.message}"
        self.args = (self.message,)

    def __str__(self) -> str:
        parts = [self.message]
        if self.cause:
            parts.append(f"Caused by: {self.cause}")
        return " | ".join(parts)


# =============================================================================
# Recoverable Errors
# =============================================================================


class UnauthorizedError(GatewayError):
    """Remote API rejected the bearer credential (401)."""

    category = ErrorCategory.AUTH


class RateLimitedError(GatewayError):
    """Remote API signalled overload (429 or a rate-limit 400)."""

    category = ErrorCategory.TRANSIENT

    def __init__(
        self,
        message: str,
        retry_after: float | None = None,
        cause: Exception | None = None,
        context: dict | None = None,
        status_code: int | None = None,
        response_body: str | None = None,
    ):
        super().__init__(message, cause, context, status_code, response_body)
        self.retry_after = retry_after  # Seconds to wait if provided


# =============================================================================
# Transport / Remote Errors (never retried by the gateway)
# =============================================================================


class RemoteApiError(GatewayError):
    """Remote API answered with a non-recoverable status or a malformed body."""

    def __init__(
        self,
        message: str,
        category: ErrorCategory = ErrorCategory.PERMANENT,
        cause: Exception | None = None,
        context: dict | None = None,
        status_code: int | None = None,
        response_body: str | None = None,
    ):
        super().__init__(message, cause, context, status_code, response_body)
        self.category = category


class TransportError(GatewayError):
    """Network failure or timeout before a response was received."""

    category = ErrorCategory.TRANSIENT


def classify_http_status(status_code: int) -> ErrorCategory:
    """Classify HTTP status code into error category."""
    if 200 <= status_code < 300:
        return ErrorCategory.UNKNOWN  # Not an error

    if status_code == 401:
        return ErrorCategory.AUTH

    if status_code == 429:
        return ErrorCategory.TRANSIENT  # Rate limited

    if 400 <= status_code < 500:
        return ErrorCategory.PERMANENT  # Client errors, won't fix with retry

    if status_code >= 500:
        return ErrorCategory.TRANSIENT  # Server errors, may recover

    return ErrorCategory.UNKNOWN


__all__ = [
    "ErrorCategory",
    "GatewayError",
    "UnauthorizedError",
    "RateLimitedError",
    "RemoteApiError",
    "TransportError",
    "classify_http_status",
    "RATE_LIMITED_RETRY_FAILED",
]
