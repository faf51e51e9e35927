"""
Centralized error classification for remote API responses.

Turns a failed HTTP response into the typed GatewayError hierarchy so the
gateway only has to decide between refresh-and-replay, pause-and-replay and
propagate.
"""

import json
import re
from typing import Any

from core.errors.exceptions import (
    GatewayError,
    RateLimitedError,
    RemoteApiError,
    UnauthorizedError,
    classify_http_status,
)

# The remote API reports some rate-limit conditions as a plain 400 with
# one of these phrases in the body instead of a 429.
RATE_LIMIT_BODY_PATTERNS = (
    re.compile(r"too many requests", re.IGNORECASE),
    re.compile(r"made too many requests", re.IGNORECASE),
)

# Response bodies are truncated to this length in errors and logs
MAX_BODY_CHARS = 500


def body_as_text(body: Any) -> str:
    """Render a response body (bytes, str, or decoded JSON) as text."""
    if body is None:
        return ""
    if isinstance(body, bytes):
        return body.decode("utf-8", errors="replace")
    if isinstance(body, str):
        return body
    try:
        return json.dumps(body)
    except (TypeError, ValueError):
        return str(body)


def truncate_body(text: str, limit: int = MAX_BODY_CHARS) -> str:
    return text[:limit] + "..." if len(text) > limit else text


def is_rate_limit_response(status: int, body: Any = None) -> bool:
    """
    Check if a response is a rate-limit signal.

    True for any 429, and for a 400 whose body mentions too many requests.
    """
    if status == 429:
        return True
    if status != 400:
        return False
    text = body_as_text(body)
    return any(pattern.search(text) for pattern in RATE_LIMIT_BODY_PATTERNS)


_STATUS_LABELS: dict[int, str] = {
    400: "Bad request",
    401: "Unauthorized",
    403: "Forbidden",
    404: "Not found",
    429: "Rate limited",
}


def error_from_response(
    status: int,
    body: Any,
    url: str,
    method: str = "GET",
) -> GatewayError:
    """
    Build the appropriate GatewayError for a non-2xx response.

    Args:
        status: HTTP status code
        body: Response body (bytes, text or decoded JSON)
        url: Request URL, for the message
        method: Request method, for the message

    Returns:
        UnauthorizedError, RateLimitedError or RemoteApiError
    """
    text = truncate_body(body_as_text(body))
    context = {"url": url, "method": method}

    if status == 401:
        return UnauthorizedError(
            f"Unauthorized ({status}): {method} {url}",
            context=context,
            status_code=status,
            response_body=text,
        )

    if is_rate_limit_response(status, body):
        return RateLimitedError(
            f"Rate limited ({status}): {method} {url}",
            context=context,
            status_code=status,
            response_body=text,
        )

    label = _STATUS_LABELS.get(status)
    if label is None:
        label = "Client error" if 400 <= status < 500 else "HTTP error"
    return RemoteApiError(
        f"{label} ({status}): {method} {url}",
        category=classify_http_status(status),
        context=context,
        status_code=status,
        response_body=text,
    )


__all__ = [
    "RATE_LIMIT_BODY_PATTERNS",
    "body_as_text",
    "truncate_body",
    "is_rate_limit_response",
    "error_from_response",
]
